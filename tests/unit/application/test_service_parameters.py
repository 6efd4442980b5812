"""
Unit tests for building parameter snapshots from module options.
"""

from upload_broker.application.service_parameters import build_service_parameters, expand_hosts
from upload_broker.config.broker_config import UploadModuleOptions


def options(**overrides):
    data = {
        "access_key_id": "AKIDEXAMPLE",
        "access_key_secret": "secret",
        "region": "eu-west-1",
        "bucket_url": "https://bucket.s3.eu-west-1.amazonaws.com/",
    }
    data.update(overrides)
    return UploadModuleOptions.from_mapping(data)


class TestExpandHosts:
    def test_placeholder_is_substituted(self):
        assert expand_hosts("example.com", ["upload.@HOST@", "static.example.net"]) == (
            "upload.example.com",
            "static.example.net",
        )

    def test_duplicates_after_expansion_are_dropped(self):
        assert expand_hosts("example.com", ["upload.@HOST@", "upload.example.com"]) == (
            "upload.example.com",
        )


class TestBuildServiceParameters:
    def test_defaults(self):
        params = build_service_parameters("example.com", options())

        assert params.logical_host == "example.com"
        assert params.endpoint_addresses == ("upload.example.com",)
        assert params.max_size == 1073741824
        assert params.public_read is True
        assert params.ttl_seconds == 600
        assert params.service_name == "S3 Upload"
        assert params.access_policy == "local"
        assert params.download_base_url is None
        assert params.credentials.region == "eu-west-1"

    def test_explicit_options(self):
        params = build_service_parameters("example.com", options(
            download_url="https://cdn.example.com/",
            max_size="unlimited",
            set_public="false",
            put_ttl=60,
            access="all",
        ))

        assert params.effective_download_base_url == "https://cdn.example.com/"
        assert params.max_size is None
        assert params.public_read is False
        assert params.ttl_seconds == 60
        assert params.access_policy == "all"
