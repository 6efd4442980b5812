"""
Service Parameter Construction

Pure transform from validated module options into the immutable snapshot
a broker process holds.
"""

from typing import Iterable, Tuple

from upload_broker.config.broker_config import UploadModuleOptions
from upload_broker.domain.upload_slots import AwsCredentials, ServiceParameters

HOST_PLACEHOLDER = "@HOST@"


def expand_hosts(logical_host: str, templates: Iterable[str]) -> Tuple[str, ...]:
    """Substitute the host placeholder in every template, dropping duplicates."""
    expanded = []
    for template in templates:
        address = template.replace(HOST_PLACEHOLDER, logical_host)
        if address not in expanded:
            expanded.append(address)
    return tuple(expanded)


def build_service_parameters(logical_host: str,
                             options: UploadModuleOptions) -> ServiceParameters:
    """
    Build the parameter snapshot for ``logical_host``.

    Placeholders are expanded here, once; the snapshot never holds templates.
    """
    return ServiceParameters(
        service_name=options.service_name,
        endpoint_addresses=expand_hosts(logical_host, options.hosts),
        max_size=options.max_size,
        storage_base_url=options.bucket_url,
        download_base_url=options.download_url,
        public_read=options.set_public,
        ttl_seconds=options.put_ttl,
        logical_host=logical_host,
        credentials=AwsCredentials(
            access_key_id=options.access_key_id,
            access_key_secret=options.access_key_secret,
            region=options.region,
        ),
        access_policy=options.access,
    )
