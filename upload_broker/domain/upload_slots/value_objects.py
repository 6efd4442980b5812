"""
Upload Slot Value Objects

Immutable values for type safety: the service parameter snapshot, the
transient request/slot pair and the derived object name.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..protocol.jid import Jid


@dataclass(frozen=True)
class AwsCredentials:
    """Storage credentials, opaque to everything but the URL signer."""

    access_key_id: str
    access_key_secret: str = field(repr=False)
    region: str

    def __post_init__(self):
        if not self.access_key_id or not self.access_key_secret:
            raise ValueError("Access key id and secret are required")
        if not self.region:
            raise ValueError("Region is required")


@dataclass(frozen=True)
class ServiceParameters:
    """
    Snapshot of a broker's configuration.

    Never mutated; a reload replaces the whole value.

    Attributes:
        service_name: Display name surfaced in discovery
        endpoint_addresses: Addresses the broker answers on
        max_size: Upload ceiling in bytes, None when unbounded
        storage_base_url: Bucket location PUT URLs are resolved against
        download_base_url: Override location for GET URLs
        public_read: Whether issued objects request the public-read ACL
        ttl_seconds: Validity window of PUT URLs
        logical_host: Domain this broker serves
        credentials: Storage credentials for the signer
        access_policy: Name of the access rule evaluated per request
    """

    service_name: str
    endpoint_addresses: Tuple[str, ...]
    max_size: Optional[int]
    storage_base_url: str
    download_base_url: Optional[str]
    public_read: bool
    ttl_seconds: int
    logical_host: str
    credentials: AwsCredentials
    access_policy: str

    @property
    def is_size_bounded(self) -> bool:
        return self.max_size is not None

    def exceeds_limit(self, size: int) -> bool:
        """Check a declared size against the upload ceiling."""
        return self.max_size is not None and size > self.max_size

    @property
    def effective_download_base_url(self) -> str:
        return self.download_base_url or self.storage_base_url


@dataclass(frozen=True)
class UploadRequest:
    """A single slot request, alive for one exchange only."""

    requester: Jid
    filename: str
    size: int
    content_type: str = ""


@dataclass(frozen=True)
class Slot:
    """Issued URL pair: signed upload target and stable download target."""

    put_url: str
    get_url: str


@dataclass(frozen=True)
class ObjectName:
    """
    Write-once object key: ``<requester hash>/<random>/<quoted filename>``.
    """

    requester_hash: str
    random_segment: str
    quoted_filename: str

    @property
    def path(self) -> str:
        return f"{self.requester_hash}/{self.random_segment}/{self.quoted_filename}"

    def __str__(self) -> str:
        return self.path
