"""
URL Signer Interface

Boundary to the provider-specific presigned-URL algorithm. Implementations
are pure functions of their inputs: the same credentials, method, URL,
headers and timestamp always yield the same signed URL, the URL expires
``ttl_seconds`` after ``timestamp``, and exactly the query parameters
already present on ``url`` are signed.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Mapping

from .value_objects import AwsCredentials


class IUrlSigner(ABC):
    """Contract for presigned URL generation."""

    @abstractmethod
    def sign(
        self,
        credentials: AwsCredentials,
        method: str,
        url: str,
        headers: Mapping[str, str],
        timestamp: datetime,
        ttl_seconds: int,
    ) -> str:
        """
        Produce a signed URL.

        Args:
            credentials: Storage credentials
            method: HTTP method the URL authorizes (e.g. ``PUT``)
            url: Canonical unsigned URL, query parameters included
            headers: Extra headers to include in the signature
            timestamp: Signing time (timezone-aware UTC)
            ttl_seconds: Validity window from ``timestamp``

        Returns:
            Fully signed URL

        Raises:
            SigningError: If the URL cannot be signed
        """
        pass  # pragma: no cover
