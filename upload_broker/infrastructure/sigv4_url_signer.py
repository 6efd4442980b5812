"""
SigV4 URL Signer

AWS Signature Version 4 query-string presigning for S3, built on
botocore's signer with the signing time supplied by the caller.
"""

import logging
from datetime import datetime, timezone
from typing import Mapping

from botocore.auth import SIGV4_TIMESTAMP, S3SigV4QueryAuth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials
from botocore.exceptions import BotoCoreError

from upload_broker.domain.errors import SigningError
from upload_broker.domain.upload_slots import AwsCredentials, IUrlSigner

logger = logging.getLogger(__name__)

S3_SERVICE = "s3"


class _FixedTimeS3QueryAuth(S3SigV4QueryAuth):
    """S3 query signer that signs at a given instant instead of "now"."""

    def __init__(self, credentials: Credentials, region_name: str, expires: int,
                 timestamp: datetime):
        super().__init__(credentials, S3_SERVICE, region_name, expires=expires)
        self._timestamp = timestamp

    def add_auth(self, request: AWSRequest) -> None:
        request.context["timestamp"] = self._timestamp.strftime(SIGV4_TIMESTAMP)
        self._modify_request_before_signing(request)
        canonical_request = self.canonical_request(request)
        string_to_sign = self.string_to_sign(request, canonical_request)
        signature = self.signature(string_to_sign, request)
        self._inject_signature_to_request(request, signature)


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


class SigV4UrlSigner(IUrlSigner):
    """
    Presigns S3 URLs with AWS Signature Version 4.

    The payload is left unsigned (``UNSIGNED-PAYLOAD``) and the host header
    is always part of the signature. Query parameters already on the URL
    are signed together with the ``X-Amz-*`` authentication parameters.
    """

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
        Produce a presigned URL valid for ``ttl_seconds`` from ``timestamp``.

        Raises:
            SigningError: If botocore rejects the request or credentials
        """
        try:
            request = AWSRequest(method=method.upper(), url=url, headers=dict(headers))
            auth = _FixedTimeS3QueryAuth(
                Credentials(credentials.access_key_id, credentials.access_key_secret),
                credentials.region,
                expires=ttl_seconds,
                timestamp=_as_utc(timestamp),
            )
            auth.add_auth(request)
            return request.url
        except (BotoCoreError, ValueError, TypeError) as e:
            logger.error(f"Failed to sign {method} URL: {e}")
            raise SigningError(f"Failed to sign {method} URL", original_error=e) from e
