"""
Upload Slot Services

Object naming and URL construction. Everything here is pure apart from
the random segment of object names and the signing timestamp.
"""

import hashlib
import secrets
import string
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlencode, urljoin, urlsplit, urlunsplit

from ..protocol.jid import Jid
from .signer import IUrlSigner
from .value_objects import ObjectName, ServiceParameters, Slot, UploadRequest

RANDOM_SEGMENT_LENGTH = 20
RANDOM_SEGMENT_ALPHABET = string.ascii_letters + string.digits

PUBLIC_READ_ACL = ("X-Amz-Acl", "public-read")


def object_name(filename: str, requester: Jid) -> ObjectName:
    """
    Generate a fresh, unguessable object name for ``filename``.

    The first segment is the SHA-1 of the requester's lowered bare JID,
    which namespaces objects per requester without exposing the address.
    """
    identity = f"{requester.luser}@{requester.lserver}"
    requester_hash = hashlib.sha1(identity.encode("utf-8")).hexdigest()
    random_segment = "".join(
        secrets.choice(RANDOM_SEGMENT_ALPHABET) for _ in range(RANDOM_SEGMENT_LENGTH)
    )
    quoted = quote(filename, safe="")
    # "." and ".." would be removed by reference resolution
    if quoted.strip(".") == "":
        quoted = quoted.replace(".", "%2E")
    return ObjectName(
        requester_hash=requester_hash,
        random_segment=random_segment,
        quoted_filename=quoted,
    )


def object_url(base_url: str, name: ObjectName) -> str:
    """Resolve ``name`` against ``base_url`` (RFC 3986 reference resolution)."""
    return urljoin(base_url, name.path)


def upload_parameters(request: UploadRequest,
                      params: ServiceParameters) -> List[Tuple[str, str]]:
    """Headers the PUT request must carry, expressed as query parameters."""
    parameters = [
        ("Content-Type", request.content_type),
        ("Content-Length", str(request.size)),
    ]
    if params.public_read:
        parameters.append(PUBLIC_READ_ACL)
    return parameters


def decorated_put_url(base_url: str, name: ObjectName,
                      parameters: List[Tuple[str, str]]) -> str:
    """
    Resolve ``name`` against ``base_url`` and attach ``parameters``.

    Query parameters already on the base URL are kept; on a key collision
    the new parameter wins, and no key appears twice.
    """
    resolved = urlsplit(object_url(base_url, name))
    query = dict(parse_qsl(urlsplit(base_url).query, keep_blank_values=True))
    query.update(parameters)
    return urlunsplit(resolved._replace(query=urlencode(list(query.items()), quote_via=quote)))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SlotIssuer:
    """
    Domain service producing upload slots.

    Combines object naming, URL decoration and the signer. Callers must
    have applied size and access policy before calling ``issue``.
    """

    def __init__(self, signer: IUrlSigner,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize SlotIssuer.

        Args:
            signer: Presigned URL implementation
            clock: Source of signing timestamps (defaults to UTC now)
        """
        self.signer = signer
        self.clock = clock or _utc_now

    def issue(self, params: ServiceParameters, request: UploadRequest) -> Slot:
        """
        Issue a slot for ``request`` under the given parameter snapshot.

        Returns:
            Slot with a signed PUT URL and an unsigned GET URL

        Raises:
            SigningError: If the signer fails
        """
        name = object_name(request.filename, request.requester)
        unsigned_put_url = decorated_put_url(
            params.storage_base_url, name, upload_parameters(request, params)
        )
        put_url = self.signer.sign(
            params.credentials,
            "PUT",
            unsigned_put_url,
            {},
            self.clock(),
            params.ttl_seconds,
        )
        get_url = object_url(params.effective_download_base_url, name)
        return Slot(put_url=put_url, get_url=get_url)
