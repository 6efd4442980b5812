"""
Protocol Stanzas

Immutable model of the XEP-0363 (v1.1.0) exchange and of the service
discovery elements the broker answers with.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple

from ..errors import PROTOCOL_CONDITIONS, ErrorCategory
from .jid import Jid

NS_HTTP_UPLOAD_0 = "urn:xmpp:http:upload:0"
NS_DISCO_INFO = "http://jabber.org/protocol/disco#info"
NS_XDATA = "jabber:x:data"

IQ_TYPES = ("get", "set", "result", "error")


@dataclass(frozen=True)
class Identity:
    """Service discovery identity."""

    category: str
    type: str
    name: str = ""


@dataclass(frozen=True)
class XDataField:
    """Single field of a data form."""

    var: str
    values: Tuple[str, ...] = ()
    type: Optional[str] = None


@dataclass(frozen=True)
class XData:
    """Data form attached to a discovery reply."""

    type: str = "result"
    fields: Tuple[XDataField, ...] = ()

    def form_type(self) -> Optional[str]:
        for f in self.fields:
            if f.var == "FORM_TYPE" and f.values:
                return f.values[0]
        return None


@dataclass(frozen=True)
class DiscoInfo:
    """Discovery query (empty) or descriptor (populated)."""

    node: str = ""
    identities: Tuple[Identity, ...] = ()
    features: Tuple[str, ...] = ()
    xdata: Tuple[XData, ...] = ()


@dataclass(frozen=True)
class SlotRequest:
    """Slot request payload as declared by the requester."""

    filename: str
    size: int
    content_type: str = ""


@dataclass(frozen=True)
class UploadSlot:
    """Slot reply payload."""

    put_url: str
    get_url: str


@dataclass(frozen=True)
class FileTooLarge:
    """Structured limit carried by an oversize error."""

    max_file_size: int


@dataclass(frozen=True)
class StanzaError:
    """Protocol-level error element."""

    type: str
    condition: str
    text: str = ""
    lang: str = ""
    elements: Tuple[Any, ...] = ()

    def with_elements(self, elements: Tuple[Any, ...]) -> "StanzaError":
        return replace(self, elements=tuple(elements))


@dataclass(frozen=True)
class Iq:
    """
    Info/query exchange.

    ``sub_els`` holds raw payload mappings as received from the transport
    until they are decoded, and typed elements afterwards.
    """

    id: str
    type: str
    from_jid: Jid
    to_jid: Jid
    lang: str = ""
    sub_els: Tuple[Any, ...] = field(default_factory=tuple)


def make_iq_result(iq: Iq, element: Any = None) -> Iq:
    """Build the result for ``iq``, swapping sender and recipient."""
    return Iq(
        id=iq.id,
        type="result",
        from_jid=iq.to_jid,
        to_jid=iq.from_jid,
        lang=iq.lang,
        sub_els=(element,) if element is not None else (),
    )


def make_error(iq: Iq, error: StanzaError) -> Iq:
    """Build the error reply for ``iq``, swapping sender and recipient."""
    return Iq(
        id=iq.id,
        type="error",
        from_jid=iq.to_jid,
        to_jid=iq.from_jid,
        lang=iq.lang,
        sub_els=(error,),
    )


def make_stanza_error(category: ErrorCategory, text: str = "",
                      lang: str = "") -> StanzaError:
    condition = PROTOCOL_CONDITIONS[category]
    return StanzaError(
        type=condition["type"],
        condition=condition["condition"],
        text=text,
        lang=lang if text else "",
    )


def err_bad_request(text: str = "", lang: str = "") -> StanzaError:
    return make_stanza_error(ErrorCategory.BAD_REQUEST, text, lang)


def err_not_acceptable(text: str = "", lang: str = "") -> StanzaError:
    return make_stanza_error(ErrorCategory.NOT_ACCEPTABLE, text, lang)


def err_forbidden(text: str = "", lang: str = "") -> StanzaError:
    return make_stanza_error(ErrorCategory.FORBIDDEN, text, lang)


def err_service_unavailable(text: str = "", lang: str = "") -> StanzaError:
    return make_stanza_error(ErrorCategory.SERVICE_UNAVAILABLE, text, lang)


def err_internal_server_error(text: str = "", lang: str = "") -> StanzaError:
    return make_stanza_error(ErrorCategory.INTERNAL_SERVER_ERROR, text, lang)
