"""
Stanza Codec

Translates between the JSON mappings carried by the transport and the
typed stanza model. Decoding is strict: anything that does not match a
known element shape raises StanzaDecodeError.
"""

from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Tuple

from ..errors import StanzaDecodeError
from .jid import Jid
from .stanzas import (
    IQ_TYPES,
    NS_DISCO_INFO,
    NS_HTTP_UPLOAD_0,
    NS_XDATA,
    DiscoInfo,
    FileTooLarge,
    Identity,
    Iq,
    SlotRequest,
    StanzaError,
    UploadSlot,
    XData,
    XDataField,
)


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise StanzaDecodeError(f"Expected an object for {what}, got {type(value).__name__}")
    return value


def _require_str(data: Mapping[str, Any], key: str, element: str,
                 default: Any = None, allow_empty: bool = True) -> str:
    value = data.get(key, default)
    if value is None:
        raise StanzaDecodeError(f"Missing attribute '{key}' in <{element}/>")
    if not isinstance(value, str):
        raise StanzaDecodeError(f"Attribute '{key}' in <{element}/> must be a string")
    if not allow_empty and not value.strip():
        raise StanzaDecodeError(f"Empty attribute '{key}' in <{element}/>")
    return value


def _require_list(data: Mapping[str, Any], key: str, element: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise StanzaDecodeError(f"Attribute '{key}' in <{element}/> must be a list")
    return value


def _require_size(data: Mapping[str, Any], key: str, element: str) -> int:
    value = data.get(key)
    if value is None:
        raise StanzaDecodeError(f"Missing attribute '{key}' in <{element}/>")
    # bool is an int subclass but never a valid size
    if isinstance(value, bool):
        raise StanzaDecodeError(f"Bad value of attribute '{key}' in <{element}/>")
    if isinstance(value, str) and value.isascii() and value.isdigit():
        value = int(value)
    if not isinstance(value, int) or value < 0:
        raise StanzaDecodeError(f"Bad value of attribute '{key}' in <{element}/>")
    return value


# =============================================================================
# Element decoders
# =============================================================================

def _decode_xdata(data: Mapping[str, Any]) -> XData:
    fields = []
    for raw in _require_list(data, "fields", "x"):
        raw = _require_mapping(raw, "x field")
        values = raw.get("values", [])
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise StanzaDecodeError("Field values in <x/> must be a list of strings")
        fields.append(XDataField(
            var=_require_str(raw, "var", "field", allow_empty=False),
            values=tuple(values),
            type=raw.get("type"),
        ))
    return XData(type=_require_str(data, "type", "x", default="result"),
                 fields=tuple(fields))


def _decode_disco_info(data: Mapping[str, Any]) -> DiscoInfo:
    identities = []
    for raw in _require_list(data, "identities", "query"):
        raw = _require_mapping(raw, "identity")
        identities.append(Identity(
            category=_require_str(raw, "category", "identity", allow_empty=False),
            type=_require_str(raw, "type", "identity", allow_empty=False),
            name=_require_str(raw, "name", "identity", default=""),
        ))
    features = _require_list(data, "features", "query")
    if not all(isinstance(f, str) for f in features):
        raise StanzaDecodeError("Features in <query/> must be a list of strings")
    xdata = tuple(
        _decode_xdata(_require_mapping(x, "x")) for x in _require_list(data, "x", "query")
    )
    return DiscoInfo(
        node=_require_str(data, "node", "query", default=""),
        identities=tuple(identities),
        features=tuple(features),
        xdata=xdata,
    )


def _decode_slot_request(data: Mapping[str, Any]) -> SlotRequest:
    return SlotRequest(
        filename=_require_str(data, "filename", "request", allow_empty=False),
        size=_require_size(data, "size", "request"),
        content_type=_require_str(data, "content-type", "request", default=""),
    )


def _decode_slot(data: Mapping[str, Any]) -> UploadSlot:
    return UploadSlot(
        put_url=_require_str(data, "put", "slot", allow_empty=False),
        get_url=_require_str(data, "get", "slot", allow_empty=False),
    )


def _decode_file_too_large(data: Mapping[str, Any]) -> FileTooLarge:
    return FileTooLarge(max_file_size=_require_size(data, "max-file-size", "file-too-large"))


def _decode_error(data: Mapping[str, Any]) -> StanzaError:
    return StanzaError(
        type=_require_str(data, "type", "error", allow_empty=False),
        condition=_require_str(data, "condition", "error", allow_empty=False),
        text=_require_str(data, "text", "error", default=""),
        lang=_require_str(data, "lang", "error", default=""),
        elements=tuple(decode_element(e) for e in _require_list(data, "children", "error")),
    )


_DECODERS: Dict[Tuple[str, str], Callable[[Mapping[str, Any]], Any]] = {
    ("query", NS_DISCO_INFO): _decode_disco_info,
    ("x", NS_XDATA): _decode_xdata,
    ("request", NS_HTTP_UPLOAD_0): _decode_slot_request,
    ("slot", NS_HTTP_UPLOAD_0): _decode_slot,
    ("file-too-large", NS_HTTP_UPLOAD_0): _decode_file_too_large,
    ("error", ""): _decode_error,
}


def decode_element(data: Any) -> Any:
    """
    Decode one payload mapping into its typed element.

    Raises:
        StanzaDecodeError: If the element is unknown or malformed
    """
    data = _require_mapping(data, "payload element")
    key = (data.get("element"), data.get("xmlns", ""))
    decoder = _DECODERS.get(key) if all(isinstance(k, str) for k in key) else None
    if decoder is None:
        raise StanzaDecodeError(
            f"Unknown element <{key[0]}/> qualified by namespace '{key[1]}'"
        )
    return decoder(data)


def decode_els(iq: Iq) -> Iq:
    """Return ``iq`` with every raw payload mapping decoded."""
    decoded = tuple(
        decode_element(el) if isinstance(el, Mapping) else el for el in iq.sub_els
    )
    return replace(iq, sub_els=decoded)


def decode_iq(data: Any) -> Iq:
    """
    Decode the exchange envelope. Payload elements stay raw; they are
    decoded by the broker process that owns the recipient address.

    Raises:
        StanzaDecodeError: If the envelope is malformed
    """
    data = _require_mapping(data, "exchange")
    iq_type = _require_str(data, "type", "iq", allow_empty=False)
    if iq_type not in IQ_TYPES:
        raise StanzaDecodeError(f"Bad value of attribute 'type' in <iq/>: {iq_type}")

    payload = data.get("payload", [])
    if not isinstance(payload, list):
        raise StanzaDecodeError("Attribute 'payload' in <iq/> must be a list")

    return Iq(
        id=_require_str(data, "id", "iq", allow_empty=False),
        type=iq_type,
        from_jid=Jid.parse(_require_str(data, "from", "iq", allow_empty=False)),
        to_jid=Jid.parse(_require_str(data, "to", "iq", allow_empty=False)),
        lang=_require_str(data, "lang", "iq", default=""),
        sub_els=tuple(payload),
    )


# =============================================================================
# Encoders
# =============================================================================

def _encode_xdata(x: XData) -> Dict[str, Any]:
    fields = []
    for f in x.fields:
        encoded = {"var": f.var, "values": list(f.values)}
        if f.type:
            encoded["type"] = f.type
        fields.append(encoded)
    return {"element": "x", "xmlns": NS_XDATA, "type": x.type, "fields": fields}


def encode_element(element: Any) -> Dict[str, Any]:
    """Encode a typed element into its JSON mapping."""
    if isinstance(element, Mapping):
        return dict(element)
    if isinstance(element, DiscoInfo):
        encoded = {
            "element": "query",
            "xmlns": NS_DISCO_INFO,
            "identities": [
                {"category": i.category, "type": i.type, "name": i.name}
                for i in element.identities
            ],
            "features": list(element.features),
            "x": [_encode_xdata(x) for x in element.xdata],
        }
        if element.node:
            encoded["node"] = element.node
        return encoded
    if isinstance(element, XData):
        return _encode_xdata(element)
    if isinstance(element, SlotRequest):
        return {
            "element": "request",
            "xmlns": NS_HTTP_UPLOAD_0,
            "filename": element.filename,
            "size": element.size,
            "content-type": element.content_type,
        }
    if isinstance(element, UploadSlot):
        return {
            "element": "slot",
            "xmlns": NS_HTTP_UPLOAD_0,
            "put": element.put_url,
            "get": element.get_url,
        }
    if isinstance(element, FileTooLarge):
        return {
            "element": "file-too-large",
            "xmlns": NS_HTTP_UPLOAD_0,
            "max-file-size": element.max_file_size,
        }
    if isinstance(element, StanzaError):
        encoded = {
            "element": "error",
            "type": element.type,
            "condition": element.condition,
            "children": [encode_element(e) for e in element.elements],
        }
        if element.text:
            encoded["text"] = element.text
            encoded["lang"] = element.lang
        return encoded
    raise TypeError(f"Cannot encode element of type {type(element).__name__}")


def encode_iq(iq: Iq) -> Dict[str, Any]:
    """Encode an exchange, including its payload, into a JSON mapping."""
    encoded = {
        "id": iq.id,
        "type": iq.type,
        "from": str(iq.from_jid),
        "to": str(iq.to_jid),
        "payload": [encode_element(el) for el in iq.sub_els],
    }
    if iq.lang:
        encoded["lang"] = iq.lang
    return encoded
