"""
Protocol Domain

Exchange model, JID addresses and the JSON codec used by the transport.
"""

from .codec import decode_element, decode_els, decode_iq, encode_element, encode_iq
from .jid import Jid
from .stanzas import (
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
    err_bad_request,
    err_forbidden,
    err_internal_server_error,
    err_not_acceptable,
    err_service_unavailable,
    make_error,
    make_iq_result,
)

__all__ = [
    "NS_DISCO_INFO",
    "NS_HTTP_UPLOAD_0",
    "NS_XDATA",
    "DiscoInfo",
    "FileTooLarge",
    "Identity",
    "Iq",
    "Jid",
    "SlotRequest",
    "StanzaError",
    "UploadSlot",
    "XData",
    "XDataField",
    "decode_element",
    "decode_els",
    "decode_iq",
    "encode_element",
    "encode_iq",
    "err_bad_request",
    "err_forbidden",
    "err_internal_server_error",
    "err_not_acceptable",
    "err_service_unavailable",
    "make_error",
    "make_iq_result",
]
