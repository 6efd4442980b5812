"""
Unit tests for the stanza codec.

Decoding must be strict: every malformed attribute raises
StanzaDecodeError, which the broker turns into a bad-request reply.
"""

import pytest

from tests.fixtures.builders import slot_request_payload
from upload_broker.domain.errors import InvalidJidError, StanzaDecodeError
from upload_broker.domain.protocol import (
    NS_DISCO_INFO,
    NS_HTTP_UPLOAD_0,
    NS_XDATA,
    DiscoInfo,
    FileTooLarge,
    Identity,
    Iq,
    Jid,
    SlotRequest,
    UploadSlot,
    XData,
    XDataField,
    decode_element,
    decode_els,
    decode_iq,
    encode_element,
    encode_iq,
    err_not_acceptable,
    make_error,
)


def envelope(**overrides):
    data = {
        "id": "1",
        "type": "get",
        "from": "alice@example.com/phone",
        "to": "upload.example.com",
        "payload": [slot_request_payload()],
    }
    data.update(overrides)
    return data


class TestDecodeIq:
    """Test envelope decoding."""

    def test_valid_envelope_keeps_payload_raw(self):
        iq = decode_iq(envelope(lang="de"))

        assert iq.id == "1"
        assert iq.type == "get"
        assert iq.from_jid == Jid("alice", "example.com", "phone")
        assert iq.to_jid == Jid("", "upload.example.com")
        assert iq.lang == "de"
        assert iq.sub_els == (slot_request_payload(),)

    def test_lang_defaults_to_empty(self):
        assert decode_iq(envelope()).lang == ""

    @pytest.mark.parametrize("key", ["id", "type", "from", "to"])
    def test_missing_envelope_attribute(self, key):
        data = envelope()
        del data[key]

        with pytest.raises(StanzaDecodeError):
            decode_iq(data)

    def test_unknown_type(self):
        with pytest.raises(StanzaDecodeError, match="type"):
            decode_iq(envelope(type="poke"))

    def test_payload_must_be_a_list(self):
        with pytest.raises(StanzaDecodeError):
            decode_iq(envelope(payload={"element": "request"}))

    def test_malformed_address(self):
        with pytest.raises(InvalidJidError):
            decode_iq(envelope(**{"from": "alice@"}))

    @pytest.mark.parametrize("data", [None, [], "iq", 7])
    def test_non_object_envelope(self, data):
        with pytest.raises(StanzaDecodeError):
            decode_iq(data)


class TestDecodeElement:
    """Test payload element decoding."""

    def test_slot_request(self):
        element = decode_element(slot_request_payload("a b.txt", 42, "text/plain"))

        assert element == SlotRequest(filename="a b.txt", size=42, content_type="text/plain")

    def test_size_as_digit_string(self):
        assert decode_element(slot_request_payload(size="42")).size == 42

    def test_zero_size_is_valid(self):
        assert decode_element(slot_request_payload(size=0)).size == 0

    @pytest.mark.parametrize("size", [-1, "-1", "12a", 1.5, True, None, [], "²", "١٢"])
    def test_invalid_size(self, size):
        with pytest.raises(StanzaDecodeError, match="size"):
            decode_element(slot_request_payload(size=size))

    @pytest.mark.parametrize("filename", ["", "   ", None, 3])
    def test_invalid_filename(self, filename):
        with pytest.raises(StanzaDecodeError, match="filename"):
            decode_element(slot_request_payload(filename=filename))

    def test_content_type_is_optional(self):
        payload = slot_request_payload()
        del payload["content-type"]

        assert decode_element(payload).content_type == ""

    def test_unknown_namespace(self):
        payload = slot_request_payload()
        payload["xmlns"] = "urn:xmpp:http:upload"

        with pytest.raises(StanzaDecodeError, match="Unknown element"):
            decode_element(payload)

    def test_unknown_element(self):
        with pytest.raises(StanzaDecodeError):
            decode_element({"element": "ping", "xmlns": "urn:xmpp:ping"})

    def test_disco_info_query(self):
        assert decode_element({"element": "query", "xmlns": NS_DISCO_INFO}) == DiscoInfo()

    def test_disco_info_descriptor(self):
        element = decode_element({
            "element": "query",
            "xmlns": NS_DISCO_INFO,
            "identities": [{"category": "store", "type": "file", "name": "S3"}],
            "features": [NS_HTTP_UPLOAD_0],
            "x": [{
                "element": "x",
                "xmlns": NS_XDATA,
                "type": "result",
                "fields": [{"var": "FORM_TYPE", "type": "hidden", "values": [NS_HTTP_UPLOAD_0]}],
            }],
        })

        assert element.identities == (Identity("store", "file", "S3"),)
        assert element.features == (NS_HTTP_UPLOAD_0,)
        assert element.xdata[0].form_type() == NS_HTTP_UPLOAD_0

    @pytest.mark.parametrize("attributes,message", [
        ({"identities": 5}, "identities"),
        ({"features": "urn:xmpp:http:upload:0"}, "features"),
        ({"x": 7}, "'x'"),
        ({"x": [{"element": "x", "xmlns": NS_XDATA, "fields": 3}]}, "fields"),
    ])
    def test_list_attributes_must_be_lists(self, attributes, message):
        with pytest.raises(StanzaDecodeError, match=message):
            decode_element(dict({"element": "query", "xmlns": NS_DISCO_INFO}, **attributes))

    def test_error_children_must_be_a_list(self):
        with pytest.raises(StanzaDecodeError, match="children"):
            decode_element({"element": "error", "type": "cancel",
                            "condition": "bad-request", "children": 3})

    @pytest.mark.parametrize("element", [["request"], {"name": "request"}, 3])
    def test_non_string_element_name(self, element):
        with pytest.raises(StanzaDecodeError, match="Unknown element"):
            decode_element({"element": element, "xmlns": NS_HTTP_UPLOAD_0})

    def test_decode_els_decodes_every_payload(self):
        iq = decode_iq(envelope())

        decoded = decode_els(iq)

        assert decoded.sub_els == (SlotRequest("photo.jpg", 100, "image/jpeg"),)


class TestEncode:
    """Test encoding of replies."""

    def test_slot(self):
        encoded = encode_element(UploadSlot(put_url="https://put", get_url="https://get"))

        assert encoded == {
            "element": "slot",
            "xmlns": NS_HTTP_UPLOAD_0,
            "put": "https://put",
            "get": "https://get",
        }

    def test_disco_info_descriptor(self):
        descriptor = DiscoInfo(
            identities=(Identity("store", "file", "S3 Upload"),),
            features=(NS_HTTP_UPLOAD_0,),
            xdata=(XData(fields=(
                XDataField("FORM_TYPE", (NS_HTTP_UPLOAD_0,), "hidden"),
                XDataField("max-file-size", ("1000",)),
            )),),
        )

        encoded = encode_element(descriptor)

        assert encoded["identities"] == [{"category": "store", "type": "file", "name": "S3 Upload"}]
        assert encoded["features"] == [NS_HTTP_UPLOAD_0]
        fields = encoded["x"][0]["fields"]
        assert fields[0]["var"] == "FORM_TYPE"
        assert fields[0]["type"] == "hidden"
        assert fields[1]["values"] == ["1000"]

    def test_error_reply_with_file_too_large(self):
        request = Iq("7", "get", Jid.parse("alice@example.com/a"), Jid.parse("upload.example.com"))
        error = err_not_acceptable("File larger than 1000 bytes", "en").with_elements(
            (FileTooLarge(1000),)
        )

        encoded = encode_iq(make_error(request, error))

        assert encoded["type"] == "error"
        assert encoded["from"] == "upload.example.com"
        assert encoded["to"] == "alice@example.com/a"
        payload = encoded["payload"][0]
        assert payload["condition"] == "not-acceptable"
        assert payload["type"] == "modify"
        assert payload["text"] == "File larger than 1000 bytes"
        assert payload["children"] == [
            {"element": "file-too-large", "xmlns": NS_HTTP_UPLOAD_0, "max-file-size": 1000}
        ]

    def test_encoded_error_decodes_back(self):
        error = err_not_acceptable("too big", "en").with_elements((FileTooLarge(5),))

        assert decode_element(encode_element(error)) == error

    def test_unknown_element_type(self):
        with pytest.raises(TypeError):
            encode_element(object())
