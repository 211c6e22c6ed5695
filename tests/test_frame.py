import base64
import json

import pytest

from aq_listener.errors import DecodeError, MalformedEnvelope, MalformedPayload
from aq_listener.frame import decode_frame, decode_payload
from conftest import make_envelope


def test_decode_frame_returns_payload_and_envelope(aq_frame: bytes, envelope: bytes) -> None:
    payload, env = decode_frame(envelope)

    assert payload == aq_frame
    assert env.temperature == 2200
    assert env.humidity == 4500
    assert env.mac == "AA:BB:CC"
    assert env.record_id == 7


def test_extra_keys_are_ignored(aq_frame: bytes) -> None:
    payload, env = decode_frame(make_envelope(aq_frame, fw="1.2.3"))
    assert payload == aq_frame
    assert env.mac == "AA:BB:CC"


@pytest.mark.parametrize(
    "datagram",
    [
        b"",
        b"not json",
        b"\xff\xfe\x00",
        b"[1, 2, 3]",
        b'"just a string"',
        b"{}",
    ],
)
def test_non_envelope_bytes_are_malformed(datagram: bytes) -> None:
    with pytest.raises(MalformedEnvelope):
        decode_frame(datagram)


@pytest.mark.parametrize("missing", ["aq", "temperature", "humidity", "mac", "record_id"])
def test_missing_key_is_malformed(envelope: bytes, missing: str) -> None:
    doc = json.loads(envelope)
    del doc[missing]
    with pytest.raises(MalformedEnvelope):
        decode_frame(json.dumps(doc).encode())


@pytest.mark.parametrize(
    "key,value",
    [
        ("aq", 123),
        ("temperature", "2200"),
        ("temperature", True),
        ("humidity", None),
        ("mac", 42),
        ("record_id", "7"),
    ],
)
def test_wrong_type_is_malformed(envelope: bytes, key: str, value) -> None:
    doc = json.loads(envelope)
    doc[key] = value
    with pytest.raises(MalformedEnvelope):
        decode_frame(json.dumps(doc).encode())


@pytest.mark.parametrize("text", ["not base64!", "QkQ", "Qk0A*A=="])
def test_invalid_base64_is_malformed_payload(text: str) -> None:
    with pytest.raises(MalformedPayload):
        decode_payload(text)


def test_invalid_base64_in_envelope(envelope: bytes) -> None:
    doc = json.loads(envelope)
    doc["aq"] = "%%%%"
    with pytest.raises(MalformedPayload):
        decode_frame(json.dumps(doc).encode())


def test_decode_errors_share_a_base() -> None:
    assert issubclass(MalformedEnvelope, DecodeError)
    assert issubclass(MalformedPayload, DecodeError)


def test_short_payload_decodes_fine_here() -> None:
    # length is checked by the unpacker, not the frame decoder
    payload, _ = decode_frame(make_envelope(b"\x42\x4d"))
    assert payload == base64.b64decode("Qk0=")
