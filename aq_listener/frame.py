# aq_listener/frame.py
import base64
import binascii
from typing import NamedTuple, Union

from pydantic import ValidationError

from .errors import MalformedEnvelope, MalformedPayload
from .models import RawEnvelope


class DecodedFrame(NamedTuple):
    payload: bytes
    envelope: RawEnvelope


def parse_envelope(datagram: Union[bytes, str]) -> RawEnvelope:
    try:
        return RawEnvelope.model_validate_json(datagram)
    except ValidationError as e:
        raise MalformedEnvelope(f"bad envelope: {e.error_count()} error(s), first: {e.errors()[0]['msg']}") from e


def decode_payload(text: str) -> bytes:
    """Standard (RFC 4648) base64 with padding; anything else is rejected."""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedPayload(f"aq field is not valid base64: {e}") from e


def decode_frame(datagram: Union[bytes, str]) -> DecodedFrame:
    """
    Parse one datagram into the raw PMS payload and the envelope it came in.
    Raises MalformedEnvelope or MalformedPayload.
    """
    envelope = parse_envelope(datagram)
    return DecodedFrame(decode_payload(envelope.aq), envelope)
