# aq_listener/pms.py
# Plantower-style 32-byte air-quality frame (network byte order).

import struct
from typing import NamedTuple, Optional

from .errors import TruncatedPayload
from .models import AirQualityRecord

START_1 = 0x42
START_2 = 0x4D
FRAME_LENGTH = 28
FRAME_SIZE = 32

# marker, marker, length, reserved + 12 fields, checksum
FRAME_FORMAT = ">BBH13HH"
FIELDS = list(AirQualityRecord.model_fields)

# bytes 0..29 inclusive
_SUM_END = 30


class UnpackResult(NamedTuple):
    valid: bool
    record: Optional[AirQualityRecord]
    checksum: int    # value carried in the frame
    expected: int    # value computed from the frame


def compute_checksum(payload: bytes) -> int:
    """
    Byte sum of the header and the 26-byte field block, wrapped to 16 bits.
    For a well-formed header this is 0x42 + 0x4D + 28 plus the field block.
    """
    if len(payload) < _SUM_END:
        raise TruncatedPayload(len(payload), _SUM_END)
    return sum(payload[:_SUM_END]) & 0xFFFF


def unpack_air_quality(payload: bytes) -> UnpackResult:
    """
    Interpret the leading 32 bytes of payload as an air-quality frame.
    Only the checksum gates validity; markers and length are not checked.
    """
    if len(payload) < FRAME_SIZE:
        raise TruncatedPayload(len(payload), FRAME_SIZE)

    frame = bytes(payload[:FRAME_SIZE])
    vals = struct.unpack(FRAME_FORMAT, frame)
    checksum = vals[-1]
    expected = compute_checksum(frame)
    if expected != checksum:
        return UnpackResult(False, None, checksum, expected)

    # vals[3] is the reserved word
    record = AirQualityRecord(**dict(zip(FIELDS, vals[4:16])))
    return UnpackResult(True, record, checksum, expected)


def pack_air_quality(record: AirQualityRecord, reserved: int = 0) -> bytes:
    """Build a frame with a correct checksum. Used by the simulator and tests."""
    ints = [getattr(record, name) for name in FIELDS]
    body = struct.pack(">BBH13H", START_1, START_2, FRAME_LENGTH, reserved, *ints)
    return body + struct.pack(">H", compute_checksum(body))
