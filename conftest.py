import base64
import json
import time
from typing import List, Optional, Sequence

import pytest

from aq_listener.models import AirQualityRecord, PointSubmission
from aq_listener.pms import pack_air_quality


class RecordingSink:
    """Point sink that keeps every batch it is given."""

    def __init__(self, error: Optional[Exception] = None):
        self.calls: List[tuple] = []
        self.error = error

    def write_points(self, points: Sequence[PointSubmission], precision: str = "s") -> None:
        if self.error is not None:
            raise self.error
        self.calls.append((list(points), precision))

    @property
    def points(self) -> List[PointSubmission]:
        return [p for batch, _ in self.calls for p in batch]


class ListSource:
    """Datagram source fed from a list; returns None once drained."""

    def __init__(self, datagrams, on_drain=None):
        self._items = list(datagrams)
        self.on_drain = on_drain
        self.closed = False

    def recv(self, timeout=None):
        if self._items:
            return self._items.pop(0)
        if self.on_drain is not None:
            self.on_drain()
        time.sleep(timeout or 0)
        return None

    def close(self):
        self.closed = True


@pytest.fixture
def aq_record() -> AirQualityRecord:
    return AirQualityRecord(
        pm1_0_standard=100,
        pm2_5_standard=50,
        pm10_standard=200,
        pm1_0_env=100,
        pm2_5_env=50,
        concentration_unit=1,
        particle_03um=10,
        particle_05um=20,
        particle_10um=30,
        particle_25um=40,
        particle_50um=50,
        particle_100um=60,
    )


@pytest.fixture
def aq_frame() -> bytes:
    """42 4D 00 1C, reserved 0, then the twelve fields and checksum 0x0372."""
    return bytes.fromhex(
        "424d001c"
        "0000"
        "0064003200c8006400320001000a0014001e00280032003c"
        "0372"
    )


def make_envelope(payload: bytes, temperature=2200, humidity=4500, mac="AA:BB:CC", record_id=7, **extra) -> bytes:
    doc = {
        "aq": base64.b64encode(payload).decode("ascii"),
        "temperature": temperature,
        "humidity": humidity,
        "mac": mac,
        "record_id": record_id,
    }
    doc.update(extra)
    return json.dumps(doc).encode("utf-8")


@pytest.fixture
def envelope(aq_frame) -> bytes:
    return make_envelope(aq_frame)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def packed(aq_record) -> bytes:
    return pack_air_quality(aq_record)
