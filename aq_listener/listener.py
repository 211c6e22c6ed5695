# aq_listener/listener.py
import enum
import logging
import threading
from typing import Callable, Optional, Protocol, Sequence

from .errors import MalformedEnvelope, MalformedPayload, SinkWriteError, TruncatedPayload
from .frame import decode_frame
from .mapper import PRECISION, build_measurement, to_point_submissions
from .models import IngestStats, Measurement, PointSubmission
from .pms import unpack_air_quality

logger = logging.getLogger(__name__)


class DatagramSource(Protocol):
    def recv(self, timeout: Optional[float] = None) -> Optional[bytes]: ...


class PointSink(Protocol):
    def write_points(self, points: Sequence[PointSubmission], precision: str = "s") -> None: ...


class LoopState(str, enum.Enum):
    AWAITING_DATAGRAM = "AWAITING_DATAGRAM"


class IngestionLoop:
    """
    Receive -> decode -> validate -> map -> write, one datagram at a time.
    Bad input is dropped and counted; only sink failures reach the caller.
    """

    def __init__(self, source: Optional[DatagramSource], sink: PointSink,
                 recv_timeout: float = 0.5, clock: Optional[Callable] = None):
        self.source = source
        self.sink = sink
        self.recv_timeout = recv_timeout
        self.clock = clock
        self.stats = IngestStats()
        self.state = LoopState.AWAITING_DATAGRAM
        # HTTP relay and the listener thread share one sink
        self._lock = threading.Lock()

    def process(self, datagram: bytes) -> Optional[Measurement]:
        """
        One ingestion cycle. Returns the measurement that was written,
        or None if the datagram was dropped. Raises SinkWriteError.
        """
        with self._lock:
            return self._process(datagram)

    def _process(self, datagram: bytes) -> Optional[Measurement]:
        self.stats.received += 1
        try:
            payload, envelope = decode_frame(datagram)
            result = unpack_air_quality(payload)
        except MalformedEnvelope as e:
            self.stats.malformed_envelope += 1
            logger.debug("Dropped datagram: %s", e)
            return None
        except MalformedPayload as e:
            self.stats.malformed_payload += 1
            logger.debug("Dropped datagram: %s", e)
            return None
        except TruncatedPayload as e:
            self.stats.truncated_payload += 1
            logger.debug("Dropped datagram: %s", e)
            return None

        if not result.valid:
            # routine on a lossy link, not worth a log line
            self.stats.checksum_mismatch += 1
            return None

        now = self.clock() if self.clock else None
        measurement = build_measurement(result.record, envelope, now=now)
        points = to_point_submissions(measurement, envelope.temperature)
        try:
            self.sink.write_points(points, PRECISION)
        except SinkWriteError:
            self.stats.sink_errors += 1
            raise
        except Exception as e:
            self.stats.sink_errors += 1
            raise SinkWriteError(str(e)) from e

        self.stats.written += 1
        logger.info(
            "mac=%s record_id=%s pm1_0=%s pm2_5=%s temp=%.2f rh=%.2f",
            measurement.device_id,
            measurement.sequence_id,
            measurement.air_quality.pm1_0_standard,
            measurement.air_quality.pm2_5_standard,
            measurement.temp_humidity.temperature,
            measurement.temp_humidity.relative_humidity,
        )
        return measurement

    def run(self, stop: threading.Event) -> None:
        """Loop until stop is set. A datagram already received is always finished."""
        if self.source is None:
            raise RuntimeError("IngestionLoop.run needs a datagram source")
        while not stop.is_set():
            data = self.source.recv(self.recv_timeout)
            if data is None:
                continue
            try:
                self.process(data)
            except SinkWriteError as e:
                logger.error("Point write failed: %s", e)
                raise
