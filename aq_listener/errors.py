# aq_listener/errors.py


class AQListenerError(Exception):
    """Base class for listener errors."""


class DecodeError(AQListenerError, ValueError):
    """A datagram could not be decoded. Dropped by the ingestion loop."""


class MalformedEnvelope(DecodeError):
    """Outer JSON record is not an object with aq/temperature/humidity/mac/record_id."""


class MalformedPayload(DecodeError):
    """The `aq` field is not valid base64."""


class TruncatedPayload(DecodeError):
    def __init__(self, size: int, expected: int = 32):
        super().__init__(f"payload is {size} bytes, need at least {expected}")
        self.size = size
        self.expected = expected


class SinkWriteError(AQListenerError, RuntimeError):
    """Writing points to the time-series store failed."""
