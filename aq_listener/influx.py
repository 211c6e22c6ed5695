# aq_listener/influx.py
import logging
from typing import Iterable, List

from influxdb_client.client.influxdb_client import InfluxDBClient
from influxdb_client.client.write.point import Point
from influxdb_client.client.write_api import SYNCHRONOUS
from influxdb_client.domain.write_precision import WritePrecision
from influxdb_client.rest import ApiException

from .errors import SinkWriteError
from .models import PointSubmission

logger = logging.getLogger(__name__)

_PRECISIONS = {
    "s": WritePrecision.S,
    "ms": WritePrecision.MS,
    "us": WritePrecision.US,
    "ns": WritePrecision.NS,
}


def to_point(sub: PointSubmission, precision: str = "s") -> Point:
    p = Point(sub.series)
    for key, value in sub.tags.items():
        p = p.tag(key, value)
    for key, value in sub.fields.items():
        p = p.field(key, value)
    if sub.timestamp is not None:
        p = p.time(sub.timestamp, _PRECISIONS[precision])
    return p


class InfluxSink:
    """Point sink backed by an InfluxDB 2.x bucket."""

    def __init__(self, client: InfluxDBClient, bucket: str, org: str):
        self.client = client
        self.bucket = bucket
        self.org = org
        self.write_api = client.write_api(write_options=SYNCHRONOUS)

    @classmethod
    def from_settings(cls, settings) -> "InfluxSink":
        client = InfluxDBClient(url=settings.influx_url, token=settings.influx_token, org=settings.influx_org)
        return cls(client, settings.influx_bucket, settings.influx_org)

    def write_points(self, points: Iterable[PointSubmission], precision: str = "s") -> None:
        """
        One write call per batch; no retry here.
        Raises SinkWriteError on any failure.
        """
        if precision not in _PRECISIONS:
            raise ValueError(f"unsupported precision: {precision!r}")
        records: List[Point] = [to_point(sub, precision) for sub in points]
        try:
            self.write_api.write(
                bucket=self.bucket,
                org=self.org,
                record=records,
                write_precision=_PRECISIONS[precision],
            )
        except ApiException as e:
            raise SinkWriteError(f"InfluxDB write error: {e.body}") from e
        except Exception as e:
            raise SinkWriteError(f"InfluxDB write error: {e}") from e

    def close(self) -> None:
        self.write_api.close()
        self.client.close()
