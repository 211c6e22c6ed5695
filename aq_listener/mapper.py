# aq_listener/mapper.py
from datetime import datetime
from typing import List, Optional

import pytz

from .models import (
    AirQualityRecord,
    Measurement,
    PointSubmission,
    RawEnvelope,
    TemperatureHumidity,
)

PRECISION = "s"


def to_temp_humidity(temperature: int, humidity: int) -> TemperatureHumidity:
    return TemperatureHumidity(temperature=temperature / 100.0, relative_humidity=humidity / 100.0)


def build_measurement(record: AirQualityRecord, envelope: RawEnvelope,
                      now: Optional[datetime] = None) -> Measurement:
    """Combine a validated PMS record with the envelope it arrived in."""
    ts = now or datetime.now(pytz.UTC)
    # make timezone-aware UTC
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=pytz.UTC)
    else:
        ts = ts.astimezone(pytz.UTC)

    return Measurement(
        timestamp=ts,
        device_id=envelope.mac,
        sequence_id=envelope.record_id,
        air_quality=record,
        temp_humidity=to_temp_humidity(envelope.temperature, envelope.humidity),
    )


def to_point_submissions(measurement: Measurement, raw_temperature: int) -> List[PointSubmission]:
    """
    Two points per measurement: `aqi` and `temperature`, tagged by mac.
    `temperature` carries the raw hundredths value from the envelope, not degrees;
    existing dashboards query it in that unit.
    """
    tags = {"mac": measurement.device_id}
    ts = measurement.timestamp.replace(microsecond=0)
    aq = measurement.air_quality
    return [
        PointSubmission(
            series="aqi",
            tags=tags,
            fields={"pm1_0": aq.pm1_0_standard, "pm2_5": aq.pm2_5_standard},
            timestamp=ts,
        ),
        PointSubmission(
            series="temperature",
            tags=tags,
            fields={"value": raw_temperature},
            timestamp=ts,
        ),
    ]
