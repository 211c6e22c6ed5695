# aq_listener/models.py
from datetime import datetime
from typing import Annotated, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

# InfluxDB integer fields are signed 64-bit
Int64 = Annotated[StrictInt, Field(ge=-2**63, le=2**63 - 1)]


class RawEnvelope(BaseModel):
    """JSON record a sensor node multicasts once per snapshot."""
    model_config = ConfigDict(frozen=True, strict=True)

    aq: StrictStr             # base64 of the PMS frame
    temperature: Int64        # hundredths of a degree
    humidity: Int64           # hundredths of a percent
    mac: StrictStr
    record_id: Int64


class AirQualityRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    pm1_0_standard: int
    pm2_5_standard: int
    pm10_standard: int
    pm1_0_env: int
    pm2_5_env: int
    concentration_unit: int

    # Number of particles beyond N um per 0.1L of air, multiplied by 10,
    # so particle_03um is particles beyond 0.3um.
    particle_03um: int
    particle_05um: int
    particle_10um: int
    particle_25um: int
    particle_50um: int
    particle_100um: int


class TemperatureHumidity(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature: float        # degrees
    relative_humidity: float  # percent


class Measurement(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime       # UTC
    device_id: str
    sequence_id: int
    air_quality: AirQualityRecord
    temp_humidity: TemperatureHumidity


class PointSubmission(BaseModel):
    model_config = ConfigDict(frozen=True)

    series: str
    tags: Dict[str, str]
    fields: Dict[str, Union[int, float]]
    timestamp: Optional[datetime] = None


class IngestStats(BaseModel):
    received: int = 0
    written: int = 0
    checksum_mismatch: int = 0
    malformed_envelope: int = 0
    malformed_payload: int = 0
    truncated_payload: int = 0
    sink_errors: int = 0
