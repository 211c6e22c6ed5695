# aq_listener/config.py
import os

from pydantic import BaseModel


def _is_truthy(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    multicast_addr: str = "224.0.0.1"
    bind_addr: str = "0.0.0.0"
    port: int = 9000
    recv_size: int = 2000
    recv_timeout: float = 0.5

    influx_url: str = "http://localhost:8086"
    influx_token: str = ""
    influx_org: str = "sesa"
    influx_bucket: str = "testing"

    autostart: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            multicast_addr=os.getenv("AQ_MULTICAST_ADDR", "224.0.0.1"),
            bind_addr=os.getenv("AQ_BIND_ADDR", "0.0.0.0"),
            port=os.getenv("AQ_PORT", "9000"),
            recv_size=os.getenv("AQ_RECV_SIZE", "2000"),
            recv_timeout=os.getenv("AQ_RECV_TIMEOUT", "0.5"),
            influx_url=os.getenv("INFLUX_URL", "http://localhost:8086"),
            influx_token=os.getenv("INFLUX_TOKEN", ""),
            influx_org=os.getenv("INFLUX_ORG", "sesa"),
            influx_bucket=os.getenv("INFLUX_BUCKET", "testing"),
            autostart=_is_truthy(os.getenv("AQ_AUTOSTART", "true")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
