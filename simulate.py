import base64
import json
import os
import random
import socket
import time
from datetime import datetime

from aq_listener.models import AirQualityRecord
from aq_listener.pms import pack_air_quality

# Configuration
MULTICAST_ADDR = os.getenv("AQ_MULTICAST_ADDR", "224.0.0.1")
PORT = int(os.getenv("AQ_PORT", "9000"))
DEVICE_MAC = os.getenv("DEVICE_MAC", "5C:CF:7F:00:00:01")
SEND_INTERVAL_SECONDS = int(os.getenv("SEND_INTERVAL", "5"))


def _u16(v: float) -> int:
    return max(0, min(65535, int(round(v))))


def build_envelope(pm1_0: float, pm2_5: float, pm10: float, temp: float, hum: float, record_id: int) -> bytes:
    """Same JSON shape the ESP8266 firmware multicasts."""
    record = AirQualityRecord(
        pm1_0_standard=_u16(pm1_0),
        pm2_5_standard=_u16(pm2_5),
        pm10_standard=_u16(pm10),
        pm1_0_env=_u16(pm1_0),
        pm2_5_env=_u16(pm2_5),
        concentration_unit=_u16(pm10),
        particle_03um=_u16(pm1_0 * 120),
        particle_05um=_u16(pm1_0 * 35),
        particle_10um=_u16(pm2_5 * 6),
        particle_25um=_u16(pm2_5 * 0.8),
        particle_50um=_u16(pm10 * 0.2),
        particle_100um=_u16(pm10 * 0.05),
    )
    payload = {
        "aq": base64.b64encode(pack_air_quality(record)).decode("ascii"),
        "temperature": int(round(temp * 100)),
        "humidity": int(round(hum * 100)),
        "mac": DEVICE_MAC,
        "record_id": record_id,
    }
    return json.dumps(payload).encode("utf-8")


def send_envelope(sock: socket.socket, data: bytes):
    try:
        sock.sendto(data, (MULTICAST_ADDR, PORT))
        print(f"[{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}] sent {len(data)} bytes")
    except OSError as e:
        print(f"[{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}] send failed: {e}")


def main():
    print(f"Simulating sensor node '{DEVICE_MAC}'")
    print(f"   Group: udp://{MULTICAST_ADDR}:{PORT}")
    print(f"   Interval: {SEND_INTERVAL_SECONDS} s\n")

    # starting values
    pm2_5 = random.uniform(5, 50)
    temp = random.uniform(20, 28)
    hum = random.uniform(35, 70)
    record_id = 0

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 1)
    try:
        while True:
            # random drift
            pm2_5 = max(0, pm2_5 + random.uniform(-1, 1))
            temp = max(-10, min(45, temp + random.uniform(-0.2, 0.2)))
            hum = max(0, min(100, hum + random.uniform(-1, 1)))
            record_id += 1

            data = build_envelope(pm2_5 * 0.7, pm2_5, pm2_5 * 1.3, temp, hum, record_id)
            send_envelope(sock, data)
            time.sleep(SEND_INTERVAL_SECONDS)

    except KeyboardInterrupt:
        print("\nSimulation stopped.")
    finally:
        sock.close()


if __name__ == "__main__":
    main()
