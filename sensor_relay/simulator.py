#!/usr/bin/env python3
"""
Arduino data simulator: a fake sensor producer for the relay.

Modes:
  json     sends a {"status":"connected",...} hello, then a JSON reading every
           interval (temperature, humidity, analog sensor, uptime, memory, RSSI)
  numeric  sends only the bare analog value ("512"), like a sketch doing
           Serial.println(analogRead(A0)); the relay wraps it in an envelope

The connection is classified from its first message, so numeric mode never
sends the JSON hello.
"""

import argparse
import asyncio
import json
import logging
import random
import time
from typing import Dict, Optional

from websockets.exceptions import ConnectionClosed

from . import config
from .config import ReconnectPolicy
from .producer import run_with_reconnect

logger = logging.getLogger(__name__)

MODES = ("json", "numeric")


class ArduinoSimulator:
    def __init__(self, *, mode: str = "json", interval: float = 1.0,
                 policy: Optional[ReconnectPolicy] = None, rng: Optional[random.Random] = None,
                 device: str = "Arduino", ip: str = "192.168.1.100"):
        if mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {mode!r}")
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.mode = mode
        self.interval = interval
        self.policy = policy or ReconnectPolicy()
        self.rng = rng or random.Random()
        self.device = device
        self.ip = ip

        # initial sensor values
        self.temperature = 25.0
        self.humidity = 60.0
        self.sensor_value = 512
        self.uptime = 0

        self.sent = 0
        self.received = 0

    # ------------------ sensor model ------------------

    def update_sensor_values(self):
        # temperature: +/-1 degree drift, clamped to 15..35
        self.temperature += (self.rng.random() - 0.5) * 2
        self.temperature = min(35.0, max(15.0, self.temperature))

        # humidity climbs 1%/tick and wraps back to 30% past 90%
        self.humidity += 1
        if self.humidity > 90.0:
            self.humidity = 30.0

        # analog input 0..1023
        self.sensor_value += int((self.rng.random() - 0.5) * 100)
        self.sensor_value = min(1023, max(0, self.sensor_value))

        self.uptime += 1

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    def connection_message(self) -> Dict:
        return {
            "status": "connected",
            "device": self.device,
            "timestamp": self._now_ms(),
            "ip": self.ip,
        }

    def sensor_data(self) -> Dict:
        return {
            "temperature": round(self.temperature, 2),
            "humidity": round(self.humidity, 1),
            "sensorValue": self.sensor_value,
            "timestamp": self._now_ms(),
            "uptime": self.uptime,
            "freeMemory": self.rng.randrange(1536, 2048),
            "wifiRSSI": self.rng.randrange(-70, -40),
        }

    def temperature_alert(self) -> Dict:
        return {
            "temperature": 40.5,
            "humidity": self.humidity,
            "sensorValue": self.sensor_value,
            "timestamp": self._now_ms(),
            "uptime": self.uptime,
            "alert": "HIGH_TEMPERATURE",
            "freeMemory": 1800,
            "wifiRSSI": -55,
        }

    def low_battery_alert(self) -> Dict:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "sensorValue": 150,  # analog reading under low supply voltage
            "voltage": 3.2,
            "timestamp": self._now_ms(),
            "uptime": self.uptime,
            "alert": "LOW_BATTERY",
            "freeMemory": 1600,
            "wifiRSSI": -65,
        }

    def reading(self) -> str:
        if self.mode == "numeric":
            return str(self.sensor_value)
        return json.dumps(self.sensor_data())

    # ------------------ networking ------------------

    async def _drain(self, ws):
        try:
            async for msg in ws:
                self.received += 1
                logger.debug(f"📥 Message from relay: {msg}")
        except ConnectionClosed:
            pass  # the send loop notices and reconnects

    async def session(self, ws, stop: asyncio.Event):
        """One connected session: hello (json mode), then a reading every interval until `stop`."""
        reader = asyncio.create_task(self._drain(ws))
        try:
            if self.mode == "json":
                hello = json.dumps(self.connection_message())
                await ws.send(hello)
                logger.info(f"📤 [hello] {hello}")

            while not stop.is_set():
                self.update_sensor_values()
                payload = self.reading()
                await ws.send(payload)
                self.sent += 1
                logger.info(
                    f"📤 temp:{self.temperature:.2f}°C humidity:{self.humidity:.1f}% "
                    f"sensor:{self.sensor_value} ({self.mode})"
                )
                try:
                    await asyncio.wait_for(stop.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            reader.cancel()
            await asyncio.gather(reader, return_exceptions=True)

    async def run(self, url: str, stop: Optional[asyncio.Event] = None, *, connect=None) -> bool:
        """Stream readings to the relay until `stop` is set or reconnects run out."""
        return await run_with_reconnect(url, self.session, self.policy, stop, connect=connect)


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Simulated Arduino sensor producer for the relay.")
    ap.add_argument("--url", default=config.RELAY_URL, help="Relay WebSocket URL (env RELAY_URL)")
    ap.add_argument("--mode", choices=MODES, default="json", help="Payload format to send")
    ap.add_argument("--interval", type=float, default=1.0, help="Seconds between readings")
    ap.add_argument("--initial-delay", type=float, default=1.0, help="First reconnect delay (s)")
    ap.add_argument("--max-delay", type=float, default=30.0, help="Reconnect delay cap (s)")
    ap.add_argument("--max-attempts", type=int, default=None, help="Reconnect attempts before giving up (default: unbounded)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log messages received from the relay")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    policy = ReconnectPolicy(
        initial_delay=args.initial_delay,
        max_delay=args.max_delay,
        max_attempts=args.max_attempts,
    )
    sim = ArduinoSimulator(mode=args.mode, interval=args.interval, policy=policy)
    try:
        ok = asyncio.run(sim.run(args.url))
    except KeyboardInterrupt:
        logger.info("🛑 Simulator stopped")
        return
    if not ok:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
