#!/usr/bin/env python3
# serial_bridge.py: real Arduino -> relay producer
#
# MCU -> Host : ASCII lines, e.g. "512\r\n" from Serial.println(analogRead(A0))
#               or one JSON object per line
# Host -> relay: each non-empty line, verbatim, as one WebSocket text message
#
# The relay classifies the connection from the first line, so a sketch that
# prints bare numbers becomes a numeric client and gets its readings wrapped.

import argparse
import asyncio
import logging
from typing import List, Optional

import serial

from . import config
from .config import ReconnectPolicy
from .producer import run_with_reconnect

logger = logging.getLogger(__name__)

EOL = b"\n"


class SerialLineReader:
    """Accumulates serial bytes and hands back complete, decoded lines."""

    def __init__(self, ser, *, rx_chunk: int = 128, max_line: int = 1024):
        self.ser = ser
        self.rx_chunk = rx_chunk
        self.max_line = max_line
        self.buf = bytearray()

    def feed(self, chunk: bytes) -> List[str]:
        self.buf.extend(chunk)
        lines = []
        while True:
            try:
                i = self.buf.index(EOL)
            except ValueError:
                break
            raw = bytes(self.buf[:i])
            del self.buf[:i + 1]
            line = raw.decode("utf-8", errors="replace").strip()
            if line:
                lines.append(line)

        # garbage with no newline in sight; drop it
        if len(self.buf) > self.max_line:
            logger.warning(f"Discarding {len(self.buf)} bytes without a line terminator")
            self.buf.clear()
        return lines

    def poll(self) -> List[str]:
        """Blocking read of up to one chunk (bounded by the port timeout)."""
        chunk = self.ser.read(self.rx_chunk)
        if not chunk:
            return []
        return self.feed(chunk)


class SerialBridge:
    def __init__(self, reader: SerialLineReader, *, policy: Optional[ReconnectPolicy] = None):
        self.reader = reader
        self.policy = policy or ReconnectPolicy()
        self.forwarded = 0
        self.device_error: Optional[Exception] = None

    async def session(self, ws, stop: asyncio.Event):
        loop = asyncio.get_running_loop()
        while not stop.is_set():
            try:
                lines = await loop.run_in_executor(None, self.reader.poll)
            except serial.SerialException as e:
                # the relay connection is fine; the device went away
                logger.error(f"serial read failed: {e}")
                self.device_error = e
                stop.set()
                return
            for line in lines:
                await ws.send(line)
                self.forwarded += 1
                logger.debug(f"📤 {line}")

    async def run(self, url: str, stop: Optional[asyncio.Event] = None, *, connect=None) -> bool:
        return await run_with_reconnect(url, self.session, self.policy, stop, connect=connect)


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Forward Arduino serial lines to the sensor relay.")
    ap.add_argument("--port", default=config.SERIAL_PORT, help="Serial device (env RELAY_SERIAL_PORT)")
    ap.add_argument("--baud", type=int, default=config.SERIAL_BAUD, help="Baud rate (env RELAY_SERIAL_BAUD)")
    ap.add_argument("--url", default=config.RELAY_URL, help="Relay WebSocket URL (env RELAY_URL)")
    ap.add_argument("--max-attempts", type=int, default=None, help="Reconnect attempts before giving up (default: unbounded)")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL)

    ser = serial.Serial(args.port, args.baud, timeout=0.1)
    logger.info(f"Opened {args.port}@{args.baud} -> {args.url}")
    bridge = SerialBridge(
        SerialLineReader(ser),
        policy=ReconnectPolicy(max_attempts=args.max_attempts),
    )
    try:
        ok = asyncio.run(bridge.run(args.url))
    except KeyboardInterrupt:
        ok = True
    finally:
        try:
            ser.close()
        except Exception:
            pass
    if not ok or bridge.device_error is not None:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
