#!/usr/bin/env python3
"""
Smoke check for a running relay: REST status endpoints, then a two-client
WebSocket round trip (a numeric reading must come back as an envelope).
"""

import argparse
import asyncio
import json
import sys

import requests
import websockets
from websockets.exceptions import WebSocketException

from . import config

READING = "23.5"


def check_rest(base_url: str, timeout: float = 5.0) -> bool:
    """Hit / , /health and /clients. Returns True when all answer 200."""
    print("\n🌐 Testing REST API endpoints...")
    ok = True
    for path in ("/", "/health", "/clients"):
        try:
            response = requests.get(f"{base_url}{path}", timeout=timeout)
        except requests.RequestException as e:
            print(f"❌ {path} error: {e}")
            ok = False
            continue
        if response.status_code == 200:
            data = response.json()
            print(f"✅ {path} working (connected clients: {data.get('connected_clients', 0)})")
        else:
            print(f"❌ {path} failed: {response.status_code}")
            ok = False
    return ok


async def check_relay(ws_url: str, timeout: float = 5.0) -> bool:
    """Producer sends a bare reading; the listener must receive the wrapped envelope."""
    print("\n🔌 Testing WebSocket relay...")
    try:
        async with websockets.connect(ws_url) as listener, websockets.connect(ws_url) as producer:
            await producer.send(READING)
            print(f"📤 Sent {READING}")
            try:
                message = await asyncio.wait_for(listener.recv(), timeout=timeout)
            except asyncio.TimeoutError:
                print("⚠️  Nothing relayed within timeout")
                return False
    except (OSError, asyncio.TimeoutError, WebSocketException) as e:
        print(f"❌ WebSocket test failed: {e}")
        return False

    try:
        data = json.loads(message)
    except ValueError:
        print(f"❌ Relayed payload is not JSON: {message!r}")
        return False
    if data.get("value") != float(READING) or "timestamp" not in data:
        print(f"❌ Unexpected envelope: {data}")
        return False
    print(f"✅ Received envelope: {data}")
    return True


def main(argv=None):
    ap = argparse.ArgumentParser(description="Smoke-test a running sensor relay.")
    ap.add_argument("--http", default=f"http://localhost:{config.PORT}", help="Relay base URL")
    ap.add_argument("--ws", default=None, help="Relay WebSocket URL (default: derived from --http)")
    args = ap.parse_args(argv)
    ws_url = args.ws or args.http.replace("http", "ws", 1) + "/ws"

    print("🧪 Probing sensor relay...")
    print(f"📍 Relay URL: {args.http}")
    print(f"🌐 WebSocket URL: {ws_url}")
    print("=" * 50)

    rest_ok = check_rest(args.http)
    relay_ok = asyncio.run(check_relay(ws_url))

    print("\n" + "=" * 50)
    if rest_ok and relay_ok:
        print("🏁 All checks passed")
        return
    print("💡 Make sure the relay is running: sensor-relay --port", config.PORT)
    sys.exit(1)


if __name__ == "__main__":
    main()
