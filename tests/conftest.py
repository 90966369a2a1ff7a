import asyncio

import pytest

from sensor_relay.relay import Relay


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeTransport:
    """Stands in for a WebSocket: records what the relay sends to it."""

    def __init__(self, *, fail=False, hang=False):
        self.fail = fail
        self.hang = hang
        self.sent = []

    async def _deliver(self, payload):
        if self.fail:
            raise RuntimeError("peer is closing")
        if self.hang:
            await asyncio.sleep(60)
        self.sent.append(payload)

    async def send_text(self, data: str):
        await self._deliver(data)

    async def send_bytes(self, data: bytes):
        await self._deliver(data)


@pytest.fixture
def relay():
    return Relay(send_timeout=0.2)


@pytest.fixture
def open_client(relay):
    """Factory: register and open a connection backed by a FakeTransport."""
    def _open(**kwargs):
        transport = FakeTransport(**kwargs)
        conn = relay.connect(transport)
        relay.open(conn)
        return conn, transport
    return _open
