import pytest

from sensor_relay.hub import BroadcastHub
from sensor_relay.models import Connection, ConnectionState
from sensor_relay.registry import ConnectionRegistry

from .conftest import FakeTransport


def _peer(registry, **kwargs):
    transport = FakeTransport(**kwargs)
    conn = Connection(transport)
    conn.transition(ConnectionState.OPEN)
    registry.add(conn)
    return conn, transport


@pytest.mark.anyio
async def test_origin_is_excluded():
    reg = ConnectionRegistry()
    hub = BroadcastHub(reg, send_timeout=0.2)
    a, ta = _peer(reg)
    b, tb = _peer(reg)
    c, tc = _peer(reg)

    delivered = await hub.broadcast("hi", a.id)

    assert delivered == 2
    assert ta.sent == []
    assert tb.sent == ["hi"]
    assert tc.sent == ["hi"]


@pytest.mark.anyio
async def test_failing_peer_does_not_stop_others():
    reg = ConnectionRegistry()
    hub = BroadcastHub(reg, send_timeout=0.2)
    a, _ = _peer(reg)
    _, tb = _peer(reg, fail=True)
    _, tc = _peer(reg)

    delivered = await hub.broadcast("reading", a.id)

    assert delivered == 1
    assert tb.sent == []
    assert tc.sent == ["reading"]


@pytest.mark.anyio
async def test_hung_peer_is_bounded_by_timeout():
    reg = ConnectionRegistry()
    hub = BroadcastHub(reg, send_timeout=0.05)
    a, _ = _peer(reg)
    _, slow = _peer(reg, hang=True)
    _, tc = _peer(reg)

    delivered = await hub.broadcast("x", a.id)

    assert delivered == 1
    assert slow.sent == []
    assert tc.sent == ["x"]


@pytest.mark.anyio
async def test_only_open_peers_receive():
    reg = ConnectionRegistry()
    hub = BroadcastHub(reg, send_timeout=0.2)
    a, _ = _peer(reg)
    closing, t_closing = _peer(reg)
    closing.transition(ConnectionState.CLOSING)
    pending_transport = FakeTransport()
    reg.add(Connection(pending_transport))

    assert await hub.broadcast("x", a.id) == 0
    assert t_closing.sent == []
    assert pending_transport.sent == []


@pytest.mark.anyio
async def test_bytes_are_sent_as_bytes():
    reg = ConnectionRegistry()
    hub = BroadcastHub(reg, send_timeout=0.2)
    a, _ = _peer(reg)
    _, tb = _peer(reg)

    await hub.broadcast(b"\x01\x02", a.id)
    assert tb.sent == [b"\x01\x02"]


@pytest.mark.anyio
async def test_same_origin_order_is_preserved():
    reg = ConnectionRegistry()
    hub = BroadcastHub(reg, send_timeout=0.2)
    a, _ = _peer(reg)
    _, tb = _peer(reg)

    for i in range(20):
        await hub.broadcast(str(i), a.id)
    assert tb.sent == [str(i) for i in range(20)]
