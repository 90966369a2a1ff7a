import threading

from sensor_relay.models import Connection, ConnectionState
from sensor_relay.registry import ConnectionRegistry


def _open(conn_id=None):
    conn = Connection(object(), connection_id=conn_id)
    conn.transition(ConnectionState.OPEN)
    return conn


def test_add_and_live_set():
    reg = ConnectionRegistry()
    a, b = _open(), _open()
    pending = Connection(object())
    for c in (a, b, pending):
        reg.add(c)
    assert len(reg) == 3
    assert {c.id for c in reg.live_set()} == {a.id, b.id}


def test_duplicate_add_keeps_first_record():
    reg = ConnectionRegistry()
    first = _open("same")
    assert reg.add(first) is first
    assert reg.add(_open("same")) is first
    assert len(reg) == 1


def test_remove_is_idempotent():
    reg = ConnectionRegistry()
    conn = _open()
    reg.add(conn)
    assert reg.remove(conn.id) is conn
    assert reg.remove(conn.id) is None
    assert reg.remove("never-seen") is None
    assert conn.id not in reg
    assert len(reg) == 0


def test_live_set_is_a_snapshot():
    reg = ConnectionRegistry()
    a = _open()
    reg.add(a)
    snap = reg.live_set()
    reg.remove(a.id)
    assert snap == [a]
    assert reg.live_set() == []


def test_concurrent_add_remove():
    reg = ConnectionRegistry()
    conns = [_open() for _ in range(200)]

    def churn(batch):
        for c in batch:
            reg.add(c)
            reg.live_set()
            reg.remove(c.id)
            reg.remove(c.id)

    threads = [threading.Thread(target=churn, args=(conns[i::4],)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(reg) == 0
