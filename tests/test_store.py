"""MessageStore tests — capacity bound, FIFO eviction, cursor queries."""

import threading

import pytest

from msgrelay.realtime.store import MessageStore
from msgrelay.schemas.message import Message


def msg(ts: int, content: str = "") -> Message:
    return Message(id=ts, timestamp=ts, content=content or f"m{ts}")


def test_never_exceeds_capacity_and_keeps_most_recent():
    store = MessageStore(capacity=100)
    for ts in range(1, 251):
        store.append(msg(ts))
        assert len(store) <= 100

    assert [m.timestamp for m in store.snapshot()] == list(range(151, 251))


def test_101st_message_evicts_the_first():
    store = MessageStore(capacity=100)
    for ts in range(1, 102):
        store.append(msg(ts, f"message {ts}"))

    contents = [m.content for m in store.snapshot()]
    assert len(contents) == 100
    assert "message 1" not in contents
    assert contents[-1] == "message 101"
    assert contents[0] == "message 2"


def test_query_empty_store():
    assert MessageStore().query(0) == ([], 0)


def test_query_is_strictly_greater_than():
    store = MessageStore()
    for ts in (10, 20, 30):
        store.append(msg(ts))

    messages, last = store.query(20)
    assert [m.timestamp for m in messages] == [30]
    assert last == 30

    messages, last = store.query(0)
    assert [m.timestamp for m in messages] == [10, 20, 30]
    assert last == 30


def test_query_with_nothing_newer_returns_since_unchanged():
    store = MessageStore()
    store.append(msg(10))
    assert store.query(10) == ([], 10)
    assert store.query(999) == ([], 999)


def test_cursor_walk_never_misses_or_repeats():
    store = MessageStore(capacity=100)
    seen: list[int] = []
    cursor = 0
    ts = 0

    for batch in (3, 0, 1, 5, 2):
        for _ in range(batch):
            ts += 1
            store.append(msg(ts))
        messages, cursor = store.query(cursor)
        seen.extend(m.timestamp for m in messages)

    assert seen == list(range(1, ts + 1))


def test_last_timestamp():
    store = MessageStore(capacity=2)
    assert store.last_timestamp == 0
    for ts in (5, 6, 7):
        store.append(msg(ts))
    assert store.last_timestamp == 7


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        MessageStore(capacity=0)


def test_concurrent_appends_from_threads():
    store = MessageStore(capacity=1000)

    def worker(offset: int):
        for i in range(50):
            store.append(msg(offset * 1000 + i))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 400
