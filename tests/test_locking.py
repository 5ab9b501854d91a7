import base64
from datetime import timedelta

import pytest
import redis

from numledger.errors import LockError
from numledger.locking import LockConfig, Lock, build_lock, lock_key, random_token


class _FakeRedis:
    def __init__(self, refuse=0, fail=False):
        self.data = {}
        self.calls = []
        self.refuse = refuse
        self.fail = fail

    def set(self, name, value, *, px=None, nx=False):
        self.calls.append(("set", name, value, px, nx))
        if self.fail:
            raise redis.exceptions.ConnectionError("down")
        if self.refuse:
            self.refuse -= 1
            return None
        if nx and name in self.data:
            return None
        self.data[name] = value
        return True

    def get(self, name):
        self.calls.append(("get", name))
        value = self.data.get(name)
        return None if value is None else value.encode()

    def delete(self, *names):
        self.calls.append(("del",) + names)
        removed = sum(1 for n in names if self.data.pop(n, None) is not None)
        return removed


def _counter():
    state = {"n": 0}

    def token():
        value = str(state["n"])
        state["n"] += 1
        return value

    return token


def test_lock_sequence():
    client = _FakeRedis()
    duration = timedelta(seconds=5)
    lock = Lock(client, duration, timedelta(milliseconds=100), token_factory=_counter())

    unlock = lock.try_lock("quickstart")
    assert unlock is not None
    assert client.calls[-1] == ("set", lock_key("quickstart"), "0", 5000, True)

    assert lock.try_lock("quickstart") is None
    assert lock.try_lock("another") is not None

    unlock()
    assert client.calls[-2:] == [("get", lock_key("quickstart")), ("del", lock_key("quickstart"))]

    assert lock.try_lock("quickstart") is not None
    assert client.data[lock_key("quickstart")] == "3"


def test_unlock_keeps_lock_taken_by_someone_else():
    client = _FakeRedis()
    lock = Lock(client, timedelta(seconds=5), timedelta(milliseconds=1), token_factory=_counter())
    unlock = lock.try_lock("ledger")
    client.data[lock_key("ledger")] = "other"
    unlock()
    assert client.data[lock_key("ledger")] == "other"
    assert all(call[0] != "del" for call in client.calls)


def test_lock_retries_until_free():
    client = _FakeRedis(refuse=2)
    lock = Lock(client, timedelta(seconds=5), timedelta(milliseconds=1), token_factory=_counter())
    unlock = lock.lock("ledger")
    assert len([c for c in client.calls if c[0] == "set"]) == 3
    assert client.data[lock_key("ledger")] == "2"
    unlock()
    assert client.data == {}


def test_redis_error_raises_lock_error():
    lock = Lock(_FakeRedis(fail=True), timedelta(seconds=5), timedelta(milliseconds=1))
    with pytest.raises(LockError, match="down"):
        lock.lock("ledger")


def test_lock_key():
    assert lock_key("quickstart") == "ledger-lock-quickstart"


def test_random_token_is_20_random_bytes():
    token = random_token()
    assert len(base64.b64decode(token)) == 20
    assert token != random_token()


def test_build_lock_defaults():
    lock = build_lock(LockConfig(url="redis://localhost:6379/0"))
    assert lock.lock_duration == timedelta(minutes=1)
    assert lock.retry == timedelta(seconds=1)


def test_build_lock_explicit_timings():
    lock = build_lock(LockConfig(
        url="redis://localhost:6379/0",
        lock_duration=timedelta(seconds=10),
        lock_retry=timedelta(milliseconds=200),
    ))
    assert lock.lock_duration == timedelta(seconds=10)
    assert lock.retry == timedelta(milliseconds=200)