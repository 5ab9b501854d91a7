"""Distributed per-ledger locks held in Redis."""

from __future__ import annotations

import base64
import logging
import secrets
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Optional, Protocol

import redis

from .errors import LockError

DEFAULT_LOCK_DURATION = timedelta(minutes=1)
DEFAULT_RETRY_INTERVAL = timedelta(seconds=1)

_log = logging.getLogger(__name__)

Unlock = Callable[[], None]


class RedisClient(Protocol):
    """The subset of a Redis client the lock uses."""

    def set(self, name: str, value: Any, *, px: Optional[int] = None, nx: bool = False) -> Any: ...

    def get(self, name: str) -> Any: ...

    def delete(self, *names: str) -> Any: ...


def lock_key(name: str) -> str:
    return "ledger-lock-" + name


def random_token() -> str:
    """A random value identifying one holder of a lock."""
    return base64.b64encode(secrets.token_bytes(20)).decode("ascii")


def _millis(duration: timedelta) -> int:
    return duration // timedelta(milliseconds=1)


class Lock:
    """Takes named locks that expire after ``lock_duration``."""

    def __init__(
        self,
        client: RedisClient,
        lock_duration: timedelta,
        retry: timedelta,
        token_factory: Callable[[], str] = random_token,
    ) -> None:
        self.client = client
        self.lock_duration = lock_duration
        self.retry = retry
        self._token_factory = token_factory

    def try_lock(self, name: str) -> Unlock | None:
        """Take the lock if it is free; return its release function, else None."""
        token = self._token_factory()
        key = lock_key(name)
        try:
            acquired = self.client.set(key, token, px=_millis(self.lock_duration), nx=True)
        except redis.RedisError as err:
            raise LockError(err) from err
        if not acquired:
            return None

        def unlock() -> None:
            try:
                value = self.client.get(key)
            except redis.RedisError as err:
                _log.error("error retrieving lock: %s", err)
                return
            if isinstance(value, bytes):
                value = value.decode("utf-8")
            if value != token:
                _log.error("unable to retrieve lock value, expect %s, got %s", token, value)
                return
            try:
                self.client.delete(key)
            except redis.RedisError as err:
                _log.error("error deleting lock: %s", err)

        return unlock

    def lock(self, name: str) -> Unlock:
        """Wait until the lock is taken, retrying every ``retry``."""
        while True:
            unlock = self.try_lock(name)
            if unlock is not None:
                return unlock
            time.sleep(self.retry.total_seconds())


@dataclass
class LockConfig:
    url: str
    lock_duration: timedelta = timedelta(0)
    lock_retry: timedelta = timedelta(0)
    connection_options: dict[str, Any] = field(default_factory=dict)


def build_lock(config: LockConfig) -> Lock:
    """A lock on the Redis server at ``config.url``, with default timings filled in."""
    client = redis.Redis.from_url(config.url, **config.connection_options)
    return Lock(
        client,
        config.lock_duration or DEFAULT_LOCK_DURATION,
        config.lock_retry or DEFAULT_RETRY_INTERVAL,
    )