"""
Key-value backends for coupon storage.

Redis is the production backend. The in-process backend keeps the same
contract for local development and tests.

Both expose get / set / delete, prefix key enumeration and a named lock used
to serialize read-increment-write on a coupon's usage count.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
import threading
from typing import Dict, Iterator, Optional

import redis
from redis.exceptions import LockError, RedisError

from couponengine.core.config import EngineConfig
from couponengine.core.errors import BackendUnavailable
from couponengine.utils.logger import get_logger

logger = get_logger("data.backends")


class KeyValueBackend(ABC):

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""

    @abstractmethod
    def scan_keys(self, prefix: str) -> Iterator[str]:
        """Iterate over keys starting with prefix."""

    @abstractmethod
    def lock(self, name: str):
        """Context manager holding an exclusive lock on name."""

    @abstractmethod
    def ping(self) -> bool:
        ...


class RedisBackend(KeyValueBackend):
    """
    Redis-backed storage.

    Connection priority (see EngineConfig):
    1. redis_url (REDIS_URL), e.g. rediss:// for hosted Redis
    2. redis_host + redis_port + redis_db
    """

    def __init__(
        self,
        client: redis.Redis,
        lock_timeout: float = 10.0,
        lock_blocking_timeout: float = 5.0,
        scan_count: int = 100,
    ):
        self.client = client
        self.lock_timeout = lock_timeout
        self.lock_blocking_timeout = lock_blocking_timeout
        self.scan_count = scan_count

    @classmethod
    def from_config(cls, config: EngineConfig) -> "RedisBackend":
        if config.redis_url:
            client = redis.from_url(
                config.redis_url,
                decode_responses=True,
                socket_connect_timeout=config.socket_timeout,
                socket_timeout=config.socket_timeout,
            )
        else:
            client = redis.Redis(
                host=config.redis_host,
                port=config.redis_port,
                db=config.redis_db,
                decode_responses=True,
                socket_connect_timeout=config.socket_timeout,
                socket_timeout=config.socket_timeout,
            )
        return cls(
            client,
            lock_timeout=config.lock_timeout_seconds,
            lock_blocking_timeout=config.lock_blocking_timeout_seconds,
        )

    def ping(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return bool(self.client.ping())
        except RedisError:
            return False

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except RedisError as e:
            raise BackendUnavailable(f"Redis read error for {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except RedisError as e:
            raise BackendUnavailable(f"Redis write error for {key}: {e}") from e

    def delete(self, key: str) -> bool:
        try:
            return self.client.delete(key) > 0
        except RedisError as e:
            raise BackendUnavailable(f"Redis delete error for {key}: {e}") from e

    def scan_keys(self, prefix: str) -> Iterator[str]:
        # SCAN with a cursor rather than KEYS, which blocks the server on large keyspaces
        try:
            yield from self.client.scan_iter(match=f"{prefix}*", count=self.scan_count)
        except RedisError as e:
            raise BackendUnavailable(f"Redis scan error for {prefix}*: {e}") from e

    @contextmanager
    def lock(self, name: str):
        lock = self.client.lock(
            f"lock:{name}",
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_blocking_timeout,
        )
        try:
            acquired = lock.acquire()
        except RedisError as e:
            raise BackendUnavailable(f"Could not acquire lock for {name}: {e}") from e
        if not acquired:
            raise BackendUnavailable(f"Timed out waiting for lock on {name}")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError as e:
                # The lock timed out while held; the work inside it has already run
                logger.warning(f"Lock on {name} expired before release: {e}")


class _KeyLock:
    """A per-key lock plus the number of threads holding or waiting on it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class InMemoryBackend(KeyValueBackend):
    """Process-local dict storage with per-key threading locks."""

    def __init__(self, lock_blocking_timeout: float = 5.0):
        self.lock_blocking_timeout = lock_blocking_timeout
        self._data: Dict[str, str] = {}
        self._guard = threading.Lock()
        self._locks: Dict[str, _KeyLock] = {}

    def ping(self) -> bool:
        return True

    def get(self, key: str) -> Optional[str]:
        with self._guard:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._guard:
            self._data[key] = value

    def delete(self, key: str) -> bool:
        with self._guard:
            return self._data.pop(key, None) is not None

    def scan_keys(self, prefix: str) -> Iterator[str]:
        with self._guard:
            keys = [key for key in self._data if key.startswith(prefix)]
        return iter(keys)

    def flush(self) -> None:
        with self._guard:
            self._data.clear()

    @contextmanager
    def lock(self, name: str):
        # Entries live only while some thread holds or waits on the lock
        with self._guard:
            entry = self._locks.get(name)
            if entry is None:
                entry = self._locks[name] = _KeyLock()
            entry.users += 1
        try:
            if not entry.lock.acquire(timeout=self.lock_blocking_timeout):
                raise BackendUnavailable(f"Timed out waiting for lock on {name}")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[name]


def create_backend(config: EngineConfig) -> KeyValueBackend:
    """Build the backend selected by config.storage_backend."""
    if config.storage_backend == "memory":
        return InMemoryBackend(lock_blocking_timeout=config.lock_blocking_timeout_seconds)
    if config.storage_backend == "redis":
        return RedisBackend.from_config(config)
    raise ValueError(f"Unknown storage backend: {config.storage_backend}")
