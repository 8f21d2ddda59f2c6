"""
Per-flight mutual exclusion for seat bookkeeping.

Every change to a flight's confirmed-booking count runs while holding the
lock for that flight, so two callers can never both take the last seat.
Locks are keyed per flight; different flights never contend.

Two interchangeable managers:
- LocalLockManager: threading locks, for a single process
- ValkeyLockManager: Valkey SET NX EX locks with an owner token and a
  compare-and-delete release script, for several processes sharing one
  database
"""

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterator, Optional

import valkey

from ..errors import LockTimeoutError, StorageFailureError

logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "aerobook:lock"

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


def build_lock_key(resource_key: str) -> str:
    return f"{LOCK_KEY_PREFIX}:{resource_key}"


def flight_resource_key(flight_id: int) -> str:
    return f"flight:{flight_id}"


@dataclass
class LockInfo:
    """Information about a held lock."""
    lock_key: str
    lock_value: str
    acquired_at: datetime
    owner_id: str
    expires_at: Optional[datetime] = None
    wait_time_ms: float = 0.0


@dataclass
class LockStats:
    """Contention counters, useful when simulating concurrent bookings."""
    acquired: int = 0
    contended: int = 0
    timeouts: int = 0
    total_wait_ms: float = 0.0
    _guard: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, wait_ms: float, contended: bool) -> None:
        with self._guard:
            self.acquired += 1
            self.total_wait_ms += wait_ms
            if contended:
                self.contended += 1

    def record_timeout(self) -> None:
        with self._guard:
            self.timeouts += 1


class BaseLockManager:
    """Shared acquire/release/context-manager plumbing."""

    def __init__(self, timeout_seconds: float = 10.0):
        self.instance_id = str(uuid.uuid4())[:8]
        self.timeout_seconds = timeout_seconds
        self.stats = LockStats()

    def acquire(self, resource_key: str, timeout_seconds: Optional[float] = None) -> LockInfo:
        raise NotImplementedError

    def release(self, lock_info: LockInfo) -> bool:
        raise NotImplementedError

    @contextmanager
    def lock(self, resource_key: str, timeout_seconds: Optional[float] = None) -> Iterator[LockInfo]:
        """
        Hold the lock for resource_key for the duration of the block.

        Raises:
            LockTimeoutError: if the lock is not acquired within the timeout
        """
        lock_info = self.acquire(resource_key, timeout_seconds)
        try:
            yield lock_info
        finally:
            self.release(lock_info)

    def lock_flight(self, flight_id: int, timeout_seconds: Optional[float] = None):
        return self.lock(flight_resource_key(flight_id), timeout_seconds)


class LocalLockManager(BaseLockManager):
    """In-process per-resource locks."""

    def __init__(self, timeout_seconds: float = 10.0):
        super().__init__(timeout_seconds)
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_guard = threading.Lock()
        logger.info(f"LocalLockManager initialized with instance ID: {self.instance_id}")

    def _lock_for(self, lock_key: str) -> threading.Lock:
        with self._registry_guard:
            lock = self._locks.get(lock_key)
            if lock is None:
                lock = threading.Lock()
                self._locks[lock_key] = lock
            return lock

    def acquire(self, resource_key: str, timeout_seconds: Optional[float] = None) -> LockInfo:
        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        lock_key = build_lock_key(resource_key)
        lock = self._lock_for(lock_key)

        start_time = time.monotonic()
        contended = not lock.acquire(blocking=False)
        if contended and not lock.acquire(timeout=timeout):
            waited = time.monotonic() - start_time
            self.stats.record_timeout()
            logger.warning(f"Failed to acquire lock: {lock_key} (wait: {waited * 1000:.1f}ms)")
            raise LockTimeoutError(lock_key, waited)

        wait_time_ms = (time.monotonic() - start_time) * 1000
        self.stats.record(wait_time_ms, contended)
        logger.debug(f"Lock acquired: {lock_key} (wait: {wait_time_ms:.1f}ms)")

        return LockInfo(
            lock_key=lock_key,
            lock_value=f"{self.instance_id}:{threading.get_ident()}",
            acquired_at=datetime.now(),
            owner_id=self.instance_id,
            wait_time_ms=wait_time_ms,
        )

    def release(self, lock_info: LockInfo) -> bool:
        lock = self._lock_for(lock_info.lock_key)
        try:
            lock.release()
        except RuntimeError:
            logger.warning(f"Lock release failed (not held): {lock_info.lock_key}")
            return False
        logger.debug(f"Lock released: {lock_info.lock_key}")
        return True


class ValkeyLockManager(BaseLockManager):
    """
    Distributed per-resource locks using Valkey SET with NX and EX options.

    The lock value carries a unique owner token and release only deletes
    the key if the token still matches, so an expired lock re-acquired by
    another process is never released by the previous holder.
    """

    def __init__(
        self,
        client,
        ttl_seconds: int = 30,
        timeout_seconds: float = 10.0,
        retry_delay: float = 0.05,
    ):
        """
        Args:
            client: valkey.Valkey client (or anything with set/eval)
            ttl_seconds: Lock expiry guarding against crashed holders
            timeout_seconds: Maximum time to wait for a lock
            retry_delay: Delay between acquisition attempts
        """
        super().__init__(timeout_seconds)
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.retry_delay = retry_delay
        logger.info(f"ValkeyLockManager initialized with instance ID: {self.instance_id}")

    def acquire(self, resource_key: str, timeout_seconds: Optional[float] = None) -> LockInfo:
        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        lock_key = build_lock_key(resource_key)
        lock_value = f"{self.instance_id}:{uuid.uuid4()}"

        start_time = time.monotonic()
        attempts = 0

        while True:
            attempts += 1
            try:
                acquired = self.client.set(lock_key, lock_value, nx=True, ex=self.ttl_seconds)
            except Exception as e:
                logger.error(f"Error acquiring lock {lock_key}: {e}")
                raise StorageFailureError(f"Lock backend unavailable: {e}") from e

            if acquired:
                acquired_at = datetime.now()
                wait_time_ms = (time.monotonic() - start_time) * 1000
                self.stats.record(wait_time_ms, attempts > 1)
                logger.debug(
                    f"Lock acquired: {lock_key} (attempts: {attempts}, wait: {wait_time_ms:.1f}ms)"
                )
                return LockInfo(
                    lock_key=lock_key,
                    lock_value=lock_value,
                    acquired_at=acquired_at,
                    owner_id=self.instance_id,
                    expires_at=acquired_at + timedelta(seconds=self.ttl_seconds),
                    wait_time_ms=wait_time_ms,
                )

            waited = time.monotonic() - start_time
            if waited >= timeout:
                self.stats.record_timeout()
                logger.warning(
                    f"Failed to acquire lock: {lock_key} (attempts: {attempts}, wait: {waited * 1000:.1f}ms)"
                )
                raise LockTimeoutError(lock_key, waited)

            time.sleep(self.retry_delay)

    def release(self, lock_info: LockInfo) -> bool:
        try:
            result = self.client.eval(_RELEASE_SCRIPT, 1, lock_info.lock_key, lock_info.lock_value)
        except Exception as e:
            # The key still expires on its own after ttl_seconds
            logger.error(f"Error releasing lock {lock_info.lock_key}: {e}")
            return False

        success = bool(result)
        if success:
            logger.debug(f"Lock released: {lock_info.lock_key}")
        else:
            logger.warning(f"Lock release failed (not owner or expired): {lock_info.lock_key}")
        return success


def create_lock_manager(config) -> BaseLockManager:
    """
    Build the lock manager selected by an EngineConfig.

    Args:
        config: EngineConfig instance

    Returns:
        LocalLockManager or ValkeyLockManager
    """
    if config.lock_backend == "valkey":
        client = valkey.Valkey(**config.to_valkey_kwargs())
        return ValkeyLockManager(
            client,
            ttl_seconds=config.lock_ttl_seconds,
            timeout_seconds=config.lock_timeout_seconds,
        )
    return LocalLockManager(timeout_seconds=config.lock_timeout_seconds)
