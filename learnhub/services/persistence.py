"""Persistence adapter: store snapshots to a durable key/JSON slot.

Lifecycle per store:

  1. attach(key, store) reads the slot once and, if a usable snapshot is
     there, adopts it as the store's state.  This happens at startup,
     before anything reads the store.
  2. It then subscribes to the store.  Every commit serializes the
     store's whitelisted slice (store.snapshot()) and writes it to the
     slot synchronously.

The slot holds a copy; the in-memory store stays authoritative while
the process runs.  Two processes sharing a slot each write their own
view and the last writer wins on the next reload.

Failure policy:
  - unreadable or too-new snapshot at attach: logged, store starts empty
  - write failure: logged and counted (snapshot_writes_total{result=error});
    the mutation that triggered it has already happened and stands
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Protocol, TypeVar, runtime_checkable

import redis
from pydantic import BaseModel, ValidationError

from learnhub.core.metrics import SNAPSHOT_WRITES
from learnhub.models.snapshot import SnapshotVersionError, migrate_snapshot

logger = logging.getLogger(__name__)

SnapshotT = TypeVar("SnapshotT", bound=BaseModel)


@runtime_checkable
class SnapshotSlot(Protocol):
    def read(self, key: str) -> str | None:
        """Return the stored blob, or None if the slot is empty."""
        ...

    def write(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemorySnapshotSlot:
    """Process-memory slot for tests and local dev.

    Survives store re-creation inside one process, not a restart.
    """

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self._store.get(key)

    def write(self, key: str, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)


class RedisSnapshotSlot:
    """Redis-backed slot.  Plain SET/GET with no TTL: snapshots must not expire."""

    def __init__(self, redis_client, prefix: str = "learnhub:") -> None:
        self._redis = redis_client
        self._prefix = f"{prefix}snapshot:"

    def read(self, key: str) -> str | None:
        return self._redis.get(f"{self._prefix}{key}")

    def write(self, key: str, value: str) -> None:
        self._redis.set(f"{self._prefix}{key}", value)

    def delete(self, key: str) -> None:
        self._redis.delete(f"{self._prefix}{key}")


class SnapshotStore(Protocol[SnapshotT]):
    store_name: str

    def snapshot(self) -> SnapshotT: ...
    def restore(self, snapshot: SnapshotT) -> None: ...
    def subscribe(self, listener: Callable[[str], None]) -> Callable[[], None]: ...


class PersistenceAdapter:
    def __init__(self, slot: SnapshotSlot) -> None:
        self._slot = slot
        self._unsubscribers: list[Callable[[], None]] = []

    def attach(
        self,
        key: str,
        store: SnapshotStore[SnapshotT],
        schema: type[SnapshotT],
    ) -> bool:
        """Rehydrate `store` from the slot, then persist it on every commit.

        Returns True when a snapshot was adopted.
        """
        restored = self.rehydrate(key, store, schema)
        self._unsubscribers.append(store.subscribe(lambda _action: self.flush(key, store)))
        return restored

    def rehydrate(
        self,
        key: str,
        store: SnapshotStore[SnapshotT],
        schema: type[SnapshotT],
    ) -> bool:
        blob = self._slot.read(key)
        if blob is None:
            logger.info("No snapshot for store=%s, starting empty", key)
            return False
        try:
            snapshot = schema.model_validate(migrate_snapshot(json.loads(blob)))
        except (json.JSONDecodeError, ValidationError, SnapshotVersionError, TypeError, AttributeError):
            logger.exception("Discarding unreadable snapshot for store=%s", key)
            return False

        store.restore(snapshot)
        logger.info("Rehydrated store=%s from snapshot", key)
        return True

    def flush(self, key: str, store: SnapshotStore[SnapshotT]) -> None:
        payload = store.snapshot().model_dump_json()
        try:
            self._slot.write(key, payload)
        except redis.RedisError:
            SNAPSHOT_WRITES.labels(store=store.store_name, result="error").inc()
            logger.exception("Snapshot write failed for store=%s", key)
            return
        SNAPSHOT_WRITES.labels(store=store.store_name, result="ok").inc()

    def detach_all(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
