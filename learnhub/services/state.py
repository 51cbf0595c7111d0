"""Shared plumbing for the in-memory stores.

ObservableStore
    Every committed mutation goes through _commit(), which bumps a
    revision counter and notifies subscribers synchronously.  The
    persistence adapter is the main subscriber: it flushes the store's
    snapshot slice on each notification.

    Sync FastAPI routes run on the threadpool, so methods touching the
    store's dicts are wrapped in @synchronized.  The lock is reentrant:
    a mutation holds it through _commit(), so the flushed snapshot
    always includes that mutation and never races another writer.

OperationTracker
    Loading/error bookkeeping for the async (remote-backed) operations,
    scoped per operation name.  A failed "load_recommendations" never
    overwrites the error of a failed "load_dashboard".
"""

from __future__ import annotations

import functools
import logging
import threading
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from learnhub.core.metrics import STORE_ACTIONS, STORE_OPERATION_FAILURES

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]

F = TypeVar("F", bound=Callable[..., Any])


def synchronized(method: F) -> F:
    """Run a store method while holding the store's lock."""

    @functools.wraps(method)
    def wrapper(self: ObservableStore, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class ObservableStore:
    store_name = "store"

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()
        self.revision = 0
        self.ops = OperationTracker()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after every commit; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _commit(self, action: str) -> None:
        self.revision += 1
        STORE_ACTIONS.labels(store=self.store_name, action=action).inc()
        for listener in list(self._listeners):
            listener(action)

    # Convenience views over the tracker, mirroring the flat
    # isLoading/error fields the presentation layer reads.

    @property
    def is_loading(self) -> bool:
        return self.ops.is_loading

    @property
    def error(self) -> Exception | None:
        return self.ops.error


@dataclass(slots=True)
class OperationState:
    loading: bool = False
    error: Exception | None = None


class OperationTracker:
    def __init__(self) -> None:
        self._states: dict[str, OperationState] = {}
        self._last_failed: str | None = None

    def state(self, name: str) -> OperationState:
        return self._states.setdefault(name, OperationState())

    @property
    def is_loading(self) -> bool:
        return any(s.loading for s in self._states.values())

    @property
    def error(self) -> Exception | None:
        """Most recent failure across all operations."""
        if self._last_failed is None:
            return None
        return self._states[self._last_failed].error

    def error_for(self, name: str) -> Exception | None:
        st = self._states.get(name)
        return st.error if st else None

    def set_error(self, name: str, error: Exception | None) -> None:
        st = self.state(name)
        st.error = error
        st.loading = False
        if error is not None:
            self._last_failed = name
        elif self._last_failed == name:
            self._last_failed = None

    def clear(self) -> None:
        self._states.clear()
        self._last_failed = None

    @asynccontextmanager
    async def track(self, name: str) -> AsyncIterator[None]:
        """Mark `name` as loading for the duration of the block.

        On failure the error is stored under `name`, logged and re-raised.
        On cancellation the loading flag is cleared and nothing is stored.
        """
        st = self.state(name)
        st.loading = True
        try:
            yield
        except Exception as e:
            STORE_OPERATION_FAILURES.labels(operation=name).inc()
            logger.exception("store operation failed op=%s", name)
            self.set_error(name, e)
            raise
        else:
            self.set_error(name, None)
        finally:
            st.loading = False
