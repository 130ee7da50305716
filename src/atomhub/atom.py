"""Atoms: observable value cells with memoization and optional persistence.

An atom holds one value. Assigning a new value runs the atom's memoization
policy; if the policy says the value changed, the atom persists it (when
configured) and notifies every subscriber synchronously before returning.

Persisted atoms hydrate from storage in the background right after
construction. Until hydration finishes the atom holds its constructor value.

Thread safety: call set_scheduler() once from the main thread. After that,
any assignment from a background thread is auto-marshaled. Main-thread
assignment remains synchronous.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from atomhub import _runtime
from atomhub.compare import Memoization, as_memoization
from atomhub.storage import StorageAdapter, get_default_storage

V = TypeVar("V")

logger = logging.getLogger("atomhub.atom")

Callback = Callable[..., None]

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread atom assignments.

    Call once from the main/UI thread:
        atomhub.set_scheduler(app.call_from_thread)

    After this, any `atom.value = ...` from a background thread is
    automatically marshaled. Main-thread assignments remain synchronous.
    Pass None to go back to direct assignment everywhere.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


@dataclass(frozen=True)
class Persistence:
    """Where and how an atom's value is persisted."""

    key: str
    storage: StorageAdapter | None = None
    serialize: Callable[[Any], str] = json.dumps
    deserialize: Callable[[str], Any] = json.loads


def _arity(callback: Callback) -> int:
    """How many values a subscriber wants: 0, 1 (value) or 2 (value, previous).

    Only required positional parameters count, so defaulted extras keep
    their defaults.
    """
    try:
        params = inspect.signature(callback).parameters.values()
    except (TypeError, ValueError):
        return 1
    positional = 0
    for p in params:
        if p.kind is p.VAR_POSITIONAL:
            return 2
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty:
            positional += 1
    return min(positional, 2)


def _invoke(sub_id: str, callback: Callback, arity: int, value: Any, previous: Any) -> None:
    """Call one subscriber. Its exceptions are logged, never propagated."""
    try:
        if arity >= 2:
            callback(value, previous)
        elif arity == 1:
            callback(value)
        else:
            callback()
    except Exception:
        logger.exception("Error in atom subscriber %s", sub_id)


class ReadOnlyAtom(Generic[V]):
    """The subscribable half of an atom. Consumers can read but not assign."""

    __slots__ = ("_value", "_initial_value", "_subscribers", "_memoization", "__weakref__")

    def __init__(self, initial_value: V, *, memoization: Memoization | str | None = None) -> None:
        self._value = initial_value
        self._initial_value = initial_value
        self._subscribers: dict[str, tuple[Callback, int]] = {}
        self._memoization = as_memoization(memoization)

    @property
    def value(self) -> V:
        return self._value

    @property
    def initial_value(self) -> V:
        """The constructor value. Never changes, even after hydration."""
        return self._initial_value

    def get(self) -> V:
        return self._value

    def subscribe(self, callback: Callback, immediate: bool = False) -> str:
        """Register callback; returns the subscription id.

        The callback receives (value, previous) or just (value), depending on
        how many positional parameters it declares. With immediate=True it is
        also called once right away with the current value and no previous
        (None for two-parameter callbacks).
        """
        sub_id = _runtime.new_id("sub")
        arity = _arity(callback)
        self._subscribers[sub_id] = (callback, arity)
        if immediate:
            _invoke(sub_id, callback, arity, self._value, None)
        return sub_id

    def unsubscribe(self, sub_id: str) -> bool:
        if sub_id not in self._subscribers:
            logger.warning("Subscriber %s not found", sub_id)
            return False
        del self._subscribers[sub_id]
        return True

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _assign(self, new_value: V) -> None:
        """Apply a new value through the memoization gate, then persist and notify."""
        try:
            skip = self._memoization.equal(new_value, self._value)
        except Exception:
            logger.exception("Comparator failed, treating assignment as a change")
            skip = False
        if skip:
            return
        previous = self._value
        self._value = new_value
        self._persist(new_value)
        self._notify(new_value, previous)

    def _persist(self, value: V) -> None:
        """Hook for persisted atoms."""

    def _notify(self, value: V, previous: V) -> None:
        # Snapshot, but skip anyone unsubscribed by an earlier callback.
        for sub_id, (callback, arity) in list(self._subscribers.items()):
            if sub_id in self._subscribers:
                _invoke(sub_id, callback, arity, value, previous)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


class Atom(ReadOnlyAtom[V]):
    """A mutable atom, optionally persisted to a storage adapter."""

    __slots__ = ("_persistence", "_storage", "_pending")

    def __init__(
        self,
        initial_value: V,
        *,
        persistence: Persistence | None = None,
        memoization: Memoization | str | None = None,
    ) -> None:
        super().__init__(initial_value, memoization=memoization)
        self._persistence = persistence
        self._storage: StorageAdapter | None = None
        self._pending: set[asyncio.Task] = set()
        if persistence is not None:
            self._storage = persistence.storage if persistence.storage is not None else get_default_storage()
            self._track(_runtime.spawn(self._hydrate()))

    @property
    def value(self) -> V:
        return self._value

    @value.setter
    def value(self, new_value: V) -> None:
        """Assign a new value. Auto-marshals from background threads."""
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            _scheduler(lambda v=new_value: self._assign(v))
        else:
            self._assign(new_value)

    def set(self, value: V) -> None:
        self.value = value

    @property
    def persistence(self) -> Persistence | None:
        return self._persistence

    # --- Persistence ---

    def _track(self, task: asyncio.Task | None) -> None:
        if task is not None:
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _hydrate(self) -> None:
        key = self._persistence.key
        try:
            raw = await _runtime.resolve(self._storage.get(key))
        except Exception:
            logger.exception("Could not read persisted value for %s", key)
            return

        if raw is None or raw == "":
            await self._seed(key)
            return

        try:
            persisted = self._persistence.deserialize(raw)
        except Exception:
            logger.exception("Could not parse value %r for %s", raw, key)
            return
        self._assign(persisted)

    async def _seed(self, key: str) -> None:
        """Write the in-memory value to empty storage. Nothing changed, so no notify."""
        if self._value is None:
            return
        try:
            raw = self._persistence.serialize(self._value)
            await _runtime.resolve(self._storage.set(key, raw))
        except Exception:
            logger.exception("Could not seed persisted value for %s", key)

    def _persist(self, value: V) -> None:
        # None is "absent": it never reaches storage.
        if self._persistence is None or value is None:
            return
        key = self._persistence.key
        try:
            raw = self._persistence.serialize(value)
            result = self._storage.set(key, raw)
        except Exception:
            logger.exception("Could not persist value for %s", key)
            return
        if inspect.isawaitable(result):
            self._track(_runtime.spawn(self._finish_write(key, result)))

    async def _finish_write(self, key: str, result) -> None:
        try:
            await result
        except Exception:
            logger.exception("Could not persist value for %s", key)

    async def settle(self) -> None:
        """Wait for this atom's pending hydration and writes to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # --- Reset ---

    async def reset(self, *, reset_value: bool = True, clear_persisted: bool = True) -> None:
        """Clear persisted data and/or restore the initial value.

        Restoring always notifies, even if the value already equals the
        initial value. Storage failures are logged and do not stop the reset.
        """
        if clear_persisted and self._persistence is not None:
            key = self._persistence.key
            try:
                await _runtime.resolve(self._storage.delete(key))
            except Exception:
                logger.exception("Failed to clear persisted data for key %s", key)

        if reset_value:
            previous = self._value
            self._value = self._initial_value
            self._notify(self._initial_value, previous)
