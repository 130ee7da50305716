"""Store: owner of a cohesive slice of state and a unit of injection/lifecycle.

A Store creates atoms and derived atoms through its factories, observes
atoms (its own or injected stores') through watch_atom(), and tears all of
it down in destroy(). Atoms are declared in __init__:

    class CounterStore(Store):
        def __init__(self):
            super().__init__()
            self.count = self.atom(0, persistence=Persistence("count"))
            self.is_positive = self.derive_atom([self.count], lambda c: c > 0)

        def increment(self):
            self.count.value += 1

Binding a factory-made atom to an attribute registers it under that name, so
reset() and enable_debug() work from an explicit registry rather than by
scanning attributes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Iterable, Sequence, TypeVar

from atomhub import debug
from atomhub.atom import Atom, Callback, Persistence, ReadOnlyAtom
from atomhub.compare import Memoization
from atomhub.container import Container
from atomhub.derived import DerivedAtom
from atomhub.injectable import Injectable
from atomhub.storage import StorageAdapter

logger = logging.getLogger("atomhub.store")

V = TypeVar("V")


class Store(Injectable):
    """Base class for stores. Subclasses declare atoms in __init__."""

    # Default adapter for atoms that persist without naming their own.
    storage: StorageAdapter | None = None

    def __init__(self, container: Container | None = None) -> None:
        super().__init__(container)
        self._atoms: dict[str, ReadOnlyAtom[Any]] = {}
        self._unnamed: dict[int, ReadOnlyAtom[Any]] = {}
        self._subscriptions: dict[str, Callable[[str], bool]] = {}
        self._destroyed = False

    def __setattr__(self, name: str, value: Any) -> None:
        super().__setattr__(name, value)
        unnamed = self.__dict__.get("_unnamed")
        if unnamed and unnamed.get(id(value)) is value:
            del unnamed[id(value)]
            self._atoms[name] = value

    # --- Factories ---

    def atom(
        self,
        initial_value: V,
        *,
        persistence: Persistence | None = None,
        memoization: Memoization | str | None = None,
    ) -> Atom[V]:
        """Create an atom owned by this store.

        A persisted atom without its own adapter inherits the store's `storage`.
        """
        if persistence is not None and persistence.storage is None and self.storage is not None:
            persistence = replace(persistence, storage=self.storage)
        return self._adopt(Atom(initial_value, persistence=persistence, memoization=memoization))

    def derive_atom(
        self,
        sources: Sequence[ReadOnlyAtom[Any]],
        transformer: Callable[..., V],
        memoization: Memoization | str | None = None,
    ) -> DerivedAtom[V]:
        """Create a read-only atom recomputed whenever any source notifies.

        The source subscriptions belong to this store and end with destroy().
        """
        derived = DerivedAtom(sources, transformer, memoization=memoization)
        for source in derived.sources:
            self.watch_atom(source, derived.recompute)
        return self._adopt(derived)

    def _adopt(self, atom: ReadOnlyAtom[V]) -> ReadOnlyAtom[V]:
        self._unnamed[id(atom)] = atom
        return atom

    # --- Subscriptions ---

    def watch_atom(self, atom: ReadOnlyAtom[Any], callback: Callback, immediate: bool = False) -> str | None:
        """Subscribe to any atom with automatic cleanup on destroy()."""
        if self._destroyed:
            logger.warning("%s is destroyed; not watching %r", type(self).__name__, atom)
            return None
        sub_id = atom.subscribe(callback, immediate)
        self._subscriptions[sub_id] = atom.unsubscribe
        return sub_id

    def unwatch(self, sub_id: str) -> bool:
        """Release one watch_atom() subscription before the store is destroyed."""
        unsubscribe = self._subscriptions.pop(sub_id, None)
        if unsubscribe is None:
            logger.warning("Subscription %s is not tracked by %s", sub_id, type(self).__name__)
            return False
        return unsubscribe(sub_id)

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    # --- Registry ---

    def atoms(self) -> dict[str, ReadOnlyAtom[Any]]:
        """Named atoms this store created, in declaration order."""
        return dict(self._atoms)

    def _select(self, atom_keys: Iterable[str] | None) -> dict[str, Atom[Any]]:
        """Resettable atoms, optionally narrowed to atom_keys. Unknown keys are skipped."""
        resettable = {name: a for name, a in self._atoms.items() if isinstance(a, Atom)}
        if atom_keys is None:
            return resettable
        return {name: resettable[name] for name in atom_keys if name in resettable}

    # --- Debug ---

    def enable_debug(self) -> None:
        """Log every change of every registered atom to the atomhub.debug logger."""
        store_name = type(self).__name__
        for name, atom in self._atoms.items():
            self.watch_atom(atom, debug.change_logger(store_name, name))

    # --- Reset ---

    async def reset(
        self,
        *,
        reset_values: bool = True,
        clear_persisted: bool = True,
        atom_keys: Iterable[str] | None = None,
    ) -> None:
        """Reset registered atoms independently; one failure never blocks the rest."""
        targets = self._select(atom_keys)
        results = await asyncio.gather(
            *(a.reset(reset_value=reset_values, clear_persisted=clear_persisted) for a in targets.values()),
            return_exceptions=True,
        )
        for name, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.error("Failed to reset %s.%s", type(self).__name__, name, exc_info=result)

    async def clear_persisted_data(self, atom_keys: Iterable[str] | None = None) -> None:
        await self.reset(reset_values=False, atom_keys=atom_keys)

    async def reset_values(self, atom_keys: Iterable[str] | None = None) -> None:
        await self.reset(clear_persisted=False, atom_keys=atom_keys)

    # --- Lifecycle ---

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def destroy(self) -> None:
        """Unsubscribe everything this store watches, then release injected stores."""
        subscriptions, self._subscriptions = self._subscriptions, {}
        for sub_id, unsubscribe in subscriptions.items():
            unsubscribe(sub_id)
        self._destroyed = True
        super().destroy()

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else "live"
        return f"{type(self).__name__}({', '.join(self._atoms)}; {state})"
