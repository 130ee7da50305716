"""Read-only projections of a store.

snapshot(store) copies the current value of every public atom and forwards
the store's own public methods, so a consumer can read `view.count` and call
`view.increment()` from one object. Writes through the view are rejected with
a warning; state only changes through store methods.

A view is a value: regenerate it on every change (see textual.bind_store).
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from atomhub.store import Store

logger = logging.getLogger("atomhub.view")

_BASE_NAMES = frozenset(dir(Store))


class StoreView:
    """Immutable snapshot: atom values by copy, methods by reference."""

    __slots__ = ("_store_name", "_values", "_methods")

    def __init__(self, store_name: str, values: dict[str, Any], methods: dict[str, Callable]) -> None:
        object.__setattr__(self, "_store_name", store_name)
        object.__setattr__(self, "_values", dict(values))
        object.__setattr__(self, "_methods", dict(methods))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        if name in self._values:
            return self._values[name]
        # Unknown names read as None rather than raising.
        return self._methods.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        logger.warning("Cannot modify store values directly. Use store methods instead.")

    def __delattr__(self, name: str) -> None:
        logger.warning("Cannot modify store values directly. Use store methods instead.")

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StoreView):
            return NotImplemented
        return self._store_name == other._store_name and self._values == other._values

    __hash__ = None

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"StoreView[{self._store_name}]({fields})"


def _public_methods(store: Store) -> dict[str, Callable]:
    methods = {}
    for name, member in inspect.getmembers(type(store), inspect.isfunction):
        if not name.startswith("_") and name not in _BASE_NAMES:
            methods[name] = getattr(store, name)
    return methods


def snapshot(store: Store, server: bool = False) -> StoreView:
    """Build a read-only view of store.

    With server=True, atoms report their initial values, giving a
    deterministic view before any hydration has happened.
    """
    values = {
        name: atom.initial_value if server else atom.value
        for name, atom in store.atoms().items()
        if not name.startswith("_")
    }
    return StoreView(type(store).__name__, values, _public_methods(store))
