"""Injectable: base for objects that depend on other registry-managed stores."""

from __future__ import annotations

from typing import TypeVar

from atomhub.container import Container, StoreIdentity

S = TypeVar("S")


class Injectable:
    """Resolves dependencies through the Container and releases them on destroy()."""

    def __init__(self, container: Container | None = None) -> None:
        self._container = container if container is not None else Container.get_instance()
        # One entry per inject() call: each call holds its own reference.
        self._injected: list[StoreIdentity] = []

    def inject(self, store_class: type[S]) -> S:
        """Take a reference on store_class's singleton and remember to release it."""
        instance = self._container.get(store_class)
        self._injected.append(self._container.get_identity(store_class))
        return instance

    @property
    def injected(self) -> frozenset[StoreIdentity]:
        return frozenset(self._injected)

    def destroy(self) -> None:
        """Release every injected store. Cascades through the dependency graph."""
        injected, self._injected = self._injected, []
        for identity in injected:
            self._container.remove(identity.store_class)
