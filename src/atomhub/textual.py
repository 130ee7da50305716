"""Textual integration for atomhub. Opt-in, requires textual.

Turns atom subscriptions into widget updates and ties store references to a
block of app code.

// [LAW:single-enforcer] Guard + NoMatches + thread-marshal enforced here, not at callsites.
// [LAW:locality-or-seam] Textual coupling isolated in this module; core atomhub stays agnostic.
// [LAW:no-shared-mutable-globals] _paused_apps has single owner (this module), explicit API
//   (pause/is_safe), documented invariant (id present ↔ inside pause context).
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, TypeVar

from textual.css.query import NoMatches

from atomhub.atom import ReadOnlyAtom
from atomhub.container import Container
from atomhub.store import Store
from atomhub.view import StoreView, snapshot

S = TypeVar("S", bound=Store)

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, effect: Callable) -> Callable:
    """Wrap effect: skip when unsafe, swallow NoMatches, marshal cross-thread calls."""
    _main = threading.get_ident()

    def _safe(value):
        try:
            effect(value)
        except NoMatches:
            pass

    def _guarded(value):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    return _guarded


class Binding:
    """Disposable link between an atom (or store) and a widget effect."""

    __slots__ = ("_release", "_disposed")

    def __init__(self, release: Callable[[], None]) -> None:
        self._release = release
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if not self._disposed:
            self._disposed = True
            self._release()


@contextmanager
def use_store(app, store_class: type[S]):
    """Hold a reference on store_class's singleton for the duration of the block.

    Usage:
        with stx.use_store(app, CounterStore) as counter:
            stx.bind_value(app, counter.count, lambda v: label.update(str(v)))
    """
    container = Container.get_instance()
    store = container.get(store_class)
    try:
        yield store
    finally:
        container.remove(store_class)


def bind_value(app, atom: ReadOnlyAtom, effect: Callable, *, immediate: bool = True) -> Binding:
    """Call effect(value) now (unless immediate=False) and on every change of atom."""
    sub_id = atom.subscribe(_guard(app, effect), immediate)
    return Binding(lambda: atom.unsubscribe(sub_id))


def bind_store(app, store: Store, effect: Callable[[StoreView], None]) -> Binding:
    """Call effect(view) now and whenever any of the store's atoms changes.

    Subscriptions go through store.watch_atom(), so destroying the store
    also ends the binding.
    """
    guarded = _guard(app, effect)

    def _refresh():
        guarded(snapshot(store))

    sub_ids = [store.watch_atom(a, _refresh) for a in store.atoms().values()]
    _refresh()

    def _release():
        for sub_id in sub_ids:
            if sub_id is not None and not store.destroyed:
                store.unwatch(sub_id)

    return Binding(_release)
