"""Derived atoms: read-only values recomputed from a tuple of source atoms.

Unlike an auto-tracking computed, a derived atom declares its sources up
front. Each source notification triggers one synchronous recompute: all
sources are re-read, the transformer is reapplied, and the result goes
through the derived atom's own memoization gate. There is no batching, so
one upstream notification yields at most one downstream notification.
"""

from __future__ import annotations

from typing import Any, Callable, Sequence, TypeVar

from atomhub.atom import ReadOnlyAtom
from atomhub.compare import Memoization

V = TypeVar("V")


class DerivedAtom(ReadOnlyAtom[V]):
    """A read-only atom driven by its sources. `value` has no setter."""

    __slots__ = ("_sources", "_transformer")

    def __init__(
        self,
        sources: Sequence[ReadOnlyAtom[Any]],
        transformer: Callable[..., V],
        *,
        memoization: Memoization | str | None = None,
    ) -> None:
        self._sources = tuple(sources)
        self._transformer = transformer
        super().__init__(self._compute(), memoization=memoization)

    @property
    def sources(self) -> tuple[ReadOnlyAtom[Any], ...]:
        return self._sources

    def _compute(self) -> V:
        return self._transformer(*(source.value for source in self._sources))

    def recompute(self) -> None:
        """Re-read every source and apply the result through the memoization gate.

        Wired as the subscriber callback on each source; zero-arity so the
        atom passes no values.
        """
        self._assign(self._compute())

    def connect(self) -> list[tuple[ReadOnlyAtom[Any], str]]:
        """Subscribe recompute to every source. Returns (source, sub_id) pairs."""
        return [(source, source.subscribe(self.recompute)) for source in self._sources]
