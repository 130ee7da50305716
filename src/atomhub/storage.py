"""Storage adapters: the key-value backend behind persisted atoms.

Any object with get/set/delete works. Each method may return its result
directly or an awaitable; atoms await whichever they get.
"""

from __future__ import annotations

from typing import Any, Awaitable, Protocol, runtime_checkable


@runtime_checkable
class StorageAdapter(Protocol):
    """Async-tolerant key-value backend."""

    def get(self, key: str) -> str | None | Awaitable[str | None]: ...

    def set(self, key: str, value: str) -> Any: ...

    def delete(self, key: str) -> Any: ...


class MemoryStorage:
    """In-process synchronous storage. The default backend."""

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(data) if data else {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"MemoryStorage({self._data!r})"


# Process-wide fallback for atoms that persist without naming an adapter.
_default_storage: StorageAdapter = MemoryStorage()


def get_default_storage() -> StorageAdapter:
    return _default_storage


def set_default_storage(storage: StorageAdapter) -> None:
    """Replace the process-wide fallback adapter.

    Call once at startup, before any persisted atom is created:
        atomhub.set_default_storage(app_storage)
    """
    global _default_storage
    _default_storage = storage
