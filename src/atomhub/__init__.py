"""atomhub: atomic, persistable reactive state with a reference-counted store registry."""

from importlib.metadata import version as _version

__version__ = _version("atomhub")

from atomhub.compare import DEEP, SHALLOW, Memoization, deep_equal, shallow_equal
from atomhub.storage import MemoryStorage, StorageAdapter, get_default_storage, set_default_storage
from atomhub.atom import Atom, Persistence, ReadOnlyAtom, set_scheduler
from atomhub.derived import DerivedAtom
from atomhub.container import Container, ContainerError, StoreIdentity, get_container
from atomhub.injectable import Injectable
from atomhub.store import Store
from atomhub.view import StoreView, snapshot
# textual binding NOT auto-imported, opt-in only

__all__ = [
    "Atom",
    "ReadOnlyAtom",
    "DerivedAtom",
    "Persistence",
    "Memoization",
    "SHALLOW",
    "DEEP",
    "shallow_equal",
    "deep_equal",
    "StorageAdapter",
    "MemoryStorage",
    "get_default_storage",
    "set_default_storage",
    "set_scheduler",
    "Container",
    "ContainerError",
    "StoreIdentity",
    "get_container",
    "Injectable",
    "Store",
    "StoreView",
    "snapshot",
]
