"""Container: the process-wide, reference-counted registry of store singletons.

Each store class gets one StoreIdentity, generated on first use and cached on
the class itself. The registry maps identity ids to a record holding the live
instance and its reference count:

    get(cls)     create on first ask, then refcount += 1
    remove(cls)  refcount -= 1; at zero, destroy() the instance and drop it

// [LAW:single-enforcer] There is exactly one registry. Building a second
// Container directly raises ContainerError; use get_instance().
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger("atomhub.container")

S = TypeVar("S")

_IDENTITY_ATTR = "__atomhub_identity__"
# Guards first-time identity minting across threads.
_identity_lock = threading.Lock()


class ContainerError(RuntimeError):
    """Raised when a second Container is constructed directly."""


@dataclass(frozen=True)
class StoreIdentity:
    id: str
    store_class: type


@dataclass
class _StoreRecord:
    instance: Any
    ref_count: int = 0


class Container:
    """Singleton registry. Obtain it with Container.get_instance()."""

    _instance: Container | None = None
    _instance_lock = threading.Lock()

    def __init__(self) -> None:
        if Container._instance is not None:
            raise ContainerError("Instantiation failed. Use Container.get_instance() instead.")
        # Re-entrant: store constructors inject() their dependencies, which
        # calls back into get() on the same thread.
        self._lock = threading.RLock()
        self._records: dict[str, _StoreRecord] = {}
        Container._instance = self

    @classmethod
    def get_instance(cls) -> Container:
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls()
        return cls._instance

    @staticmethod
    def get_identity(store_class: type[S]) -> StoreIdentity:
        """Return the class's identity, generating it once.

        Looked up in the class's own __dict__ so subclasses get their own.
        """
        identity = store_class.__dict__.get(_IDENTITY_ATTR)
        if identity is None:
            with _identity_lock:
                identity = store_class.__dict__.get(_IDENTITY_ATTR)
                if identity is None:
                    identity = StoreIdentity(id=uuid.uuid4().hex, store_class=store_class)
                    setattr(store_class, _IDENTITY_ATTR, identity)
        return identity

    def _instantiate(self, identity: StoreIdentity) -> None:
        if identity.id in self._records:
            logger.warning("Store record for %s already exists", identity.id)
            return
        instance = identity.store_class()
        self._records[identity.id] = _StoreRecord(instance=instance)
        logger.debug("Created %s (%s)", identity.store_class.__name__, identity.id)

    def get(self, store_class: type[S]) -> S:
        """Resolve the singleton for store_class and take a reference to it."""
        with self._lock:
            identity = self.get_identity(store_class)
            if identity.id not in self._records:
                self._instantiate(identity)
            record = self._records[identity.id]
            record.ref_count += 1
            return record.instance

    def remove(self, store_class: type) -> bool:
        """Release one reference. The last release destroys the instance."""
        with self._lock:
            identity = self.get_identity(store_class)
            record = self._records.get(identity.id)
            if record is None:
                logger.warning("Store record for %s does not exist", identity.id)
                return False

            if record.ref_count > 1:
                record.ref_count -= 1
                return True

            # Drop the record before destroy() so cascading removes see a
            # consistent registry.
            del self._records[identity.id]

        destroy = getattr(record.instance, "destroy", None)
        if callable(destroy):
            destroy()
        logger.debug("Destroyed %s (%s)", store_class.__name__, identity.id)
        return True

    def ref_count(self, store_class: type) -> int:
        """Live references held on store_class; 0 when it has no record."""
        record = self._records.get(self.get_identity(store_class).id)
        return record.ref_count if record is not None else 0

    def __contains__(self, store_class: type) -> bool:
        return self.get_identity(store_class).id in self._records


def get_container() -> Container:
    return Container.get_instance()
