import pytest

import atomhub.atom as _atom_mod
import atomhub.storage as _storage_mod
from atomhub import Container, MemoryStorage


@pytest.fixture(autouse=True)
def fresh_default_storage():
    """Each test gets an empty process-wide default adapter and no scheduler."""
    old_storage = _storage_mod._default_storage
    old_sched, old_thread = _atom_mod._scheduler, _atom_mod._scheduler_thread
    _storage_mod._default_storage = MemoryStorage()
    try:
        yield _storage_mod._default_storage
    finally:
        _storage_mod._default_storage = old_storage
        _atom_mod._scheduler = old_sched
        _atom_mod._scheduler_thread = old_thread


@pytest.fixture
def container():
    return Container.get_instance()
