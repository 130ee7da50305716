"""Change logging for Store.enable_debug(). A side channel, not part of the core."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

logger = logging.getLogger("atomhub.debug")


def log_atom_change(
    store_name: str,
    atom_name: str,
    value: Any,
    previous: Any = None,
    timestamp: datetime | None = None,
) -> None:
    when = (timestamp or datetime.now(timezone.utc)).isoformat()
    logger.info(
        "[%s.%s] previous=%r current=%r at %s",
        store_name, atom_name, previous, value, when,
    )


def change_logger(store_name: str, atom_name: str) -> Callable[[Any, Any], None]:
    """Subscriber that logs (value, previous) for one named atom."""

    def _log(value, previous):
        log_atom_change(store_name, atom_name, value, previous)

    return _log
