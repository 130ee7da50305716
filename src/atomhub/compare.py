"""Equality policies that decide whether an assignment is a real change.

Three kinds:
- shallow (default): identity, with value equality for immutable scalars.
- deep: recursive structural equality over containers and plain objects.
- custom: a user predicate; without one, behaves like shallow.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Callable, Generic, Mapping, TypeVar

V = TypeVar("V")

_SCALARS = (type(None), bool, int, float, complex, str, bytes)

KINDS = ("shallow", "deep", "custom")


def shallow_equal(a: Any, b: Any) -> bool:
    """Reference equality. Scalars of the same exact type compare by value."""
    if a is b:
        return True
    return type(a) is type(b) and isinstance(a, _SCALARS) and a == b


def _plain_state(obj: Any) -> dict[str, Any] | None:
    """Field values of a dataclass or plain object; None when obj defines its own identity.

    Callables and exceptions keep their state outside __dict__, and classes
    with their own __eq__ already know how to compare themselves.
    """
    if callable(obj) or isinstance(obj, BaseException):
        return None
    if is_dataclass(obj):
        return {f.name: getattr(obj, f.name) for f in fields(obj)}
    if type(obj).__eq__ is object.__eq__ and hasattr(obj, "__dict__"):
        return vars(obj)
    return None


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality. Distinct containers with equal contents are equal."""
    if a is b:
        return True
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if len(a) != len(b):
            return False
        for key, value in a.items():
            if key not in b or not deep_equal(value, b[key]):
                return False
        return True
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, (set, frozenset)) and isinstance(b, (set, frozenset)):
        return a == b
    if type(a) is not type(b):
        return False
    if isinstance(a, _SCALARS):
        return a == b
    state_a, state_b = _plain_state(a), _plain_state(b)
    if state_a is not None and state_b is not None:
        return deep_equal(state_a, state_b)
    try:
        return bool(a == b)
    except Exception:
        return False


@dataclass(frozen=True)
class Memoization(Generic[V]):
    """Memoization policy for an atom."""

    kind: str = "shallow"
    compare: Callable[[V, V], bool] | None = None

    def __post_init__(self) -> None:
        if self.kind not in KINDS:
            raise ValueError(f"Unknown memoization kind {self.kind!r}, expected one of {KINDS}")

    def equal(self, a: V, b: V) -> bool:
        if self.kind == "deep":
            return deep_equal(a, b)
        if self.kind == "custom" and self.compare is not None:
            return bool(self.compare(a, b))
        return shallow_equal(a, b)


SHALLOW: Memoization = Memoization("shallow")
DEEP: Memoization = Memoization("deep")


def as_memoization(policy: Memoization | str | None) -> Memoization:
    """Normalize a policy argument: None, a kind string, or a Memoization."""
    if policy is None:
        return SHALLOW
    if isinstance(policy, str):
        return Memoization(policy)
    return policy
