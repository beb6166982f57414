"""
Tagged per-field updates for partial writes.

A field in a patch is exactly one of:

- ``UNCHANGED``: leave the stored value alone,
- ``Set(value)``: replace it,
- ``CLEARED``: set it to NULL (only meaningful for nullable columns).

Keeping the three cases as distinct values avoids overloading ``None`` to
mean both "not sent" and "clear this".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class _Unchanged:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCHANGED"

    def __bool__(self) -> bool:
        return False


class _Cleared:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CLEARED"


@dataclass(frozen=True)
class Set(Generic[T]):
    value: T


UNCHANGED = _Unchanged()
CLEARED = _Cleared()

FieldUpdate = Union[_Unchanged, Set[T], _Cleared]


def from_optional(fields_set: set[str], name: str, value: Any) -> FieldUpdate:
    """
    Build a tagged update from a pydantic-style payload.

    A field missing from *fields_set* is unchanged, an explicit ``None`` is
    a clear and anything else is a set.
    """
    if name not in fields_set:
        return UNCHANGED
    if value is None:
        return CLEARED
    return Set(value)


def resolve(update: FieldUpdate, current: Any) -> Any:
    """Return the value a column should hold after applying *update*."""
    if update is UNCHANGED:
        return current
    if update is CLEARED:
        return None
    return update.value


def is_changed(update: FieldUpdate) -> bool:
    return update is not UNCHANGED
