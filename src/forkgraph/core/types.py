"""Core type definitions for forkgraph."""

from __future__ import annotations

import datetime
import enum
import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Final, Protocol, runtime_checkable

type Selector = bool | Mapping[str, Selector]
"""Tree-shaped projection: `True` selects everything below, `False` nothing.

A mapping selects per name; a missing name behaves like `False`.
"""


class _UnsetType:
    """Sentinel type marking a value that is absent (never set or deleted)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<UNSET>"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNSET"


UNSET: Final[Any] = _UnsetType()

SCALAR_TYPES: Final[tuple[type, ...]] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    Decimal,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    enum.Enum,
)


def is_scalar(value: Any) -> bool:
    """Check if a value is an opaque, immutable leaf.

    Args:
        value: Any value.

    Returns:
        True for None, booleans, numbers, strings, bytes, dates, UUIDs and enums.
    """
    return isinstance(value, SCALAR_TYPES)


@runtime_checkable
class EntityLike(Protocol):
    """Hooks an entity exposes to the fork/clone/merge engine."""

    def fork(self, options: Any = None) -> Any: ...
    def merge(self, forked: Any, options: Any = None) -> Any: ...
    def clone(self, options: Any = None) -> Any: ...
    def is_fork_of(self, other: Any) -> bool: ...
    def get_attribute(self, name: str) -> Any: ...


def is_entity(value: Any) -> bool:
    """Check if a value is an entity instance (entity classes do not count)."""
    return not isinstance(value, type) and isinstance(value, EntityLike)


def type_name(value: Any) -> str:
    """Describe the type of a value for error messages."""
    if value is UNSET:
        return "unset"
    if isinstance(value, type):
        return f"class {value.__qualname__}"
    return type(value).__qualname__
