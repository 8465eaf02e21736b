"""Forked containers and fork/clone/merge options.

A forked container holds only what was written (or read-materialized) on it
and delegates everything else to its origin at read time:

    movie = {"title": "Inception", "specs": {"duration": 120}}
    forked = ForkedDict(movie, forker=fork)
    forked["title"] = "Inception 2"      # movie["title"] untouched
    forked["specs"]["duration"] = 125    # specs forked on first read
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Iterator, Mapping, MutableSequence, Sequence
from dataclasses import dataclass
from typing import Any, Self

from forkgraph.core.chain import OwnershipChain
from forkgraph.core.errors import TypeMismatchError
from forkgraph.core.types import UNSET, Selector, is_scalar, type_name

type Forker = Callable[[Any], Any]
type Cloner = Callable[[Any], Any]
type Merger = Callable[[Any, Any], Any]


@dataclass(slots=True, frozen=True)
class ForkOptions:
    """Options for fork().

    Attributes:
        entity_class: Class the forked entity should be an instance of. Only
            applies to the value being forked, not to nested values.
        context: Forked owner class; nested entities are forked into the
            class it relates to theirs (see Entity.resolve_related_class).
        object_forker: Hook tried before the default behaviour. Returning
            None falls back to the default.
    """

    entity_class: type | None = None
    context: type | None = None
    object_forker: Forker | None = None


@dataclass(slots=True, frozen=True)
class CloneOptions:
    """Options for clone().

    Attributes:
        object_cloner: Hook tried before the default behaviour. Returning
            None falls back to the default.
    """

    object_cloner: Cloner | None = None


@dataclass(slots=True, frozen=True)
class MergeOptions:
    """Options for merge().

    Attributes:
        attribute_selector: Restricts which fields and attributes take part.
            Unselected ones are left untouched in the origin.
        object_merger: Hook tried before the default behaviour. Returning
            None falls back to the default.
        object_cloner: Hook used when a forked value has to be cloned into
            the origin.
    """

    attribute_selector: Selector = True
    object_merger: Merger | None = None
    object_cloner: Cloner | None = None


def _resolve_fork(forker: Forker | None, value: Any) -> Any:
    if is_scalar(value) or forker is None:
        return value
    forked = forker(value)
    if inspect.isawaitable(forked):
        raise TypeMismatchError(
            f"Cannot lazily fork a value with an asynchronous forker (value type: '{type_name(value)}')"
        )
    return forked


class ForkedDict(OwnershipChain[Any, Any]):
    """Mapping forked from an origin mapping.

    Unwritten keys fall through to the origin's current value. Containers and
    entities read through the fork are forked once and kept locally, so that
    mutating them never reaches the origin.

    Args:
        origin: Mapping this fork derives from.
        forker: Function forking nested non-scalar values.
    """

    __slots__ = ("_forker",)

    def __init__(self, origin: Mapping[Any, Any], forker: Forker | None = None):
        super().__init__(parent=origin)
        self._forker = forker

    @property
    def origin(self) -> Mapping[Any, Any]:
        """The mapping this fork derives from."""
        return self._parent  # type: ignore[return-value]

    def __getitem__(self, key: Any) -> Any:
        if key in self._local:
            value = self._local[key]
            if value is UNSET:
                raise KeyError(key)
            return value
        value = self._parent[key]  # type: ignore[index]
        if is_scalar(value) or self._forker is None:
            return value
        forked = _resolve_fork(self._forker, value)
        self._local[key] = forked
        return forked

    def fork(self) -> Self:
        """Fork this fork, sharing the same nested forker."""
        return type(self)(self, forker=self._forker)


class ForkedList(MutableSequence[Any]):
    """Sequence forked from an origin sequence.

    Length and scalar elements are read from the origin until the fork is
    materialized, which happens on the first write or the first read of a
    non-scalar element. Materializing forks every element once.

    Args:
        origin: Sequence this fork derives from.
        forker: Function forking nested non-scalar values.
    """

    __slots__ = ("_origin", "_items", "_forker")

    def __init__(self, origin: Sequence[Any], forker: Forker | None = None):
        self._origin = origin
        self._items: list[Any] | None = None
        self._forker = forker

    @property
    def origin(self) -> Sequence[Any]:
        """The sequence this fork derives from."""
        return self._origin

    def is_materialized(self) -> bool:
        """Check if this fork holds its own elements."""
        return self._items is not None

    def materialized_items(self) -> list[Any] | None:
        """The fork's own elements, or None if it still delegates."""
        return self._items

    def _materialize(self) -> list[Any]:
        if self._items is None:
            self._items = [_resolve_fork(self._forker, element) for element in self._origin]
        return self._items

    def __getitem__(self, index: Any) -> Any:
        if self._items is None and isinstance(index, int):
            element = self._origin[index]
            if is_scalar(element):
                return element
        return self._materialize()[index]

    def __setitem__(self, index: Any, value: Any) -> None:
        self._materialize()[index] = value

    def __delitem__(self, index: Any) -> None:
        del self._materialize()[index]

    def __len__(self) -> int:
        return len(self._origin) if self._items is None else len(self._items)

    def __iter__(self) -> Iterator[Any]:
        for index in range(len(self)):
            yield self[index]

    def insert(self, index: int, value: Any) -> None:
        self._materialize().insert(index, value)

    def extend(self, values: Iterable[Any]) -> None:
        self._materialize().extend(values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (str, bytes)) or not isinstance(other, Sequence):
            return NotImplemented
        return list(self) == list(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"

    def fork(self) -> Self:
        """Fork this fork, sharing the same nested forker."""
        return type(self)(self, forker=self._forker)

    def is_fork_of(self, ancestor: object) -> bool:
        """Check if an ancestor appears in this fork's origin chain."""
        node: Any = self._origin
        while True:
            if node is ancestor:
                return True
            if not isinstance(node, ForkedList):
                return False
            node = node._origin
