"""Ownership chain: a mapping of local overrides delegating to a parent.

Reads walk the chain until a local override is found. Writes always land in
the local layer. Deleting a key that is still visible through the parent
stores an UNSET marker so the parent's entry is hidden from this layer only.

Usage:
    base = {"a": 1, "b": 2}
    layer = OwnershipChain(parent=base)
    layer["a"] = 10        # base untouched
    del layer["b"]         # hidden in layer, still in base
    dict(layer)            # {"a": 10}
    layer.owns("a")        # True
    layer.discard_own("b")  # base's "b" visible again
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any, Self, TypeVar

from forkgraph.core.types import UNSET

K = TypeVar("K")
V = TypeVar("V")


class OwnershipChain(MutableMapping[K, V]):
    """Mapping holding local overrides on top of an optional parent mapping.

    Args:
        parent: Mapping consulted for keys without a local override.
        local: Initial local overrides.
    """

    __slots__ = ("_parent", "_local")

    def __init__(self, parent: Mapping[K, V] | None = None, local: Mapping[K, V] | None = None):
        self._parent = parent
        self._local: dict[K, Any] = dict(local) if local is not None else {}

    @property
    def parent(self) -> Mapping[K, V] | None:
        """The mapping this layer delegates to."""
        return self._parent

    def __getitem__(self, key: K) -> V:
        if key in self._local:
            value = self._local[key]
            if value is UNSET:
                raise KeyError(key)
            return value
        if self._parent is None:
            raise KeyError(key)
        return self._parent[key]

    def __setitem__(self, key: K, value: V) -> None:
        self._local[key] = value

    def __delitem__(self, key: K) -> None:
        if key not in self:
            raise KeyError(key)
        if self._parent is not None and key in self._parent:
            self._local[key] = UNSET
        else:
            del self._local[key]

    def __contains__(self, key: object) -> bool:
        if key in self._local:
            return self._local[key] is not UNSET
        return self._parent is not None and key in self._parent

    def __iter__(self) -> Iterator[K]:
        for key, value in self._local.items():
            if value is not UNSET:
                yield key
        if self._parent is not None:
            for key in self._parent:
                if key not in self._local:
                    yield key

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self)!r})"

    def owns(self, key: K) -> bool:
        """Check if this layer holds a value (not a marker) for a key."""
        return key in self._local and self._local[key] is not UNSET

    def get_own(self, key: K, default: Any = None) -> Any:
        """Get a locally held value without consulting the parent."""
        value = self._local.get(key, UNSET)
        return default if value is UNSET else value

    def discard_own(self, key: K) -> None:
        """Drop the local entry for a key, value or marker, so reads delegate again."""
        self._local.pop(key, None)

    def iter_own_items(self) -> Iterator[tuple[K, Any]]:
        """Iterate local overrides, UNSET markers included."""
        return iter(list(self._local.items()))

    def iter_overrides(self, until: Mapping[K, V] | None = None) -> Iterator[tuple[K, Any]]:
        """Iterate overrides from this layer up to (excluding) an ancestor.

        Nearer layers win: a key overridden in several layers is reported
        once, with the value of the layer closest to this one.

        Args:
            until: Ancestor at which to stop. Defaults to the direct parent.

        Yields:
            (key, value) pairs, UNSET markers included.
        """
        seen: set[Any] = set()
        node: Any = self
        while isinstance(node, OwnershipChain) and node is not until:
            for key, value in node.iter_own_items():
                if key not in seen:
                    seen.add(key)
                    yield key, value
            if until is None:
                return
            node = node._parent

    def fork(self) -> Self:
        """Create an empty layer delegating to this one."""
        return type(self)(parent=self)

    def is_fork_of(self, ancestor: object) -> bool:
        """Check if an ancestor appears in this layer's parent chain."""
        node = self._parent
        while node is not None:
            if node is ancestor:
                return True
            node = node._parent if isinstance(node, OwnershipChain) else None
        return False
