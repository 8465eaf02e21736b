"""Fork, clone and merge any value: scalars, mappings, sequences and entities.

Usage:
    data = {"token": "xyz123", "movie": Movie(title="Inception")}

    forked = fork(data)
    forked["token"] = "xyz456"
    forked["movie"].title = "Inception 2"

    merge(data, forked)
    data["token"]          # "xyz456"
    data["movie"].title    # "Inception 2", same Movie instance as before

    independent = clone(data)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from dataclasses import replace
from typing import Any

from forkgraph.config import get_settings
from forkgraph.core.errors import LineageMismatchError, TypeMismatchError
from forkgraph.core.forking.models import (
    CloneOptions,
    ForkedDict,
    ForkedList,
    ForkOptions,
    MergeOptions,
)
from forkgraph.core.possibly_async import for_each, map_values, possibly_async
from forkgraph.core.selector import get_from_selector
from forkgraph.core.types import UNSET, is_entity, is_scalar, type_name

logger = logging.getLogger(__name__)


# Forking


def fork(value: Any, options: ForkOptions | None = None) -> Any:
    """Fork a value.

    Scalars are returned unchanged. Mappings and sequences get a lazily
    delegating fork. Entities are forked by their own fork() hook.

    Args:
        value: Value to fork.
        options: Fork options.

    Returns:
        The fork, or an awaitable resolving to it if a hook was asynchronous.

    Raises:
        TypeMismatchError: If the value is of an unsupported type.
    """
    options = options if options is not None else ForkOptions()
    if options.object_forker is not None:
        return possibly_async(
            options.object_forker(value),
            lambda forked: forked if forked is not None else _fork(value, options),
        )
    return _fork(value, options)


def _fork(value: Any, options: ForkOptions) -> Any:
    if is_scalar(value):
        return value
    if is_entity(value):
        return value.fork(options)

    nested_options = replace(options, entity_class=None)

    def forker(nested: Any) -> Any:
        return fork(nested, nested_options)

    if isinstance(value, Mapping):
        return ForkedDict(value, forker=forker)
    if isinstance(value, tuple):
        return possibly_async(map_values(value, forker), tuple)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return ForkedList(value, forker=forker)
    raise TypeMismatchError(
        "Cannot fork a value that is not an entity, a mapping, a sequence, or a scalar "
        f"(value type: '{type_name(value)}')"
    )


def is_fork_of(forked_value: Any, value: Any) -> bool:
    """Check if a value derives from another one through forking.

    Args:
        forked_value: Candidate fork.
        value: Candidate ancestor.

    Returns:
        True if `value` is an ancestor of `forked_value`.
    """
    if value is UNSET or is_scalar(value) or is_scalar(forked_value):
        return False
    if is_entity(forked_value):
        return is_entity(value) and forked_value.is_fork_of(value)
    if isinstance(forked_value, (ForkedDict, ForkedList)):
        return forked_value.is_fork_of(value)
    return False


# Cloning


def clone(value: Any, options: CloneOptions | None = None) -> Any:
    """Deeply clone a value. The clone has no link to the original.

    Args:
        value: Value to clone.
        options: Clone options.

    Returns:
        The clone, or an awaitable resolving to it if a hook was asynchronous.

    Raises:
        TypeMismatchError: If the value is of an unsupported type.
    """
    options = options if options is not None else CloneOptions()
    if options.object_cloner is not None:
        return possibly_async(
            options.object_cloner(value),
            lambda cloned: cloned if cloned is not None else _clone(value, options),
        )
    return _clone(value, options)


def _clone(value: Any, options: CloneOptions) -> Any:
    if is_scalar(value):
        return value
    if is_entity(value):
        return value.clone(options)
    if isinstance(value, Mapping):
        return possibly_async(
            map_values(
                list(value.items()),
                lambda item: possibly_async(clone(item[1], options), lambda cloned: (item[0], cloned)),
            ),
            dict,
        )
    if isinstance(value, tuple):
        return possibly_async(map_values(value, lambda element: clone(element, options)), tuple)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return map_values(value, lambda element: clone(element, options))
    raise TypeMismatchError(
        "Cannot clone a value that is not an entity, a mapping, a sequence, or a scalar "
        f"(value type: '{type_name(value)}')"
    )


# Merging


def merge(value: Any, forked_value: Any, options: MergeOptions | None = None) -> Any:
    """Merge a fork back into its origin.

    Only what was set on the fork (including deletions) is applied. Nested
    forks of the origin's current values are merged in place, so the origin
    keeps its own instances; anything else is cloned into the origin.

    Args:
        value: Origin to merge into. Mutated in place.
        forked_value: Fork of `value` (direct or deeper).
        options: Merge options.

    Returns:
        The origin, or an awaitable resolving to it if a hook was asynchronous.

    Raises:
        LineageMismatchError: If `value` is not an ancestor of `forked_value`.
        TypeMismatchError: If `forked_value` is not a fork.
    """
    options = options if options is not None else MergeOptions()
    if options.object_merger is not None:
        return possibly_async(
            options.object_merger(value, forked_value),
            lambda merged: merged if merged is not None else _merge(value, forked_value, options),
        )
    return _merge(value, forked_value, options)


def _merge(value: Any, forked_value: Any, options: MergeOptions) -> Any:
    if not (is_entity(forked_value) or isinstance(forked_value, (ForkedDict, ForkedList))):
        raise TypeMismatchError(
            f"Cannot merge a value that is not a fork (value type: '{type_name(forked_value)}')"
        )
    if not is_fork_of(forked_value, value):
        raise LineageMismatchError(
            f"Cannot merge a fork into a value that is not one of its ancestors "
            f"(value type: '{type_name(value)}', forked value type: '{type_name(forked_value)}')"
        )
    if is_entity(forked_value):
        return value.merge(forked_value, options)
    return _merge_container(value, forked_value, options)


def merge_value(value: Any, forked_value: Any, options: MergeOptions | None = None) -> Any:
    """Compute the value an origin field takes after merging a forked field.

    Used for nested values, where a forked field may hold a fork of the
    origin's value, an unrelated value, or a scalar.

    Args:
        value: Current origin value, or UNSET if the origin has none.
        forked_value: Value held by the fork.
        options: Merge options.

    Returns:
        The merged value (the origin's own instance when merged in place), or
        an awaitable resolving to it.

    Raises:
        LineageMismatchError: If strict lineage is configured and a nested
            fork does not derive from the origin's value.
    """
    options = options if options is not None else MergeOptions()
    if options.object_merger is not None:
        return possibly_async(
            options.object_merger(value, forked_value),
            lambda merged: merged if merged is not None else _merge_nested(value, forked_value, options),
        )
    return _merge_nested(value, forked_value, options)


def _merge_nested(value: Any, forked_value: Any, options: MergeOptions) -> Any:
    if is_scalar(forked_value):
        return forked_value
    if is_fork_of(forked_value, value):
        if is_entity(forked_value):
            return value.merge(forked_value, options)
        return _merge_container(value, forked_value, options)

    if isinstance(forked_value, (ForkedDict, ForkedList)) and get_settings().strict_merge_lineage:
        raise LineageMismatchError(
            f"Cannot merge a nested fork that does not derive from the origin's value "
            f"(value type: '{type_name(value)}', forked value type: '{type_name(forked_value)}')"
        )
    logger.debug(
        "Cloning %s into origin (no lineage to %s)", type_name(forked_value), type_name(value)
    )
    return clone(forked_value, CloneOptions(object_cloner=options.object_cloner))


def _merge_container(value: Any, forked_value: ForkedDict | ForkedList, options: MergeOptions) -> Any:
    if isinstance(forked_value, ForkedDict):
        if not isinstance(value, MutableMapping):
            raise TypeMismatchError(
                f"Cannot merge a forked mapping into a value of type '{type_name(value)}'"
            )
        return _merge_mapping(value, forked_value, options)
    if not isinstance(value, MutableSequence):
        raise TypeMismatchError(
            f"Cannot merge a forked sequence into a value of type '{type_name(value)}'"
        )
    return _merge_sequence(value, forked_value, options)


def _merge_mapping(
    value: MutableMapping[Any, Any], forked_value: ForkedDict, options: MergeOptions
) -> Any:
    def merge_entry(item: tuple[Any, Any]) -> Any:
        key, forked_entry = item
        sub_selector = get_from_selector(options.attribute_selector, key)
        if sub_selector is False:
            return None
        if forked_entry is UNSET:
            value.pop(key, None)
            return None
        current = value.get(key, UNSET)
        merged = merge_value(current, forked_entry, replace(options, attribute_selector=sub_selector))
        return possibly_async(merged, lambda merged_entry: value.__setitem__(key, merged_entry))

    overrides = list(forked_value.iter_overrides(until=value))
    return possibly_async(for_each(overrides, merge_entry), lambda _: value)


def _merge_sequence(
    value: MutableSequence[Any], forked_value: ForkedList, options: MergeOptions
) -> Any:
    items = _nearest_materialized_items(forked_value, value)
    if items is None:
        return value

    originals = [element for element in value if not is_scalar(element)]

    def merge_element(element: Any) -> Any:
        if is_scalar(element):
            return element
        for original in originals:
            if is_fork_of(element, original):
                return merge_value(original, element, options)
        return merge_value(UNSET, element, options)

    def apply(merged: list[Any]) -> Any:
        value[:] = merged
        return value

    return possibly_async(map_values(list(items), merge_element), apply)


def _nearest_materialized_items(forked_value: ForkedList, ancestor: Any) -> list[Any] | None:
    node: Any = forked_value
    while isinstance(node, ForkedList) and node is not ancestor:
        items = node.materialized_items()
        if items is not None:
            return items
        node = node.origin
    return None
