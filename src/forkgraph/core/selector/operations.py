"""Selector algebra: pure functions over boolean/mapping selector trees.

Selectors are values. Object selectors are plain dicts that are never mutated
after creation; every operation returns a new selector. A `False`
sub-selector is never stored, so equal selectors share one canonical shape.

Usage:
    selector = selector_from_names(["title", "director"])
    selector = set_within_selector(selector, "director", {"name": True})
    selector_includes(selector, {"director": {"name": True}})  # True
    pick_from_selector({"title": "Inception", "year": 2010}, {"title": True})
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any

from forkgraph.core.errors import InvalidSelectorError, SelectorPolicyError, TypeMismatchError
from forkgraph.core.types import Selector, is_entity, type_name

type TraverseVisitor = Callable[[Any, str | None, Any], None]


def selector_from_names(names: Iterable[str]) -> dict[str, Selector]:
    """Build an object selector selecting each of the given names entirely.

    Args:
        names: Field names to select.

    Returns:
        Object selector mapping every name to True.
    """
    return {name: True for name in names}


def selector_from_attributes(attributes: Iterable[Any]) -> dict[str, Selector]:
    """Build an object selector from attribute descriptors.

    Args:
        attributes: Objects exposing `get_name()` or a `name` attribute.

    Returns:
        Object selector mapping every attribute name to True.
    """
    names = []
    for attribute in attributes:
        get_name = getattr(attribute, "get_name", None)
        names.append(get_name() if callable(get_name) else attribute.name)
    return selector_from_names(names)


def normalize_selector(selector: Any) -> Selector:
    """Coerce a value into a selector.

    Args:
        selector: None, a boolean or a mapping.

    Returns:
        False for None, the value itself otherwise.

    Raises:
        InvalidSelectorError: If the value is of any other type.
    """
    if selector is None:
        return False
    if isinstance(selector, bool):
        return selector
    if isinstance(selector, Mapping):
        return selector
    raise InvalidSelectorError(
        f"Expected a valid selector, but received a value of type '{type_name(selector)}'"
    )


def clone_selector(selector: Selector) -> Selector:
    """Return a deep copy of a selector."""
    return copy.deepcopy(normalize_selector(selector))


def get_from_selector(selector: Any, name: str) -> Selector:
    """Get the sub-selector for a name.

    Boolean selectors are absorbing: every name inherits the same decision.
    """
    selector = normalize_selector(selector)
    if isinstance(selector, bool):
        return selector
    return normalize_selector(selector.get(name))


def set_within_selector(selector: Any, name: str, sub_selector: Any) -> Selector:
    """Return a copy of a selector with a name mapped to a sub-selector.

    Boolean selectors are returned unchanged. A sub-selector normalizing to
    False removes the name instead of storing it.
    """
    selector = normalize_selector(selector)
    if isinstance(selector, bool):
        return selector

    sub_selector = normalize_selector(sub_selector)
    if sub_selector is False:
        return {key: value for key, value in selector.items() if key != name}
    return {**selector, name: sub_selector}


def selector_includes(selector: Any, other: Any) -> bool:
    """Check that every path selected by `other` is also selected by `selector`.

    Args:
        selector: Candidate including selector.
        other: Candidate included selector.

    Returns:
        True if `selector` covers `other`.
    """
    selector = normalize_selector(selector)
    other = normalize_selector(other)

    if selector is other or selector == other:
        return True
    if isinstance(selector, bool):
        return selector
    if isinstance(other, bool):
        return not other

    for name, other_sub_selector in other.items():
        if not selector_includes(selector.get(name), other_sub_selector):
            return False
    return True


def selectors_equal(selector: Any, other: Any) -> bool:
    """Check that two selectors select exactly the same paths."""
    return selector is other or (
        selector_includes(selector, other) and selector_includes(other, selector)
    )


def merge_selectors(selector: Any, other: Any) -> Selector:
    """Union of two selectors.

    True absorbs everything and False is the identity element. Object
    selectors are merged name by name.
    """
    selector = normalize_selector(selector)
    other = normalize_selector(other)

    if selector is True or other is True:
        return True
    if selector is False:
        return other
    if other is False:
        return selector

    for name, other_sub_selector in other.items():
        selector = set_within_selector(
            selector, name, merge_selectors(selector.get(name), other_sub_selector)
        )
    return selector


def remove_from_selector(selector: Any, other: Any) -> Selector:
    """Difference of two selectors.

    An object selector left without any selected name becomes False.

    Raises:
        SelectorPolicyError: If `other` is an object selector and `selector` is
            True. The complement cannot be expressed without knowing every
            field of the underlying type.
    """
    selector = normalize_selector(selector)
    other = normalize_selector(other)

    if other is True:
        return False
    if other is False:
        return selector
    if selector is True:
        raise SelectorPolicyError(
            "Cannot remove an object selector from an unconditional 'True' selector"
        )
    if selector is False:
        return False

    for name, other_sub_selector in other.items():
        selector = set_within_selector(
            selector, name, remove_from_selector(selector.get(name), other_sub_selector)
        )
    if not selector:
        return False
    return selector


def iterate_selector(selector: Any) -> Iterator[tuple[str, Selector]]:
    """Iterate the selected names of an object selector in insertion order.

    Yields:
        (name, normalized sub-selector) pairs, skipping False entries.

    Raises:
        TypeMismatchError: If the selector is a boolean.
    """
    selector = normalize_selector(selector)
    if isinstance(selector, bool):
        raise TypeMismatchError(
            f"Cannot iterate over a boolean selector (selector: {selector!r})"
        )
    for name, sub_selector in selector.items():
        sub_selector = normalize_selector(sub_selector)
        if sub_selector is not False:
            yield name, sub_selector


def pick_from_selector(
    value: Any,
    selector: Any,
    include_attribute_names: Iterable[str] = (),
) -> Any:
    """Project a value according to a selector.

    Args:
        value: Mapping, sequence, entity, or None.
        selector: Selector to project with.
        include_attribute_names: Names always copied verbatim from mappings.

    Returns:
        The value itself for a True selector; otherwise a new dict (or a list
        or tuple of projections for sequences).

    Raises:
        SelectorPolicyError: If the selector is False.
        TypeMismatchError: If a structured selector meets an opaque value.
    """
    selector = normalize_selector(selector)
    if selector is False:
        raise SelectorPolicyError("Cannot pick from a value with a 'False' selector")
    return _pick(value, selector, tuple(include_attribute_names))


def _pick(value: Any, selector: Selector, include_attribute_names: tuple[str, ...]) -> Any:
    if selector is True:
        return value
    if value is None:
        return None

    if _is_sequence(value):
        picked = [_pick(element, selector, include_attribute_names) for element in value]
        return tuple(picked) if isinstance(value, tuple) else picked

    if is_entity(value):
        result: dict[str, Any] = {}
        for name, sub_selector in iterate_selector(selector):
            attribute = value.get_attribute(name)
            if attribute.is_set():
                result[name] = _pick(attribute.get_value(), sub_selector, include_attribute_names)
        return result

    if not isinstance(value, Mapping):
        raise TypeMismatchError(
            "Cannot pick from a value that is not an entity, a mapping, or a sequence "
            f"(value type: '{type_name(value)}')"
        )

    result = {name: value[name] for name in include_attribute_names if name in value}
    for name, sub_selector in iterate_selector(selector):
        if name in value:
            result[name] = _pick(value[name], sub_selector, include_attribute_names)
    return result


def traverse_selector(
    value: Any,
    selector: Any,
    visit: TraverseVisitor,
    include_subtrees: bool = False,
    include_leaves: bool = True,
) -> None:
    """Walk a value depth-first along a selector.

    `visit(value, name, container)` is called for every leaf, that is where
    the selector becomes True or the value is None. Sequence elements are
    reported with the name and container of the sequence itself.

    Args:
        value: Mapping, sequence, entity, or None.
        selector: Selector driving the walk. False visits nothing.
        visit: Callback invoked as visit(value, name, container).
        include_subtrees: Also report nested mappings and entities.
        include_leaves: Report leaves.

    Raises:
        TypeMismatchError: If a structured selector meets an opaque value.
    """
    selector = normalize_selector(selector)
    if selector is False:
        return
    _traverse(value, selector, visit, include_subtrees, include_leaves, None, None, False)


def _traverse(
    value: Any,
    selector: Selector,
    visit: TraverseVisitor,
    include_subtrees: bool,
    include_leaves: bool,
    name: str | None,
    container: Any,
    is_deep: bool,
) -> None:
    if selector is True or value is None:
        if include_leaves:
            visit(value, name, container)
        return

    if _is_sequence(value):
        for element in value:
            _traverse(
                element, selector, visit, include_subtrees, include_leaves, name, container, is_deep
            )
        return

    entity = is_entity(value)
    if not (entity or isinstance(value, Mapping)):
        raise TypeMismatchError(
            "Cannot traverse a value that is not an entity, a mapping, or a sequence "
            f"(value type: '{type_name(value)}')"
        )

    if is_deep and include_subtrees:
        visit(value, name, container)

    for sub_name, sub_selector in iterate_selector(selector):
        if entity:
            attribute = value.get_attribute(sub_name)
            if not attribute.is_set():
                continue
            sub_value = attribute.get_value()
        else:
            sub_value = value.get(sub_name)
        _traverse(
            sub_value, sub_selector, visit, include_subtrees, include_leaves, sub_name, value, True
        )


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))
