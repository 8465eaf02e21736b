"""Selector functionality: boolean/mapping projection algebra."""

from forkgraph.core.selector.operations import (
    TraverseVisitor,
    clone_selector,
    get_from_selector,
    iterate_selector,
    merge_selectors,
    normalize_selector,
    pick_from_selector,
    remove_from_selector,
    selector_from_attributes,
    selector_from_names,
    selector_includes,
    selectors_equal,
    set_within_selector,
    traverse_selector,
)

__all__ = [
    # Construction
    "selector_from_names",
    "selector_from_attributes",
    "normalize_selector",
    "clone_selector",
    # Access
    "get_from_selector",
    "set_within_selector",
    "iterate_selector",
    # Algebra
    "selector_includes",
    "selectors_equal",
    "merge_selectors",
    "remove_from_selector",
    # Projection
    "pick_from_selector",
    "traverse_selector",
    "TraverseVisitor",
]
