"""Core functionalities: selector algebra, ownership chains, fork/clone/merge.

Architecture Note:
    core/ contains pure functions and the value types they operate on
    (selectors, ownership chains, forked containers). It never holds
    process-wide state. For stateful services, see entity/ and storage/.
"""

from forkgraph.core.chain import OwnershipChain
from forkgraph.core.errors import (
    DetachedEntityError,
    DuplicateIdentifierError,
    ForkGraphError,
    InvalidSelectorError,
    LineageMismatchError,
    SelectorPolicyError,
    TypeMismatchError,
    UnsetAttributeError,
)
from forkgraph.core.forking import (
    CloneOptions,
    ForkedDict,
    ForkedList,
    ForkOptions,
    MergeOptions,
    clone,
    fork,
    is_fork_of,
    merge,
    merge_value,
)
from forkgraph.core.possibly_async import for_each, map_values, possibly_async
from forkgraph.core.selector import (
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
from forkgraph.core.types import UNSET, EntityLike, Selector, is_entity, is_scalar

__all__ = [
    # Types
    "Selector",
    "UNSET",
    "EntityLike",
    "is_entity",
    "is_scalar",
    # Errors
    "ForkGraphError",
    "InvalidSelectorError",
    "TypeMismatchError",
    "SelectorPolicyError",
    "DetachedEntityError",
    "DuplicateIdentifierError",
    "LineageMismatchError",
    "UnsetAttributeError",
    # Selector
    "selector_from_names",
    "selector_from_attributes",
    "normalize_selector",
    "clone_selector",
    "get_from_selector",
    "set_within_selector",
    "selector_includes",
    "selectors_equal",
    "merge_selectors",
    "remove_from_selector",
    "iterate_selector",
    "pick_from_selector",
    "traverse_selector",
    # Chain
    "OwnershipChain",
    # Forking
    "ForkedDict",
    "ForkedList",
    "ForkOptions",
    "CloneOptions",
    "MergeOptions",
    "fork",
    "clone",
    "merge",
    "merge_value",
    "is_fork_of",
    # Possibly async
    "possibly_async",
    "for_each",
    "map_values",
]
