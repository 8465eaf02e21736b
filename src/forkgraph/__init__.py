"""ForkGraph: selectors, copy-on-write forks and identity maps for entity graphs.

Usage:
    from forkgraph import Entity, attribute, primary_identifier, fork, merge

    class Movie(Entity):
        id = primary_identifier()
        title = attribute(default="")
        tags = attribute(default_factory=list)

    movie = Movie(title="Inception")

    forked = fork(movie)
    forked.title = "Inception 2"
    forked.tags.append("sci-fi")

    merge(movie, forked)
    movie.title  # "Inception 2"

    pick_from_selector(movie, {"title": True})  # {"title": "Inception 2"}
"""

__version__ = "0.1.0"

# Configuration
from forkgraph.config import ForkGraphSettings, get_settings, reset_settings, setup_logging

# Core primitives
from forkgraph.core import (
    UNSET,
    CloneOptions,
    DetachedEntityError,
    DuplicateIdentifierError,
    ForkedDict,
    ForkedList,
    ForkGraphError,
    ForkOptions,
    InvalidSelectorError,
    LineageMismatchError,
    MergeOptions,
    OwnershipChain,
    Selector,
    SelectorPolicyError,
    TypeMismatchError,
    UnsetAttributeError,
    clone,
    clone_selector,
    fork,
    get_from_selector,
    is_fork_of,
    iterate_selector,
    merge,
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

# Entities
from forkgraph.entity import (
    Entity,
    attribute,
    primary_identifier,
    secondary_identifier,
)

# Identity
from forkgraph.storage import IdentityMap

__all__ = [
    # Version
    "__version__",
    # Selector
    "Selector",
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
    # Forking
    "UNSET",
    "OwnershipChain",
    "ForkedDict",
    "ForkedList",
    "ForkOptions",
    "CloneOptions",
    "MergeOptions",
    "fork",
    "clone",
    "merge",
    "is_fork_of",
    # Entities
    "Entity",
    "attribute",
    "primary_identifier",
    "secondary_identifier",
    # Identity
    "IdentityMap",
    # Errors
    "ForkGraphError",
    "InvalidSelectorError",
    "TypeMismatchError",
    "SelectorPolicyError",
    "DetachedEntityError",
    "DuplicateIdentifierError",
    "LineageMismatchError",
    "UnsetAttributeError",
    # Configuration
    "ForkGraphSettings",
    "get_settings",
    "reset_settings",
    "setup_logging",
]
