"""Forking functionality: forked containers and fork/clone/merge operations."""

from forkgraph.core.forking.models import (
    CloneOptions,
    Cloner,
    ForkedDict,
    ForkedList,
    Forker,
    ForkOptions,
    Merger,
    MergeOptions,
)
from forkgraph.core.forking.operations import (
    clone,
    fork,
    is_fork_of,
    merge,
    merge_value,
)

__all__ = [
    # Models
    "ForkedDict",
    "ForkedList",
    "ForkOptions",
    "CloneOptions",
    "MergeOptions",
    "Forker",
    "Cloner",
    "Merger",
    # Operations
    "fork",
    "clone",
    "merge",
    "merge_value",
    "is_fork_of",
]
