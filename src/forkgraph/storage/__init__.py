"""Identity storage: per entity-class uniqueness indexes."""

from forkgraph.storage.identity_map import IdentifierSelector, IdentifierValue, IdentityMap

__all__ = [
    "IdentityMap",
    "IdentifierSelector",
    "IdentifierValue",
]
