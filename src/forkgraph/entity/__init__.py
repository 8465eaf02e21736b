"""Entities: attribute declarations and the Entity base class."""

from forkgraph.entity.core import BoundAttribute, Entity
from forkgraph.entity.models import (
    Attribute,
    AttributeKind,
    attribute,
    primary_identifier,
    secondary_identifier,
)

__all__ = [
    # Models
    "Attribute",
    "AttributeKind",
    "attribute",
    "primary_identifier",
    "secondary_identifier",
    # Core
    "Entity",
    "BoundAttribute",
]
