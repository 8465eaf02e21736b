"""Attribute declarations for entity classes.

Usage:
    class User(Entity):
        id = primary_identifier()
        email = secondary_identifier()
        name = attribute(default="")
        tags = attribute(default_factory=list)
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from forkgraph.core.errors import TypeMismatchError
from forkgraph.core.types import UNSET, type_name

if TYPE_CHECKING:
    from forkgraph.entity.core import Entity


class AttributeKind(Enum):
    """Role of an attribute within its entity."""

    VALUE = auto()  # Plain value
    PRIMARY_IDENTIFIER = auto()  # At most one per class
    SECONDARY_IDENTIFIER = auto()


class Attribute:
    """Descriptor declaring an entity attribute.

    Reading an unset attribute raises UnsetAttributeError; `del` unsets it.

    Args:
        kind: Role of the attribute.
        default: Value given to new entities that do not provide one.
        default_factory: Called to produce the default instead.
    """

    def __init__(
        self,
        kind: AttributeKind = AttributeKind.VALUE,
        default: Any = UNSET,
        default_factory: Callable[[], Any] | None = None,
    ):
        if default is not UNSET and default_factory is not None:
            raise TypeError("Cannot specify both 'default' and 'default_factory'")
        self.kind = kind
        self.default = default
        self.default_factory = default_factory
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Entity | None, owner: type) -> Any:
        if instance is None:
            return self
        return instance.get_attribute(self.name).get_value()

    def __set__(self, instance: Entity, value: Any) -> None:
        instance.get_attribute(self.name).set_value(value)

    def __delete__(self, instance: Entity) -> None:
        instance.get_attribute(self.name).unset_value()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, kind={self.kind.name})"

    def is_identifier(self) -> bool:
        """Check if the attribute identifies its entity."""
        return self.kind is not AttributeKind.VALUE

    def is_primary_identifier(self) -> bool:
        """Check if the attribute is the primary identifier."""
        return self.kind is AttributeKind.PRIMARY_IDENTIFIER

    def get_default(self) -> Any:
        """Produce the default value, or UNSET if there is none."""
        if self.default_factory is not None:
            return self.default_factory()
        return self.default

    def check_value(self, value: Any) -> None:
        """Check that a value can be held by this attribute.

        Raises:
            TypeMismatchError: If an identifier value is not a string or an integer.
        """
        if not self.is_identifier():
            return
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise TypeMismatchError(
                f"The value of an identifier attribute must be a string or an integer "
                f"(attribute: '{self.name}', value type: '{type_name(value)}')"
            )


def attribute(default: Any = UNSET, *, default_factory: Callable[[], Any] | None = None) -> Any:
    """Declare a plain attribute.

    Args:
        default: Value given to new entities that do not provide one.
        default_factory: Called to produce the default instead.

    Returns:
        The attribute descriptor.
    """
    return Attribute(AttributeKind.VALUE, default=default, default_factory=default_factory)


def primary_identifier(
    default: Any = UNSET, *, default_factory: Callable[[], Any] | None = None
) -> Any:
    """Declare the primary identifier attribute.

    When no default is given, new entities get a generated identifier if
    `generate_primary_identifiers` is enabled in the settings.

    Returns:
        The attribute descriptor.
    """
    return Attribute(AttributeKind.PRIMARY_IDENTIFIER, default=default, default_factory=default_factory)


def secondary_identifier(
    default: Any = UNSET, *, default_factory: Callable[[], Any] | None = None
) -> Any:
    """Declare a secondary identifier attribute, such as an email or a username."""
    return Attribute(AttributeKind.SECONDARY_IDENTIFIER, default=default, default_factory=default_factory)
