"""Entity base class: attribute storage, identity, fork/merge/clone hooks.

An entity stores its attribute values in a mapping. A fork of an entity is
an instance whose storage is a ForkedDict over the origin's storage, so it
reads through to the origin until it writes.

Usage:
    class Movie(Entity):
        id = primary_identifier()
        title = attribute(default="")

    movie = Movie(title="Inception")
    forked = movie.fork()
    forked.title = "Inception 2"
    movie.merge(forked)

Forked classes:
    Forking a class creates a subclass with its own identity map delegating
    to the origin class's one. Classes forked together share one set of
    related classes, so nested entities forked in that context resolve to
    the same forked classes:

    ForkedMovie = Movie.fork_class()
    ForkedMovie.get_identity_map().get_component(movie.id)  # a ForkedMovie
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Any, ClassVar, Self
from uuid import uuid4

from forkgraph.config import get_settings
from forkgraph.core.chain import OwnershipChain
from forkgraph.core.errors import (
    LineageMismatchError,
    TypeMismatchError,
    UnsetAttributeError,
)
from forkgraph.core.forking import (
    CloneOptions,
    ForkedDict,
    ForkOptions,
    MergeOptions,
    clone,
    fork,
    merge_value,
)
from forkgraph.core.possibly_async import for_each, possibly_async
from forkgraph.core.selector import get_from_selector
from forkgraph.core.types import UNSET, type_name
from forkgraph.entity.models import Attribute
from forkgraph.storage.identity_map import IdentityMap

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BoundAttribute:
    """An attribute declaration bound to one entity."""

    entity: Entity
    definition: Attribute

    def get_name(self) -> str:
        return self.definition.name

    def get_entity(self) -> Entity:
        return self.entity

    def is_identifier(self) -> bool:
        return self.definition.is_identifier()

    def is_set(self) -> bool:
        return self.definition.name in self.entity._values

    def get_value(self) -> Any:
        """Get the attribute's value.

        Raises:
            UnsetAttributeError: If the attribute is not set.
        """
        try:
            return self.entity._values[self.definition.name]
        except KeyError:
            raise UnsetAttributeError(
                f"Cannot get the value of an unset attribute (attribute: '{self.describe()}')"
            ) from None

    def set_value(self, value: Any) -> None:
        """Set the attribute's value.

        Identifier changes on an entity indexed in its identity map are
        reflected in the map.

        Raises:
            TypeMismatchError: If an identifier value is not a string or an integer.
            DuplicateIdentifierError: If another entity of the scope holds the
                identifier value. The entity keeps the new value.
        """
        self.definition.check_value(value)
        if not self.is_identifier():
            self.entity._values[self.definition.name] = value
            return

        entity = self.entity
        identity_map = type(entity).get_identity_map()
        is_indexed = identity_map.has_component(entity)
        was_identifiable = entity.is_identifiable()
        previous_value = entity._values.get(self.definition.name)

        entity._values[self.definition.name] = value

        if is_indexed:
            identity_map.update_component(
                entity, self.definition.name, previous_value=previous_value, new_value=value
            )
        elif not was_identifiable and entity._is_registrable():
            identity_map.add_component(entity)

    def unset_value(self) -> None:
        """Unset the attribute. Does nothing if it is not set."""
        if not self.is_set():
            return

        entity = self.entity
        is_indexed = self.is_identifier() and type(entity).get_identity_map().has_component(entity)
        previous_value = entity._values[self.definition.name]

        del entity._values[self.definition.name]

        if is_indexed:
            type(entity).get_identity_map().update_component(
                entity, self.definition.name, previous_value=previous_value, new_value=None
            )

    def describe(self) -> str:
        return f"{type(self.entity).__name__}.{self.definition.name}"


class Entity:
    """Base class for entities taking part in forking, merging and identity.

    Args:
        **values: Initial attribute values. Missing attributes get their
            default, if any.

    Raises:
        TypeError: If a value is given for an undeclared attribute.
        DuplicateIdentifierError: If an identifier value is already taken in
            the class's identity map.
    """

    __fork_origin__: ClassVar[type[Entity] | None] = None

    def __init__(self, **values: Any):
        cls = type(self)
        definitions = cls.get_attribute_definitions()

        unknown = [name for name in values if name not in definitions]
        if unknown:
            raise TypeError(f"{cls.__name__}() got unexpected attributes: {', '.join(unknown)}")

        self._values: dict[str, Any] | ForkedDict = {}
        self._detached = False

        for name, definition in definitions.items():
            value = values[name] if name in values else definition.get_default()
            if (
                value is UNSET
                and definition.is_primary_identifier()
                and get_settings().generate_primary_identifiers
            ):
                value = uuid4().hex
            if value is not UNSET:
                definition.check_value(value)
                self._values[name] = value

        if self.is_identifiable():
            cls.get_identity_map().add_component(self)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        primary = [d for d in cls._collect_attribute_definitions().values() if d.is_primary_identifier()]
        if len(primary) > 1:
            raise TypeMismatchError(
                f"An entity class cannot have more than one primary identifier attribute "
                f"(class: '{cls.__name__}', attributes: {', '.join(d.name for d in primary)})"
            )

    def __repr__(self) -> str:
        values = ", ".join(
            f"{attribute.get_name()}={attribute.get_value()!r}"
            for attribute in self.get_attributes(set_attributes_only=True)
        )
        return f"{type(self).__name__}({values})"

    # Attribute declarations

    @classmethod
    def _collect_attribute_definitions(cls) -> dict[str, Attribute]:
        definitions: dict[str, Attribute] = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, Attribute):
                    definitions[name] = value
        return definitions

    @classmethod
    def get_attribute_definitions(cls) -> Mapping[str, Attribute]:
        """Get the declared attributes of the class, in declaration order."""
        cached = cls.__dict__.get("__attribute_definitions__")
        if cached is None:
            cached = cls._collect_attribute_definitions()
            cls.__attribute_definitions__ = cached
        return cached

    @classmethod
    def get_identifier_attribute_names(cls) -> list[str]:
        """Get the names of the identifier attributes, primary first."""
        definitions = cls.get_attribute_definitions().values()
        primary = [d.name for d in definitions if d.is_primary_identifier()]
        secondary = [d.name for d in definitions if d.is_identifier() and not d.is_primary_identifier()]
        return primary + secondary

    @classmethod
    def get_primary_identifier_name(cls) -> str | None:
        """Get the name of the primary identifier attribute, if declared."""
        for definition in cls.get_attribute_definitions().values():
            if definition.is_primary_identifier():
                return definition.name
        return None

    # Attributes

    def get_attribute(self, name: str) -> BoundAttribute:
        """Get an attribute of this entity.

        Raises:
            AttributeError: If the class declares no such attribute.
        """
        definition = type(self).get_attribute_definitions().get(name)
        if definition is None:
            raise AttributeError(f"'{type(self).__name__}' has no attribute '{name}'")
        return BoundAttribute(self, definition)

    def get_attributes(self, set_attributes_only: bool = False) -> Iterator[BoundAttribute]:
        """Iterate the attributes of this entity in declaration order."""
        for definition in type(self).get_attribute_definitions().values():
            attribute = BoundAttribute(self, definition)
            if not set_attributes_only or attribute.is_set():
                yield attribute

    def get_identifier_attributes(self, set_attributes_only: bool = False) -> Iterator[BoundAttribute]:
        """Iterate the identifier attributes of this entity, primary first."""
        for name in type(self).get_identifier_attribute_names():
            attribute = self.get_attribute(name)
            if not set_attributes_only or attribute.is_set():
                yield attribute

    def get_primary_identifier_attribute(self) -> BoundAttribute:
        """Get the primary identifier attribute.

        Raises:
            AttributeError: If the class declares no primary identifier.
        """
        name = type(self).get_primary_identifier_name()
        if name is None:
            raise AttributeError(f"'{type(self).__name__}' has no primary identifier attribute")
        return self.get_attribute(name)

    def has_primary_identifier_attribute(self) -> bool:
        return type(self).get_primary_identifier_name() is not None

    def is_identifiable(self) -> bool:
        """Check if at least one identifier attribute is set."""
        return any(True for _ in self.get_identifier_attributes(set_attributes_only=True))

    def get_identifiers(self) -> dict[str, Any]:
        """Get the set identifier values by attribute name."""
        return {
            attribute.get_name(): attribute.get_value()
            for attribute in self.get_identifier_attributes(set_attributes_only=True)
        }

    # Detachment

    def detach(self) -> Self:
        """Remove this entity from its identity map and mark it detached."""
        if not self._detached:
            identity_map = type(self).get_identity_map()
            if identity_map.has_component(self):
                identity_map.remove_component(self)
            self._detached = True
            logger.debug("Detached %s", type(self).__name__)
        return self

    def is_detached(self) -> bool:
        return self._detached

    def _is_registrable(self) -> bool:
        return not self._detached and not isinstance(self._values, ForkedDict)

    # Forking

    @classmethod
    def fork_class(cls, related_classes: dict[type, type] | None = None) -> type[Self]:
        """Create a forked subclass with its own identity map.

        Args:
            related_classes: Forked classes of the same context, shared with
                the new class. A new context is started when omitted.

        Returns:
            The forked class.
        """
        related = related_classes if related_classes is not None else {}
        forked_class = type(
            cls.__name__,
            (cls,),
            {
                "__module__": cls.__module__,
                "__qualname__": cls.__qualname__,
                "__fork_origin__": cls,
                "__related_classes__": related,
            },
        )
        related[cls] = forked_class
        return forked_class

    @classmethod
    def is_forked_class(cls) -> bool:
        return cls.__dict__.get("__fork_origin__") is not None

    @classmethod
    def is_fork_of_class(cls, entity_class: type) -> bool:
        """Check if a class appears in this class's fork origin chain."""
        origin = cls.__dict__.get("__fork_origin__")
        while origin is not None:
            if origin is entity_class:
                return True
            origin = origin.__dict__.get("__fork_origin__")
        return False

    @classmethod
    def resolve_related_class(cls, entity_class: type[Entity]) -> type[Entity]:
        """Get the class of this class's fork context standing for another class.

        The related class is forked on first use and shared by every class of
        the context. Classes that are not forked resolve to the class itself.
        """
        if not cls.is_forked_class():
            return entity_class
        related: dict[type, type] = cls.__dict__["__related_classes__"]
        if entity_class in related.values():
            return entity_class
        resolved = related.get(entity_class)
        if resolved is None:
            resolved = entity_class.fork_class(related_classes=related)
        return resolved

    @classmethod
    def get_identity_map(cls) -> IdentityMap:
        """Get the identity map of the class, creating it on first use."""
        identity_map = cls.__dict__.get("__identity_map__")
        if identity_map is None:
            origin = cls.__dict__.get("__fork_origin__")
            if origin is not None:
                identity_map = origin.get_identity_map().fork(cls)
            else:
                identity_map = IdentityMap(cls)
            cls.__identity_map__ = identity_map
        return identity_map

    def fork(self, options: ForkOptions | None = None) -> Entity:
        """Fork this entity.

        The fork is an instance of `options.entity_class`, of the class
        `options.context` relates to this entity's class, or of this
        entity's class. Forks into another class are remembered by that
        class's identity map, and forking again returns the same fork.

        Raises:
            TypeMismatchError: If the target class is not an entity class.
        """
        options = options if options is not None else ForkOptions()
        cls = type(self)

        target = options.entity_class
        if target is None and options.context is not None:
            target = options.context.resolve_related_class(cls)
        if target is None:
            target = cls
        if not (isinstance(target, type) and issubclass(target, Entity)):
            raise TypeMismatchError(
                f"Cannot fork an entity into a value that is not an entity class "
                f"(entity: '{cls.__name__}', target type: '{type_name(target)}')"
            )

        identity_map = None
        if target is not cls and self.is_identifiable() and not self._detached:
            identity_map = target.get_identity_map()
            existing = identity_map.get_fork(self)
            if existing is not None:
                return existing

        nested_options = ForkOptions(
            context=target if target.is_forked_class() else options.context,
            object_forker=options.object_forker,
        )
        forked = object.__new__(target)
        forked._values = ForkedDict(self._values, forker=lambda value: fork(value, nested_options))
        forked._detached = self._detached

        if identity_map is not None:
            identity_map.remember_fork(self, forked)
        return forked

    def is_fork_of(self, other: Any) -> bool:
        """Check if another entity is an ancestor of this one."""
        return (
            isinstance(other, Entity)
            and isinstance(self._values, OwnershipChain)
            and self._values.is_fork_of(other._values)
        )

    # Merging

    def merge(self, forked: Entity, options: MergeOptions | None = None) -> Any:
        """Merge a fork of this entity back into it.

        Only attributes set or unset on the fork (or on intermediate forks)
        are merged.

        Returns:
            This entity, or an awaitable resolving to it if a hook was
            asynchronous.

        Raises:
            LineageMismatchError: If `forked` is not a fork of this entity.
        """
        options = options if options is not None else MergeOptions()
        if not (isinstance(forked, Entity) and forked.is_fork_of(self)):
            raise LineageMismatchError(
                f"Cannot merge an entity that is not a fork of the target entity "
                f"(target: '{type(self).__name__}', forked value type: '{type_name(forked)}')"
            )

        def merge_attribute(item: tuple[str, Any]) -> Any:
            name, forked_value = item
            sub_selector = get_from_selector(options.attribute_selector, name)
            if sub_selector is False:
                return None
            attribute = self.get_attribute(name)
            if forked_value is UNSET:
                attribute.unset_value()
                return None
            current = attribute.get_value() if attribute.is_set() else UNSET
            merged = merge_value(current, forked_value, replace(options, attribute_selector=sub_selector))
            return possibly_async(merged, attribute.set_value)

        overrides = list(forked._values.iter_overrides(until=self._values))
        return possibly_async(for_each(overrides, merge_attribute), lambda _: self)

    # Cloning

    def clone(self, options: CloneOptions | None = None) -> Any:
        """Clone this entity.

        An identifiable entity is looked up in its identity map first: if it
        is the registered instance, it is returned as is; if another instance
        holds its identifiers, the non-identifier attributes are cloned into
        that instance.

        Returns:
            The clone, or an awaitable resolving to it if a hook was
            asynchronous.
        """
        options = options if options is not None else CloneOptions()
        cls = type(self)
        identifiers = self.get_identifiers()

        target = None
        if identifiers and not self._detached:
            target = cls.get_identity_map().get_component(identifiers)
            if target is self:
                return self

        is_new = target is None
        if is_new:
            target = object.__new__(cls)
            target._values = dict(identifiers)
            target._detached = self._detached

        others = [
            (attribute.get_name(), attribute.get_value())
            for attribute in self.get_attributes(set_attributes_only=True)
            if not attribute.is_identifier()
        ]

        def clone_attribute(item: tuple[str, Any]) -> Any:
            name, value = item
            return possibly_async(clone(value, options), target.get_attribute(name).set_value)

        def finish(_: Any) -> Entity:
            if is_new and identifiers and target._is_registrable():
                cls.get_identity_map().add_component(target)
            return target

        return possibly_async(for_each(others, clone_attribute), finish)
