"""Identity map: uniqueness index of entities by identifier attribute.

One identity map (scope) exists per entity class. Forking an entity class
forks its scope: the forked scope starts empty and falls back to its parent
for identifier names and values it does not hold itself.

Structure:
    _indexes[identifier_name][identifier_value] = entity

Both levels are ownership chains, so a forked scope only stores what was
registered, updated or removed through it.

Entities found through a parent scope are forked into the scope's class and
kept in a side index keyed by (identifier name, value). They are never
registered in the value indexes, so they cannot collide with entities the
scope registered itself.

Usage:
    identity_map = User.get_identity_map()
    identity_map.get_component("abc123")             # by primary identifier
    identity_map.get_component({"email": "hi@x.io"})  # by any identifier
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from forkgraph.core.chain import OwnershipChain
from forkgraph.core.errors import DetachedEntityError, DuplicateIdentifierError, TypeMismatchError
from forkgraph.core.forking import ForkOptions
from forkgraph.core.types import type_name

logger = logging.getLogger(__name__)

type IdentifierValue = str | int
type IdentifierSelector = IdentifierValue | Mapping[str, IdentifierValue | None] | None


class IdentityMap:
    """Keeps at most one entity per identifier value within a scope.

    Args:
        entity_class: Entity class this scope belongs to.
        parent: Scope to delegate to, for forked entity classes.
    """

    def __init__(self, entity_class: type, parent: IdentityMap | None = None):
        """Initialize an empty scope.

        Args:
            entity_class: Entity class this scope belongs to.
            parent: Scope to delegate to, for forked entity classes.
        """
        self._entity_class = entity_class
        self._parent = parent
        self._indexes: OwnershipChain[str, OwnershipChain[IdentifierValue, Any]] = OwnershipChain(
            parent=parent._indexes if parent is not None else None
        )
        self._forks: dict[tuple[str, IdentifierValue], Any] = {}

    def get_entity_class(self) -> type:
        """Get the entity class this scope belongs to."""
        return self._entity_class

    def get_parent(self) -> IdentityMap | None:
        """Get the scope this one delegates to, if any."""
        return self._parent

    def fork(self, new_entity_class: type) -> IdentityMap:
        """Create a scope for a forked entity class, delegating to this one.

        Args:
            new_entity_class: The forked entity class.

        Returns:
            A new, empty scope whose lookups fall back to this scope.
        """
        return type(self)(new_entity_class, parent=self)

    # Entities

    def get_component(self, identifiers: IdentifierSelector = None) -> Any | None:
        """Get an entity from one of its identifiers.

        Identifiers are tried in declaration order, primary first. An entity
        found through a parent scope is forked into this scope's class once;
        repeated lookups under any of its identifiers return the same fork.

        Args:
            identifiers: A primary identifier value, or a mapping of identifier
                names to values.

        Returns:
            The entity, or None if no identifier matches.

        Raises:
            TypeMismatchError: If the identifiers are malformed.
        """
        normalized = self._normalize_identifiers(identifiers)

        for name in self._entity_class.get_identifier_attribute_names():
            value = normalized.get(name)
            if value is None:
                continue

            index = self._get_index(name)
            entity = index.get(value)
            if entity is None:
                continue

            if not index.owns(value):
                entity = self._fork_into_scope(entity)
            return entity

        return None

    def get_own_component(self, identifiers: IdentifierSelector = None) -> Any | None:
        """Get an entity registered in this scope itself, ignoring parent scopes.

        Args:
            identifiers: A primary identifier value, or a mapping of identifier
                names to values.

        Returns:
            The entity, or None if no identifier matches locally.
        """
        normalized = self._normalize_identifiers(identifiers)

        for name in self._entity_class.get_identifier_attribute_names():
            value = normalized.get(name)
            if value is None:
                continue
            index = self._indexes.get_own(name)
            entity = index.get_own(value) if index is not None else None
            if entity is not None:
                return entity

        return None

    def add_component(self, entity: Any) -> None:
        """Register an entity under each of its set identifier values.

        A value registered only in a parent scope does not block the entity:
        it shadows the parent's entry within this scope.

        Raises:
            DetachedEntityError: If the entity is detached.
            DuplicateIdentifierError: If a value is already registered in this
                scope. Nothing is registered in that case.
        """
        if entity.is_detached():
            raise DetachedEntityError(
                f"Cannot add a detached entity to the identity map (entity: '{type(entity).__name__}')"
            )

        identifiers = entity.get_identifiers()
        for name, value in identifiers.items():
            if self._get_index(name).owns(value):
                raise DuplicateIdentifierError(
                    f"An entity with the same identifier already exists "
                    f"(attribute: '{self._describe_attribute(name)}', value: {value!r})"
                )

        for name, value in identifiers.items():
            self._get_index(name)[value] = entity

        logger.debug("Registered %s in scope %s", type(entity).__name__, self._entity_class.__name__)

    def update_component(
        self,
        entity: Any,
        attribute_name: str,
        *,
        previous_value: IdentifierValue | None = None,
        new_value: IdentifierValue | None = None,
    ) -> None:
        """Move an entity from one identifier value to another.

        Does nothing for detached entities or unchanged values. For a fork of
        a parent scope's entity, the previous value is hidden in this scope so
        that the parent's entity is not forked again under it.

        Raises:
            DuplicateIdentifierError: If the new value belongs to another
                entity in this scope. The previous value is already removed.
        """
        if entity.is_detached():
            return

        if new_value == previous_value:
            return

        index = self._get_index(attribute_name)

        if previous_value is not None:
            if index.get_own(previous_value) is entity:
                index.discard_own(previous_value)
            elif self._forks.get((attribute_name, previous_value)) is entity:
                del self._forks[(attribute_name, previous_value)]
                if previous_value in index:
                    del index[previous_value]

        if new_value is not None:
            existing = index.get_own(new_value)
            if existing is not None and existing is not entity:
                raise DuplicateIdentifierError(
                    f"An entity with the same identifier already exists "
                    f"(attribute: '{self._describe_attribute(attribute_name)}', value: {new_value!r})"
                )
            index[new_value] = entity

    def remove_component(self, entity: Any) -> None:
        """Unregister an entity from every identifier value it holds here.

        Values a removed entity shadowed resolve to the parent scope's
        entities again. A removed fork of a parent's entity is forgotten, so
        the next lookup forks the parent's entity anew.

        Raises:
            DetachedEntityError: If the entity is detached.
        """
        if entity.is_detached():
            raise DetachedEntityError(
                f"Cannot remove a detached entity from the identity map "
                f"(entity: '{type(entity).__name__}')"
            )

        for name, value in entity.get_identifiers().items():
            index = self._get_index(name)
            if index.get_own(value) is entity:
                index.discard_own(value)

        for key in [key for key, forked in self._forks.items() if forked is entity]:
            del self._forks[key]

        logger.debug("Removed %s from scope %s", type(entity).__name__, self._entity_class.__name__)

    def has_component(self, entity: Any) -> bool:
        """Check if an entity belongs to this scope.

        True for entities registered here under one of their current
        identifiers, and for forks this scope made of a parent's entities.
        """
        for name, value in entity.get_identifiers().items():
            index = self._indexes.get_own(name)
            if index is not None and index.get_own(value) is entity:
                return True
        return any(forked is entity for forked in self._forks.values())

    # Forks of parent entities

    def get_fork(self, entity: Any) -> Any | None:
        """Get the fork this scope made of a parent scope's entity, if any."""
        for name, value in entity.get_identifiers().items():
            forked = self._forks.get((name, value))
            if forked is not None and forked.is_fork_of(entity):
                return forked
        return None

    def remember_fork(self, entity: Any, forked: Any) -> None:
        """Remember the fork of a parent scope's entity under the entity's identifiers."""
        for name, value in entity.get_identifiers().items():
            self._forks[(name, value)] = forked
        logger.debug(
            "Forked %s from a parent scope into scope %s",
            type(entity).__name__,
            self._entity_class.__name__,
        )

    def get_components(self) -> Iterator[Any]:
        """Iterate every distinct entity visible in this scope.

        Entities inherited from parent scopes are forked into this scope as
        they are reached.

        Yields:
            Each entity once, even when indexed under several identifiers.
        """
        yielded: set[int] = set()

        for name in list(self._indexes):
            index = self._get_index(name)
            for value in list(index):
                entity = self.get_component({name: value})
                if entity is None or id(entity) in yielded:
                    continue
                yielded.add(id(entity))
                yield entity

    # Indexes

    def _get_index(self, name: str) -> OwnershipChain[IdentifierValue, Any]:
        index = self._indexes.get_own(name)
        if index is None:
            parent_index = self._parent._get_index(name) if self._parent is not None else None
            index = OwnershipChain(parent=parent_index)
            self._indexes[name] = index
        return index

    def _fork_into_scope(self, entity: Any) -> Any:
        forked = self.get_fork(entity)
        if forked is None:
            forked = entity.fork(ForkOptions(entity_class=self._entity_class))
            if self.get_fork(entity) is not forked:
                self.remember_fork(entity, forked)
        return forked

    def _normalize_identifiers(self, identifiers: IdentifierSelector) -> Mapping[str, Any]:
        if identifiers is None:
            return {}

        if isinstance(identifiers, (str, int)) and not isinstance(identifiers, bool):
            primary_name = self._entity_class.get_primary_identifier_name()
            if primary_name is None:
                raise TypeMismatchError(
                    f"Cannot look up an entity by a primary identifier value: "
                    f"'{self._entity_class.__name__}' has no primary identifier attribute"
                )
            return {primary_name: identifiers}

        if not isinstance(identifiers, Mapping):
            raise TypeMismatchError(
                f"Expected an identifier value or a mapping of identifiers, "
                f"but received a value of type '{type_name(identifiers)}'"
            )

        names = set(self._entity_class.get_identifier_attribute_names())
        for name, value in identifiers.items():
            if name not in names:
                raise TypeMismatchError(
                    f"'{self._describe_attribute(name)}' is not an identifier attribute"
                )
            if value is not None and (isinstance(value, bool) or not isinstance(value, (str, int))):
                raise TypeMismatchError(
                    f"An identifier value must be a string or an integer "
                    f"(attribute: '{self._describe_attribute(name)}', "
                    f"value type: '{type_name(value)}')"
                )
        return identifiers

    def _describe_attribute(self, name: str) -> str:
        return f"{self._entity_class.__name__}.{name}"
