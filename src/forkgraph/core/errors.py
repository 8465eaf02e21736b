"""Error taxonomy.

All errors are raised synchronously where they are detected and are never
retried internally. Each one also derives from the closest builtin so callers
that only know the builtin hierarchy can still catch them.
"""

from __future__ import annotations


class ForkGraphError(Exception):
    """Base class for every error raised by forkgraph."""

    pass


class InvalidSelectorError(ForkGraphError, TypeError):
    """Raised when a value is neither a boolean nor a mapping selector."""

    pass


class TypeMismatchError(ForkGraphError, TypeError):
    """Raised when an operation is applied to an unsupported value shape."""

    pass


class SelectorPolicyError(ForkGraphError, ValueError):
    """Raised for well-formed selector operations whose result is undefined."""

    pass


class DetachedEntityError(ForkGraphError, RuntimeError):
    """Raised when an identity map operation targets a detached entity."""

    pass


class DuplicateIdentifierError(ForkGraphError, ValueError):
    """Raised when an identifier value is already taken within a scope."""

    pass


class LineageMismatchError(ForkGraphError, ValueError):
    """Raised when merging into a value that is not an ancestor of the fork."""

    pass


class UnsetAttributeError(ForkGraphError, AttributeError):
    """Raised when reading an entity attribute that has no value."""

    pass
