"""Exception hierarchy shared across dotdox components."""

from __future__ import annotations


class DotdoxError(RuntimeError):
    """Base class for dotdox failures."""


class ConfigError(DotdoxError):
    """Raised when the configuration file cannot be parsed."""


class CommentError(DotdoxError):
    """Raised when a comment record does not have the expected shape."""


class EntityError(DotdoxError):
    """Raised when an entity relationship would break the tree invariants."""


class DeferredError(DotdoxError):
    """Raised when a deferred handle is resolved more than once."""


__all__ = ["CommentError", "ConfigError", "DeferredError", "DotdoxError", "EntityError"]
