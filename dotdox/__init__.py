"""Documentation index built from parsed source comments."""

from .diagnostics import Diagnostic, DiagnosticSink
from .errors import CommentError, ConfigError, DeferredError, DotdoxError, EntityError
from .events import Deferred, EventBus, resolve_topic
from .index import DocIndex
from .models import Comment, Entity, EntityKind, Tag
from .resolver import PendingResolution, ReferenceResolver
from .tags import interpret

__all__ = [
    "Comment",
    "CommentError",
    "ConfigError",
    "Deferred",
    "DeferredError",
    "Diagnostic",
    "DiagnosticSink",
    "DocIndex",
    "DotdoxError",
    "Entity",
    "EntityError",
    "EntityKind",
    "EventBus",
    "PendingResolution",
    "ReferenceResolver",
    "Tag",
    "interpret",
    "resolve_topic",
]
