"""Core data models shared across dotdox components."""

from __future__ import annotations

import enum
import weakref
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .errors import CommentError, EntityError


class EntityKind(str, enum.Enum):
    """Primary classification of an entity."""

    CLASS = "class"
    MODULE = "module"
    FUNCTION = "function"
    CONSTANT = "constant"
    ENUM = "enum"
    MISC = "misc"


@dataclass
class Tag:
    """Single metadata directive extracted from a comment."""

    type: str
    string: str = ""
    name: str = ""
    description: str = ""
    types: List[str] = field(default_factory=list)
    parent: str = ""
    optional: bool = False
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: object) -> "Tag":
        if isinstance(payload, Tag):
            return payload
        # A tag without a usable type keeps an empty type; the interpreter
        # reports it as unrecognized and still applies the other tags.
        if not isinstance(payload, Mapping):
            return cls(type="", raw={"value": payload})
        kind = payload.get("type")
        if not isinstance(kind, str) or not kind:
            return cls(type="", raw=dict(payload))
        types = payload.get("types") or []
        if isinstance(types, str):
            types = [types]
        return cls(
            type=kind,
            string=_as_text(payload.get("string")),
            name=_as_text(payload.get("name")),
            description=_as_text(payload.get("description")),
            types=[str(item) for item in types],
            parent=_as_text(payload.get("parent")),
            optional=bool(payload.get("optional", False)),
            raw=dict(payload),
        )


@dataclass
class Comment:
    """Raw comment record handed over by the comment parser."""

    tags: List[Tag] = field(default_factory=list)
    description: str = ""
    body: str = ""
    content: str = ""
    code: str = ""
    is_private: bool = False
    ctx: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: object) -> "Comment":
        if isinstance(payload, Comment):
            return payload
        if not isinstance(payload, Mapping):
            raise CommentError(f"Comment must be a mapping, got {type(payload).__name__}")
        raw_tags = payload.get("tags") or []
        if not isinstance(raw_tags, list):
            raise CommentError("Comment 'tags' must be a list")

        description = payload.get("description")
        body = payload.get("body")
        # Parsers emit description either as text or as {full, summary, body}.
        if isinstance(description, Mapping):
            if body is None:
                body = description.get("body")
            description = description.get("full") or description.get("summary")

        ctx = payload.get("ctx")
        return cls(
            tags=[Tag.from_dict(tag) for tag in raw_tags],
            description=_as_text(description),
            body=_as_text(body),
            content=_as_text(payload.get("content")),
            code=_as_text(payload.get("code")),
            is_private=bool(payload.get("isPrivate", False)),
            ctx=dict(ctx) if isinstance(ctx, Mapping) else {},
        )


class Entity:
    """Documented code element built from a single comment."""

    def __init__(self, comment: Comment | None = None) -> None:
        comment = comment or Comment()

        self.is_class = False
        self.is_module = False
        self.is_function = False
        self.is_constant = False
        self.is_enum = False
        self.is_ignored = False
        self.is_private = comment.is_private

        self.name = ""
        self.parent_name = ""
        self.types: List[str] = []
        self.see: Optional[Tag] = None
        self.value = ""
        self.params: List[Tag] = []
        self.returns: Optional[Tag] = None

        self.tags = list(comment.tags)
        self.description = comment.description
        self.body = comment.body
        self.content = comment.content
        self.code = comment.code
        self.ctx = dict(comment.ctx)

        self._parent: Optional[weakref.ReferenceType[Entity]] = None
        self._children: List[Entity] = []

    @property
    def kind(self) -> EntityKind:
        if self.is_class:
            return EntityKind.CLASS
        if self.is_module:
            return EntityKind.MODULE
        if self.is_function:
            return EntityKind.FUNCTION
        if self.is_constant:
            return EntityKind.CONSTANT
        if self.is_enum:
            return EntityKind.ENUM
        return EntityKind.MISC

    @property
    def qualified_name(self) -> str:
        if self.parent_name:
            return f"{self.parent_name}.{self.name}"
        return self.name

    @property
    def parent(self) -> Optional["Entity"]:
        return self._parent() if self._parent is not None else None

    @property
    def children(self) -> List["Entity"]:
        return list(self._children)

    def add_child(self, child: "Entity") -> None:
        """Append ``child`` and point its parent reference back at this entity."""
        if child is self:
            raise EntityError(f"Entity {self.name!r} cannot be its own child")
        if child._parent is not None:
            current = child.parent
            owner = current.name if current is not None else "<collected>"
            raise EntityError(f"Entity {child.name!r} already belongs to {owner!r}")
        self._children.append(child)
        child._parent = weakref.ref(self)

    def get_children(self, name: str) -> List["Entity"]:
        return [child for child in self._children if child.name == name]

    def get_first_child(self, name: str) -> Optional["Entity"]:
        for child in self._children:
            if child.name == name:
                return child
        return None

    def get_last_child(self, name: str) -> Optional["Entity"]:
        for child in reversed(self._children):
            if child.name == name:
                return child
        return None

    def __repr__(self) -> str:
        return f"<Entity {self.kind.value} {self.qualified_name!r}>"


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, bool)):
        return str(value)
    return ""


__all__ = ["Comment", "Entity", "EntityKind", "Tag"]
