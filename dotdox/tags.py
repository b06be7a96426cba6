"""Interprets comment tag lists into entity records."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Callable, Dict, Optional, Protocol

from .diagnostics import ATTACH_FAILED, MALFORMED_COMMENT, UNKNOWN_KIND, UNKNOWN_TAG, DiagnosticSink
from .errors import EntityError
from .models import Comment, Entity, Tag

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .events import Deferred


class ParentLookup(Protocol):
    """Anything able to resolve a dotted parent reference."""

    def get_class(self, name: str) -> "Deferred[Entity]":
        """Return a deferred that fires with the entity ``name`` designates."""


_FLAG_TAGS: Dict[str, str] = {
    "class": "is_class",
    "module": "is_module",
    "function": "is_function",
    "constant": "is_constant",
    "enum": "is_enum",
    "ignore": "is_ignored",
    "private": "is_private",
}

# Values accepted by the ``@kind`` tag; modules are declared with ``@module`` only.
_KIND_FLAGS: Dict[str, str] = {
    "class": "is_class",
    "function": "is_function",
    "constant": "is_constant",
    "enum": "is_enum",
}


def interpret(
    comment: Comment,
    index: Optional[ParentLookup] = None,
    diagnostics: Optional[DiagnosticSink] = None,
) -> Entity:
    """Build an entity from ``comment`` by applying each tag in order.

    Parent resolutions start as soon as their ``memberOf`` tag is seen, but
    the entity is only attached once every tag has been applied, and never
    when the comment turns out to be ignored. An ignored comment carrying
    ``memberOf`` is therefore never attached, even after its parent resolves;
    the resolution it started stays in the index and may remain pending.
    """
    sink = diagnostics if diagnostics is not None else DiagnosticSink()
    entity = Entity(comment)
    resolutions = []
    for tag in comment.tags:
        deferred = apply_tag(entity, tag, index, sink)
        if deferred is not None:
            resolutions.append(deferred)

    if not entity.is_ignored:
        for deferred in resolutions:
            deferred.then(partial(_attach, entity, sink))
    return entity


def _attach(child: Entity, diagnostics: DiagnosticSink, parent: Entity) -> None:
    try:
        parent.add_child(child)
    except EntityError as exc:
        diagnostics.report(ATTACH_FAILED, str(exc), parent=parent.name, child=child.name)


def apply_tag(
    entity: Entity,
    tag: Tag,
    index: Optional[ParentLookup],
    diagnostics: DiagnosticSink,
) -> Optional["Deferred[Entity]"]:
    """Apply one tag to ``entity``.

    Returns the parent resolution started by a ``memberOf`` tag, if any.
    """
    flag = _FLAG_TAGS.get(tag.type)
    if flag is not None:
        setattr(entity, flag, True)
        return None

    handler = _HANDLERS.get(tag.type)
    if handler is None:
        diagnostics.report(
            UNKNOWN_TAG,
            f"Unrecognized tag {tag.type!r}",
            tag=tag.raw or {"type": tag.type},
        )
        return None
    return handler(entity, tag, index, diagnostics)


def _apply_name(entity: Entity, tag: Tag, index, diagnostics) -> None:
    entity.name = tag.string


def _apply_type(entity: Entity, tag: Tag, index, diagnostics) -> None:
    entity.types = entity.types + list(tag.types)


def _apply_see(entity: Entity, tag: Tag, index, diagnostics) -> None:
    entity.see = tag


def _apply_default(entity: Entity, tag: Tag, index, diagnostics) -> None:
    entity.value = tag.string


def _apply_param(entity: Entity, tag: Tag, index, diagnostics) -> None:
    entity.params.append(tag)


def _apply_return(entity: Entity, tag: Tag, index, diagnostics) -> None:
    entity.returns = tag


def _apply_kind(entity: Entity, tag: Tag, index, diagnostics: DiagnosticSink) -> None:
    flag = _KIND_FLAGS.get(tag.string)
    if flag is None:
        diagnostics.report(
            UNKNOWN_KIND,
            f"Unrecognized kind {tag.string!r}",
            tag=tag.raw or {"type": tag.type, "string": tag.string},
        )
        return
    setattr(entity, flag, True)


def _apply_member_of(
    entity: Entity,
    tag: Tag,
    index: Optional[ParentLookup],
    diagnostics: DiagnosticSink,
) -> Optional["Deferred[Entity]"]:
    parent_name = tag.parent or tag.string
    if not parent_name:
        diagnostics.report(MALFORMED_COMMENT, "memberOf tag without a parent name")
        return None
    entity.parent_name = parent_name
    if index is None:
        return None
    return index.get_class(parent_name)


_Handler = Callable[
    [Entity, Tag, Optional[ParentLookup], DiagnosticSink], Optional["Deferred[Entity]"]
]

_HANDLERS: Dict[str, _Handler] = {
    "name": _apply_name,
    "type": _apply_type,
    "see": _apply_see,
    "default": _apply_default,
    "param": _apply_param,
    "return": _apply_return,
    "kind": _apply_kind,
    "memberOf": _apply_member_of,
}


__all__ = ["ParentLookup", "apply_tag", "interpret"]
