"""Document index: ingests comments and classifies the resulting entities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .config import DotdoxConfig
from .diagnostics import MALFORMED_COMMENT, UNRECOGNIZED_COMMENT, DiagnosticSink
from .errors import CommentError
from .events import Deferred, EventBus, resolve_topic
from .logging import get_logger
from .models import Comment, Entity, EntityKind
from .render import render_readme
from .resolver import PendingResolution, ReferenceResolver
from .tags import interpret

CommentRecord = Union[Comment, Mapping[str, object]]


class DocIndex:
    """Aggregate store built once per documentation run.

    Classes, modules, functions and constants are kept in name-keyed maps where
    the first entity to claim a name wins. Everything else lands in ``misc``.
    Storing a class or module publishes ``resolve:<qualified name>`` so that
    members declared earlier in the stream can attach to it.
    """

    def __init__(
        self,
        config: DotdoxConfig | None = None,
        *,
        diagnostics: DiagnosticSink | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.config = config
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticSink()
        self.bus = bus or EventBus()
        self.logger = get_logger("index")
        self.readme = ""
        self.comments: List[CommentRecord] = []

        self.classes: Dict[str, Entity] = {}
        self.modules: Dict[str, Entity] = {}
        self.functions: Dict[str, Entity] = {}
        self.constants: Dict[str, Entity] = {}
        self.misc: List[Entity] = []

        self._resolver = ReferenceResolver(self._lookup_root, self.bus, self.diagnostics)
        self._cursor = 0

    @property
    def verbose(self) -> bool:
        return bool(self.config and self.config.verbose)

    def add_comments(self, records: Iterable[CommentRecord]) -> None:
        self.comments.extend(records)

    def load_comments(self, path: Path) -> int:
        """Append the comment records stored as a JSON array at ``path``."""
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CommentError(f"Cannot read comments from {path}: {exc}") from exc
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CommentError(f"{path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, list):
            raise CommentError(f"{path} must contain a JSON array of comments")
        self.add_comments(payload)
        self.logger.debug("Loaded %d comments from %s", len(payload), path)
        return len(payload)

    def process(self) -> None:
        """Ingest every comment added since the previous call, in arrival order."""
        while self._cursor < len(self.comments):
            record = self.comments[self._cursor]
            self._cursor += 1
            self.ingest(record)
        self.logger.debug(
            "Indexed %d classes, %d modules, %d functions, %d constants, %d misc",
            len(self.classes),
            len(self.modules),
            len(self.functions),
            len(self.constants),
            len(self.misc),
        )

    def ingest(self, record: CommentRecord) -> Optional[Entity]:
        """Interpret and classify a single comment.

        Returns the entity built from the comment, or None when the comment is
        ignored or malformed.
        """
        try:
            comment = Comment.from_dict(record)
        except CommentError as exc:
            self.diagnostics.report(MALFORMED_COMMENT, str(exc))
            return None

        entity = interpret(comment, self, self.diagnostics)
        if entity.is_ignored:
            return None

        kind = entity.kind
        if kind is EntityKind.CLASS:
            self._store(self.classes, entity, publish=True)
        elif kind is EntityKind.MODULE:
            self._store(self.modules, entity, publish=True)
        elif kind is EntityKind.FUNCTION:
            self._store(self.functions, entity)
        elif kind in (EntityKind.CONSTANT, EntityKind.ENUM):
            self._store(self.constants, entity)
        else:
            if self.verbose:
                self.diagnostics.report(
                    UNRECOGNIZED_COMMENT,
                    f"Unrecognized comment kind: {json.dumps(_describe(entity), indent=2)}",
                )
            self.misc.append(entity)
        return entity

    def get_class(self, name: str) -> Deferred[Entity]:
        """Resolve a top-level or dotted class/module name, possibly later."""
        return self._resolver.resolve(name)

    @property
    def pending_resolutions(self) -> int:
        return self._resolver.pending

    def unresolved(self) -> List[PendingResolution]:
        return self._resolver.unresolved()

    def process_readme(self, text: str) -> str:
        self.readme = render_readme(text)
        return self.readme

    def _store(self, bucket: Dict[str, Entity], entity: Entity, *, publish: bool = False) -> None:
        if entity.name in bucket:
            self.logger.debug("Dropping duplicate %s %r", entity.kind.value, entity.name)
            return
        bucket[entity.name] = entity
        if publish:
            self.bus.publish(resolve_topic(entity.qualified_name), entity)

    def _lookup_root(self, name: str) -> Optional[Entity]:
        return self.classes.get(name) or self.modules.get(name)


def _describe(entity: Entity) -> Dict[str, object]:
    return {
        "name": entity.name,
        "parent": entity.parent_name,
        "tags": [tag.type for tag in entity.tags],
        "description": entity.description,
    }


__all__ = ["CommentRecord", "DocIndex"]
