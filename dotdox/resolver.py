"""Dotted-path resolution of entity references."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .diagnostics import STALLED_REFERENCE, DiagnosticSink
from .events import Deferred, EventBus, resolve_topic
from .logging import get_logger
from .models import Entity

WAITING = "waiting"
STALLED = "stalled"


@dataclass
class PendingResolution:
    """Resolution that has not completed yet.

    ``waiting`` means the head of the path is not known and a publication of
    ``resolve:<waiting_for>`` is awaited. ``stalled`` means the walk reached a
    segment missing from its parent's children; such resolutions never
    complete.
    """

    reference: str
    waiting_for: str
    state: str = WAITING


class ReferenceResolver:
    """Resolves ``A`` or ``A.B.C`` references against known entities.

    The head segment must be a top-level class or module, looked up through
    ``lookup``. When it is not known yet the resolver subscribes once to its
    resolution topic. The remaining segments are walked left to right, each
    one taking the earliest-discovered child with that name.
    """

    def __init__(
        self,
        lookup: Callable[[str], Optional[Entity]],
        bus: EventBus,
        diagnostics: DiagnosticSink | None = None,
    ) -> None:
        self._lookup = lookup
        self._bus = bus
        self._diagnostics = diagnostics if diagnostics is not None else DiagnosticSink()
        self._pending: List[PendingResolution] = []
        self.logger = get_logger("resolver")

    def resolve(self, reference: str) -> Deferred[Entity]:
        deferred: Deferred[Entity] = Deferred(label=reference)
        head, *rest = reference.split(".")
        record = PendingResolution(reference=reference, waiting_for=head)
        self._pending.append(record)

        def _walk(root: Entity) -> None:
            self._walk(root, head, rest, deferred, record)

        root = self._lookup(head)
        if root is not None:
            _walk(root)
        else:
            self.logger.debug("Deferring %s until %s is declared", reference, head)
            self._bus.subscribe_once(resolve_topic(head), _walk)
        return deferred

    @property
    def pending(self) -> int:
        return len(self._pending)

    def unresolved(self) -> List[PendingResolution]:
        return list(self._pending)

    def _walk(
        self,
        root: Entity,
        head: str,
        segments: Sequence[str],
        deferred: Deferred[Entity],
        record: PendingResolution,
    ) -> None:
        current = root
        path = [head]
        for segment in segments:
            path.append(segment)
            child = current.get_first_child(segment)
            if child is None:
                # No retry: the resolution stays pending for diagnostics.
                record.state = STALLED
                record.waiting_for = ".".join(path)
                self._diagnostics.report(
                    STALLED_REFERENCE,
                    f"{record.reference} is waiting for {record.waiting_for}",
                    level=logging.DEBUG,
                    reference=record.reference,
                    missing=record.waiting_for,
                )
                return
            current = child

        self._pending.remove(record)
        deferred.resolve(current)


__all__ = ["PendingResolution", "ReferenceResolver", "STALLED", "WAITING"]
