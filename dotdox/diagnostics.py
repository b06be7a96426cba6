"""Collects non-fatal anomalies found while building the index."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List

from .logging import get_logger

UNKNOWN_TAG = "unknown-tag"
UNKNOWN_KIND = "unknown-kind"
UNRECOGNIZED_COMMENT = "unrecognized-comment"
MALFORMED_COMMENT = "malformed-comment"
STALLED_REFERENCE = "stalled-reference"
ATTACH_FAILED = "attach-failed"


@dataclass(frozen=True)
class Diagnostic:
    """Single recoverable problem reported during ingestion."""

    code: str
    message: str
    detail: Dict[str, object] = field(default_factory=dict, compare=False)


class DiagnosticSink:
    """Ordered store of diagnostics that mirrors each entry to the log."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_logger("diagnostics")
        self._items: List[Diagnostic] = []

    def report(
        self,
        code: str,
        message: str,
        *,
        level: int = logging.WARNING,
        **detail: object,
    ) -> Diagnostic:
        diagnostic = Diagnostic(code=code, message=message, detail=dict(detail))
        self._items.append(diagnostic)
        self._logger.log(level, "%s: %s", code, message)
        return diagnostic

    def by_code(self, code: str) -> List[Diagnostic]:
        return [item for item in self._items if item.code == code]

    def clear(self) -> None:
        self._items.clear()

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


__all__ = [
    "ATTACH_FAILED",
    "Diagnostic",
    "DiagnosticSink",
    "MALFORMED_COMMENT",
    "STALLED_REFERENCE",
    "UNKNOWN_KIND",
    "UNKNOWN_TAG",
    "UNRECOGNIZED_COMMENT",
]
