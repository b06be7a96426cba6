from __future__ import annotations

import logging
from typing import Iterator

import pytest

from dotdox.diagnostics import DiagnosticSink
from dotdox.index import DocIndex


@pytest.fixture(autouse=True)
def _reset_dotdox_logger() -> Iterator[None]:
    """Drop handlers installed by CLI runs so they do not outlive capture."""
    yield
    logger = logging.getLogger("dotdox")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def sink() -> DiagnosticSink:
    return DiagnosticSink()


@pytest.fixture
def index(sink: DiagnosticSink) -> DocIndex:
    """Provide an empty index reporting into the shared sink."""
    return DocIndex(diagnostics=sink)
