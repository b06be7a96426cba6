"""Pipeline orchestration for the build and check commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .config import DotdoxConfig, load_config
from .diagnostics import DiagnosticSink
from .errors import DotdoxError
from .index import DocIndex
from .logging import get_logger
from .render import ReferenceRenderer
from .resolver import PendingResolution


@dataclass
class BuildOutcome:
    """Result of a documentation build."""

    index: DocIndex
    markdown: str
    path: Optional[Path]
    unresolved: List[PendingResolution]


class Builder:
    """Coordinates comment loading, indexing and rendering."""

    def __init__(
        self,
        renderer: ReferenceRenderer | None = None,
        diagnostics: DiagnosticSink | None = None,
    ) -> None:
        self._renderer = renderer
        self.diagnostics = diagnostics
        self.logger = get_logger("builder")

    def load_config(self, path: str, *, verbose: bool = False) -> DotdoxConfig:
        config = load_config(Path(path))
        config.verbose = config.verbose or verbose
        return config

    def index(self, config: DotdoxConfig, sources: Sequence[Path] = ()) -> DocIndex:
        """Load and process every comment source into a fresh index."""
        selected = list(sources) or list(config.sources)
        if not selected:
            raise FileNotFoundError(
                "No comment sources given. Pass --comments or list them under 'sources' in .dotdox.yml."
            )
        index = DocIndex(config, diagnostics=self.diagnostics)
        for source in selected:
            if not source.exists():
                raise FileNotFoundError(f"Comment source not found: {source}")
            index.load_comments(source)
        index.process()
        if index.pending_resolutions:
            self.logger.info("%d references are still unresolved", index.pending_resolutions)
        return index

    def run_build(
        self,
        config: DotdoxConfig,
        sources: Sequence[Path] = (),
        *,
        readme: Path | None = None,
        output: Path | None = None,
    ) -> BuildOutcome:
        self.logger.info("Starting build for %s", config.root)
        index = self.index(config, sources)

        readme_path = readme or config.readme
        if readme_path is not None:
            if not readme_path.exists():
                raise FileNotFoundError(f"README not found: {readme_path}")
            try:
                text = readme_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise DotdoxError(f"Cannot read README {readme_path}: {exc}") from exc
            index.process_readme(text)

        renderer = self._renderer or ReferenceRenderer(
            config.templates_dir, include_private=config.include_private
        )
        markdown = renderer.render(index, title=config.root.name or "API Reference")

        output_path = output or config.output
        if output_path is not None:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(markdown, encoding="utf-8")
            self.logger.info("Wrote reference to %s", output_path)

        return BuildOutcome(
            index=index,
            markdown=markdown,
            path=output_path,
            unresolved=index.unresolved(),
        )


__all__ = ["BuildOutcome", "Builder"]
