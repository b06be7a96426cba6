"""Markdown and template rendering for README and reference pages."""

from __future__ import annotations

import xml.etree.ElementTree as etree
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List

from jinja2 import Environment, FileSystemLoader
from markdown import Markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from .logging import get_logger
from .models import Entity

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .index import DocIndex

REFERENCE_TEMPLATE = "reference.md.j2"

_RULED_HEADINGS = {"h1", "h2"}


class _ReadmeTreeprocessor(Treeprocessor):
    """Turns inline code into ``<kbd>`` and rules off top-level headings."""

    def run(self, root: etree.Element) -> None:
        self._rewrite(root)

    def _rewrite(self, element: etree.Element) -> None:
        position = 0
        while position < len(element):
            child = element[position]
            if child.tag == "pre":
                position += 1
                continue
            if child.tag == "code":
                child.tag = "kbd"
            else:
                self._rewrite(child)
            if child.tag in _RULED_HEADINGS:
                rule = etree.Element("hr")
                rule.tail = child.tail
                child.tail = "\n"
                element.insert(position + 1, rule)
                position += 1
            position += 1


class ReadmeExtension(Extension):
    def extendMarkdown(self, md: Markdown) -> None:  # noqa: N802 - Markdown API
        # Below the inline processor (20) so code spans already exist.
        md.treeprocessors.register(_ReadmeTreeprocessor(md), "dotdox_readme", 5)


def render_readme(text: str) -> str:
    """Render README markdown to HTML."""
    md = Markdown(extensions=["fenced_code", "tables", ReadmeExtension()])
    return md.convert(text)


class ReferenceRenderer:
    """Renders a populated index into a Markdown API reference."""

    def __init__(
        self,
        templates_dir: Path | None = None,
        *,
        include_private: bool = False,
    ) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self.include_private = include_private
        self.logger = get_logger("render")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["visible"] = self._visible
        self._env.filters["param_list"] = _param_list

    def render(self, index: "DocIndex", *, title: str = "API Reference") -> str:
        template = self._env.get_template(REFERENCE_TEMPLATE)
        context = {
            "title": title,
            "readme": index.readme,
            "modules": self._top_level(index.modules.values()),
            "classes": self._top_level(index.classes.values()),
            "functions": self._top_level(index.functions.values()),
            "constants": self._top_level(index.constants.values()),
            "unresolved": index.unresolved(),
        }
        self.logger.debug(
            "Rendering reference with %d modules and %d classes",
            len(context["modules"]),
            len(context["classes"]),
        )
        return template.render(**context)

    def _visible(self, entities: Iterable[Entity]) -> List[Entity]:
        return [entity for entity in entities if self.include_private or not entity.is_private]

    def _top_level(self, entities: Iterable[Entity]) -> List[Entity]:
        # Members are rendered under their parent instead.
        return [entity for entity in self._visible(entities) if entity.parent is None]


def _param_list(entity: Entity) -> str:
    return ", ".join(param.name for param in entity.params if param.name)


__all__ = ["REFERENCE_TEMPLATE", "ReadmeExtension", "ReferenceRenderer", "render_readme"]
