"""Markdown processing for quickstatic.

Markdown is parsed once into mistune's AST. The same node sequence is then
used twice: translated to HTML, and walked for headings to build the table of
contents.

Key classes:
- TocEntry: One table-of-contents entry.
- MarkdownResult: HTML plus TOC for one document.
- MarkdownProcessor: Parses, translates and extracts the TOC.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .errors import MarkdownError

PLUGINS = ["strikethrough", "footnotes", "table", "url"]


@dataclass
class TocEntry:
    """A heading listed in a document's table of contents.

    Attributes:
        level: Heading level, always greater than 1.
        title: Heading text with inline markup stripped.
        anchor_id: Id assigned to the heading, or "" if none.
    """

    level: int
    title: str
    anchor_id: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {"level": self.level, "title": self.title, "anchor_id": self.anchor_id}


@dataclass
class MarkdownResult:
    html: str
    toc: list[TocEntry] = field(default_factory=list)


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


def plain_text(nodes: list[dict[str, Any]]) -> str:
    """Flatten inline nodes into text, dropping markup and raw HTML."""
    parts: list[str] = []
    for node in nodes:
        kind = node.get("type")
        if kind in ("softbreak", "linebreak"):
            parts.append(" ")
        elif kind == "inline_html":
            continue
        elif "children" in node:
            parts.append(plain_text(node["children"]))
        elif "raw" in node:
            parts.append(node["raw"])
    return "".join(parts)


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer with Pygments syntax highlighting for fenced code."""

    def __init__(self):
        super().__init__(escape=False)

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'javascript').

        Returns:
            HTML string with highlighted code.
        """
        lang = info.split()[0] if info and info.strip() else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                return highlight(code, lexer, HtmlFormatter(cssclass="highlight"))
        lang_class = f' class="language-{html.escape(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{html.escape(code, quote=False)}</code></pre>\n"


class MarkdownProcessor:
    """Turns Markdown into HTML and a table of contents.

    A single parse feeds both outputs. The parser must consume the whole
    input; otherwise a MarkdownError is raised and nothing is produced.
    """

    def __init__(self):
        self._parser = mistune.create_markdown(renderer=None, plugins=PLUGINS)
        # Creating the HTML instance registers the plugins' node renderers.
        self._html = mistune.create_markdown(
            renderer=_HighlightRenderer(), plugins=PLUGINS
        )

    def parse(
        self, text: str, path: Path | None = None
    ) -> tuple[list[dict[str, Any]], Any]:
        """Parse Markdown into an AST node sequence.

        Heading nodes get an ``id`` attribute derived from their text, made
        unique within the document.

        Raises:
            MarkdownError: If parsing fails or leaves input unconsumed.
        """
        source = path or Path("<markdown>")
        try:
            nodes, state = self._parser.parse(text)
        except Exception as exc:
            raise MarkdownError(source, f"unable to parse markdown: {exc}", exc) from exc
        if state.cursor < state.cursor_max:
            remainder = state.src[state.cursor : state.cursor + 60]
            raise MarkdownError(
                source, f"parser stopped at offset {state.cursor}: {remainder!r}"
            )
        self._assign_heading_ids(nodes)
        return nodes, state

    def process(self, text: str, path: Path | None = None) -> MarkdownResult:
        """Translate Markdown to HTML and extract its table of contents.

        Only headings deeper than level 1 are listed; the page title heading
        is left out.
        """
        nodes, state = self.parse(text, path)
        toc = [
            TocEntry(
                level=node["attrs"]["level"],
                title=plain_text(node.get("children", [])).strip(),
                anchor_id=node["attrs"].get("id") or "",
            )
            for node in nodes
            if node.get("type") == "heading" and node["attrs"]["level"] > 1
        ]
        return MarkdownResult(html=self._render(nodes, state), toc=toc)

    def translate(self, text: str, path: Path | None = None) -> str:
        """Translate Markdown to an HTML fragment, without a TOC."""
        nodes, state = self.parse(text, path)
        return self._render(nodes, state)

    def _render(self, nodes: list[dict[str, Any]], state: Any) -> str:
        return self._html.renderer(nodes, state)

    @staticmethod
    def _assign_heading_ids(nodes: list[dict[str, Any]]) -> None:
        counts: dict[str, int] = {}
        for node in nodes:
            if node.get("type") != "heading":
                continue
            base_id = _generate_heading_id(plain_text(node.get("children", [])))
            if not base_id:
                continue
            if base_id in counts:
                counts[base_id] += 1
                heading_id = f"{base_id}-{counts[base_id]}"
            else:
                counts[base_id] = 0
                heading_id = base_id
            node["attrs"]["id"] = heading_id
