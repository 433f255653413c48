"""Template rendering engine for quickstatic.

This module uses Jinja2 to compile and render document bodies and layouts.
Every template file (``.html``, ``.jinja``, ``.liquid``) below the themes
directory is loaded into memory under its slash-joined relative path
(``partials/nav.html``) and compiled up front, so a template can include
another by that logical name and a broken theme fails before any document
renders. Other files there, such as images or stylesheets, are ignored.

Key class:
- TemplateEngine: Compiles templates, checks includes, renders with context.
"""

from __future__ import annotations

import logging
import traceback
from pathlib import Path
from typing import Any

from jinja2 import DictLoader, Environment, Template, TemplateSyntaxError, nodes

from .errors import FilterError, TemplateError
from .filters import FilterRegistry

logger = logging.getLogger(__name__)

# Tried, in order, after the bare name when a layout is named without extension.
LAYOUT_SUFFIXES = (".html", ".jinja", ".html.jinja", ".liquid")

# Only these files are loaded from the themes directory; assets beside them are left alone.
THEME_SUFFIXES = (".html", ".jinja", ".liquid")


def read_theme_sources(themes_dir: Path) -> dict[str, str]:
    """Read every template file below ``themes_dir`` keyed by relative POSIX path.

    Raises:
        TemplateError: If a template file cannot be read as UTF-8 text.
    """
    sources: dict[str, str] = {}
    if not themes_dir.is_dir():
        return sources
    for path in sorted(themes_dir.rglob("*")):
        if not path.is_file():
            continue
        if path.suffix not in THEME_SUFFIXES:
            logger.debug("Skipping non-template theme file %s", path)
            continue
        name = path.relative_to(themes_dir).as_posix()
        try:
            sources[name] = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateError(path, f"unable to read template: {exc}", exc) from exc
    return sources


def _snippet(source: str, lineno: int | None, radius: int = 2) -> str:
    """Return numbered source lines around ``lineno``."""
    if not lineno:
        return ""
    lines = source.splitlines()
    start = max(lineno - 1 - radius, 0)
    end = min(lineno + radius, len(lines))
    width = len(str(end))
    return "\n".join(
        f"{'>' if n == lineno else ' '} {n:>{width}} | {lines[n - 1]}"
        for n in range(start + 1, end + 1)
    )


def _format_error_message(exc: Exception) -> str:
    """Format a render-time exception into a user-friendly error message."""
    error_type = type(exc).__name__
    if isinstance(exc, FilterError):
        return f"Filter error: {exc}"
    if error_type == "UndefinedError":
        return f"Undefined variable: {exc}"
    if error_type == "TypeError":
        return f"Type error: {exc}"
    return f"{error_type}: {exc}"


class TemplateEngine:
    """Compiles and renders templates with the quickstatic filters installed.

    Attributes:
        themes_dir: Directory holding layouts and partials.
        sources: Theme template sources keyed by logical name.
        env: Jinja2 environment serving the theme templates.
    """

    def __init__(self, themes_dir: Path, filters: FilterRegistry):
        """Load and eagerly compile every theme template.

        Args:
            themes_dir: Directory holding layouts and partials.
            filters: Registry whose filters templates may call.

        Raises:
            TemplateError: If a theme template does not compile or includes a
                template that does not exist.
        """
        self.themes_dir = themes_dir
        self.sources = read_theme_sources(themes_dir)
        self.env = Environment(
            loader=DictLoader(self.sources),
            autoescape=False,
            keep_trailing_newline=True,
        )
        filters.install(self.env)
        for name, source in self.sources.items():
            self._check(source, themes_dir / name, name)
            self.env.get_template(name)
        logger.debug("Compiled %d theme templates", len(self.sources))

    def compile(self, source: str, path: Path) -> Template:
        """Compile a document body.

        Raises:
            TemplateError: On a syntax error or a missing include.
        """
        self._check(source, path, None)
        return self.env.from_string(source)

    def layout(self, name: str, document_path: Path) -> tuple[Template, str]:
        """Look up a compiled layout by theme-relative name.

        Returns:
            The template and the logical name it was found under.

        Raises:
            TemplateError: If no theme file matches ``name``.
        """
        candidates = [name]
        if not Path(name).suffix:
            candidates.extend(f"{name}{suffix}" for suffix in LAYOUT_SUFFIXES)
        for candidate in candidates:
            if candidate in self.sources:
                return self.env.get_template(candidate), candidate
        raise TemplateError(
            document_path,
            f"layout '{name}' not found in {self.themes_dir}",
        )

    def render(
        self,
        template: Template,
        context: dict[str, Any],
        path: Path,
        source: str,
    ) -> str:
        """Render a compiled template, reporting failures against ``path``.

        Args:
            template: Compiled template.
            context: Variables available to the template.
            path: File the template came from, for error reports.
            source: Template source, for error snippets.

        Raises:
            TemplateError: If rendering fails for any reason.
        """
        try:
            return template.render(**context)
        except Exception as exc:
            lineno = self._failing_line(exc, template)
            raise TemplateError(
                path,
                _format_error_message(exc) + (f" (line {lineno})" if lineno else ""),
                exc,
                snippet=_snippet(source, lineno),
            ) from exc

    def _check(self, source: str, path: Path, name: str | None) -> None:
        try:
            ast = self.env.parse(source, name=name)
        except TemplateSyntaxError as exc:
            raise TemplateError(
                path,
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
                snippet=_snippet(source, exc.lineno),
            ) from exc
        references = (nodes.Extends, nodes.Include, nodes.Import, nodes.FromImport)
        for node in ast.find_all(references):
            if isinstance(node, nodes.Include) and node.ignore_missing:
                continue
            names = _literal_names(node.template)
            if names and not any(n in self.sources for n in names):
                raise TemplateError(
                    path,
                    f"includes missing template '{names[0]}'",
                )

    @staticmethod
    def _failing_line(exc: Exception, template: Template) -> int | None:
        filename = template.filename or "<template>"
        lineno = None
        for frame in traceback.extract_tb(exc.__traceback__):
            if frame.filename == filename:
                lineno = frame.lineno
        return lineno


def _literal_names(node: nodes.Node) -> list[str]:
    """Template names written literally in a reference, [] when computed.

    A list of names (``{% include ['a.html', 'b.html'] %}``) is satisfied by
    any one of them.
    """
    if isinstance(node, nodes.Const):
        value = node.value
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
            return list(value)
        return []
    if isinstance(node, (nodes.Tuple, nodes.List)):
        values = [getattr(item, "value", None) for item in node.items]
        if all(isinstance(item, nodes.Const) for item in node.items) and all(
            isinstance(v, str) for v in values
        ):
            return values
    return []
