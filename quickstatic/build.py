"""Site building functionality for quickstatic.

This module contains the core logic for building a static site from a project
tree. It loads the configuration, mirrors static files, discovers content,
renders every document and writes the output tree.

Each document goes through three phases:
1. its body is rendered as a template;
2. Markdown sources are translated to HTML and their TOC extracted;
3. the resolved layout is rendered around the result and written out.

Every render sees the same ``file_list``: a snapshot of all documents taken
after discovery and frontmatter parsing, before any phase runs. No document
observes another document's rendered output, so render order never matters.

Key members:
- Document: One content source and its build products.
- DocumentBuilder: Runs the per-document phases.
- build_site: Builds the whole site.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import OUTPUT_DIRNAME, THEMES_DIRNAME, TOOL_DIRNAME, Config, load_config
from .errors import BuildError, WriteError
from .extractors import split_frontmatter
from .filters import create_default_registry
from .layouts import LayoutResolver
from .renderers import MarkdownProcessor, TocEntry
from .scanner import ContentCopier, FileScanner
from .search import SearchIndexer
from .templates import TemplateEngine
from .utils import (
    destination_for,
    ensure_clean_dir,
    is_markdown,
    permalink_for,
    relative_posix,
)

logger = logging.getLogger(__name__)

FileList = tuple[dict[str, Any], ...]


@dataclass
class Document:
    """A content source and everything the build derives from it.

    Attributes:
        source_path: Path to the source file.
        relative_path: Source path relative to the project root, POSIX style.
        destination_path: Output file path, unique within a build.
        permalink: Public path of the rendered page.
        raw_body: Source text after the frontmatter block.
        frontmatter: Parsed metadata, empty when the file has none.
        kind: "markdown" or "template".
        rendered_body: Body after the template pass (phase 1).
        final_content: HTML after the Markdown pass, or the rendered body for
            templates (phase 2).
        toc: Table of contents entries (phase 2).
    """

    source_path: Path
    relative_path: str
    destination_path: Path
    permalink: str
    raw_body: str
    frontmatter: dict[str, Any] = field(default_factory=dict)
    kind: str = "markdown"
    rendered_body: str = ""
    final_content: str = ""
    toc: list[TocEntry] = field(default_factory=list)

    def as_context(self, project_root: Path) -> dict[str, Any]:
        """Return the template-facing view of this document."""
        return {
            "source_path": self.relative_path,
            "destination_path": relative_posix(self.destination_path, project_root),
            "permalink": self.permalink,
            "kind": self.kind,
            "raw_body": self.raw_body,
            "frontmatter": copy.deepcopy(self.frontmatter),
            "rendered_body": self.rendered_body,
            "final_content": self.final_content,
            "toc": [entry.as_dict() for entry in self.toc],
        }


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        documents: Every rendered document, in discovery order.
        output_dir: Directory where the site was built.
        config: The configuration the site was built with.
    """

    documents: list[Document]
    output_dir: Path
    config: Config


class DocumentBuilder:
    """Discovers documents and runs their render phases.

    Attributes:
        project_root: Root directory of the project.
        output_dir: Root of the output tree.
        config: Project configuration.
        engine: Template engine holding the theme templates.
        markdown: Markdown processor.
        layouts: Layout resolver built from the config table.
    """

    def __init__(
        self,
        project_root: Path,
        output_dir: Path,
        config: Config,
        engine: TemplateEngine,
        markdown: MarkdownProcessor,
    ):
        self.project_root = project_root
        self.output_dir = output_dir
        self.config = config
        self.engine = engine
        self.markdown = markdown
        self.layouts = LayoutResolver(config.layouts)

    def discover(self, paths: list[Path]) -> list[Document]:
        """Read sources and split off their frontmatter.

        Raises:
            FrontmatterError: If any Markdown source has malformed metadata.
            WriteError: If two sources map to the same destination.
        """
        documents: list[Document] = []
        seen: dict[Path, Path] = {}
        for path in paths:
            destination = destination_for(path, self.project_root, self.output_dir)
            if destination in seen:
                raise WriteError(
                    path,
                    f"destination {destination} is also produced by {seen[destination]}",
                )
            seen[destination] = path
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise BuildError(path, f"unable to read source: {exc}", exc) from exc
            if is_markdown(path):
                frontmatter, body = split_frontmatter(text, path)
                kind = "markdown"
            else:
                frontmatter, body = {}, text
                kind = "template"
            documents.append(
                Document(
                    source_path=path,
                    relative_path=relative_posix(path, self.project_root),
                    destination_path=destination,
                    permalink=permalink_for(destination, self.output_dir),
                    raw_body=body,
                    frontmatter=frontmatter,
                    kind=kind,
                )
            )
        return documents

    def snapshot(self, documents: list[Document]) -> FileList:
        """Capture the ``file_list`` every render of this build sees."""
        return tuple(document.as_context(self.project_root) for document in documents)

    def context(self, document: Document, file_list: FileList) -> dict[str, Any]:
        return {
            "config": self.config,
            "this": document.as_context(self.project_root),
            "file_list": file_list,
        }

    def build(self, document: Document, file_list: FileList) -> None:
        """Run all three phases for one document and write its output."""
        self.render_body(document, file_list)
        self.process_content(document)
        output = self.render_layout(document, file_list)
        self.write(document, output)

    def render_body(self, document: Document, file_list: FileList) -> None:
        """Phase 1: render the raw body as a template."""
        template = self.engine.compile(document.raw_body, document.source_path)
        document.rendered_body = self.engine.render(
            template,
            self.context(document, file_list),
            document.source_path,
            document.raw_body,
        )

    def process_content(self, document: Document) -> None:
        """Phase 2: translate Markdown, or pass template output through."""
        if document.kind == "markdown":
            result = self.markdown.process(document.rendered_body, document.source_path)
            document.final_content = result.html
            document.toc = result.toc
        else:
            document.final_content = document.rendered_body
            document.toc = []

    def render_layout(self, document: Document, file_list: FileList) -> str:
        """Phase 3: render the document's layout around its content."""
        name = self.layouts.resolve(
            document.relative_path, document.frontmatter, document.source_path
        )
        template, found = self.engine.layout(name, document.source_path)
        return self.engine.render(
            template,
            self.context(document, file_list),
            self.engine.themes_dir / found,
            self.engine.sources[found],
        )

    def write(self, document: Document, output: str) -> None:
        destination = document.destination_path
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(output.encode("utf-8"))
        except OSError as exc:
            raise WriteError(
                document.source_path, f"unable to write {destination}: {exc}", exc
            ) from exc


def build_site(project_root: Path, search: bool = True) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        search: Whether to run the search indexer after rendering.

    Returns:
        BuildResult containing all documents, the output directory and config.

    Raises:
        BuildError: On any failure; no build ever partially succeeds.
    """
    project_root = Path(project_root)
    config = load_config(project_root)
    output_dir = project_root / OUTPUT_DIRNAME
    try:
        ensure_clean_dir(output_dir)
    except OSError as exc:
        raise WriteError(
            output_dir, f"unable to prepare output directory: {exc}", exc
        ) from exc

    copier_scanner = FileScanner.from_config(project_root, config, skip_hidden_dirs=True)
    ContentCopier(copier_scanner, output_dir).run()

    markdown = MarkdownProcessor()
    engine = TemplateEngine(
        project_root / TOOL_DIRNAME / THEMES_DIRNAME, create_default_registry(markdown)
    )
    builder = DocumentBuilder(project_root, output_dir, config, engine, markdown)
    sources = FileScanner.from_config(project_root, config).content_files()
    documents = builder.discover(sources)
    file_list = builder.snapshot(documents)
    for document in documents:
        logger.debug("Rendering %s", document.relative_path)
        builder.build(document, file_list)

    if search:
        SearchIndexer(project_root).run(output_dir)
    logger.info("Built %d documents into %s", len(documents), output_dir)
    return BuildResult(documents=documents, output_dir=output_dir, config=config)
