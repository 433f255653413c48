"""Frontmatter extraction for quickstatic.

A Markdown content file may start with a YAML block fenced by ``---`` lines:

    ---
    title: Hello
    tags: [intro]
    ---

    # Markdown content

The block becomes the document's frontmatter and the rest of the file its body.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from .errors import FrontmatterError

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def split_frontmatter(text: str, path: Path) -> tuple[dict[str, Any], str]:
    """Separate a content file into frontmatter and body.

    Args:
        text: Raw file content.
        path: Path of the file, used in error reports.

    Returns:
        Tuple of (frontmatter mapping, remaining body). Without a leading
        metadata block the mapping is empty and the body is the whole text.

    Raises:
        FrontmatterError: If the block is not valid YAML or is not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise FrontmatterError(path, f"invalid frontmatter: {exc}", exc) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            path, f"frontmatter must be a mapping, got {type(data).__name__}"
        )
    return data, text[match.end() :]
