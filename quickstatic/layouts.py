"""Layout resolution for quickstatic.

A document's layout is chosen by, in order:
1. a string ``layout`` key in its frontmatter, used verbatim;
2. the first glob in the config's ``layouts`` table matching its source path.

The table is scanned in the order it was written: the first match wins, not
the most specific pattern.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from .errors import LayoutResolutionError
from .utils import glob_match


class LayoutResolver:
    """Resolves the layout template name for a document.

    Attributes:
        layouts: Ordered (glob, layout) pairs from the config.
    """

    def __init__(self, layouts: Sequence[tuple[str, str]]):
        self.layouts = tuple(layouts)

    def resolve(
        self,
        source: Path | str,
        frontmatter: Mapping[str, Any],
        path: Path | None = None,
    ) -> str:
        """Resolve the layout for a document.

        Args:
            source: Project-relative source path matched against the table.
            frontmatter: The document's frontmatter.
            path: Path reported in errors, defaults to ``source``.

        Returns:
            Theme-relative layout name.

        Raises:
            LayoutResolutionError: If neither frontmatter nor table applies.
        """
        layout = frontmatter.get("layout") if isinstance(frontmatter, Mapping) else None
        if isinstance(layout, str):
            return layout
        for pattern, name in self.layouts:
            if glob_match(pattern, source):
                return name
        table = ", ".join(f"{pattern!r}: {name!r}" for pattern, name in self.layouts)
        raise LayoutResolutionError(
            Path(path or source),
            "no layout matches; set a 'layout' in the frontmatter or add a general "
            f"glob such as '**/*.md' to the config layouts (layouts: {{{table}}})",
        )
