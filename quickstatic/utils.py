"""Utility functions for quickstatic.

This module contains small helpers shared by the scanner, the builder and the
layout resolver: shell-style glob matching, content type checks and the
mapping from source paths to output paths.

Key functions:
    glob_match: Match a project-relative path against a shell-style glob.
    is_markdown: Check if a path is a Markdown content file.
    is_template: Check if a path is a Jinja template content file.
    destination_for: Output path for a content source.
    permalink_for: Public path of a rendered document.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import functools
import re
import shutil
from pathlib import Path, PurePath

MARKDOWN_SUFFIX = ".md"
TEMPLATE_SUFFIX = ".jinja"


@functools.lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a glob into a regular expression.

    ``*`` and ``?`` never cross a ``/``; ``**`` spans any number of path
    segments, including none when written as ``**/`` or a trailing ``/**``.
    ``[...]`` classes (``!`` or ``^`` negates) and ``{a,b}`` alternations are
    supported, and a backslash escapes the next character.
    """
    out: list[str] = []
    braces = 0
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == "\\" and i + 1 < n:
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if char == "*":
            if pattern.startswith("**", i):
                at_segment_start = i == 0 or pattern[i - 1] == "/"
                if at_segment_start and pattern.startswith("**/", i):
                    out.append("(?:.*/)?")
                    i += 3
                    continue
                if at_segment_start and i + 2 == n and i > 0:
                    # "dir/**": drop the slash already emitted so "dir" itself matches.
                    out.pop()
                    out.append("(?:/.*)?")
                    i += 2
                    continue
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            end = pattern.find("]", i + 2)
            if end == -1:
                out.append(re.escape(char))
            else:
                body = pattern[i + 1 : end]
                if body[0] in "!^":
                    body = "^" + body[1:]
                out.append("[" + body.replace("\\", "\\\\") + "]")
                i = end + 1
                continue
        elif char == "{":
            braces += 1
            out.append("(?:")
        elif char == "," and braces:
            out.append("|")
        elif char == "}" and braces:
            braces -= 1
            out.append(")")
        else:
            out.append(re.escape(char))
        i += 1
    return re.compile("".join(out) + r"\Z", re.DOTALL)


def glob_match(pattern: str, path: str | PurePath) -> bool:
    """Match a path against a shell-style glob pattern.

    Args:
        pattern: Glob such as ``**/*.md`` or ``posts/*.{md,jinja}``.
        path: Path to test. PurePath values are compared in POSIX form.

    Returns:
        True if the whole path matches the pattern.

    Examples:
        >>> glob_match("**/*.md", "posts/a.md")
        True

        >>> glob_match("*.md", "posts/a.md")
        False
    """
    if isinstance(path, PurePath):
        path = path.as_posix()
    return _compile_glob(pattern).match(path) is not None


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown content file."""
    return path.suffix == MARKDOWN_SUFFIX


def is_template(path: Path) -> bool:
    """Check if a path is a Jinja template content file.

    Matches both ``page.jinja`` and double extensions such as
    ``feed.xml.jinja``.
    """
    return path.suffix == TEMPLATE_SUFFIX


def is_content(path: Path) -> bool:
    """Check if a path is rendered rather than copied."""
    return is_markdown(path) or is_template(path)


def relative_posix(path: Path, root: Path) -> str:
    """Return ``path`` relative to ``root`` as a POSIX string."""
    return path.relative_to(root).as_posix()


def destination_for(source: Path, project_root: Path, output_root: Path) -> Path:
    """Map a content source to its output path.

    Markdown sources swap ``.md`` for ``.html``; templates drop ``.jinja``.

    Examples:
        >>> destination_for(Path("site/posts/a.md"), Path("site"), Path("site/public"))
        PosixPath('site/public/posts/a.html')

        >>> destination_for(Path("site/feed.xml.jinja"), Path("site"), Path("site/public"))
        PosixPath('site/public/feed.xml')
    """
    rel = source.relative_to(project_root)
    if is_markdown(rel):
        rel = rel.with_suffix(".html")
    elif is_template(rel):
        rel = rel.with_suffix("")
    return output_root / rel


def permalink_for(destination: Path, output_root: Path) -> str:
    """Derive the public path of a document from its destination.

    The output root prefix is stripped and a trailing ``index.html`` removed.

    Examples:
        >>> permalink_for(Path("public/posts/index.html"), Path("public"))
        '/posts/'

        >>> permalink_for(Path("public/about.html"), Path("public"))
        '/about.html'
    """
    url = "/" + destination.relative_to(output_root).as_posix()
    if url.endswith("/index.html"):
        url = url[: -len("index.html")]
    return url


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
