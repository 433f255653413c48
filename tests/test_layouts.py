from pathlib import Path

import pytest

from quickstatic.errors import LayoutResolutionError
from quickstatic.layouts import LayoutResolver


def test_first_matching_glob_wins():
    resolver = LayoutResolver([("**/*.md", "a.html"), ("posts/*.md", "b.html")])
    assert resolver.resolve("posts/x.md", {}) == "a.html"


def test_table_order_is_respected():
    resolver = LayoutResolver([("posts/*.md", "post.html"), ("**/*.md", "page.html")])
    assert resolver.resolve("posts/x.md", {}) == "post.html"
    assert resolver.resolve("about.md", {}) == "page.html"


def test_frontmatter_layout_overrides_table():
    resolver = LayoutResolver([("**/*.md", "page.html")])
    assert resolver.resolve("about.md", {"layout": "special.html"}) == "special.html"


def test_non_string_frontmatter_layout_is_ignored():
    resolver = LayoutResolver([("**/*.md", "page.html")])
    assert resolver.resolve("about.md", {"layout": 5}) == "page.html"


def test_no_layout_reports_table():
    resolver = LayoutResolver([("posts/*.md", "post.html")])
    with pytest.raises(LayoutResolutionError) as excinfo:
        resolver.resolve("about.md", {}, Path("/site/about.md"))
    error = excinfo.value
    assert error.source_path == Path("/site/about.md")
    assert "'posts/*.md': 'post.html'" in error.message
    assert "**/*.md" in error.message
