from pathlib import Path
from types import SimpleNamespace

import pytest

from quickstatic.errors import MarkdownError
from quickstatic.renderers import MarkdownProcessor, TocEntry, plain_text


@pytest.fixture
def markdown():
    return MarkdownProcessor()


def test_process_renders_html_and_toc(markdown):
    text = "# Title\n\n## Intro\n\nText\n\n### Deep *dive*\n\n## Intro\n"
    result = markdown.process(text, Path("a.md"))
    assert '<h1 id="title">Title</h1>' in result.html
    assert '<h2 id="intro">Intro</h2>' in result.html
    assert '<h2 id="intro-1">Intro</h2>' in result.html
    assert "<p>Text</p>" in result.html
    assert result.toc == [
        TocEntry(2, "Intro", "intro"),
        TocEntry(3, "Deep dive", "deep-dive"),
        TocEntry(2, "Intro", "intro-1"),
    ]


def test_toc_excludes_level_one(markdown):
    result = markdown.process("# Only a title\n\nBody\n")
    assert result.toc == []


def test_heading_without_slug_gets_no_id(markdown):
    result = markdown.process("## !!!\n")
    assert "<h2>!!!</h2>" in result.html
    assert result.toc == [TocEntry(2, "!!!", "")]


def test_fenced_code_is_highlighted(markdown):
    html = markdown.translate("```python\nprint('hi')\n```\n")
    assert 'class="highlight"' in html


def test_unknown_language_falls_back_to_plain_code(markdown):
    html = markdown.translate("```nosuchlang\na < b\n```\n")
    assert '<pre><code class="language-nosuchlang">a &lt; b' in html


def test_tables_are_rendered(markdown):
    html = markdown.translate("| a | b |\n|---|---|\n| 1 | 2 |\n")
    assert "<table>" in html


def test_raw_html_passes_through(markdown):
    html = markdown.translate('<div class="note">kept</div>\n')
    assert '<div class="note">kept</div>' in html


def test_unconsumed_input_is_an_error(markdown):
    state = SimpleNamespace(cursor=3, cursor_max=10, src="abcdefghij")
    markdown._parser = SimpleNamespace(parse=lambda text: ([], state))
    with pytest.raises(MarkdownError) as excinfo:
        markdown.process("abcdefghij", Path("a.md"))
    assert "offset 3" in excinfo.value.message
    assert excinfo.value.source_path == Path("a.md")


def test_parser_exceptions_become_markdown_errors(markdown):
    def explode(text):
        raise RuntimeError("boom")

    markdown._parser = SimpleNamespace(parse=explode)
    with pytest.raises(MarkdownError) as excinfo:
        markdown.translate("x", Path("b.md"))
    assert isinstance(excinfo.value.original_error, RuntimeError)


def test_plain_text_strips_markup():
    nodes = [
        {"type": "text", "raw": "A "},
        {"type": "strong", "children": [{"type": "text", "raw": "bold"}]},
        {"type": "softbreak"},
        {"type": "inline_html", "raw": "<br>"},
        {"type": "codespan", "raw": "move"},
    ]
    assert plain_text(nodes) == "A bold move"
