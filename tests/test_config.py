import pytest

from quickstatic.config import Config, load_config
from quickstatic.errors import ConfigError


def write_config(root, text):
    (root / "quickstatic.yaml").write_text(text, encoding="utf-8")


def test_load_config_keeps_layout_order_and_raw_keys(tmp_path):
    write_config(
        tmp_path,
        "base_url: https://example.com\n"
        "title: Example\n"
        "theme: legacy\n"
        "layouts:\n"
        "  '**/*.md': a.html\n"
        "  'posts/*.md': b.html\n"
        "ignore:\n"
        "  - drafts/**\n"
        "author:\n"
        "  name: Ada\n",
    )
    config = load_config(tmp_path)
    assert config.base_url == "https://example.com"
    assert config.title == "Example"
    assert config.theme == "legacy"
    assert config.layouts == (("**/*.md", "a.html"), ("posts/*.md", "b.html"))
    assert config.ignore == ("drafts/**",)
    assert config.raw["author"] == {"name": "Ada"}
    assert config["title"] == "Example"
    assert config["author"]["name"] == "Ada"
    assert config.get("missing", "fallback") == "fallback"


def test_load_config_defaults(tmp_path):
    write_config(tmp_path, "")
    config = load_config(tmp_path)
    assert config == Config()
    assert config.layouts == ()


def test_config_is_immutable(tmp_path):
    write_config(tmp_path, "title: T\n")
    config = load_config(tmp_path)
    with pytest.raises(AttributeError):
        config.title = "changed"


def test_missing_config_is_fatal(tmp_path):
    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)
    assert excinfo.value.source_path == tmp_path / "quickstatic.yaml"
    assert "not found" in excinfo.value.message


@pytest.mark.parametrize(
    "text,fragment",
    [
        ("title: [unclosed\n", "invalid YAML"),
        ("- just\n- a list\n", "mapping"),
        ("title: 5\n", "'title'"),
        ("layouts:\n  - a.html\n", "'layouts'"),
        ("layouts:\n  '**/*.md': 3\n", "'layouts'"),
        ("ignore: drafts/**\n", "'ignore'"),
    ],
)
def test_malformed_config_is_fatal(tmp_path, text, fragment):
    write_config(tmp_path, text)
    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)
    assert fragment in excinfo.value.message
