"""Project configuration for quickstatic.

The configuration lives in ``quickstatic.yaml`` at the project root. Only a
handful of keys are understood; everything else is kept in ``Config.raw`` so
templates can still read it.

Key members:
- Config: Immutable, typed view over the parsed configuration.
- load_config: Reads and validates the configuration file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_FILENAME = "quickstatic.yaml"
OUTPUT_DIRNAME = "public"
TOOL_DIRNAME = "_quickstatic"
THEMES_DIRNAME = "themes"

# Directory names never scanned for content nor copied to the output.
EXCLUDED_DIR_NAMES = (TOOL_DIRNAME, OUTPUT_DIRNAME, ".git", "node_modules")


@dataclass(frozen=True)
class Config:
    """Typed view over ``quickstatic.yaml``.

    Attributes:
        base_url: Public base URL of the site.
        title: Site title.
        theme: Legacy theme name, unused by the build.
        layouts: Ordered (glob, layout) pairs. The first matching glob wins.
        ignore: Glob patterns for paths skipped during scanning and copying.
        raw: The whole parsed document, including unrecognized keys.
    """

    base_url: str = ""
    title: str = ""
    theme: str | None = None
    layouts: tuple[tuple[str, str], ...] = ()
    ignore: tuple[str, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    # Jinja resolves ``config.raw.foo`` and ``config.title`` through attributes;
    # mapping access keeps ``config['title']`` working as well.
    def __getitem__(self, key: str) -> Any:
        if key in ("base_url", "title", "theme", "layouts", "ignore", "raw"):
            return getattr(self, key)
        return self.raw[key]

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default


def load_config(project_root: Path) -> Config:
    """Load the project configuration from quickstatic.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        The parsed Config.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or a known key
            has the wrong type.
    """
    config_path = project_root / CONFIG_FILENAME
    try:
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigError(config_path, "config file not found", exc) from exc
    except OSError as exc:
        raise ConfigError(config_path, f"unable to read config: {exc}", exc) from exc
    except yaml.YAMLError as exc:
        raise ConfigError(config_path, f"invalid YAML: {exc}", exc) from exc

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigError(config_path, "top level must be a mapping")

    return Config(
        base_url=_string(config_path, loaded, "base_url"),
        title=_string(config_path, loaded, "title"),
        theme=_optional_string(config_path, loaded, "theme"),
        layouts=_layouts(config_path, loaded.get("layouts")),
        ignore=_ignore(config_path, loaded.get("ignore")),
        raw=loaded,
    )


def _string(config_path: Path, data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(config_path, f"'{key}' must be a string")
    return value


def _optional_string(config_path: Path, data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigError(config_path, f"'{key}' must be a string")
    return value


def _layouts(config_path: Path, value: Any) -> tuple[tuple[str, str], ...]:
    """Convert the layouts mapping into ordered pairs.

    YAML mappings load into dicts, which keep file order, so the table keeps
    the order the author wrote it in.
    """
    if value is None:
        return ()
    if not isinstance(value, dict):
        raise ConfigError(config_path, "'layouts' must be a mapping of glob to layout")
    pairs = []
    for pattern, layout in value.items():
        if not isinstance(pattern, str) or not isinstance(layout, str):
            raise ConfigError(
                config_path,
                "'layouts' entries must map strings to strings "
                f"(got {pattern!r}: {layout!r})",
            )
        pairs.append((pattern, layout))
    return tuple(pairs)


def _ignore(config_path: Path, value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(config_path, "'ignore' must be a list of glob patterns")
    return tuple(value)
