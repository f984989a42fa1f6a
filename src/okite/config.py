"""Validator configuration: defaults plus an optional ``.okite/config.yml``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_PATH = (".okite", "config.yml")


class ConfigError(Exception):
    """Raised when the config file exists but cannot be used."""


@dataclass(frozen=True)
class IgnoredLinkPattern:
    """A documentation example that looks like a link but is not one.

    The link is skipped when ``target`` occurs in its target and, if set,
    ``text`` occurs in its display text.
    """

    target: str
    text: str | None = None

    def matches(self, link_target: str, link_text: str) -> bool:
        if self.target not in link_target:
            return False
        return self.text is None or self.text in link_text


DEFAULT_IGNORED_LINK_PATTERNS: tuple[IgnoredLinkPattern, ...] = (
    IgnoredLinkPattern("画像のパス"),
    IgnoredLinkPattern("crate::"),
    IgnoredLinkPattern("capacity:"),
    IgnoredLinkPattern("seq:"),
    IgnoredLinkPattern("Result", text="Result<"),
)


@dataclass(frozen=True)
class OkiteConfig:
    """Settings shared by every check in a validation pass."""

    docs_dir: str = "docs"
    document_patterns: tuple[str, ...] = ("**/*.md",)
    exclude_dirs: tuple[str, ...] = (
        ".git",
        ".okite",
        "node_modules",
        "__pycache__",
        ".venv",
        "venv",
    )
    link_extensions: tuple[str, ...] = (".md", ".mdc")
    pointer_schemes: tuple[str, ...] = ("mdc",)
    external_prefixes: tuple[str, ...] = ("http://", "https://", "mailto:")
    forbidden_names: tuple[str, ...] = ("index", "mods", "README")
    ignored_link_patterns: tuple[IgnoredLinkPattern, ...] = DEFAULT_IGNORED_LINK_PATTERNS
    check_same_document_anchors: bool = True
    check_link_titles: bool = False
    check_child_references: bool = True
    strict_prefix_case: bool = False


_TUPLE_KEYS = frozenset(
    {
        "document_patterns",
        "exclude_dirs",
        "link_extensions",
        "pointer_schemes",
        "external_prefixes",
        "forbidden_names",
    }
)
_BOOL_KEYS = frozenset(
    {
        "check_same_document_anchors",
        "check_link_titles",
        "check_child_references",
        "strict_prefix_case",
    }
)


def _parse_ignored_patterns(raw: Any) -> tuple[IgnoredLinkPattern, ...]:
    if not isinstance(raw, list):
        msg = "ignored_link_patterns must be a list"
        raise ConfigError(msg)
    patterns: list[IgnoredLinkPattern] = []
    for item in raw:
        if isinstance(item, str):
            patterns.append(IgnoredLinkPattern(item))
        elif isinstance(item, dict) and isinstance(item.get("target"), str):
            text = item.get("text")
            patterns.append(IgnoredLinkPattern(item["target"], str(text) if text else None))
        else:
            msg = f"invalid ignored_link_patterns entry: {item!r}"
            raise ConfigError(msg)
    return tuple(patterns)


def config_from_dict(data: dict[str, Any]) -> OkiteConfig:
    """Build a config from a parsed mapping, ignoring unknown keys."""
    known = {f.name for f in fields(OkiteConfig)}
    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Unknown config key ignored: %s", key)
            continue
        if key in _TUPLE_KEYS:
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                msg = f"{key} must be a list of strings"
                raise ConfigError(msg)
            overrides[key] = tuple(value)
        elif key in _BOOL_KEYS:
            if not isinstance(value, bool):
                msg = f"{key} must be true or false"
                raise ConfigError(msg)
            overrides[key] = value
        elif key == "ignored_link_patterns":
            overrides[key] = _parse_ignored_patterns(value)
        elif key == "docs_dir":
            if not isinstance(value, str) or not value:
                msg = "docs_dir must be a non-empty string"
                raise ConfigError(msg)
            overrides[key] = value
    return replace(OkiteConfig(), **overrides)


def load_config(project_root: Path, *, config_path: Path | None = None) -> OkiteConfig:
    """Load settings for *project_root*.

    Reads ``<project_root>/.okite/config.yml`` unless *config_path* is given.
    A missing file yields the defaults.

    Raises
    ------
    ConfigError
        When the file cannot be read, is not valid YAML, or holds values of
        the wrong type.
    """
    path = config_path or project_root.joinpath(*CONFIG_PATH)
    if not path.is_file():
        if config_path is not None:
            msg = f"config file not found: {path}"
            raise ConfigError(msg)
        return OkiteConfig()

    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        msg = f"failed to read {path}: {exc}"
        raise ConfigError(msg) from exc

    if data is None:
        return OkiteConfig()
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping"
        raise ConfigError(msg)

    logger.debug("Loaded config from %s", path)
    return config_from_dict(data)
