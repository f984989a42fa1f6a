"""Tests for okite.config: defaults and .okite/config.yml loading."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from okite.config import (
    DEFAULT_IGNORED_LINK_PATTERNS,
    ConfigError,
    IgnoredLinkPattern,
    OkiteConfig,
    config_from_dict,
    load_config,
)

if TYPE_CHECKING:
    from pathlib import Path


def _write_config(project: Path, content: str) -> Path:
    path = project / ".okite" / "config.yml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_project: Path) -> None:
        assert load_config(tmp_project) == OkiteConfig()

    def test_empty_file_gives_defaults(self, tmp_project: Path) -> None:
        _write_config(tmp_project, "")
        assert load_config(tmp_project) == OkiteConfig()

    def test_values_loaded(self, tmp_project: Path) -> None:
        _write_config(
            tmp_project,
            "docs_dir: rules\n"
            "document_patterns: ['**/*.md', '**/*.mdc']\n"
            "forbidden_names: [index]\n"
            "check_link_titles: true\n"
            "strict_prefix_case: true\n",
        )
        config = load_config(tmp_project)
        assert config.docs_dir == "rules"
        assert config.document_patterns == ("**/*.md", "**/*.mdc")
        assert config.forbidden_names == ("index",)
        assert config.check_link_titles is True
        assert config.strict_prefix_case is True
        # Untouched keys keep their defaults.
        assert config.pointer_schemes == ("mdc",)

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.yml"
        path.write_text("docs_dir: handbook\n", encoding="utf-8")
        assert load_config(tmp_path, config_path=path).docs_dir == "handbook"

    def test_explicit_missing_path_is_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path, config_path=tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_project: Path) -> None:
        _write_config(tmp_project, "docs_dir: [unclosed\n")
        with pytest.raises(ConfigError, match="failed to read"):
            load_config(tmp_project)

    def test_non_mapping(self, tmp_project: Path) -> None:
        _write_config(tmp_project, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(tmp_project)


class TestConfigFromDict:
    @pytest.mark.parametrize(
        "data",
        [
            {"exclude_dirs": ".git"},
            {"link_extensions": [".md", 3]},
            {"check_child_references": "yes"},
            {"docs_dir": ""},
            {"ignored_link_patterns": "crate::"},
            {"ignored_link_patterns": [{"text": "no target"}]},
        ],
    )
    def test_bad_types(self, data: dict[str, object]) -> None:
        with pytest.raises(ConfigError):
            config_from_dict(data)

    def test_unknown_key_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="okite.config"):
            config = config_from_dict({"colour": "blue"})
        assert config == OkiteConfig()
        assert "colour" in caplog.text

    def test_ignored_link_patterns(self) -> None:
        config = config_from_dict(
            {"ignored_link_patterns": ["TODO:", {"target": "Option", "text": "Option<"}]}
        )
        assert config.ignored_link_patterns == (
            IgnoredLinkPattern("TODO:"),
            IgnoredLinkPattern("Option", text="Option<"),
        )


class TestIgnoredLinkPattern:
    def test_target_only(self) -> None:
        pattern = IgnoredLinkPattern("crate::")
        assert pattern.matches("crate::foo::Bar", "anything")
        assert not pattern.matches("./crate.md", "crate")

    def test_target_and_text(self) -> None:
        pattern = IgnoredLinkPattern("Result", text="Result<")
        assert pattern.matches("Result", "Result<T, E>")
        assert not pattern.matches("Result", "the result")

    def test_defaults_present(self) -> None:
        assert OkiteConfig().ignored_link_patterns == DEFAULT_IGNORED_LINK_PATTERNS
