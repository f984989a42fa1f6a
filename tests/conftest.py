"""Shared test fixtures for okite."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import pytest

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a minimal project structure for testing."""
    (tmp_path / ".okite").mkdir()
    (tmp_path / "docs").mkdir()
    return tmp_path


@pytest.fixture()
def docs(tmp_project: Path) -> Path:
    """The documentation root of :func:`tmp_project`."""
    return tmp_project / "docs"


@pytest.fixture()
def write(docs: Path) -> Callable[[str, str], Path]:
    """Return a helper writing ``content`` to ``docs/<rel>`` (parents created)."""

    def _write(rel: str, content: str) -> Path:
        path = docs / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
