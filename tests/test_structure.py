"""Tests for okite.structure: naming rules and fractal directory correspondence."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import pytest

from okite.config import OkiteConfig
from okite.corpus import CorpusIndex
from okite.report import IssueKind, ValidationReport
from okite.structure import check_directories, check_naming, find_parent_document

if TYPE_CHECKING:
    from pathlib import Path

ULID_A = "01jpbn8mms2gdbh8hbk78e6f24"
ULID_B = "01jpbn8mms2gdbh8hbk78e6f25"
ULID_C = "01jpf07spf9d1wwnkcj4vyvt6h"
CONFIG = OkiteConfig()


def _fm(rule_id: str) -> str:
    return f"---\ndescription: d\nruleId: {rule_id}\ntags: [t]\nglobs: [src/*]\n---\n"


def _naming(docs: Path, rel: str) -> ValidationReport:
    index = CorpusIndex.build(docs, CONFIG)
    document = index.get((docs / rel).resolve())
    assert document is not None
    report = ValidationReport()
    check_naming(document, report, CONFIG)
    return report


def _directories(docs: Path, config: OkiteConfig = CONFIG) -> ValidationReport:
    index = CorpusIndex.build(docs, config)
    report = ValidationReport()
    check_directories(index, report, config)
    return report


# --- check_naming ---


class TestNaming:
    def test_valid_name_matching_rule_id(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write(f"meta-{ULID_A}.md", _fm(f"meta-{ULID_A}"))
        assert _naming(docs, f"meta-{ULID_A}.md").issues == []

    def test_valid_name_without_frontmatter(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write(f"error-handling-{ULID_A}.md", "# Body only\n")
        assert _naming(docs, f"error-handling-{ULID_A}.md").issues == []

    @pytest.mark.parametrize("name", ["index", "mods", "README"])
    def test_forbidden_names(
        self, name: str, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write(f"sub/{name}.md", _fm(f"meta-{ULID_A}"))
        report = _naming(docs, f"sub/{name}.md")
        assert [i.kind for i in report.issues] == [IssueKind.FORBIDDEN_FILENAME]

    def test_forbidden_names_are_case_sensitive(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write("readme.md", "# x\n")
        report = _naming(docs, "readme.md")
        assert [i.kind for i in report.issues] == [IssueKind.NAMING_CONVENTION]

    def test_self_collision(self, write: Callable[[str, str], Path], docs: Path) -> None:
        write("foo/foo.md", "# Foo\n")
        kinds = [i.kind for i in _naming(docs, "foo/foo.md").errors]
        assert IssueKind.SELF_COLLISION in kinds

    def test_rule_id_mismatch(self, write: Callable[[str, str], Path], docs: Path) -> None:
        write("x.md", _fm(f"y-{ULID_A}"))
        report = _naming(docs, "x.md")
        assert [i.kind for i in report.issues] == [IssueKind.RULE_ID_MISMATCH]
        assert "'x'" in report.errors[0].message

    def test_bare_parent_name_beside_directory(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write("meta.md", _fm(f"meta-{ULID_A}"))
        write(f"meta/detail-{ULID_B}.md", _fm(f"detail-{ULID_B}"))
        assert _naming(docs, "meta.md").issues == []

    def test_rule_id_match_is_case_insensitive(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write(f"meta-{ULID_A.upper()}.md", _fm(f"meta-{ULID_A}"))
        assert _naming(docs, f"meta-{ULID_A.upper()}.md").issues == []

    def test_naming_convention(self, write: Callable[[str, str], Path], docs: Path) -> None:
        write("guide.md", "# Guide\n")
        report = _naming(docs, "guide.md")
        assert [i.kind for i in report.issues] == [IssueKind.NAMING_CONVENTION]

    def test_bad_ulid_in_name(self, write: Callable[[str, str], Path], docs: Path) -> None:
        write("meta-01jpbn8mms2gdbh8hbk78e6fiu.md", "# x\n")
        report = _naming(docs, "meta-01jpbn8mms2gdbh8hbk78e6fiu.md")
        assert [i.kind for i in report.issues] == [IssueKind.NAMING_CONVENTION]


# --- fractal correspondence ---


class TestDirectories:
    def test_parent_with_rule_id_suffix(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write(f"meta-{ULID_A}.md", f"[detail](meta/detail-{ULID_B}.md)\n")
        write(f"meta/detail-{ULID_B}.md", "# Detail\n")
        assert _directories(docs).issues == []

    def test_parent_with_exact_name(self, write: Callable[[str, str], Path], docs: Path) -> None:
        write("meta.md", f"[detail](meta/detail-{ULID_B}.md)\n")
        write(f"meta/detail-{ULID_B}.md", "# Detail\n")
        assert _directories(docs).issues == []

    def test_missing_parent_is_warning(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write(f"meta/detail-{ULID_B}.md", "# Detail\n")
        report = _directories(docs)
        assert report.errors == []
        assert [i.kind for i in report.warnings] == [IssueKind.MISSING_PARENT_DOCUMENT]
        assert report.warnings[0].path == (docs / "meta").resolve()

    def test_prefix_must_match_directory(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write(f"metadata-{ULID_A}.md", "# Metadata\n")
        write(f"meta/detail-{ULID_B}.md", "# Detail\n")
        report = _directories(docs)
        assert [i.kind for i in report.warnings] == [IssueKind.MISSING_PARENT_DOCUMENT]

    def test_checked_at_every_depth(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        # a/ has a parent document; a/b/ and a/b/c/ do not.
        write(f"a-{ULID_A}.md", f"[x](a/x-{ULID_B}.md)\n")
        write(f"a/x-{ULID_B}.md", "# X\n")
        write(f"a/b/c/leaf-{ULID_C}.md", "# Leaf\n")
        report = _directories(docs)
        paths = [i.path for i in report.warnings]
        assert paths == [(docs / "a" / "b").resolve(), (docs / "a" / "b" / "c").resolve()]
        assert {i.kind for i in report.warnings} == {IssueKind.MISSING_PARENT_DOCUMENT}

    def test_parent_must_be_sibling(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write(f"x/meta-{ULID_A}.md", "# Wrong level\n")
        write(f"meta/detail-{ULID_B}.md", "# Detail\n")
        report = _directories(docs)
        flagged = {i.path.name for i in report.of_kind(IssueKind.MISSING_PARENT_DOCUMENT)}
        assert flagged == {"x", "meta"}

    def test_excluded_directories_ignored(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write("node_modules/pkg/readme-x.md", "# x\n")
        assert _directories(docs).issues == []

    def test_unreferenced_children(self, write: Callable[[str, str], Path], docs: Path) -> None:
        write(f"meta-{ULID_A}.md", "# Meta\n\nNo links here.\n")
        write(f"meta/detail-{ULID_B}.md", "# Detail\n")
        report = _directories(docs)
        assert [i.kind for i in report.warnings] == [IssueKind.UNREFERENCED_CHILDREN]
        assert report.warnings[0].path == (docs / f"meta-{ULID_A}.md").resolve()

    def test_pointer_counts_as_reference(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write(f"meta-{ULID_A}.md", f"[detail](mdc:meta/detail-{ULID_B})\n")
        write(f"meta/detail-{ULID_B}.md", "# Detail\n")
        assert _directories(docs).issues == []

    def test_child_reference_check_disabled(
        self, write: Callable[[str, str], Path], docs: Path
    ) -> None:
        write(f"meta-{ULID_A}.md", "# Meta\n")
        write(f"meta/detail-{ULID_B}.md", "# Detail\n")
        config = OkiteConfig(check_child_references=False)
        assert _directories(docs, config).issues == []

    def test_find_parent_document(self, write: Callable[[str, str], Path], docs: Path) -> None:
        write(f"meta-{ULID_A}.md", "# Meta\n")
        write(f"meta/detail-{ULID_B}.md", "# Detail\n")
        index = CorpusIndex.build(docs, CONFIG)
        parent = find_parent_document((docs / "meta").resolve(), index)
        assert parent is not None
        assert parent.stem == f"meta-{ULID_A}"
