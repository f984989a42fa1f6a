"""Validation report: issue taxonomy, accumulation, and output formatters."""

from __future__ import annotations

import enum
import json
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console


class Severity(enum.Enum):
    """Severity level for a reported issue."""

    WARNING = "warning"
    ERROR = "error"


class Category(enum.Enum):
    """Family an issue kind belongs to."""

    STRUCTURAL = "structural"
    LINK = "link"
    SCHEMA = "schema"
    IO = "io"


class IssueKind(enum.Enum):
    """Every distinct problem the validator can report."""

    # Structural (hard)
    MISSING_FRONTMATTER = "missing-frontmatter"
    FORBIDDEN_FILENAME = "forbidden-filename"
    RULE_ID_MISMATCH = "rule-id-mismatch"
    NAMING_CONVENTION = "naming-convention"
    SELF_COLLISION = "self-collision"
    INVALID_RULE_ID = "invalid-rule-id"
    MISSING_FIELD = "missing-field"
    FIELD_ORDER = "field-order"
    INVALID_FIELD_TYPE = "invalid-field-type"
    INVALID_GLOB = "invalid-glob"
    MISSING_HEADING = "missing-heading"
    # Links
    BROKEN_LINK = "broken-link"
    BROKEN_POINTER = "broken-pointer"
    BROKEN_ANCHOR = "broken-anchor"
    LINK_TITLE_MISMATCH = "link-title-mismatch"
    # Schema (soft)
    EMPTY_FIELD = "empty-field"
    MISSING_PARENT_DOCUMENT = "missing-parent-document"
    NON_CANONICAL_CASE = "non-canonical-case"
    UNREFERENCED_CHILDREN = "unreferenced-children"
    # I/O
    READ_ERROR = "read-error"

    @property
    def category(self) -> Category:
        return _CATEGORIES[self]


_CATEGORIES: dict[IssueKind, Category] = {
    IssueKind.MISSING_FRONTMATTER: Category.STRUCTURAL,
    IssueKind.FORBIDDEN_FILENAME: Category.STRUCTURAL,
    IssueKind.RULE_ID_MISMATCH: Category.STRUCTURAL,
    IssueKind.NAMING_CONVENTION: Category.STRUCTURAL,
    IssueKind.SELF_COLLISION: Category.STRUCTURAL,
    IssueKind.INVALID_RULE_ID: Category.STRUCTURAL,
    IssueKind.MISSING_FIELD: Category.STRUCTURAL,
    IssueKind.FIELD_ORDER: Category.STRUCTURAL,
    IssueKind.INVALID_FIELD_TYPE: Category.STRUCTURAL,
    IssueKind.INVALID_GLOB: Category.STRUCTURAL,
    IssueKind.MISSING_HEADING: Category.STRUCTURAL,
    IssueKind.BROKEN_LINK: Category.LINK,
    IssueKind.BROKEN_POINTER: Category.LINK,
    IssueKind.BROKEN_ANCHOR: Category.LINK,
    IssueKind.LINK_TITLE_MISMATCH: Category.LINK,
    IssueKind.EMPTY_FIELD: Category.SCHEMA,
    IssueKind.MISSING_PARENT_DOCUMENT: Category.SCHEMA,
    IssueKind.NON_CANONICAL_CASE: Category.SCHEMA,
    IssueKind.UNREFERENCED_CHILDREN: Category.SCHEMA,
    IssueKind.READ_ERROR: Category.IO,
}


@dataclass(frozen=True)
class Issue:
    """A single problem found in one document (or directory)."""

    path: Path
    kind: IssueKind
    message: str
    severity: Severity
    line: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "kind": self.kind.value,
            "category": self.kind.category.value,
            "severity": self.severity.value,
            "line": self.line,
            "message": self.message,
        }


@dataclass
class ValidationReport:
    """Ordered errors and warnings accumulated during one validation pass.

    The report only ever grows; checks append to it and the caller reads it
    once the pass is over.
    """

    errors: list[Issue] = field(default_factory=list)
    warnings: list[Issue] = field(default_factory=list)
    documents_checked: int = 0
    links_checked: int = 0

    def add(self, issue: Issue) -> None:
        if issue.severity is Severity.ERROR:
            self.errors.append(issue)
        else:
            self.warnings.append(issue)

    def error(
        self, path: Path, kind: IssueKind, message: str, *, line: int | None = None
    ) -> None:
        self.add(Issue(path, kind, message, Severity.ERROR, line))

    def warning(
        self, path: Path, kind: IssueKind, message: str, *, line: int | None = None
    ) -> None:
        self.add(Issue(path, kind, message, Severity.WARNING, line))

    @property
    def issues(self) -> list[Issue]:
        """Errors followed by warnings."""
        return [*self.errors, *self.warnings]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def exit_code(self) -> int:
        """Process exit status: non-zero iff at least one error was reported."""
        return 1 if self.errors else 0

    def for_path(self, path: Path) -> list[Issue]:
        return [issue for issue in self.issues if issue.path == path]

    def of_kind(self, kind: IssueKind) -> list[Issue]:
        return [issue for issue in self.issues if issue.kind is kind]

    def by_path(self) -> dict[Path, list[Issue]]:
        """Group issues per path, keeping first-reported path order."""
        grouped: dict[Path, list[Issue]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.path, []).append(issue)
        return grouped

    def kind_counts(self) -> Counter[str]:
        return Counter(issue.kind.value for issue in self.issues)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def _display_path(path: Path, root: Path | None) -> str:
    if root is not None and path.is_relative_to(root):
        return str(path.relative_to(root))
    return str(path)


def format_text(report: ValidationReport, *, root: Path | None = None) -> str:
    """Format a report as plain text, one block per document.

    Example::

        docs/x.md
          error: basename 'x' does not match ruleId 'y-01jpbn...'

        Checked 3 documents, 5 links
        Errors: 1
        Warnings: 0
    """
    lines: list[str] = []
    for path, issues in report.by_path().items():
        lines.append(_display_path(path, root))
        for issue in issues:
            loc = f" (line {issue.line})" if issue.line is not None else ""
            lines.append(f"  {issue.severity.value}: {issue.message}{loc}")
        lines.append("")

    lines.append(
        f"Checked {report.documents_checked} documents, {report.links_checked} links"
    )
    lines.append(f"Errors: {len(report.errors)}")
    lines.append(f"Warnings: {len(report.warnings)}")
    return "\n".join(lines)


def render_report(
    report: ValidationReport, console: Console, *, root: Path | None = None
) -> None:
    """Render a report with Rich: errors in red, warnings in yellow, then totals."""
    from rich.markup import escape

    for path, issues in report.by_path().items():
        console.print(f"[bold]{escape(_display_path(path, root))}[/bold]")
        for issue in issues:
            colour = "red" if issue.severity is Severity.ERROR else "yellow"
            label = "Error" if issue.severity is Severity.ERROR else "Warning"
            loc = f" [dim](line {issue.line})[/dim]" if issue.line is not None else ""
            console.print(f"  [{colour}]{label}:[/{colour}] {escape(issue.message)}{loc}")
        console.print()

    console.print(
        f"Checked [bold]{report.documents_checked}[/] documents, "
        f"[bold]{report.links_checked}[/] links"
    )
    console.print(f"Errors: [red]{len(report.errors)}[/red]")
    console.print(f"Warnings: [yellow]{len(report.warnings)}[/yellow]")


def format_json(report: ValidationReport) -> str:
    """Format a report as structured JSON with ``errors``, ``warnings`` and ``summary``."""
    output: dict[str, object] = {
        "errors": [issue.to_dict() for issue in report.errors],
        "warnings": [issue.to_dict() for issue in report.warnings],
        "summary": {
            "documents_checked": report.documents_checked,
            "links_checked": report.links_checked,
            "errors_count": len(report.errors),
            "warnings_count": len(report.warnings),
            "by_kind": dict(sorted(report.kind_counts().items())),
        },
    }
    return json.dumps(output, ensure_ascii=False, indent=2)


def format_porcelain(report: ValidationReport) -> str:
    """Format a report as one ``severity:kind:path:line:message`` line per issue.

    Returns an empty string when the report is clean.
    """
    lines: list[str] = []
    for issue in report.issues:
        line = str(issue.line) if issue.line is not None else ""
        lines.append(
            f"{issue.severity.value}:{issue.kind.value}:{issue.path}:{line}:{issue.message}"
        )
    return "\n".join(lines)
