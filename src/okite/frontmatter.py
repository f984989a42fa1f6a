"""Front-matter extraction and field validation for rule documents.

Only a flat subset of YAML is understood.  The grammar, one entry per
non-blank line between the opening and closing ``---`` lines::

    entry   := key ":" value
    key     := text up to the first ":" (trimmed)
    value   := "[" item ("," item)* "]"   -> list of strings
             | text                       -> scalar string
    item    := text, trimmed, one layer of matching quotes removed

Lines without a colon are ignored.  Nesting, multi-line scalars and comments
are not supported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from okite import rule_id as rule_ids
from okite.report import IssueKind

if TYPE_CHECKING:
    from pathlib import Path

    from okite.config import OkiteConfig
    from okite.report import ValidationReport

FieldValue = Union[str, list[str]]

CANONICAL_ORDER: tuple[str, ...] = ("description", "ruleId", "tags", "aliases", "globs")
REQUIRED_FIELDS: tuple[str, ...] = ("description", "ruleId", "tags", "globs")
_LIST_FIELDS = frozenset({"tags", "aliases", "globs"})

# Globs that mention Markdown files but still target source, not docs.
_ALLOWED_DOC_GLOBS = frozenset({"**/*.md.tmpl", "**/*.mdx"})

_BLOCK_RE = re.compile(r"\A---[ \t]*\n(?:(.*?)\n)??---[ \t]*(?:\n|\Z)", re.DOTALL)


@dataclass
class FrontMatter:
    """Parsed front-matter block.

    ``fields`` holds every entry in the order first seen (a repeated key keeps
    its last value).  ``order`` lists the recognised fields by first
    appearance, without duplicates.
    """

    fields: dict[str, FieldValue] = field(default_factory=dict)
    order: tuple[str, ...] = ()

    def get(self, key: str) -> FieldValue | None:
        return self.fields.get(key)

    def _scalar(self, key: str) -> str | None:
        value = self.fields.get(key)
        return value if isinstance(value, str) else None

    def _list(self, key: str) -> list[str] | None:
        value = self.fields.get(key)
        return value if isinstance(value, list) else None

    @property
    def description(self) -> str | None:
        return self._scalar("description")

    @property
    def rule_id(self) -> str | None:
        return self._scalar("ruleId")

    @property
    def tags(self) -> list[str] | None:
        return self._list("tags")

    @property
    def aliases(self) -> list[str] | None:
        return self._list("aliases")

    @property
    def globs(self) -> list[str] | None:
        return self._list("globs")

    @property
    def extra(self) -> dict[str, FieldValue]:
        """Entries that are not part of the recognised schema."""
        return {k: v for k, v in self.fields.items() if k not in CANONICAL_ORDER}


def _strip_quotes(item: str) -> str:
    if len(item) >= 2 and item[0] == item[-1] and item[0] in "\"'":
        return item[1:-1]
    return item


def _parse_value(raw: str) -> FieldValue:
    if raw.startswith("[") and raw.endswith("]"):
        items = (_strip_quotes(part.strip()).strip() for part in raw[1:-1].split(","))
        return [item for item in items if item]
    return raw


def _parse_block(block: str) -> FrontMatter:
    values: dict[str, FieldValue] = {}
    order: list[str] = []
    for line in block.split("\n"):
        if not line.strip():
            continue
        key, sep, raw = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        values[key] = _parse_value(raw.strip())
        if key in CANONICAL_ORDER and key not in order:
            order.append(key)
    return FrontMatter(fields=values, order=tuple(order))


def split_frontmatter(text: str) -> tuple[FrontMatter | None, str]:
    """Split *text* into its front-matter and the body that follows it.

    When there is no front-matter block the whole text is the body.
    """
    normalized = text.replace("\r\n", "\n")
    match = _BLOCK_RE.match(normalized)
    if match is None:
        return None, normalized
    return _parse_block(match.group(1) or ""), normalized[match.end():]


def extract_frontmatter(text: str) -> FrontMatter | None:
    """Return the parsed front-matter of *text*, or ``None`` if it has none."""
    return split_frontmatter(text)[0]


def _format_value(value: FieldValue) -> str:
    if isinstance(value, list):
        return "[" + ", ".join(value) + "]"
    return value


def serialize_frontmatter(fm: FrontMatter) -> str:
    """Format *fm* back into a ``---`` block, recognised fields in canonical order.

    Unrecognised entries follow in their original order.
    """
    lines = ["---"]
    for key in CANONICAL_ORDER:
        if key in fm.fields:
            lines.append(f"{key}: {_format_value(fm.fields[key])}")
    for key, value in fm.extra.items():
        lines.append(f"{key}: {_format_value(value)}")
    lines.append("---")
    return "\n".join(lines) + "\n"


def is_canonical_order(order: tuple[str, ...] | list[str]) -> bool:
    """True when *order* is a subsequence of :data:`CANONICAL_ORDER`."""
    last = -1
    for key in order:
        if key not in CANONICAL_ORDER:
            continue
        index = CANONICAL_ORDER.index(key)
        if index <= last:
            return False
        last = index
    return True


def is_invalid_glob(pattern: str) -> bool:
    """True when a ``globs`` entry points at documentation instead of source."""
    if ".md" in pattern or "docs/" in pattern:
        return pattern not in _ALLOWED_DOC_GLOBS
    return False


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_frontmatter(
    fm: FrontMatter, path: Path, report: ValidationReport, config: OkiteConfig
) -> None:
    """Check field presence, types, order, and values of a parsed block."""
    if not is_canonical_order(fm.order):
        report.error(
            path,
            IssueKind.FIELD_ORDER,
            f"front-matter fields out of order: expected {', '.join(CANONICAL_ORDER)}, "
            f"got {', '.join(fm.order)}",
        )

    for key in REQUIRED_FIELDS:
        value = fm.get(key)
        if value is None or value == "":
            report.error(path, IssueKind.MISSING_FIELD, f"missing '{key}' field")

    for key in CANONICAL_ORDER:
        value = fm.get(key)
        if value is None or value == "":
            continue
        expects_list = key in _LIST_FIELDS
        if expects_list and not isinstance(value, list):
            report.error(
                path, IssueKind.INVALID_FIELD_TYPE, f"'{key}' must be an array like [a, b]"
            )
        elif not expects_list and isinstance(value, list):
            report.error(path, IssueKind.INVALID_FIELD_TYPE, f"'{key}' must be a string")

    raw_id = fm.rule_id
    if raw_id:
        parsed = rule_ids.parse(raw_id)
        if parsed is None:
            report.error(
                path,
                IssueKind.INVALID_RULE_ID,
                f"ruleId '{raw_id}' is not of the form <prefix>-<ulid>",
            )
        elif raw_id != parsed.canonical:
            message = f"ruleId '{raw_id}' is not lowercase (expected '{parsed.canonical}')"
            if config.strict_prefix_case and not parsed.is_canonical:
                report.error(path, IssueKind.INVALID_RULE_ID, message)
            else:
                report.warning(path, IssueKind.NON_CANONICAL_CASE, message)

    for key in ("tags", "globs"):
        if fm.get(key) == []:
            report.warning(path, IssueKind.EMPTY_FIELD, f"'{key}' is empty")

    for pattern in fm.globs or []:
        if is_invalid_glob(pattern):
            report.error(
                path,
                IssueKind.INVALID_GLOB,
                f"glob '{pattern}' refers to documentation files; use source file patterns",
            )
