"""Link extraction and resolution: relative links, local pointers, and anchors."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote

from okite.report import IssueKind

if TYPE_CHECKING:
    from okite.config import OkiteConfig
    from okite.corpus import CorpusIndex, Document
    from okite.report import ValidationReport

logger = logging.getLogger(__name__)

_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.+?)[ \t]*$")
_CLOSING_HASHES_RE = re.compile(r"[ \t]+#+$")
_TITLE_RE = re.compile(r"""^(\S+)\s+(?:"[^"]*"|'[^']*')$""")


class LinkKind(enum.Enum):
    EXTERNAL = "external"
    RELATIVE = "local-relative"
    POINTER = "local-pointer"


@dataclass(frozen=True)
class Heading:
    """A Markdown ATX heading and the anchor id it produces."""

    level: int
    text: str
    anchor: str


@dataclass(frozen=True)
class Link:
    """An inline ``[text](target)`` link found in a document body."""

    kind: LinkKind
    target: str
    text: str
    source: Path
    line: int
    path_part: str
    fragment: str | None

    @property
    def is_same_document(self) -> bool:
        return self.kind is LinkKind.RELATIVE and not self.path_part


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def normalize_anchor(text: str) -> str:
    """Turn heading text into its anchor id.

    Lowercase, whitespace runs become ``-``, anything that is neither a word
    character nor ``-`` is dropped.
    """
    anchor = re.sub(r"\s+", "-", text.strip().lower())
    return re.sub(r"[^\w-]", "", anchor)


def _iter_prose_lines(text: str, *, start_line: int = 1) -> list[tuple[int, str]]:
    """Return ``(line_number, line)`` pairs that lie outside fenced code blocks."""
    lines: list[tuple[int, str]] = []
    in_code_block = False
    for line_num, line in enumerate(text.split("\n"), start_line):
        if line.strip().startswith("```"):
            in_code_block = not in_code_block
            continue
        if not in_code_block:
            lines.append((line_num, line))
    return lines


def extract_headings(text: str) -> list[Heading]:
    """Collect ATX headings (``#`` to ``######``) outside code fences."""
    headings: list[Heading] = []
    for _, line in _iter_prose_lines(text):
        match = _HEADING_RE.match(line)
        if match is None:
            continue
        title = _CLOSING_HASHES_RE.sub("", match.group(2)).strip()
        headings.append(Heading(len(match.group(1)), title, normalize_anchor(title)))
    return headings


def first_title(headings: list[Heading]) -> str | None:
    """Text of the first level-1 heading, if any."""
    for heading in headings:
        if heading.level == 1:
            return heading.text
    return None


def _clean_target(raw: str) -> str:
    target = raw.strip()
    match = _TITLE_RE.match(target)
    if match:
        target = match.group(1)
    if target.startswith("<") and target.endswith(">"):
        target = target[1:-1]
    return target


def classify_target(target: str, config: OkiteConfig) -> LinkKind:
    if target.startswith(config.external_prefixes):
        return LinkKind.EXTERNAL
    scheme, sep, _ = target.partition(":")
    if sep and scheme in config.pointer_schemes:
        return LinkKind.POINTER
    return LinkKind.RELATIVE


def _make_link(text: str, target: str, source: Path, line: int, config: OkiteConfig) -> Link:
    kind = classify_target(target, config)
    body = target
    if kind is LinkKind.POINTER:
        body = target.partition(":")[2]
    path_part, sep, fragment = body.partition("#")
    return Link(
        kind=kind,
        target=target,
        text=text,
        source=source,
        line=line,
        path_part=unquote(path_part),
        fragment=unquote(fragment) if sep else None,
    )


def extract_links(
    text: str, source: Path, config: OkiteConfig, *, start_line: int = 1
) -> list[Link]:
    """Find inline links in *text*, skipping code fences and example snippets."""
    links: list[Link] = []
    for line_num, line in _iter_prose_lines(text, start_line=start_line):
        for match in _LINK_RE.finditer(line):
            link_text, raw_target = match.group(1), match.group(2)
            if any(p.matches(raw_target, link_text) for p in config.ignored_link_patterns):
                continue
            target = _clean_target(raw_target)
            if not target:
                continue
            links.append(_make_link(link_text, target, source, line_num, config))
    return links


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _with_extensions(base: Path, config: OkiteConfig) -> list[Path]:
    return [base.with_name(base.name + ext) for ext in config.link_extensions]


def _resolve(path: Path) -> Path | None:
    # NUL bytes and over-long names surface as ValueError or OSError.
    try:
        return path.resolve()
    except (OSError, ValueError):
        return None


def resolve_relative(link: Link, index: CorpusIndex, config: OkiteConfig) -> Path | None:
    """Resolve a relative link's path part against its source directory."""
    candidate = _resolve(link.source.parent / link.path_part)
    if candidate is None:
        return None
    if index.exists(candidate):
        return candidate
    if candidate.suffix not in config.link_extensions:
        for path in _with_extensions(candidate, config):
            if index.exists(path):
                return path
    return None


def resolve_pointer(link: Link, index: CorpusIndex, config: OkiteConfig) -> Path | None:
    """Resolve a ``scheme:path`` pointer relative to the corpus root."""
    rel = link.path_part.lstrip("/")
    if not rel:
        return None
    base = _resolve(index.root / rel)
    if base is None:
        return None
    candidates = [base] if base.suffix in config.link_extensions else []
    candidates.extend(_with_extensions(base, config))
    for path in candidates:
        if index.is_file(path):
            return path
    return None


def _check_fragment(
    link: Link,
    target: Path,
    index: CorpusIndex,
    report: ValidationReport,
    config: OkiteConfig,
) -> None:
    if not link.fragment or target.suffix not in config.link_extensions:
        return
    if not index.is_file(target):
        return
    anchors = index.anchors_for(target)
    if anchors is None:
        return
    if link.fragment not in anchors:
        report.error(
            link.source,
            IssueKind.BROKEN_ANCHOR,
            f"broken anchor: #{link.fragment} not found in {target.name} "
            f"(link text: {link.text})",
            line=link.line,
        )


def _check_title(link: Link, target: Path, index: CorpusIndex, report: ValidationReport) -> None:
    title = index.title_for(target)
    if title and link.text != title:
        report.warning(
            link.source,
            IssueKind.LINK_TITLE_MISMATCH,
            f'link text "{link.text}" differs from the title of {link.path_part}: "{title}"',
            line=link.line,
        )


def check_link(
    link: Link, index: CorpusIndex, report: ValidationReport, config: OkiteConfig
) -> None:
    """Resolve one link and report what does not exist."""
    if link.kind is LinkKind.EXTERNAL:
        logger.debug("Skipping external link: %s", link.target)
        return

    if link.kind is LinkKind.POINTER:
        target = resolve_pointer(link, index, config)
        if target is None:
            report.error(
                link.source,
                IssueKind.BROKEN_POINTER,
                f"broken local-pointer link: {link.target} (link text: {link.text})",
                line=link.line,
            )
            return
        _check_fragment(link, target, index, report, config)
        return

    if link.is_same_document:
        if link.fragment is None or not config.check_same_document_anchors:
            return
        _check_fragment(link, link.source, index, report, config)
        return

    resolved = resolve_relative(link, index, config)
    if resolved is None:
        report.error(
            link.source,
            IssueKind.BROKEN_LINK,
            f"broken link: {link.target} - target file does not exist "
            f"(link text: {link.text})",
            line=link.line,
        )
        return
    _check_fragment(link, resolved, index, report, config)
    if config.check_link_titles and index.is_file(resolved):
        _check_title(link, resolved, index, report)


def check_links(
    document: Document, index: CorpusIndex, report: ValidationReport, config: OkiteConfig
) -> None:
    """Check every link in *document* against the corpus index."""
    for link in document.links:
        check_link(link, index, report, config)
        report.links_checked += 1
