"""Corpus walker: run every check over the corpus in one deterministic pass."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from okite.config import OkiteConfig
from okite.corpus import CorpusIndex, load_document
from okite.frontmatter import validate_frontmatter
from okite.links import check_links
from okite.report import IssueKind, ValidationReport
from okite.structure import check_directories, check_naming

if TYPE_CHECKING:
    from pathlib import Path

    from okite.corpus import Document

logger = logging.getLogger(__name__)


class CorpusRootError(Exception):
    """Raised when the documentation root is missing or not a directory."""


def _require_root(root: Path) -> None:
    if not root.is_dir():
        msg = f"documentation root not found or not a directory: {root}"
        raise CorpusRootError(msg)


def check_document(
    document: Document, index: CorpusIndex, report: ValidationReport, config: OkiteConfig
) -> None:
    """Run front-matter, naming, and link checks for one document."""
    logger.debug("Checking %s", document.path)
    report.documents_checked += 1

    if document.read_error is not None:
        report.error(
            document.path, IssueKind.READ_ERROR, f"cannot read file: {document.read_error}"
        )
        check_naming(document, report, config)
        return

    if document.frontmatter is None:
        report.error(document.path, IssueKind.MISSING_FRONTMATTER, "missing front-matter")
    else:
        validate_frontmatter(document.frontmatter, document.path, report, config)

    check_naming(document, report, config)
    check_links(document, index, report, config)


def validate_corpus(root: Path, config: OkiteConfig | None = None) -> ValidationReport:
    """Validate every document under *root* and return the accumulated report.

    Parameters
    ----------
    root:
        The documentation root (e.g. ``<project>/docs``).
    config:
        Validator settings; defaults apply when *None*.

    Returns
    -------
    ValidationReport
        Errors and warnings in document order, followed by directory-level
        findings.

    Raises
    ------
    CorpusRootError
        When *root* does not exist or is not a directory.
    """
    _require_root(root)
    config = config or OkiteConfig()
    start = time.monotonic()

    index = CorpusIndex.build(root, config)
    report = ValidationReport()
    for document in index.documents:
        check_document(document, index, report, config)
    check_directories(index, report, config)

    logger.info(
        "Checked %d documents in %.1fms: %d errors, %d warnings",
        report.documents_checked,
        (time.monotonic() - start) * 1000,
        len(report.errors),
        len(report.warnings),
    )
    return report


def validate_file(path: Path, root: Path, config: OkiteConfig | None = None) -> ValidationReport:
    """Validate a single document against the index of the corpus at *root*.

    Directory-level checks are not run.  A file outside the corpus patterns
    is still checked; its links resolve against the same index.  The file
    must also carry a level-1 heading.
    """
    _require_root(root)
    config = config or OkiteConfig()
    index = CorpusIndex.build(root, config)
    target = path.resolve()

    document = index.get(target)
    if document is None:
        document = load_document(target, config)

    report = ValidationReport()
    check_document(document, index, report, config)
    if document.text is not None and document.title is None:
        report.error(document.path, IssueKind.MISSING_HEADING, "document has no '# ' heading")
    return report
