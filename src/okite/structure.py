"""Structure checks: document naming and the fractal directory rule.

Every module directory ``<parent>/<name>/`` needs a parent document beside
it, named ``<name>.md`` or ``<name>-<ulid>.md``.  The rule holds at every
depth of the tree.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from okite import rule_id as rule_ids
from okite.links import LinkKind, resolve_pointer, resolve_relative
from okite.report import IssueKind

if TYPE_CHECKING:
    from pathlib import Path

    from okite.config import OkiteConfig
    from okite.corpus import CorpusIndex, Document
    from okite.report import ValidationReport

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def _is_bare_parent(path: Path, parsed: rule_ids.RuleId | None) -> bool:
    """True for ``meta.md`` declaring ``meta-<ulid>`` beside a ``meta/`` directory."""
    if parsed is None or path.stem.lower() != parsed.prefix.lower():
        return False
    return (path.parent / path.stem).is_dir()


def check_naming(document: Document, report: ValidationReport, config: OkiteConfig) -> None:
    """Check a document's basename against the naming rules."""
    path = document.path
    stem = path.stem

    if stem in config.forbidden_names:
        report.error(path, IssueKind.FORBIDDEN_FILENAME, f"forbidden filename: {path.name}")
        return

    if stem == path.parent.name:
        report.error(
            path,
            IssueKind.SELF_COLLISION,
            f"document has the same name as its directory '{path.parent.name}/'",
        )

    declared = document.frontmatter.rule_id if document.frontmatter else None
    if declared:
        parsed = rule_ids.parse(declared)
        expected = parsed.canonical if parsed is not None else declared.lower()
        if stem.lower() != expected and not _is_bare_parent(path, parsed):
            report.error(
                path,
                IssueKind.RULE_ID_MISMATCH,
                f"basename '{stem}' does not match ruleId '{declared}'",
            )
        return

    if rule_ids.parse(stem) is None:
        report.error(
            path,
            IssueKind.NAMING_CONVENTION,
            f"naming convention violation: '{stem}' is not <prefix>-<ulid>",
        )


# ---------------------------------------------------------------------------
# Fractal correspondence
# ---------------------------------------------------------------------------


def _is_parent_name(stem: str, name: str) -> bool:
    if stem == name:
        return True
    parsed = rule_ids.parse(stem)
    return parsed is not None and parsed.prefix.lower() == name.lower()


def find_parent_document(directory: Path, index: CorpusIndex) -> Document | None:
    """Return the document that represents *directory* in its parent, if any."""
    for doc in index.documents_in(directory.parent):
        if _is_parent_name(doc.stem, directory.name):
            return doc
    return None


def _links_into(document: Document, directory: Path, index: CorpusIndex) -> bool:
    config = index.config
    for link in document.links:
        if link.kind is LinkKind.POINTER:
            target = resolve_pointer(link, index, config)
        elif link.kind is LinkKind.RELATIVE and link.path_part:
            target = resolve_relative(link, index, config)
        else:
            continue
        if target is not None and directory in target.parents:
            return True
    return False


def check_directories(index: CorpusIndex, report: ValidationReport, config: OkiteConfig) -> None:
    """Check the parent-document rule for every module directory at every depth."""
    for directory in index.module_directories():
        parent_doc = find_parent_document(directory, index)
        rel = directory.relative_to(index.root)
        if parent_doc is None:
            report.warning(
                directory,
                IssueKind.MISSING_PARENT_DOCUMENT,
                f"module directory '{rel}/' has no parent document "
                f"'{directory.name}.md' or '{directory.name}-<ulid>.md' beside it",
            )
            continue

        logger.debug("Parent document for %s: %s", rel, parent_doc.path.name)
        if not config.check_child_references or parent_doc.text is None:
            continue
        if index.documents_in(directory) and not _links_into(parent_doc, directory, index):
            report.warning(
                parent_doc.path,
                IssueKind.UNREFERENCED_CHILDREN,
                f"parent document does not link to any document in '{rel}/'",
            )
