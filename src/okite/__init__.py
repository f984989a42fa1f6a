"""Okite - integrity validator for rule-document corpora."""

from okite.frontmatter import FrontMatter, extract_frontmatter, serialize_frontmatter
from okite.report import Issue, IssueKind, Severity, ValidationReport
from okite.rule_id import RuleId, generate, is_valid, parse
from okite.walker import CorpusRootError, validate_corpus, validate_file

__version__ = "0.3.0"

__all__ = [
    "CorpusRootError",
    "FrontMatter",
    "Issue",
    "IssueKind",
    "RuleId",
    "Severity",
    "ValidationReport",
    "__version__",
    "extract_frontmatter",
    "generate",
    "is_valid",
    "parse",
    "serialize_frontmatter",
    "validate_corpus",
    "validate_file",
]
