"""Corpus index: enumerate rule documents once and hold them for every check."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from okite.frontmatter import split_frontmatter
from okite.links import extract_headings, extract_links, first_title

if TYPE_CHECKING:
    from pathlib import Path

    from okite.config import OkiteConfig
    from okite.frontmatter import FrontMatter
    from okite.links import Heading, Link

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """One rule document as read at the start of a validation pass."""

    path: Path
    text: str | None
    frontmatter: FrontMatter | None = None
    body: str = ""
    headings: list[Heading] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    read_error: str | None = None

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def anchors(self) -> set[str]:
        return {h.anchor for h in self.headings}

    @property
    def title(self) -> str | None:
        return first_title(self.headings)


def load_document(path: Path, config: OkiteConfig) -> Document:
    """Read and parse *path*; a read failure is recorded, not raised."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read %s: %s", path, exc)
        return Document(path=path, text=None, read_error=str(exc))

    frontmatter, body = split_frontmatter(text)
    normalized = text.replace("\r\n", "\n")
    # Line numbers stay relative to the whole file.
    offset = normalized.count("\n", 0, len(normalized) - len(body))
    return Document(
        path=path,
        text=text,
        frontmatter=frontmatter,
        body=body,
        headings=extract_headings(body),
        links=extract_links(body, path, config, start_line=offset + 1),
    )


def _is_excluded(path: Path, root: Path, config: OkiteConfig) -> bool:
    rel_parts = path.relative_to(root).parts[:-1]
    return any(part in config.exclude_dirs for part in rel_parts)


def enumerate_documents(root: Path, config: OkiteConfig) -> list[Path]:
    """Return every document under *root*, sorted, reserved directories excluded."""
    found: set[Path] = set()
    for pattern in config.document_patterns:
        for path in root.glob(pattern):
            if path.is_file() and not _is_excluded(path, root, config):
                found.add(path)
    return sorted(found)


class CorpusIndex:
    """In-memory view of the corpus shared, read-only, by all checks.

    Documents are loaded once.  Markdown files outside the corpus that links
    point at are read lazily and cached for their headings.
    """

    def __init__(self, root: Path, documents: list[Document], config: OkiteConfig) -> None:
        self.root = root
        self.config = config
        self.documents = documents
        self._by_path: dict[Path, Document] = {doc.path: doc for doc in documents}
        self._external: dict[Path, Document] = {}

    @classmethod
    def build(cls, root: Path, config: OkiteConfig) -> CorpusIndex:
        root = root.resolve()
        paths = enumerate_documents(root, config)
        logger.debug("Enumerated %d documents under %s", len(paths), root)
        return cls(root, [load_document(p, config) for p in paths], config)

    def __len__(self) -> int:
        return len(self.documents)

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    def get(self, path: Path) -> Document | None:
        return self._by_path.get(path)

    def is_file(self, path: Path) -> bool:
        if path in self._by_path:
            return True
        try:
            return path.is_file()
        except (OSError, ValueError):
            return False

    def exists(self, path: Path) -> bool:
        if path in self._by_path:
            return True
        try:
            return path.exists()
        except (OSError, ValueError):
            return False

    def _lookup(self, path: Path) -> Document | None:
        doc = self._by_path.get(path)
        if doc is not None:
            return doc
        if path not in self._external:
            self._external[path] = load_document(path, self.config)
        return self._external[path]

    def anchors_for(self, path: Path) -> set[str] | None:
        """Anchor ids of the Markdown file at *path*, or None if unreadable."""
        doc = self._lookup(path)
        if doc is None or doc.text is None:
            return None
        return doc.anchors

    def title_for(self, path: Path) -> str | None:
        doc = self._lookup(path)
        return doc.title if doc is not None else None

    def documents_in(self, directory: Path) -> list[Document]:
        """Documents whose parent directory is exactly *directory*."""
        return [doc for doc in self.documents if doc.path.parent == directory]

    def module_directories(self) -> list[Path]:
        """Directories under the root holding at least one document at any depth."""
        dirs: set[Path] = set()
        for doc in self.documents:
            parent = doc.path.parent
            while parent != self.root and self.root in parent.parents:
                dirs.add(parent)
                parent = parent.parent
        return sorted(dirs)
