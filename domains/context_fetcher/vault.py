"""Filesystem-backed document store for a markdown vault.

Scans the vault once (or on refresh()) and keeps an index of files,
parsed frontmatter, tags and resolved outgoing links. Content reads go
through asyncio.to_thread so a run only suspends on I/O.
"""

import asyncio
import posixpath
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote

import yaml

from logger import logger
from .config import PRIVACY_KEY
from .errors import ConfigError, ReadError
from .normalize import split_frontmatter
from .store import DocumentStore
from .types import Document, DocumentMetadata

# Folders never indexed (app config, VCS, trash)
IGNORED_DIRS = {".obsidian", ".git", ".trash", ".stversions"}

# [[target]], [[target#heading]], [[target|alias]], ![[embed]]
_LINK_TARGET = re.compile(r"!?\[\[([^\]|#^]*)(?:[#^][^\]|]*)?(?:\|[^\]]*)?\]\]")

# [text](relative/path.md "title")
_MARKDOWN_LINK = re.compile(r"\[[^\]]*\]\(<?([^)\s>]+)>?(?:\s+\"[^\"]*\")?\)")

# #tag, #nested/tag (at least one non-digit, not part of a word or URL)
_INLINE_TAG = re.compile(r"(?<![\w#/&])#([\w/\-]*[^\W\d][\w/\-]*)")

_FENCED_CODE = re.compile(r"```.*?```|~~~.*?~~~", re.DOTALL)
_INLINE_CODE = re.compile(r"`[^`\n]*`")


def _normalize_tag(tag: str) -> str:
    return tag.strip().lstrip("#").strip().lower()


def _flatten_value(value: Any) -> Optional[str]:
    """Coerce a YAML value to the flat string form used by filters."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v is not None)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def parse_frontmatter(block: str) -> Optional[dict[str, Any]]:
    """Parse a YAML frontmatter block.

    Returns:
        Mapping of keys to raw YAML values, or None if the block is not
        valid YAML or not a mapping
    """
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        logger.warning(f"Invalid frontmatter YAML: {e}")
        return None

    if data is None:
        return {}
    if not isinstance(data, dict):
        return None
    return {str(k): v for k, v in data.items()}


def frontmatter_tags(data: dict[str, Any]) -> set[str]:
    """Collect tags from the `tags` / `tag` frontmatter keys."""
    tags = set()
    for key in ("tags", "tag"):
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            items = re.split(r"[,\s]+", value)
        elif isinstance(value, (list, tuple)):
            items = [str(v) for v in value if v is not None]
        else:
            items = [str(value)]
        tags.update(_normalize_tag(t) for t in items if _normalize_tag(t))
    return tags


def inline_tags(body: str) -> set[str]:
    """Collect #tags from the note body, ignoring code."""
    text = _INLINE_CODE.sub("", _FENCED_CODE.sub("", body))
    return {_normalize_tag(m.group(1)) for m in _INLINE_TAG.finditer(text)}


def extract_link_targets(body: str) -> list[str]:
    """Extract raw link targets (wiki and relative markdown links) in order."""
    text = _INLINE_CODE.sub("", _FENCED_CODE.sub("", body))
    found: list[tuple[int, str]] = []

    for match in _LINK_TARGET.finditer(text):
        target = match.group(1).strip()
        if target:
            found.append((match.start(), target))

    for match in _MARKDOWN_LINK.finditer(text):
        target = unquote(match.group(1)).split("#", 1)[0].strip()
        if not target or "://" in target or target.startswith("mailto:"):
            continue
        found.append((match.start(), "./" + target if not target.startswith(("/", ".")) else target))

    return [target for _, target in sorted(found)]


@dataclass
class VaultIndex:
    """One consistent snapshot of the vault.

    refresh() builds a new snapshot and swaps it in with a single
    assignment; readers grab the current snapshot once per lookup.
    """

    files: dict[str, Path] = field(default_factory=dict)
    lower_ids: dict[str, str] = field(default_factory=dict)
    by_name: dict[str, list[str]] = field(default_factory=dict)
    metadata: dict[str, Optional[DocumentMetadata]] = field(default_factory=dict)
    links: dict[str, list[str]] = field(default_factory=dict)

    def resolve_link(self, target: str, from_id: Optional[str] = None) -> Optional[str]:
        """Resolve a link target the way a vault app does.

        Order: relative to the linking note, exact vault path, then file
        name anywhere in the vault (shortest path first).
        """
        target = target.strip()
        if not target:
            return None

        if target.lower().endswith(".md"):
            candidates = [target]
        else:
            candidates = [f"{target}.md", target]

        for candidate in candidates:
            if from_id and candidate.startswith("."):
                folder = posixpath.dirname(from_id)
                joined = posixpath.normpath(posixpath.join(folder, candidate))
                found = self.lower_ids.get(joined.lower())
                if found:
                    return found
                continue

            exact = self.lower_ids.get(posixpath.normpath(candidate.lstrip("/")).lower())
            if exact:
                return exact

            name = posixpath.basename(candidate).lower()
            for doc_id in self.by_name.get(name, []):
                if "/" not in candidate or doc_id.lower().endswith("/" + candidate.lower()):
                    return doc_id

        return None


class VaultStore(DocumentStore):
    """Document store over a directory of markdown notes."""

    def __init__(self, root: Path | str):
        """Index the vault.

        Args:
            root: Vault directory

        Raises:
            ConfigError: If root is not a directory
        """
        self.root = Path(root)
        if not self.root.is_dir():
            raise ConfigError(f"Vault path is not a directory: {self.root}")

        self._index = VaultIndex()
        self.refresh()

    # =========================================================================
    # INDEXING
    # =========================================================================

    def refresh(self) -> int:
        """Rescan the vault and swap in a fresh index.

        Runs in flight keep reading the previous index until the swap.

        Returns:
            Number of markdown notes indexed
        """
        index = VaultIndex()

        for path in sorted(self.root.rglob("*")):
            rel = path.relative_to(self.root)
            if any(part in IGNORED_DIRS for part in rel.parts) or not path.is_file():
                continue
            doc_id = rel.as_posix()
            index.files[doc_id] = path
            index.lower_ids[doc_id.lower()] = doc_id
            index.by_name.setdefault(path.name.lower(), []).append(doc_id)

        # Shortest path wins when several files share a name
        for ids in index.by_name.values():
            ids.sort(key=lambda i: (i.count("/"), i))

        raw_links: dict[str, list[str]] = {}
        for doc_id, path in index.files.items():
            if not doc_id.lower().endswith(".md"):
                continue
            try:
                content = path.read_text(encoding="utf-8-sig").replace("\r\n", "\n")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not index {doc_id}: {e}")
                index.metadata[doc_id] = None
                raw_links[doc_id] = []
                continue

            index.metadata[doc_id], body = self._parse_note(doc_id, content)
            raw_links[doc_id] = extract_link_targets(body)

        for doc_id, targets in raw_links.items():
            resolved: list[str] = []
            for target in targets:
                linked = index.resolve_link(target, doc_id)
                if linked and linked not in resolved:
                    resolved.append(linked)
            index.links[doc_id] = resolved

        self._index = index
        logger.info(f"Indexed vault {self.root}: {len(raw_links)} notes, {len(index.files)} files")
        return len(raw_links)

    def _parse_note(self, doc_id: str, content: str) -> tuple[Optional[DocumentMetadata], str]:
        block, body = split_frontmatter(content)
        data: Optional[dict[str, Any]] = {}
        if block is not None:
            data = parse_frontmatter(block)
            if data is None:
                logger.warning(f"Frontmatter unavailable for {doc_id}, note will be filtered out")
                return None, body

        tags = frontmatter_tags(data) | inline_tags(body)
        tags.discard("")
        frontmatter = {key: _flatten_value(value) for key, value in data.items()}
        # Only a string privacy level counts; anything else reads as missing
        if not isinstance(data.get(PRIVACY_KEY), str):
            frontmatter.pop(PRIVACY_KEY, None)
        return DocumentMetadata(frontmatter=frontmatter, tags=frozenset(tags)), body

    # =========================================================================
    # DOCUMENT STORE
    # =========================================================================

    def resolve(self, doc_id: str) -> Optional[Document]:
        """Resolve an exact id, falling back to link-style lookup by name."""
        index = self._index
        if doc_id in index.files:
            return Document(id=doc_id)

        found = index.resolve_link(doc_id)
        return Document(id=found) if found else None

    def get_metadata(self, doc_id: str) -> Optional[DocumentMetadata]:
        return self._index.metadata.get(doc_id)

    def get_outgoing_links(self, doc_id: str) -> list[str]:
        return list(self._index.links.get(doc_id, []))

    def list_documents(self) -> list[Document]:
        return [Document(id=doc_id) for doc_id in self._index.metadata]

    async def read_content(self, doc_id: str) -> str:
        return await asyncio.to_thread(self._read_text, doc_id)

    def _read_text(self, doc_id: str) -> str:
        path = self._index.files.get(doc_id)
        if path is None:
            raise ReadError(doc_id, "not in vault index")
        try:
            return path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(doc_id, str(e)) from e
