"""Pytest configuration and fixtures."""

from typing import Iterable, Optional

import pytest

from domains.context_fetcher.errors import ReadError
from domains.context_fetcher.store import DocumentStore
from domains.context_fetcher.types import Document, DocumentMetadata


class FakeStore(DocumentStore):
    """In-memory document store with switchable failures."""

    def __init__(self):
        self.contents: dict[str, str] = {}
        self.metadata: dict[str, Optional[DocumentMetadata]] = {}
        self.links: dict[str, list[str]] = {}
        self.attachments: set[str] = set()
        self.fail_reads: set[str] = set()
        self.fail_metadata: set[str] = set()
        self.fail_links: set[str] = set()
        self.reads: list[str] = []

    def add(
        self,
        doc_id: str,
        content: str = "",
        links: Iterable[str] = (),
        tags: Iterable[str] = (),
        privacy: Optional[str] = "public",
        no_metadata: bool = False,
    ) -> Document:
        """Add a markdown note. privacy=None leaves the key out."""
        self.contents[doc_id] = content or f"Body of {doc_id}"
        self.links[doc_id] = list(links)
        if no_metadata:
            self.metadata[doc_id] = None
        else:
            frontmatter = {} if privacy is None else {"privacy": privacy}
            self.metadata[doc_id] = DocumentMetadata(frontmatter=frontmatter, tags=frozenset(tags))
        return Document(id=doc_id)

    def add_attachment(self, doc_id: str) -> None:
        self.attachments.add(doc_id)

    def resolve(self, doc_id: str) -> Optional[Document]:
        if doc_id in self.contents or doc_id in self.attachments:
            return Document(id=doc_id)
        return None

    def get_metadata(self, doc_id: str) -> Optional[DocumentMetadata]:
        if doc_id in self.fail_metadata:
            raise RuntimeError("metadata cache unavailable")
        return self.metadata.get(doc_id)

    def get_outgoing_links(self, doc_id: str) -> list[str]:
        if doc_id in self.fail_links:
            raise RuntimeError("link index unavailable")
        return list(self.links.get(doc_id, []))

    def list_documents(self) -> list[Document]:
        return [Document(id=doc_id) for doc_id in self.contents]

    async def read_content(self, doc_id: str) -> str:
        self.reads.append(doc_id)
        if doc_id in self.fail_reads:
            raise ReadError(doc_id, "permission denied")
        return self.contents[doc_id]


@pytest.fixture
def store():
    """Create an empty in-memory document store."""
    return FakeStore()


@pytest.fixture
def vault(tmp_path):
    """Create a small vault on disk.

    Plan.md links to Design (wiki link), Budget (aliased) and
    Notes/Meeting.md (markdown link). Design links back to Plan.
    """
    root = tmp_path / "vault"
    (root / "Notes").mkdir(parents=True)
    (root / ".obsidian").mkdir()

    (root / "Plan.md").write_text(
        "---\nprivacy: public\ntags: [project-a]\n---\n"
        "Plan body with [[Design]] and [[Budget|the budget]].\n"
        "See [meeting](Notes/Meeting.md).\n"
        "---\nscratch text\n",
        encoding="utf-8",
    )
    (root / "Design.md").write_text(
        "---\nprivacy: public\n---\nDesign body, back to [[Plan]]. #design\n",
        encoding="utf-8",
    )
    (root / "Notes" / "Budget.md").write_text(
        "---\nprivacy: secret\n---\nBudget numbers\n",
        encoding="utf-8",
    )
    (root / "Notes" / "Meeting.md").write_text(
        "No frontmatter here. #meeting\n",
        encoding="utf-8",
    )
    (root / "2024-01-02.md").write_text(
        "---\nprivacy: public\ntags: daily\n---\nDaily entry\n",
        encoding="utf-8",
    )
    (root / "diagram.png").write_bytes(b"\x89PNG")
    (root / ".obsidian" / "Hidden.md").write_text("app config", encoding="utf-8")
    return root
