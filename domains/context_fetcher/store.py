"""Document store interface.

The engine reads the vault only through this interface. Lookups
(resolve, metadata, links, listing) are synchronous index reads; only
content reads suspend.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .types import Document, DocumentMetadata


class DocumentStore(ABC):
    """Base class for document stores."""

    @abstractmethod
    def resolve(self, doc_id: str) -> Optional[Document]:
        """Resolve an id to a document, or None if it does not exist."""
        pass

    @abstractmethod
    def get_metadata(self, doc_id: str) -> Optional[DocumentMetadata]:
        """Get frontmatter and tags, or None if unavailable."""
        pass

    @abstractmethod
    def get_outgoing_links(self, doc_id: str) -> list[str]:
        """Get ids this document links to, in discovery order, no duplicates."""
        pass

    @abstractmethod
    def list_documents(self) -> list[Document]:
        """List all markdown documents."""
        pass

    @abstractmethod
    async def read_content(self, doc_id: str) -> str:
        """Read raw content.

        Raises:
            ReadError: If the content could not be read
        """
        pass
