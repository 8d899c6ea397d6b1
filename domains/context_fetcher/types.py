"""Type definitions for the Context Fetcher."""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Optional

from .config import (
    DEFAULT_LINK_DEPTH,
    DEFAULT_PRIVACY_LEVELS,
    DEFAULT_RECENT_DAYS,
)


@dataclass(frozen=True)
class Document:
    """A handle to a document in the vault.

    Content is never held on the handle; it is read through the store
    on demand.
    """
    id: str  # vault-relative POSIX path, e.g. "Projects/Plan.md"

    @property
    def name(self) -> str:
        return PurePosixPath(self.id).name

    @property
    def basename(self) -> str:
        """Display name (file name without extension)."""
        return PurePosixPath(self.id).stem

    @property
    def extension(self) -> str:
        return PurePosixPath(self.id).suffix.lstrip(".").lower()

    @property
    def is_markdown(self) -> bool:
        return self.extension == "md"


@dataclass(frozen=True)
class DocumentMetadata:
    """Frontmatter and tags for a document, as supplied by the store."""
    frontmatter: dict[str, Optional[str]] = field(default_factory=dict)
    tags: frozenset[str] = frozenset()  # lowercase, without '#'


@dataclass(frozen=True)
class RecentItemsConfig:
    """Settings for the recent daily notes side channel."""
    enabled: bool = False
    count: int = DEFAULT_RECENT_DAYS


@dataclass(frozen=True)
class ContextConfig:
    """Immutable configuration for one context run.

    List values are expected to be normalized already (lowercase,
    trimmed, tags without '#'); see settings.normalize_privacy_levels
    and settings.normalize_tags.
    """
    max_depth: int = DEFAULT_LINK_DEPTH
    allowed_privacy: tuple[str, ...] = DEFAULT_PRIVACY_LEVELS
    required_tags: tuple[str, ...] = ()
    excluded_tags: tuple[str, ...] = ()
    recent_items: RecentItemsConfig = RecentItemsConfig()


@dataclass
class TraversalStats:
    """Counters collected during a traversal run."""
    iterations: int = 0     # dequeue operations
    visited: int = 0        # ids marked seen (source included)
    processed: int = 0      # resolvable markdown candidates evaluated
    passed: int = 0         # documents passing the full filter
    included: int = 0       # documents whose content was emitted
    overrun: bool = False   # safety ceiling tripped
    cancelled: bool = False


@dataclass
class TraversalResult:
    """Output of the link traversal stage."""
    fragment: str
    included_ids: list[str]
    stats: TraversalStats
    initial_link_count: int = 0
    source_included: bool = False


@dataclass
class RecentResult:
    """Output of the recent daily notes stage."""
    fragment: str
    included_ids: list[str] = field(default_factory=list)
    candidates_found: int = 0


@dataclass
class RunResult:
    """The assembled context document plus run counters."""
    text: str
    source: Document
    config: ContextConfig
    stats: TraversalStats
    recent_included: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def included_total(self) -> int:
        """Documents whose content made it into the output, all channels."""
        return self.stats.included + self.recent_included

    @property
    def partial(self) -> bool:
        return self.stats.overrun or self.stats.cancelled


@dataclass(frozen=True)
class PreviewEntry:
    """One row of a traversal preview (filters only, no content read)."""
    id: str
    name: str
    depth: int
    passes: bool
