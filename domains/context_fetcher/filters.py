"""Filter policy for context exports.

Two predicates:
- passes_privacy: frontmatter `privacy` value is an allowed level
  (or absent, when the 'none' sentinel is allowed)
- passes_full: privacy AND tag rules, where an excluded tag always wins
  over a required tag

Both fail closed when the store could not supply metadata.
"""

from dataclasses import dataclass
from typing import Optional

from .config import PRIVACY_KEY, PRIVACY_NONE
from .types import ContextConfig, DocumentMetadata


@dataclass(frozen=True)
class FilterPolicy:
    """Privacy and tag rules for one run."""
    allowed_privacy: frozenset[str]
    required_tags: frozenset[str] = frozenset()
    excluded_tags: frozenset[str] = frozenset()

    @classmethod
    def from_config(cls, config: ContextConfig) -> "FilterPolicy":
        return cls(
            allowed_privacy=frozenset(config.allowed_privacy),
            required_tags=frozenset(config.required_tags),
            excluded_tags=frozenset(config.excluded_tags),
        )

    def passes_privacy(self, metadata: Optional[DocumentMetadata]) -> bool:
        """Check only the privacy rule."""
        if metadata is None:
            return False

        privacy = privacy_value(metadata)
        if privacy:
            return privacy in self.allowed_privacy
        return PRIVACY_NONE in self.allowed_privacy

    def passes_tags(self, metadata: Optional[DocumentMetadata]) -> bool:
        """Check only the tag rules (exclusion first, then requirement)."""
        if metadata is None:
            return False

        if self.excluded_tags and metadata.tags & self.excluded_tags:
            return False

        if self.required_tags:
            return bool(metadata.tags & self.required_tags)

        return True

    def passes_full(self, metadata: Optional[DocumentMetadata]) -> bool:
        """Privacy first; tag rules are only evaluated once privacy passes."""
        if not self.passes_privacy(metadata):
            return False
        return self.passes_tags(metadata)


def privacy_value(metadata: DocumentMetadata) -> Optional[str]:
    """Normalized privacy level, or None when absent, null or blank."""
    raw = metadata.frontmatter.get(PRIVACY_KEY)
    if not isinstance(raw, str):
        return None
    value = raw.strip().lower()
    return value or None
