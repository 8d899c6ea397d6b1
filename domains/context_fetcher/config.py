"""Configuration constants for the Context Fetcher."""

import re
from typing import Final

# Frontmatter block and section separator
FRONTMATTER_DELIMITER: Final[str] = "---\n"
SEPARATOR_PATTERN: Final[re.Pattern] = re.compile(r"^\s*---\s*$", re.MULTILINE)

# [[target]] or [[target|display]]
WIKILINK_PATTERN: Final[re.Pattern] = re.compile(r"\[\[(?:[^|\]]+\|)?([^\]]+)\]\]")

# Privacy filter
PRIVACY_KEY: Final[str] = "privacy"
PRIVACY_NONE: Final[str] = "none"      # Sentinel: no privacy key / null value

# Recent daily notes (YYYY-MM-DD.md tagged #daily)
DAILY_NOTE_PATTERN: Final[re.Pattern] = re.compile(r"^\d{4}-\d{2}-\d{2}\.md$")
DAILY_TAG_PREFIX: Final[str] = "daily"

# Traversal safety ceilings (dequeue operations)
MAX_TRAVERSAL_ITERATIONS: Final[int] = 10_000
MAX_PREVIEW_ITERATIONS: Final[int] = 5_000
PROGRESS_LOG_INTERVAL: Final[int] = 50
LARGE_QUEUE_WARNING: Final[int] = 200

# Defaults
DEFAULT_LINK_DEPTH: Final[int] = 1
DEFAULT_PRIVACY_LEVELS: Final[tuple[str, ...]] = ("public",)
DEFAULT_RECENT_DAYS: Final[int] = 3

# Export file naming
EXPORT_FILE_PREFIX: Final[str] = "Context"
EXPORT_TIMESTAMP_FORMAT: Final[str] = "%Y%m%d-%H%M%S"
EXPORT_TAGS_IN_NAME: Final[int] = 2
