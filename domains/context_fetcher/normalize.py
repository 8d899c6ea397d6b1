"""Content normalization for context exports.

Turns a raw note into standalone text:
1. Strip the leading frontmatter block
2. Cut everything after the first standalone '---' separator line
3. Flatten [[wiki links]] to their display text
4. Trim surrounding whitespace
"""

import re
from typing import Optional

from .config import FRONTMATTER_DELIMITER, SEPARATOR_PATTERN, WIKILINK_PATTERN

_CLOSING_DELIMITER = re.compile(r"\n---(?:\n|$)")
_BOM = "\ufeff"


def split_frontmatter(content: str) -> tuple[Optional[str], str]:
    """Split content into (frontmatter_block, body).

    Args:
        content: Raw note content (LF line endings)

    Returns:
        Tuple of (frontmatter text without delimiters, body). The
        frontmatter is None when the content has no block or the block
        is never closed; the whole content is then the body.
    """
    content = content.removeprefix(_BOM)
    if not content.startswith(FRONTMATTER_DELIMITER):
        return None, content

    # Search from the newline that ends the opening delimiter so an
    # empty block ("---\n---\n") closes immediately
    opening_end = len(FRONTMATTER_DELIMITER) - 1
    match = _CLOSING_DELIMITER.search(content, opening_end)
    if not match:
        return None, content

    return content[opening_end + 1:match.start() + 1], content[match.end():]


def strip_frontmatter(content: str) -> tuple[str, bool]:
    """Remove a leading frontmatter block.

    Returns:
        Tuple of (body, had_frontmatter). A malformed block (no closing
        delimiter) leaves the whole content as body.
    """
    block, body = split_frontmatter(content)
    return body, block is not None


def truncate_at_separator(body: str, skip_first_line: bool = False) -> str:
    """Cut the body at the first line consisting solely of '---'.

    Text after the separator is treated as scratch space and never
    exported.

    Args:
        body: Note body without frontmatter
        skip_first_line: Ignore a separator on the first line (used when
            the body still starts with an unclosed frontmatter delimiter)

    Returns:
        Body up to (not including) the separator line
    """
    start = 0
    if skip_first_line:
        newline = body.find("\n")
        if newline == -1:
            return body
        start = newline + 1

    match = SEPARATOR_PATTERN.search(body, start)
    if match:
        return body[:match.start()]
    return body


def flatten_wikilinks(text: str) -> str:
    """Replace [[target]] with target and [[target|display]] with display."""
    return WIKILINK_PATTERN.sub(r"\1", text)


def normalize_content(raw: str) -> str:
    """Normalize raw note content for inclusion in a context export.

    Args:
        raw: Full note content as read from the store

    Returns:
        Trimmed body text with frontmatter, scratch space and link
        syntax removed
    """
    content = raw.removeprefix(_BOM).replace("\r\n", "\n")
    body, had_frontmatter = strip_frontmatter(content)
    malformed = not had_frontmatter and content.startswith(FRONTMATTER_DELIMITER)
    body = truncate_at_separator(body, skip_first_line=malformed)
    return flatten_wikilinks(body).strip()
