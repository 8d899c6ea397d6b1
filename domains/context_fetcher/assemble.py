"""Output assembly for context exports.

Section formatting, the inclusion record shared by all stages, and the
final header + sections + summary concatenation.
"""

from typing import Iterable, Iterator, Optional

from logger import logger
from .normalize import normalize_content
from .store import DocumentStore
from .types import ContextConfig, Document

NO_NOTES_INCLUDED = (
    "*No notes (including source) had content matching all the required filters.*"
)
NO_LINKED_NOTES_INCLUDED = (
    "*No linked notes had content matching all the required filters within the depth limit.*"
)
NO_RECENT_NOTES = (
    "*No recent daily notes matching the privacy filter were found or added.*"
)
RECENT_NOTES_FAILED = "*An error occurred while processing recent daily notes.*"
SKIPPED_BY_FILTERS = "*Note content skipped (Filters).*"
READ_ERROR = "*Error reading file content.*"
TRAVERSAL_OVERRUN = (
    "*Traversal stopped early: safety limit of {limit} steps reached. "
    "Linked notes beyond this point were not processed.*"
)
TRAVERSAL_CANCELLED = (
    "*Traversal cancelled before completion. "
    "Linked notes beyond this point were not processed.*"
)


class InclusionRecord:
    """Ids whose content has been written into the output.

    Updated only at the point where a stage emits a content section.
    """

    def __init__(self, ids: Optional[Iterable[str]] = None):
        self._ids: dict[str, None] = dict.fromkeys(ids or ())

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def add(self, doc_id: str) -> None:
        self._ids[doc_id] = None


class ContextBuilder:
    """Accumulates one stage's output fragment."""

    def __init__(self):
        self._parts: list[str] = []

    def append(self, text: str) -> None:
        if text:
            self._parts.append(text)

    def note(self, message: str) -> None:
        """Append a standalone italic note line followed by a rule."""
        self._parts.append(f"\n{message}\n\n---\n")

    def build(self) -> str:
        return "".join(self._parts)


def format_note_section(title: str, body: str) -> str:
    """Format one note section.

    Args:
        title: Section title, e.g. "Linked Note: Plan (Depth 2)"
        body: Normalized content

    Returns:
        Markdown section ending with a horizontal rule
    """
    return f"\n## {title}\n\n### Content:\n{body}\n\n---\n"


def format_placeholder_section(title: str, message: str) -> str:
    """Format a section that names a gap (skipped or unreadable note)."""
    return f"\n## {title}\n\n{message}\n\n---\n"


def source_title(name: str) -> str:
    return f"Source Note: {name}"


def linked_title(name: str, depth: int) -> str:
    return f"Linked Note: {name} (Depth {depth})"


def daily_title(name: str) -> str:
    return f"Daily Note: {name}"


async def append_note(
    builder: ContextBuilder,
    store: DocumentStore,
    doc: Document,
    title: str,
    record: InclusionRecord,
) -> bool:
    """Read, normalize and emit one note, recording it as included.

    A failed read is emitted as an inline error placeholder and the note
    is not recorded; the caller carries on with the next note.

    Returns:
        True if the note's content was emitted
    """
    try:
        raw = await store.read_content(doc.id)
    except Exception as e:
        logger.error(f"Error reading file {doc.id}: {e}")
        builder.append(format_placeholder_section(title, READ_ERROR))
        return False

    builder.append(format_note_section(title, normalize_content(raw)))
    record.add(doc.id)
    return True


def _format_tags(tags: Iterable[str]) -> str:
    return ", ".join(f"#{t}" for t in tags) or "None"


def format_header(source_name: str, config: ContextConfig) -> str:
    """Format the metadata header describing the run settings."""
    lines = [
        "# Context Export",
        "",
        f"* Source Note: {source_name}",
        f"* Link Depth Setting: {config.max_depth}",
        f"* Privacy Levels Included: {', '.join(config.allowed_privacy) or 'none'}",
        f"* Required Tags for Inclusion: {_format_tags(config.required_tags)}",
        f"* Excluded Tags: {_format_tags(config.excluded_tags)}",
        f"* Include Recent Daily Notes: {'Yes' if config.recent_items.enabled else 'No'}",
    ]
    if config.recent_items.enabled:
        lines.append(f"* Number of Recent Days: {config.recent_items.count}")

    return "\n".join(lines) + "\n\n---\n"


def format_summary(
    included_total: int,
    source_included: bool,
    initial_link_count: int,
) -> str:
    """Format the trailing summary line, if any.

    Args:
        included_total: Notes included across traversal and recent notes
        source_included: Whether the source note's content was included
        initial_link_count: Outgoing links of the source note

    Returns:
        Summary fragment, or empty string when nothing needs explaining
    """
    if included_total == 0:
        return f"\n{NO_NOTES_INCLUDED}\n\n---\n"

    if source_included and included_total == 1 and initial_link_count > 0:
        return f"\n{NO_LINKED_NOTES_INCLUDED}\n\n---\n"

    return ""


def assemble_context(
    header: str,
    traversal_fragment: str,
    recent_fragment: str = "",
    summary: str = "",
) -> str:
    """Join the output sections in their fixed order."""
    return "".join([header, traversal_fragment, recent_fragment, summary])
