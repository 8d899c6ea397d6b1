"""Recent daily notes side channel.

Picks the N most recent daily notes (YYYY-MM-DD.md tagged #daily...) and
appends those not already in the export. Only the privacy rule applies
here; tag requirements and exclusions are bypassed.
"""

from typing import Optional

from logger import logger
from .assemble import (
    ContextBuilder,
    InclusionRecord,
    NO_RECENT_NOTES,
    RECENT_NOTES_FAILED,
    append_note,
    daily_title,
)
from .config import DAILY_NOTE_PATTERN, DAILY_TAG_PREFIX
from .filters import FilterPolicy
from .store import DocumentStore
from .types import Document, DocumentMetadata, RecentResult


def is_daily_note(doc: Document, metadata: Optional[DocumentMetadata]) -> bool:
    """Daily note = date-named markdown file carrying a daily* tag."""
    if not doc.is_markdown or not DAILY_NOTE_PATTERN.match(doc.name):
        return False
    if metadata is None:
        return False
    return any(tag.startswith(DAILY_TAG_PREFIX) for tag in metadata.tags)


def find_daily_notes(store: DocumentStore) -> list[Document]:
    """All daily notes in the store, newest first."""
    candidates = [
        doc for doc in store.list_documents()
        if is_daily_note(doc, store.get_metadata(doc.id))
    ]
    return sorted(candidates, key=lambda d: d.basename, reverse=True)


async def collect_recent(
    count: int,
    policy: FilterPolicy,
    store: DocumentStore,
    record: InclusionRecord,
) -> RecentResult:
    """Emit the most recent daily notes that pass the privacy rule.

    Args:
        count: How many of the newest daily notes to consider
        policy: Filter policy (only passes_privacy is used)
        store: Document store to read from
        record: Inclusion record shared with the traversal stage

    Returns:
        RecentResult with the section fragment and newly included ids
    """
    builder = ContextBuilder()
    builder.append(f"\n## Recent Daily Notes (Up to {count} days):\n")
    included_ids: list[str] = []
    candidates_found = 0

    try:
        candidates = find_daily_notes(store)
        candidates_found = len(candidates)
        to_process = candidates[:count]
        logger.info(
            f"[Daily Notes] Found {candidates_found} potential daily notes. "
            f"Processing the latest {len(to_process)}."
        )

        for doc in to_process:
            if doc.id in record:
                logger.info(f"[Daily Notes] Skipping {doc.basename} (already included)")
                continue

            if not policy.passes_privacy(store.get_metadata(doc.id)):
                logger.info(f"[Daily Notes] Skipped content: {doc.basename} (privacy filter)")
                continue

            if await append_note(builder, store, doc, daily_title(doc.basename), record):
                included_ids.append(doc.id)
                logger.info(f"[Daily Notes] Included content: {doc.basename}")

        if not included_ids:
            builder.note(NO_RECENT_NOTES)

    except Exception as e:
        logger.error(f"[Daily Notes] Error processing daily notes: {e}")
        builder.note(RECENT_NOTES_FAILED)

    return RecentResult(
        fragment=builder.build(),
        included_ids=included_ids,
        candidates_found=candidates_found,
    )
