"""Breadth-first link traversal for context exports.

Walks outgoing links from the source note up to a maximum depth:
- Every note is enqueued at most once, at the depth it is first
  discovered, so each included note carries its shortest distance
- Notes are processed strictly in FIFO order (non-decreasing depth)
- The source note always gets a section (content or "skipped");
  linked notes that fail the filters are left out silently
- A dequeue ceiling and an optional cancel event stop pathological runs
  without discarding what was already produced
"""

import asyncio
from collections import deque
from typing import Optional

from logger import logger
from .assemble import (
    ContextBuilder,
    InclusionRecord,
    SKIPPED_BY_FILTERS,
    TRAVERSAL_CANCELLED,
    TRAVERSAL_OVERRUN,
    append_note,
    format_placeholder_section,
    linked_title,
    source_title,
)
from .config import LARGE_QUEUE_WARNING, MAX_TRAVERSAL_ITERATIONS, PROGRESS_LOG_INTERVAL
from .errors import ConfigError, SourceNotFoundError
from .filters import FilterPolicy
from .settings import validate_depth
from .store import DocumentStore
from .types import Document, DocumentMetadata, TraversalResult, TraversalStats


def lookup_metadata(store: DocumentStore, doc_id: str) -> Optional[DocumentMetadata]:
    """Get metadata, treating a failing lookup as unavailable."""
    try:
        return store.get_metadata(doc_id)
    except Exception as e:
        logger.warning(f"Metadata lookup failed for {doc_id}: {e}")
        return None


def lookup_links(store: DocumentStore, doc_id: str) -> list[str]:
    """Get outgoing links, treating a failing lookup as no links."""
    try:
        return store.get_outgoing_links(doc_id)
    except Exception as e:
        logger.warning(f"Link lookup failed for {doc_id}: {e}")
        return []


def lookup_document(store: DocumentStore, doc_id: str) -> Optional[Document]:
    """Resolve an id, treating a failing lookup as unresolved."""
    try:
        return store.resolve(doc_id)
    except Exception as e:
        logger.warning(f"Resolve failed for {doc_id}: {e}")
        return None


def resolve_source(source_id: str, store: DocumentStore) -> Document:
    """Resolve the source note of a run.

    Raises:
        ConfigError: If source_id is empty
        SourceNotFoundError: If it does not resolve to a markdown note
    """
    source_id = (source_id or "").strip()
    if not source_id:
        raise ConfigError("No source note given.")

    source = store.resolve(source_id)
    if source is None or not source.is_markdown:
        raise SourceNotFoundError(source_id)
    return source


async def run_traversal(
    source: Document,
    max_depth: int,
    policy: FilterPolicy,
    store: DocumentStore,
    record: Optional[InclusionRecord] = None,
    cancel_event: Optional[asyncio.Event] = None,
    max_iterations: int = MAX_TRAVERSAL_ITERATIONS,
) -> TraversalResult:
    """Traverse links from the source note and emit included notes.

    Args:
        source: Resolved source note (depth 0)
        max_depth: Maximum link distance to follow (>= 1)
        policy: Filters applied to every note
        store: Document store to read from
        record: Inclusion record shared with later stages (a new one is
            created if not given)
        cancel_event: Set by the caller to stop the traversal early
        max_iterations: Safety ceiling on dequeue operations

    Returns:
        TraversalResult with the output fragment, included ids and stats

    Raises:
        ConfigError: If max_depth is not an integer >= 1
    """
    validate_depth(max_depth)
    if record is None:
        record = InclusionRecord()

    builder = ContextBuilder()
    stats = TraversalStats()
    included_ids: list[str] = []

    # Part 1: source note
    source_included = False
    if policy.passes_full(lookup_metadata(store, source.id)):
        stats.passed += 1
        if source.id in record:
            source_included = True
        elif await append_note(builder, store, source, source_title(source.basename), record):
            source_included = True
            included_ids.append(source.id)
            stats.included += 1
            logger.info(f"[Depth 0] Included content: {source.basename}")
    else:
        logger.info(f"[Depth 0] Skipped content: {source.basename} (filters)")
        builder.append(format_placeholder_section(source_title(source.basename), SKIPPED_BY_FILTERS))

    # Part 2: linked notes
    builder.append(f"\n## Linked Notes (Up to Depth {max_depth}):\n")

    seen: set[str] = {source.id}
    queue: deque[tuple[str, int]] = deque()

    initial_links = lookup_links(store, source.id)
    for linked_id in initial_links:
        if linked_id not in seen:
            logger.debug(f"[BFS init] Enqueuing {linked_id} (depth 1)")
            queue.append((linked_id, 1))
            seen.add(linked_id)

    logger.info(
        f"[BFS start] Max depth {max_depth}, initial queue {len(queue)}, visited {len(seen)}"
    )

    while queue:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"[BFS #{stats.iterations}] Cancelled with {len(queue)} notes queued")
            stats.cancelled = True
            builder.note(TRAVERSAL_CANCELLED)
            break

        stats.iterations += 1
        if stats.iterations % PROGRESS_LOG_INTERVAL == 0 or len(queue) > LARGE_QUEUE_WARNING:
            logger.info(
                f"[BFS #{stats.iterations}] Queue size {len(queue)}, visited {len(seen)}"
            )
        if stats.iterations > max_iterations:
            logger.error(f"[BFS #{stats.iterations}] Safety break, traversal ran too long")
            stats.iterations -= 1
            stats.overrun = True
            builder.note(TRAVERSAL_OVERRUN.format(limit=max_iterations))
            break

        doc_id, depth = queue.popleft()

        doc = lookup_document(store, doc_id)
        if doc is None or not doc.is_markdown:
            logger.debug(f"[Depth {depth}] Not a markdown note, skipping: {doc_id}")
            continue

        stats.processed += 1
        if policy.passes_full(lookup_metadata(store, doc.id)):
            stats.passed += 1
            if doc.id in record:
                logger.debug(f"[Depth {depth}] Already included: {doc.basename}")
            elif await append_note(builder, store, doc, linked_title(doc.basename, depth), record):
                included_ids.append(doc.id)
                stats.included += 1
                logger.info(f"[Depth {depth}] Included content: {doc.basename}")
        else:
            logger.debug(f"[Depth {depth}] Skipped content: {doc.basename} (filters)")

        # Children only while below the depth limit
        if depth < max_depth:
            for next_id in lookup_links(store, doc.id):
                if next_id not in seen:
                    logger.debug(f"[BFS #{stats.iterations}] Enqueuing {next_id} (depth {depth + 1})")
                    queue.append((next_id, depth + 1))
                    seen.add(next_id)

    stats.visited = len(seen)
    logger.info(
        f"[BFS end] Iterations {stats.iterations}, {stats.processed} notes evaluated, "
        f"{stats.visited} visited, {stats.included} included"
    )

    return TraversalResult(
        fragment=builder.build(),
        included_ids=included_ids,
        stats=stats,
        initial_link_count=len(initial_links),
        source_included=source_included,
    )
