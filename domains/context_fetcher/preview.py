"""Dry-run preview of a context export.

Walks the same link graph as the traversal but only evaluates filters,
never reading content, so settings can be checked cheaply.
"""

from collections import deque

from logger import logger
from .config import MAX_PREVIEW_ITERATIONS
from .filters import FilterPolicy
from .settings import validate_depth
from .store import DocumentStore
from .traversal import lookup_document, lookup_links, lookup_metadata, resolve_source
from .types import ContextConfig, PreviewEntry


def preview_context(
    source_id: str,
    config: ContextConfig,
    store: DocumentStore,
    max_iterations: int = MAX_PREVIEW_ITERATIONS,
) -> list[PreviewEntry]:
    """List the notes a run would visit and whether each passes the filters.

    Args:
        source_id: Id of the source note
        config: Run configuration (depth and filters)
        store: Document store to inspect
        max_iterations: Safety ceiling on dequeue operations

    Returns:
        PreviewEntry rows sorted by depth, then name

    Raises:
        ConfigError: Invalid depth or empty source id
        SourceNotFoundError: Source does not resolve to a markdown note
    """
    validate_depth(config.max_depth)
    source = resolve_source(source_id, store)

    policy = FilterPolicy.from_config(config)
    logger.info(f"[Preview] Starting preview for {source.basename}, depth {config.max_depth}")

    entries = [
        PreviewEntry(
            id=source.id,
            name=source.basename,
            depth=0,
            passes=policy.passes_full(lookup_metadata(store, source.id)),
        )
    ]

    seen: set[str] = {source.id}
    queue: deque[tuple[str, int]] = deque()
    for linked_id in lookup_links(store, source.id):
        if linked_id not in seen:
            queue.append((linked_id, 1))
            seen.add(linked_id)

    iterations = 0
    while queue:
        iterations += 1
        if iterations > max_iterations:
            logger.warning("[Preview] Safety break triggered during traversal")
            break

        doc_id, depth = queue.popleft()
        doc = lookup_document(store, doc_id)
        if doc is None or not doc.is_markdown:
            continue

        passes = policy.passes_full(lookup_metadata(store, doc.id))
        entries.append(PreviewEntry(id=doc.id, name=doc.basename, depth=depth, passes=passes))
        logger.debug(f"[Preview] Depth {depth}: {doc.basename}, passes: {passes}")

        if depth < config.max_depth:
            for next_id in lookup_links(store, doc.id):
                if next_id not in seen:
                    queue.append((next_id, depth + 1))
                    seen.add(next_id)

    logger.info(
        f"[Preview] Finished. {len(entries)} notes found, "
        f"{sum(1 for e in entries if e.passes)} pass the filters"
    )
    return sorted(entries, key=lambda e: (e.depth, e.name.lower()))
