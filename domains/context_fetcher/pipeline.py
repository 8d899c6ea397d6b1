"""Context export pipeline.

create_context runs one export end to end:
1. Validate config and resolve the source note
2. Link traversal (source + linked notes, full filter)
3. Recent daily notes, if enabled (privacy filter only)
4. Header + sections + summary

export_context then hands the assembled text to a sink.
"""

import asyncio
from datetime import datetime
from typing import Iterable, Optional

from logger import logger
from .assemble import (
    InclusionRecord,
    assemble_context,
    format_header,
    format_summary,
)
from .config import EXPORT_FILE_PREFIX, EXPORT_TAGS_IN_NAME, EXPORT_TIMESTAMP_FORMAT
from .export import ExportResult, ExportSink
from .filters import FilterPolicy
from .recent import collect_recent
from .settings import validate_config
from .store import DocumentStore
from .traversal import resolve_source, run_traversal
from .types import ContextConfig, RunResult


async def create_context(
    source_id: str,
    config: ContextConfig,
    store: DocumentStore,
    cancel_event: Optional[asyncio.Event] = None,
) -> RunResult:
    """Build a context document starting from a source note.

    Args:
        source_id: Id (vault path or note name) of the source note
        config: Run configuration
        store: Document store to read from
        cancel_event: Set by the caller to stop the traversal early

    Returns:
        RunResult with the assembled text and counters. A tripped safety
        ceiling or a cancellation still returns the partial output, with
        a warning on RunResult.warnings.

    Raises:
        ConfigError: Invalid configuration or empty source id
        SourceNotFoundError: Source does not resolve to a markdown note
    """
    validate_config(config)
    source = resolve_source(source_id, store)

    logger.info(
        f"Creating context for {source.basename} (depth {config.max_depth}, "
        f"privacy {list(config.allowed_privacy)}, tags {list(config.required_tags)}, "
        f"excluded {list(config.excluded_tags)})"
    )

    policy = FilterPolicy.from_config(config)
    record = InclusionRecord()

    traversal = await run_traversal(
        source, config.max_depth, policy, store, record, cancel_event=cancel_event
    )

    recent_fragment = ""
    recent_included = 0
    if config.recent_items.enabled:
        recent = await collect_recent(config.recent_items.count, policy, store, record)
        recent_fragment = recent.fragment
        recent_included = len(recent.included_ids)

    included_total = traversal.stats.included + recent_included
    text = assemble_context(
        format_header(source.basename, config),
        traversal.fragment,
        recent_fragment,
        format_summary(included_total, traversal.source_included, traversal.initial_link_count),
    )

    warnings = []
    if traversal.stats.overrun:
        warnings.append(
            f"Traversal loop ran too long ({traversal.stats.iterations} steps); output is partial."
        )
    if traversal.stats.cancelled:
        warnings.append("Traversal was cancelled; output is partial.")

    result = RunResult(
        text=text,
        source=source,
        config=config,
        stats=traversal.stats,
        recent_included=recent_included,
        warnings=warnings,
    )

    logger.info(
        f"Context for {source.basename} ready: {result.included_total} notes included "
        f"({traversal.stats.included} linked, {recent_included} recent), "
        f"{traversal.stats.processed} evaluated"
    )
    return result


def build_export_file_name(
    source_name: str,
    required_tags: Iterable[str] = (),
    now: Optional[datetime] = None,
) -> str:
    """Name an export file, e.g. Context-Plan-Tags-a-b-20250101-093000.md.

    Args:
        source_name: Display name of the source note
        required_tags: Required tags of the run (first two are used)
        now: Timestamp to use (defaults to the current local time)

    Returns:
        File name
    """
    tags = list(required_tags)[:EXPORT_TAGS_IN_NAME]
    tag_part = f"Tags-{'-'.join(tags)}" if tags else "NoTags"
    timestamp = (now or datetime.now()).strftime(EXPORT_TIMESTAMP_FORMAT)
    return f"{EXPORT_FILE_PREFIX}-{source_name}-{tag_part}-{timestamp}.md"


async def export_context(
    result: RunResult,
    sink: ExportSink,
    now: Optional[datetime] = None,
) -> ExportResult:
    """Persist a run's text through a sink.

    The RunResult is left untouched, so its text stays available when
    the sink fails.

    Raises:
        SinkError: If the sink could not write the file
    """
    file_name = build_export_file_name(result.source.basename, result.config.required_tags, now)
    return await sink.write(file_name, result.text)
