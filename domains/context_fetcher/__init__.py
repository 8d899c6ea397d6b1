"""Context Fetcher - bundles a note and its linked notes into one document.

Starting from a source note, follows links breadth-first up to a depth
limit, keeps notes that pass the privacy and tag filters, strips them
down to their standalone content and assembles a single markdown export
for use as LLM context.

Storage: markdown vault on disk (VaultStore)
Output: markdown file in the vault (VaultExportSink)
"""

from .types import (
    Document,
    DocumentMetadata,
    ContextConfig,
    RecentItemsConfig,
    TraversalStats,
    TraversalResult,
    RecentResult,
    RunResult,
    PreviewEntry,
)
from .errors import (
    ContextFetcherError,
    ConfigError,
    SourceNotFoundError,
    ReadError,
    SinkError,
    SinkFailure,
)

# Main pipeline functions
from .pipeline import create_context, export_context, build_export_file_name
from .preview import preview_context

# Stages
from .normalize import normalize_content, strip_frontmatter, truncate_at_separator, flatten_wikilinks
from .filters import FilterPolicy
from .traversal import run_traversal
from .recent import collect_recent
from .assemble import InclusionRecord, assemble_context, format_header, format_summary

# Stores and sinks
from .store import DocumentStore
from .vault import VaultStore
from .export import ExportSink, ExportResult, VaultExportSink

# Settings
from .settings import load_context_config, merge_overrides, validate_config

# Commands
from .commands import handle_create_context, handle_preview

__all__ = [
    # Types
    "Document",
    "DocumentMetadata",
    "ContextConfig",
    "RecentItemsConfig",
    "TraversalStats",
    "TraversalResult",
    "RecentResult",
    "RunResult",
    "PreviewEntry",
    # Errors
    "ContextFetcherError",
    "ConfigError",
    "SourceNotFoundError",
    "ReadError",
    "SinkError",
    "SinkFailure",
    # Pipeline
    "create_context",
    "export_context",
    "build_export_file_name",
    "preview_context",
    # Stages
    "normalize_content",
    "strip_frontmatter",
    "truncate_at_separator",
    "flatten_wikilinks",
    "FilterPolicy",
    "run_traversal",
    "collect_recent",
    "InclusionRecord",
    "assemble_context",
    "format_header",
    "format_summary",
    # Stores and sinks
    "DocumentStore",
    "VaultStore",
    "ExportSink",
    "ExportResult",
    "VaultExportSink",
    # Settings
    "load_context_config",
    "merge_overrides",
    "validate_config",
    # Commands
    "handle_create_context",
    "handle_preview",
]
