"""Errors raised by the Context Fetcher.

Only configuration problems and export failures escape a run. Read
failures are turned into inline placeholders by the stage that hit them,
missing metadata fails closed, and a tripped safety ceiling is reported
through RunResult.warnings.
"""

from enum import Enum


class ContextFetcherError(Exception):
    """Base class for all Context Fetcher errors."""


class ConfigError(ContextFetcherError):
    """Invalid configuration, detected before traversal starts."""


class SourceNotFoundError(ConfigError):
    """The source id does not resolve to a markdown document."""

    def __init__(self, source_id: str):
        self.source_id = source_id
        super().__init__(f"Source note not found or not markdown: {source_id}")


class ReadError(ContextFetcherError):
    """A resolvable document's content could not be read."""

    def __init__(self, doc_id: str, reason: str):
        self.doc_id = doc_id
        self.reason = reason
        super().__init__(f"Could not read {doc_id}: {reason}")


class SinkFailure(str, Enum):
    """Why an export could not be written where it was asked to go."""
    FOLDER_MISSING = "folder_missing"
    NOT_A_FOLDER = "not_a_folder"
    NAME_COLLISION = "name_collision"
    WRITE_FAILED = "write_failed"


class SinkError(ContextFetcherError):
    """Persisting the assembled context failed."""

    def __init__(self, reason: SinkFailure, message: str):
        self.reason = reason
        self.message = message
        super().__init__(message)
