"""
Context API Routes

Endpoints for building and previewing context exports.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field

from config import CONTEXT_EXPORT_FOLDER, VAULT_PATH
from logger import logger
from domains.context_fetcher import (
    ConfigError,
    SinkError,
    SinkFailure,
    SourceNotFoundError,
    VaultExportSink,
    VaultStore,
    create_context,
    export_context,
    load_context_config,
    merge_overrides,
    preview_context,
)

router = APIRouter(prefix="/context", tags=["context"])

# Store instance
_vault_store: Optional[VaultStore] = None


def get_vault_store() -> VaultStore:
    """Get or create the vault store, rescanning an existing one."""
    global _vault_store
    if not VAULT_PATH:
        raise HTTPException(status_code=503, detail="Vault not configured (VAULT_PATH)")
    if _vault_store is None:
        try:
            _vault_store = VaultStore(VAULT_PATH)
        except ConfigError as e:
            raise HTTPException(status_code=503, detail=str(e))
    else:
        _vault_store.refresh()
    return _vault_store


# Request/Response models


class ContextRequest(BaseModel):
    """Settings for one context run. Omitted fields use the environment defaults."""

    source: str = Field(..., description="Source note (vault path or note name)")
    depth: Optional[int] = Field(None, description="Link depth (1 or greater)")
    privacy: Optional[list[str]] = Field(None, description="Allowed privacy levels, 'none' for notes without one")
    tags: Optional[list[str]] = Field(None, description="Required tags (any one must match)")
    exclude: Optional[list[str]] = Field(None, description="Excluded tags (always win over required)")
    recent_days: Optional[int] = Field(None, description="Include this many recent daily notes")


class CreateContextRequest(ContextRequest):
    """Request to build a context export."""

    save: bool = Field(False, description="Write the export into the vault")


class CreateContextResponse(BaseModel):
    """Assembled context plus run counters."""

    source: str
    text: str
    included: int
    recent_included: int
    processed: int
    partial: bool
    warnings: list[str]
    saved_as: Optional[str] = None
    fallback_reason: Optional[str] = None


class PreviewRow(BaseModel):
    """One note a run would visit."""

    id: str
    name: str
    depth: int
    passes: bool


class PreviewResponse(BaseModel):
    """Response from a preview."""

    source: str
    total: int
    passing: int
    notes: list[PreviewRow]


def _build_config(request: ContextRequest):
    return merge_overrides(
        load_context_config(),
        max_depth=request.depth,
        allowed_privacy=request.privacy,
        required_tags=request.tags,
        excluded_tags=request.exclude,
        recent_enabled=True if request.recent_days is not None else None,
        recent_count=request.recent_days,
    )


def _config_error(e: ConfigError) -> HTTPException:
    if isinstance(e, SourceNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


# Endpoints


@router.post("/create", response_model=CreateContextResponse)
async def create_context_export(
    request: CreateContextRequest,
    store: VaultStore = Depends(get_vault_store),
):
    """
    Build a context export from a source note.

    With save=true the export is also written into the vault's export
    folder (or the vault root if that folder is unusable).
    """
    try:
        result = await create_context(request.source, _build_config(request), store)
    except ConfigError as e:
        raise _config_error(e)

    response = CreateContextResponse(
        source=result.source.id,
        text=result.text,
        included=result.included_total,
        recent_included=result.recent_included,
        processed=result.stats.processed,
        partial=result.partial,
        warnings=result.warnings,
    )

    if request.save:
        try:
            exported = await export_context(
                result, VaultExportSink(store.root, CONTEXT_EXPORT_FOLDER)
            )
        except SinkError as e:
            logger.error(f"Saving context failed: {e.message}")
            status = 409 if e.reason == SinkFailure.NAME_COLLISION else 500
            raise HTTPException(status_code=status, detail=e.message)

        response.saved_as = exported.path.relative_to(store.root).as_posix()
        if exported.fallback_reason:
            response.fallback_reason = exported.fallback_reason.value

    return response


@router.post("/preview", response_model=PreviewResponse)
async def preview_context_export(
    request: ContextRequest,
    store: VaultStore = Depends(get_vault_store),
):
    """
    List the notes a run would visit and whether each passes the filters.

    No note content is read.
    """
    try:
        entries = preview_context(request.source, _build_config(request), store)
    except ConfigError as e:
        raise _config_error(e)

    return PreviewResponse(
        source=entries[0].id,
        total=len(entries),
        passing=sum(1 for entry in entries if entry.passes),
        notes=[
            PreviewRow(id=entry.id, name=entry.name, depth=entry.depth, passes=entry.passes)
            for entry in entries
        ],
    )
