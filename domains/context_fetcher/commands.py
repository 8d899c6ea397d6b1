"""Command handlers for the Context Fetcher.

Provides:
- create context <note> - Build (and save) a context export
- preview context <note> - List notes a run would include
"""

from typing import Optional

from config import CONTEXT_EXPORT_FOLDER, VAULT_PATH
from logger import logger
from .errors import ConfigError, SinkError
from .export import VaultExportSink
from .pipeline import create_context, export_context
from .preview import preview_context
from .settings import load_context_config, merge_overrides
from .types import ContextConfig
from .vault import VaultStore


def open_vault(vault_path: Optional[str] = None) -> VaultStore:
    """Open the given vault, or the configured VAULT_PATH.

    Raises:
        ConfigError: If no vault is configured or the path is not a folder
    """
    path = vault_path or VAULT_PATH
    if not path:
        raise ConfigError("No vault configured. Set VAULT_PATH or pass a vault path.")
    return VaultStore(path)


def build_config(
    depth: Optional[int] = None,
    tags: Optional[str | list[str]] = None,
    exclude: Optional[str | list[str]] = None,
) -> ContextConfig:
    """Environment settings with per-command overrides applied."""
    return merge_overrides(
        load_context_config(),
        max_depth=depth,
        required_tags=tags,
        excluded_tags=exclude,
    )


async def handle_create_context(
    source: str,
    vault_path: Optional[str] = None,
    depth: Optional[int] = None,
    tags: Optional[str | list[str]] = None,
    save: bool = True,
    exclude: Optional[str | list[str]] = None,
) -> str:
    """Handle the create context command.

    Args:
        source: Source note (vault path or note name)
        vault_path: Vault folder (defaults to VAULT_PATH)
        depth: Link depth override
        tags: Required tags override (comma-separated or list)
        save: Write the export into the vault
        exclude: Excluded tags override

    Returns:
        Response message
    """
    if not source or not source.strip():
        return "**Usage:** `create context <note>`\n\nExamples:\n- `create context Projects/Plan.md`\n- `create context Plan`"

    source = source.strip()
    logger.info(f"Processing create context command: {source}")

    try:
        store = open_vault(vault_path)
        config = build_config(depth, tags, exclude)
        result = await create_context(source, config, store)
    except ConfigError as e:
        return f"❌ {e}"
    except Exception as e:
        logger.error(f"Create context command failed: {e}")
        return f"❌ Error creating context: {str(e)[:100]}"

    response_lines = [
        f"✅ **Context created** from *{result.source.basename}*",
        f"📄 {result.included_total} note{'s' if result.included_total != 1 else ''} included"
        + (f" ({result.recent_included} recent)" if result.recent_included else ""),
    ]
    for warning in result.warnings:
        response_lines.append(f"⚠️ {warning}")

    if not save:
        response_lines.extend(["", result.text])
        return "\n".join(response_lines)

    try:
        exported = await export_context(
            result, VaultExportSink(store.root, CONTEXT_EXPORT_FOLDER)
        )
    except SinkError as e:
        logger.error(f"Saving context failed: {e.message}")
        response_lines.append(f"❌ {e.message} The context was not saved.")
        return "\n".join(response_lines)

    if exported.fallback_reason:
        response_lines.append(
            f"⚠️ Export folder unavailable ({exported.fallback_reason.value}), saved to vault root"
        )
    response_lines.append(f"💾 Saved as `{exported.file_name}`")
    return "\n".join(response_lines)


async def handle_preview(
    source: str,
    vault_path: Optional[str] = None,
    depth: Optional[int] = None,
    tags: Optional[str | list[str]] = None,
    exclude: Optional[str | list[str]] = None,
) -> str:
    """Handle the preview context command.

    Returns:
        Response message listing each visited note and whether it passes
    """
    if not source or not source.strip():
        return "**Usage:** `preview context <note>`"

    source = source.strip()
    logger.info(f"Processing preview command: {source}")

    try:
        store = open_vault(vault_path)
        entries = preview_context(source, build_config(depth, tags, exclude), store)
    except ConfigError as e:
        return f"❌ {e}"
    except Exception as e:
        logger.error(f"Preview command failed: {e}")
        return f"❌ Error generating preview: {str(e)[:100]}"

    passing = sum(1 for entry in entries if entry.passes)
    response_lines = [
        f"🔍 **Preview for {entries[0].name}**: {len(entries)} notes found, {passing} pass the filters",
        "",
    ]
    for entry in entries:
        icon = "✅" if entry.passes else "🚫"
        response_lines.append(f"{icon} {entry.name} (depth {entry.depth})")

    return "\n".join(response_lines)
