#!/usr/bin/env python3
"""Build a context export from a vault note.

Usage:
    python scripts/create_context.py NOTE [--vault PATH] [--depth N] [--tags a,b]
        [--exclude x] [--privacy public,none] [--recent N] [--preview] [--dry-run]

Examples:
    python scripts/create_context.py Projects/Plan.md             # Export with .env settings
    python scripts/create_context.py Plan --depth 2 --tags work   # Deeper, only #work notes
    python scripts/create_context.py Plan --recent 5              # Add the 5 latest daily notes
    python scripts/create_context.py Plan --preview               # List notes, read nothing
    python scripts/create_context.py Plan --dry-run               # Print instead of saving
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import CONTEXT_EXPORT_FOLDER, VAULT_PATH
from logger import logger


async def run_export(args: argparse.Namespace) -> int:
    """Run one export (or preview). Returns the process exit code."""
    from domains.context_fetcher import (
        ConfigError,
        SinkError,
        VaultExportSink,
        VaultStore,
        create_context,
        export_context,
        load_context_config,
        merge_overrides,
        preview_context,
    )

    vault_path = args.vault or VAULT_PATH
    if not vault_path:
        print("[ERROR] No vault configured. Set VAULT_PATH or pass --vault.")
        return 2

    try:
        store = VaultStore(vault_path)
        config = merge_overrides(
            load_context_config(),
            max_depth=args.depth,
            allowed_privacy=args.privacy,
            required_tags=args.tags,
            excluded_tags=args.exclude,
            recent_enabled=True if args.recent is not None else None,
            recent_count=args.recent,
        )

        if args.preview:
            entries = preview_context(args.note, config, store)
            print(f"\nPreview for {entries[0].name} (depth {config.max_depth})")
            print("-" * 40)
            for entry in entries:
                status = "[OK]" if entry.passes else "[--]"
                print(f"{status} {'  ' * entry.depth}{entry.name} (depth {entry.depth})")
            print("-" * 40)
            print(f"{sum(1 for e in entries if e.passes)} of {len(entries)} notes pass the filters")
            return 0

        result = await create_context(args.note, config, store)
    except ConfigError as e:
        print(f"[ERROR] {e}")
        return 2

    for warning in result.warnings:
        print(f"[WARN] {warning}", file=sys.stderr)

    if args.dry_run:
        print(result.text)
        return 0

    try:
        exported = await export_context(result, VaultExportSink(store.root, CONTEXT_EXPORT_FOLDER))
    except SinkError as e:
        logger.error(f"Saving context failed: {e.message}")
        print(f"[ERROR] {e.message}")
        return 1

    if exported.fallback_reason:
        print(f"[WARN] Export folder unavailable ({exported.fallback_reason.value}), saved to vault root")
    print(f"[OK] {result.included_total} notes included -> {exported.path}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Build a context export from a vault note")
    parser.add_argument("note", help="Source note (vault path or note name)")
    parser.add_argument("--vault", type=str, help="Vault folder (defaults to VAULT_PATH)")
    parser.add_argument("--depth", "-d", type=int, help="Link depth (1 or greater)")
    parser.add_argument("--tags", "-t", type=str, help="Required tags, comma-separated")
    parser.add_argument("--exclude", "-x", type=str, help="Excluded tags, comma-separated")
    parser.add_argument("--privacy", "-p", type=str, help="Allowed privacy levels, comma-separated")
    parser.add_argument("--recent", "-r", type=int, help="Include N recent daily notes")
    parser.add_argument("--preview", action="store_true", help="List notes without reading content")
    parser.add_argument("--dry-run", action="store_true", help="Print the export instead of saving")

    args = parser.parse_args()

    sys.exit(asyncio.run(run_export(args)))


if __name__ == "__main__":
    main()
