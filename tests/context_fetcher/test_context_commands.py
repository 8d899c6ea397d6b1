"""Tests for Context Fetcher command handlers."""

import pytest
from domains.context_fetcher import commands
from domains.context_fetcher.commands import handle_create_context, handle_preview


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Run every test with default context settings."""
    for name in (
        "CONTEXT_LINK_DEPTH",
        "CONTEXT_PRIVACY_LEVELS",
        "CONTEXT_REQUIRED_TAGS",
        "CONTEXT_EXCLUDED_TAGS",
        "CONTEXT_INCLUDE_RECENT_DAILY",
        "CONTEXT_RECENT_DAYS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(commands, "CONTEXT_EXPORT_FOLDER", "ContextExports")


class TestCreateContextCommand:
    """Test the create context command."""

    @pytest.mark.asyncio
    async def test_creates_and_saves(self, vault):
        """A run is saved into the export folder."""
        response = await handle_create_context("Plan", vault_path=str(vault))

        assert response.startswith("✅ **Context created** from *Plan*")
        assert "📄 2 notes included" in response
        exports = list((vault / "ContextExports").glob("Context-Plan-NoTags-*.md"))
        assert len(exports) == 1
        assert f"`{exports[0].name}`" in response
        assert "## Linked Note: Design (Depth 1)" in exports[0].read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_without_saving(self, vault):
        """save=False returns the text instead of writing it."""
        response = await handle_create_context("Plan", vault_path=str(vault), save=False)

        assert "# Context Export" in response
        assert not (vault / "ContextExports").exists()

    @pytest.mark.asyncio
    async def test_tag_override_in_file_name(self, vault):
        """Required tags show up in the export name."""
        response = await handle_create_context("Plan", vault_path=str(vault), tags="#project-a")

        assert "📄 1 note included" in response
        assert list((vault / "ContextExports").glob("Context-Plan-Tags-project-a-*.md"))

    @pytest.mark.asyncio
    async def test_usage(self):
        """An empty source shows usage."""
        response = await handle_create_context("  ")
        assert response.startswith("**Usage:**")

    @pytest.mark.asyncio
    async def test_missing_source(self, vault):
        """An unknown note is reported."""
        response = await handle_create_context("Nope", vault_path=str(vault))
        assert response == "❌ Source note not found or not markdown: Nope"

    @pytest.mark.asyncio
    async def test_invalid_depth(self, vault):
        """A bad depth is reported with guidance."""
        response = await handle_create_context("Plan", vault_path=str(vault), depth=0)
        assert response == "❌ Invalid link depth (0). Please set it to 1 or greater."

    @pytest.mark.asyncio
    async def test_no_vault(self, monkeypatch):
        """Without a vault the command explains what to set."""
        monkeypatch.setattr(commands, "VAULT_PATH", None)
        response = await handle_create_context("Plan")
        assert response.startswith("❌ No vault configured")


class TestPreviewCommand:
    """Test the preview command."""

    @pytest.mark.asyncio
    async def test_preview(self, vault):
        """Each visited note is listed with a pass/fail marker."""
        response = await handle_preview("Plan", vault_path=str(vault))
        lines = response.split("\n")

        assert lines[0] == "🔍 **Preview for Plan**: 4 notes found, 2 pass the filters"
        assert lines[2:] == [
            "✅ Plan (depth 0)",
            "🚫 Budget (depth 1)",
            "✅ Design (depth 1)",
            "🚫 Meeting (depth 1)",
        ]

    @pytest.mark.asyncio
    async def test_preview_missing_source(self, vault):
        """An unknown note is reported."""
        response = await handle_preview("Nope", vault_path=str(vault))
        assert response.startswith("❌")
