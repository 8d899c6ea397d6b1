"""Tests for the end-to-end context pipeline."""

import asyncio
from datetime import datetime
from pathlib import Path

import pytest
from domains.context_fetcher.assemble import NO_LINKED_NOTES_INCLUDED, NO_NOTES_INCLUDED
from domains.context_fetcher.errors import ConfigError, SinkError, SinkFailure, SourceNotFoundError
from domains.context_fetcher.export import ExportResult, ExportSink
from domains.context_fetcher.pipeline import build_export_file_name, create_context, export_context
from domains.context_fetcher.types import ContextConfig, RecentItemsConfig


class RecordingSink(ExportSink):
    """Sink that keeps written files in memory."""

    def __init__(self, fail_with=None):
        self.files = {}
        self.fail_with = fail_with

    async def write(self, file_name, text):
        if self.fail_with:
            raise SinkError(self.fail_with, "cannot write")
        self.files[file_name] = text
        return ExportResult(path=Path(file_name), file_name=file_name)


def config(**kwargs) -> ContextConfig:
    return ContextConfig(**kwargs)


class TestScenarios:
    """End-to-end filter and traversal scenarios."""

    @pytest.mark.asyncio
    async def test_only_source_passes(self, store):
        """Source included, secret link dropped, summary explains it."""
        store.add("Source.md", "Source body", links=["Secret.md"])
        store.add("Secret.md", "Secret body", privacy="secret")
        result = await create_context("Source.md", config(max_depth=1), store)

        assert "Source body" in result.text
        assert "Secret body" not in result.text
        assert "## Linked Note: " not in result.text
        assert result.text.endswith(f"\n{NO_LINKED_NOTES_INCLUDED}\n\n---\n")
        assert result.included_total == 1

    @pytest.mark.asyncio
    async def test_exclusion_beats_requirement(self, store):
        """X with the required tag is in, Y with an excluded tag is out."""
        store.add("Source.md", links=["X.md", "Y.md"], tags={"project-a"})
        store.add("X.md", "X body", tags={"project-a"})
        store.add("Y.md", "Y body", tags={"project-a", "archive"})
        result = await create_context(
            "Source.md",
            config(max_depth=1, required_tags=("project-a",), excluded_tags=("archive",)),
            store,
        )

        assert "## Linked Note: X (Depth 1)" in result.text
        assert "Y body" not in result.text

    @pytest.mark.asyncio
    async def test_chain_with_shortcut(self, store):
        """C reached through two paths is recorded once at depth 2."""
        store.add("A.md", links=["X.md", "B.md"])
        store.add("X.md", links=["B.md"])
        store.add("B.md", links=["C.md"])
        store.add("C.md")
        result = await create_context("A.md", config(max_depth=2), store)

        assert result.text.count("## Linked Note: C (Depth 2)") == 1
        assert "(Depth 3)" not in result.text

    @pytest.mark.asyncio
    async def test_recent_notes_ignore_tag_rules(self, store):
        """The newest daily notes come in under privacy only."""
        store.add("Source.md", tags={"project-a"})
        for date in ("2024-01-03", "2024-01-02", "2024-01-01"):
            store.add(f"{date}.md", f"Day {date}", tags={"daily"})
        result = await create_context(
            "Source.md",
            config(
                max_depth=1,
                required_tags=("project-a",),
                recent_items=RecentItemsConfig(enabled=True, count=2),
            ),
            store,
        )

        assert "## Daily Note: 2024-01-03" in result.text
        assert "## Daily Note: 2024-01-02" in result.text
        assert "2024-01-01" not in result.text
        assert result.recent_included == 2
        assert result.included_total == 3

    @pytest.mark.asyncio
    async def test_none_sentinel(self, store):
        """A note without privacy needs 'none' in the allowed levels."""
        store.add("Source.md", links=["Loose.md"])
        store.add("Loose.md", "Loose body", privacy=None)

        with_none = await create_context(
            "Source.md", config(allowed_privacy=("public", "none")), store
        )
        without_none = await create_context("Source.md", config(allowed_privacy=("public",)), store)

        assert "Loose body" in with_none.text
        assert "Loose body" not in without_none.text


class TestAssembly:
    """Test header, section order and summary lines."""

    @pytest.mark.asyncio
    async def test_header(self, store):
        """The header lists the run settings."""
        store.add("Plan.md")
        result = await create_context(
            "Plan.md",
            config(
                max_depth=2,
                allowed_privacy=("public", "none"),
                required_tags=("a", "b"),
                recent_items=RecentItemsConfig(enabled=True, count=2),
            ),
            store,
        )

        assert result.text.startswith(
            "# Context Export\n\n"
            "* Source Note: Plan\n"
            "* Link Depth Setting: 2\n"
            "* Privacy Levels Included: public, none\n"
            "* Required Tags for Inclusion: #a, #b\n"
            "* Excluded Tags: None\n"
            "* Include Recent Daily Notes: Yes\n"
            "* Number of Recent Days: 2\n"
            "\n---\n"
        )

    @pytest.mark.asyncio
    async def test_header_without_recent(self, store):
        """Recent day count is only listed when enabled."""
        store.add("Plan.md")
        result = await create_context("Plan.md", config(excluded_tags=("old",)), store)

        assert "* Excluded Tags: #old\n" in result.text
        assert "* Include Recent Daily Notes: No\n" in result.text
        assert "Number of Recent Days" not in result.text

    @pytest.mark.asyncio
    async def test_section_order(self, store):
        """Header, source, linked notes, then recent notes."""
        store.add("Plan.md", links=["B.md"])
        store.add("B.md")
        store.add("2024-01-01.md", tags={"daily"})
        result = await create_context(
            "Plan.md", config(recent_items=RecentItemsConfig(enabled=True, count=1)), store
        )

        markers = [
            "# Context Export",
            "## Source Note: Plan",
            "## Linked Notes (Up to Depth 1):",
            "## Linked Note: B (Depth 1)",
            "## Recent Daily Notes (Up to 1 days):",
            "## Daily Note: 2024-01-01",
        ]
        positions = [result.text.index(m) for m in markers]
        assert positions == sorted(positions)

    @pytest.mark.asyncio
    async def test_nothing_included(self, store):
        """A run with no content says so."""
        store.add("Plan.md", privacy="secret")
        result = await create_context("Plan.md", config(), store)

        assert result.included_total == 0
        assert result.text.endswith(f"\n{NO_NOTES_INCLUDED}\n\n---\n")

    @pytest.mark.asyncio
    async def test_source_without_links_no_summary(self, store):
        """A lone source with no links needs no explanation."""
        store.add("Plan.md", "Body")
        result = await create_context("Plan.md", config(), store)

        assert NO_LINKED_NOTES_INCLUDED not in result.text
        assert NO_NOTES_INCLUDED not in result.text
        assert result.text.endswith("\n## Linked Notes (Up to Depth 1):\n")

    @pytest.mark.asyncio
    async def test_recent_counts_toward_summary(self, store):
        """A recent note included alongside the source suppresses the summary."""
        store.add("Plan.md", links=["Secret.md"])
        store.add("Secret.md", privacy="secret")
        store.add("2024-01-01.md", tags={"daily"})
        result = await create_context(
            "Plan.md", config(recent_items=RecentItemsConfig(enabled=True, count=1)), store
        )

        assert result.included_total == 2
        assert NO_LINKED_NOTES_INCLUDED not in result.text

    @pytest.mark.asyncio
    async def test_linked_daily_note_not_repeated(self, store):
        """A daily note reached by links is not added again as a recent note."""
        store.add("Plan.md", links=["2024-01-01.md"])
        store.add("2024-01-01.md", "Day one", tags={"daily"})
        result = await create_context(
            "Plan.md", config(recent_items=RecentItemsConfig(enabled=True, count=1)), store
        )

        assert result.text.count("Day one") == 1
        assert result.recent_included == 0


class TestValidation:
    """Test configuration errors raised before any work."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("source", ["", "   "])
    async def test_empty_source(self, store, source):
        """An empty source id is rejected."""
        with pytest.raises(ConfigError):
            await create_context(source, config(), store)

    @pytest.mark.asyncio
    async def test_unknown_source(self, store):
        """A source that does not resolve is rejected."""
        with pytest.raises(SourceNotFoundError) as exc_info:
            await create_context("Missing.md", config(), store)
        assert exc_info.value.source_id == "Missing.md"

    @pytest.mark.asyncio
    async def test_non_markdown_source(self, store):
        """An attachment cannot be a source."""
        store.add_attachment("diagram.png")
        with pytest.raises(SourceNotFoundError):
            await create_context("diagram.png", config(), store)

    @pytest.mark.asyncio
    async def test_source_id_trimmed(self, store):
        """Whitespace around the source id is ignored."""
        store.add("Plan.md")
        result = await create_context("  Plan.md ", config(), store)
        assert result.source.id == "Plan.md"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad", [
        {"max_depth": 0},
        {"max_depth": -3},
        {"recent_items": RecentItemsConfig(enabled=True, count=0)},
        {"allowed_privacy": "public"},
    ])
    async def test_invalid_config(self, store, bad):
        """Invalid settings raise before any read."""
        store.add("Plan.md")
        with pytest.raises(ConfigError):
            await create_context("Plan.md", config(**bad), store)
        assert store.reads == []

    @pytest.mark.asyncio
    async def test_cancelled_run_is_partial(self, store):
        """A cancelled run returns partial output with a warning."""
        store.add("Plan.md", links=["B.md"])
        store.add("B.md")
        cancel = asyncio.Event()
        cancel.set()
        result = await create_context("Plan.md", config(), store, cancel_event=cancel)

        assert result.partial
        assert result.warnings == ["Traversal was cancelled; output is partial."]
        assert "## Source Note: Plan" in result.text


class TestExport:
    """Test export naming and sink hand-off."""

    def test_file_name_with_tags(self):
        """The first two required tags go into the name."""
        name = build_export_file_name("Plan", ("a", "b", "c"), datetime(2025, 1, 2, 3, 4, 5))
        assert name == "Context-Plan-Tags-a-b-20250102-030405.md"

    def test_file_name_without_tags(self):
        """No required tags gives NoTags."""
        name = build_export_file_name("Plan", (), datetime(2025, 1, 2, 3, 4, 5))
        assert name == "Context-Plan-NoTags-20250102-030405.md"

    @pytest.mark.asyncio
    async def test_export_writes_text(self, store):
        """The run's text is handed to the sink under the export name."""
        store.add("Plan.md")
        result = await create_context("Plan.md", config(required_tags=()), store)
        sink = RecordingSink()
        exported = await export_context(result, sink, now=datetime(2025, 1, 2, 3, 4, 5))

        assert exported.file_name == "Context-Plan-NoTags-20250102-030405.md"
        assert sink.files[exported.file_name] == result.text

    @pytest.mark.asyncio
    async def test_sink_failure_keeps_text(self, store):
        """A failing sink raises and leaves the result intact."""
        store.add("Plan.md", "Body")
        result = await create_context("Plan.md", config(), store)
        text = result.text

        with pytest.raises(SinkError) as exc_info:
            await export_context(result, RecordingSink(fail_with=SinkFailure.NAME_COLLISION))

        assert exc_info.value.reason == SinkFailure.NAME_COLLISION
        assert result.text == text
