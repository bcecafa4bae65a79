"""Tests for report orchestration and the commit point."""

import asyncio
from datetime import date

import pytest

from expense_report import (
    CollaboratorError,
    InMemoryRecordStore,
    ReportInputError,
    ReportOrchestrator,
    ReportState,
    StorageError,
    report_filename,
)
from expense_report.orchestrator import parse_period

from conftest import FailingStore, FakeNarrator, fake_renderer


class SlowNarrator:
    """Narrator that never answers."""

    async def summarize(self, context, instruction=None):
        await asyncio.Event().wait()


def make_orchestrator(data=None, narrator=None, renderer=fake_renderer, store=None):
    return ReportOrchestrator(
        store=store or InMemoryRecordStore(data),
        narrator=narrator or FakeNarrator(),
        renderer=renderer,
    )


async def collect(orchestrator, run) -> bytes:
    return b"".join([chunk async for chunk in orchestrator.stream(run)])


class TestParsePeriod:
    """Test suite for parse_period."""

    def test_valid(self):
        assert parse_period("2025-09-01", "2025-09-30") == (date(2025, 9, 1), date(2025, 9, 30))

    def test_single_day(self):
        assert parse_period("2025-09-01", "2025-09-01") == (date(2025, 9, 1), date(2025, 9, 1))

    @pytest.mark.parametrize(
        "start, end",
        [(None, "2025-09-30"), ("2025-09-01", None), ("", ""), (None, None)],
    )
    def test_missing(self, start, end):
        with pytest.raises(ReportInputError, match="startDate and endDate are required"):
            parse_period(start, end)

    def test_malformed(self):
        with pytest.raises(ReportInputError) as exc_info:
            parse_period("2025-13-01", "2025-09-30")
        assert exc_info.value.status_code == 400
        assert exc_info.value.details

    def test_reversed(self):
        with pytest.raises(ReportInputError, match="before startDate"):
            parse_period("2025-09-30", "2025-09-01")


def test_report_filename():
    assert report_filename(date(2025, 9, 1), date(2025, 9, 30)) == "Expense_Report_2025-09-01_to_2025-09-30.pdf"


class TestPrepare:
    """Everything before the commit point raises structured errors."""

    @pytest.mark.asyncio
    async def test_missing_dates(self, food_scenario):
        narrator = FakeNarrator()
        orchestrator = make_orchestrator(food_scenario, narrator=narrator)

        with pytest.raises(ReportInputError):
            await orchestrator.prepare(None, "2025-09-30")
        assert narrator.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [StorageError("db down"), RuntimeError("boom")])
    async def test_storage_failure(self, error):
        narrator = FakeNarrator()
        orchestrator = make_orchestrator(narrator=narrator, store=FailingStore(error))

        with pytest.raises(CollaboratorError) as exc_info:
            await orchestrator.prepare("2025-09-01", "2025-09-30")

        assert exc_info.value.status_code == 500
        assert exc_info.value.to_dict() == {"error": "Failed to generate report", "details": str(error)}
        assert narrator.calls == []

    @pytest.mark.asyncio
    async def test_prepared_run(self, food_scenario):
        narrator = FakeNarrator()
        orchestrator = make_orchestrator(food_scenario, narrator=narrator)

        run = await orchestrator.prepare("2025-09-01", "2025-09-30")
        await run.narrative_task

        assert run.state == ReportState.AGGREGATING
        assert run.filename == "Expense_Report_2025-09-01_to_2025-09-30.pdf"
        assert run.context.overspent_categories == ("Food",)
        assert len(narrator.calls) == 1
        assert narrator.calls[0][0] is run.context


class TestStream:
    """After the commit point failures only truncate the output."""

    @pytest.mark.asyncio
    async def test_successful_stream(self, food_scenario):
        orchestrator = make_orchestrator(food_scenario)
        run = await orchestrator.prepare("2025-09-01", "2025-09-30")

        body = await collect(orchestrator, run)

        assert body == b"%PDF-1.4\npages=4\n" + b"x" * 100
        assert run.state == ReportState.DONE
        assert run.bytes_sent == len(body)
        assert run.error is None
        assert not run.truncated
        assert run.narrative.text == "Spend less on food."

    @pytest.mark.asyncio
    async def test_narrative_fallback_still_completes(self, food_scenario):
        orchestrator = make_orchestrator(food_scenario, narrator=FakeNarrator("No summary.", fallback=True))
        run = await orchestrator.prepare("2025-09-01", "2025-09-30")

        body = await collect(orchestrator, run)

        assert body.startswith(b"%PDF")
        assert run.state == ReportState.DONE
        assert run.narrative.is_fallback

    @pytest.mark.asyncio
    async def test_empty_records(self):
        orchestrator = make_orchestrator()
        run = await orchestrator.prepare("2025-09-01", "2025-09-30")

        body = await collect(orchestrator, run)

        assert run.state == ReportState.DONE
        assert b"pages=4" in body

    @pytest.mark.asyncio
    async def test_renderer_returning_none_truncates(self, food_scenario):
        orchestrator = make_orchestrator(food_scenario, renderer=lambda document, layout: None)
        run = await orchestrator.prepare("2025-09-01", "2025-09-30")

        body = await collect(orchestrator, run)

        assert body == b""
        assert run.state == ReportState.COMPOSING
        assert run.truncated
        assert "PDF rendering failed" in run.error

    @pytest.mark.asyncio
    async def test_renderer_exception_does_not_propagate(self, food_scenario):
        def broken(document, layout):
            raise ValueError("font missing")

        orchestrator = make_orchestrator(food_scenario, renderer=broken)
        run = await orchestrator.prepare("2025-09-01", "2025-09-30")

        await collect(orchestrator, run)

        assert run.truncated
        assert run.error == "font missing"

    @pytest.mark.asyncio
    async def test_narrative_cancelled_when_stream_is_abandoned(self, food_scenario):
        orchestrator = make_orchestrator(food_scenario, narrator=SlowNarrator())
        run = await orchestrator.prepare("2025-09-01", "2025-09-30")
        stream = orchestrator.stream(run)

        first_chunk = asyncio.create_task(stream.__anext__())
        await asyncio.sleep(0.01)
        assert run.state == ReportState.COMPOSING

        first_chunk.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first_chunk
        await asyncio.sleep(0)

        assert run.narrative_task.cancelled()


class TestOtherReports:
    """Test suite for the tabular report and standalone insights."""

    @pytest.mark.asyncio
    async def test_category_report(self, food_scenario, make_expense):
        food_scenario.expenses.append(make_expense(5000, "Rent", month=10, day=1))
        orchestrator = make_orchestrator(food_scenario)

        rows = await orchestrator.category_report("2025-09-01", "2025-09-30")

        assert [r.category for r in rows] == ["Food"]

    @pytest.mark.asyncio
    async def test_category_report_validates(self, food_scenario):
        with pytest.raises(ReportInputError):
            await make_orchestrator(food_scenario).category_report("2025-09-01", None)

    @pytest.mark.asyncio
    async def test_insights_covers_all_records(self, food_scenario):
        narrator = FakeNarrator("Insight.")
        result = await make_orchestrator(food_scenario, narrator=narrator).insights("Be brief.")

        context, instruction = narrator.calls[0]
        assert result.text == "Insight."
        assert instruction == "Be brief."
        assert (context.period_start, context.period_end) == (date(2025, 9, 1), date(2025, 9, 2))
