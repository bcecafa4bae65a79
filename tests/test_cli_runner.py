"""Tests for the local CLI runner."""

from pathlib import Path

import pytest

from expense_report import DEFAULT_OUTPUT_DIR, InMemoryRecordStore, ReportOrchestrator

import cli_runner

from conftest import FakeNarrator, fake_renderer


def make_orchestrator(data, renderer=fake_renderer):
    return ReportOrchestrator(store=InMemoryRecordStore(data), narrator=FakeNarrator(), renderer=renderer)


class TestGenerateReport:
    """Test suite for generate_report."""

    @pytest.mark.asyncio
    async def test_writes_pdf(self, tmp_path, food_scenario):
        path = await cli_runner.generate_report(make_orchestrator(food_scenario), "2025-09-01", "2025-09-30", tmp_path)

        assert path == tmp_path / "Expense_Report_2025-09-01_to_2025-09-30.pdf"
        assert path.read_bytes().startswith(b"%PDF-1.4")

    @pytest.mark.asyncio
    async def test_invalid_period(self, tmp_path, food_scenario):
        path = await cli_runner.generate_report(make_orchestrator(food_scenario), "2025-09-30", "2025-09-01", tmp_path)

        assert path is None
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_render_failure_writes_nothing(self, tmp_path, food_scenario):
        orchestrator = make_orchestrator(food_scenario, renderer=lambda document, layout: None)
        path = await cli_runner.generate_report(orchestrator, "2025-09-01", "2025-09-30", tmp_path)

        assert path is None
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_html_saved_beside_pdf(self, tmp_path, food_scenario):
        capture = cli_runner._HtmlCapturingRenderer(fake_renderer)
        orchestrator = make_orchestrator(food_scenario, renderer=capture)
        await cli_runner.generate_report(orchestrator, "2025-09-01", "2025-09-30", tmp_path, html_capture=capture)

        html_path = tmp_path / "Expense_Report_2025-09-01_to_2025-09-30.html"
        assert "Detailed Expense Report" in html_path.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_html_name_uses_validated_period(self, tmp_path, food_scenario):
        """Datetime input still yields the same date-only name as the PDF."""
        capture = cli_runner._HtmlCapturingRenderer(fake_renderer)
        orchestrator = make_orchestrator(food_scenario, renderer=capture)
        pdf_path = await cli_runner.generate_report(
            orchestrator, "2025-09-01T00:00", "2025-09-30T23:59", tmp_path, html_capture=capture
        )

        assert sorted(p.name for p in tmp_path.iterdir()) == [
            "Expense_Report_2025-09-01_to_2025-09-30.html",
            "Expense_Report_2025-09-01_to_2025-09-30.pdf",
        ]
        assert pdf_path.with_suffix(".html").exists()

    @pytest.mark.asyncio
    async def test_html_kept_when_pdf_fails(self, tmp_path, food_scenario):
        capture = cli_runner._HtmlCapturingRenderer(lambda document, layout: None)
        orchestrator = make_orchestrator(food_scenario, renderer=capture)
        path = await cli_runner.generate_report(orchestrator, "2025-09-01", "2025-09-30", tmp_path, html_capture=capture)

        assert path is None
        assert [p.name for p in tmp_path.iterdir()] == ["Expense_Report_2025-09-01_to_2025-09-30.html"]


class TestArgs:
    """Test suite for argument parsing."""

    def test_defaults(self):
        args = cli_runner.parse_args(["--start", "2025-09-01", "--end", "2025-09-30"])

        assert args.output_dir == DEFAULT_OUTPUT_DIR
        assert not args.no_ai
        assert not args.html

    def test_options(self):
        args = cli_runner.parse_args([
            "--start", "2025-09-01", "--end", "2025-09-30",
            "--records", "r.json", "--output-dir", "out", "--no-ai", "--html",
        ])

        assert args.records == Path("r.json")
        assert args.output_dir == Path("out")
        assert args.no_ai and args.html

    def test_start_and_end_are_required(self):
        with pytest.raises(SystemExit):
            cli_runner.parse_args(["--start", "2025-09-01"])


def test_save_pdf_report_creates_directories(tmp_path):
    target = tmp_path / "nested" / "report.pdf"

    assert cli_runner.save_pdf_report(b"%PDF", target)
    assert target.read_bytes() == b"%PDF"
