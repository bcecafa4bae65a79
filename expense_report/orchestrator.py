"""
Report orchestration for Expense Report Service.

A report request moves through these states:

    VALIDATING -> AGGREGATING -> COMPOSING -> STREAMING -> DONE
         |             |
         +-------------+--> FAILED

``prepare()`` covers VALIDATING and AGGREGATING. It raises ReportError
subclasses, which the server turns into structured JSON errors, and it
starts the narrative request in the background.

``stream()`` runs after the response has been committed to a byte stream.
From then on nothing is raised to the caller: failures are logged, recorded
on the ReportRun and the stream simply ends (truncated output).
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import AsyncIterator, Callable, Optional

from .aggregator import CategoryReportRow, aggregate, build_category_report
from .composer import DocumentComposer
from .exceptions import CollaboratorError, ReportInputError, StorageError
from .layout import DEFAULT_LAYOUT, LayoutConfig
from .models import FinanceData, ReportContext, parse_date
from .narrative import NarrativeClient, NarrativeResult
from .pagination import Document
from .pdf_converter import iter_chunks, render_document
from .storage import RecordStore

logger = logging.getLogger(__name__)


class ReportState(str, Enum):
    VALIDATING = "validating"
    AGGREGATING = "aggregating"
    COMPOSING = "composing"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ReportRun:
    """State of one report request. Never shared between requests."""
    state: ReportState = ReportState.VALIDATING
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    context: Optional[ReportContext] = None
    narrative_task: Optional["asyncio.Task[NarrativeResult]"] = None
    narrative: Optional[NarrativeResult] = None
    bytes_sent: int = 0
    error: Optional[str] = None

    @property
    def filename(self) -> str:
        return report_filename(self.period_start, self.period_end)

    @property
    def truncated(self) -> bool:
        """True when the stream ended before the whole document was sent."""
        return self.error is not None and self.state != ReportState.FAILED


def report_filename(start: date, end: date) -> str:
    return f"Expense_Report_{start:%Y-%m-%d}_to_{end:%Y-%m-%d}.pdf"


def parse_period(start_raw: Optional[str], end_raw: Optional[str]) -> tuple[date, date]:
    """
    Validate the requested reporting period.

    Raises:
        ReportInputError: If a date is missing, malformed, or the range is reversed
    """
    if not start_raw or not end_raw:
        raise ReportInputError("startDate and endDate are required")

    try:
        start = parse_date(start_raw).date()
        end = parse_date(end_raw).date()
    except ValueError as e:
        raise ReportInputError("startDate and endDate must be ISO dates (YYYY-MM-DD)", details=str(e))

    if end < start:
        raise ReportInputError(
            "endDate must not be before startDate",
            details=f"{start.isoformat()} > {end.isoformat()}",
        )
    return start, end


class ReportOrchestrator:
    """
    Entry point for report generation.

    Holds only immutable collaborators, so one instance serves every request;
    all per-request state lives in ReportRun.
    """

    def __init__(
        self,
        store: RecordStore,
        narrator: Optional[NarrativeClient] = None,
        layout: LayoutConfig = DEFAULT_LAYOUT,
        renderer: Callable[[Document, LayoutConfig], Optional[bytes]] = render_document,
    ):
        self.store = store
        self.narrator = narrator or NarrativeClient()
        self.layout = layout
        self.renderer = renderer

    # -------------------------------------------------------------------------
    # Pre-commit: may still fail with a structured error
    # -------------------------------------------------------------------------

    async def _fetch(self, run: ReportRun) -> FinanceData:
        try:
            return await self.store.fetch_all()
        except Exception as e:
            run.state = ReportState.FAILED
            run.error = str(e)
            kind = "Record storage failed" if isinstance(e, StorageError) else "Unexpected storage error"
            logger.error(f"❌ {kind}: {e}")
            raise CollaboratorError("Failed to generate report", details=str(e))

    async def prepare(self, start_raw: Optional[str], end_raw: Optional[str]) -> ReportRun:
        """
        Validate the request, load records, aggregate them and start the narrative.

        Raises:
            ReportInputError: Missing or invalid period (HTTP 400)
            CollaboratorError: Records could not be loaded (HTTP 500)
        """
        run = ReportRun()

        try:
            run.period_start, run.period_end = parse_period(start_raw, end_raw)
        except ReportInputError as e:
            run.state = ReportState.FAILED
            run.error = e.message
            logger.warning(f"Rejected report request: {e.message}")
            raise

        run.state = ReportState.AGGREGATING
        data = await self._fetch(run)

        try:
            run.context = aggregate(
                data.incomes,
                data.expenses,
                data.budgets,
                run.period_start,
                run.period_end,
            )
        except Exception as e:
            run.state = ReportState.FAILED
            run.error = str(e)
            logger.error(f"❌ Aggregation failed: {e}")
            raise CollaboratorError("Failed to generate report", details=str(e))

        logger.info(
            f"Report {run.filename}: {len(run.context.income_records)} incomes, "
            f"{len(run.context.expense_records)} expenses, "
            f"{len(run.context.category_aggregates)} categories"
        )

        # Issued now so the call overlaps with composition of the earlier sections
        run.narrative_task = asyncio.create_task(self.narrator.summarize(run.context))
        return run

    # -------------------------------------------------------------------------
    # Post-commit: log only
    # -------------------------------------------------------------------------

    async def stream(self, run: ReportRun) -> AsyncIterator[bytes]:
        """
        Compose, render and stream the PDF for a prepared run.

        Never raises: once the response has started, errors can only be logged.
        """
        run.state = ReportState.COMPOSING
        try:
            composer = DocumentComposer(self.layout)
            document = await composer.compose_with_narrative(run.context, run.narrative_task)
            run.narrative = run.narrative_task.result()

            pdf_bytes = await asyncio.to_thread(self.renderer, document, self.layout)
            if pdf_bytes is None:
                raise RuntimeError("PDF rendering failed")

            run.state = ReportState.STREAMING
            for chunk in iter_chunks(pdf_bytes):
                yield chunk
                run.bytes_sent += len(chunk)

            run.state = ReportState.DONE
            logger.info(f"✓ Report {run.filename} streamed ({run.bytes_sent:,} bytes)")

        except Exception as e:
            run.error = str(e)
            logger.error(
                f"❌ Report {run.filename} failed during {run.state.value} after "
                f"{run.bytes_sent:,} bytes; output is truncated: {e}"
            )
        finally:
            if run.narrative_task is not None and not run.narrative_task.done():
                run.narrative_task.cancel()

    # -------------------------------------------------------------------------
    # Other reports
    # -------------------------------------------------------------------------

    async def category_report(self, start_raw: Optional[str], end_raw: Optional[str]) -> list[CategoryReportRow]:
        """
        Expense totals per category for records inside the period.

        Raises:
            ReportInputError: Missing or invalid period (HTTP 400)
            CollaboratorError: Records could not be loaded (HTTP 500)
        """
        start, end = parse_period(start_raw, end_raw)
        data = await self._fetch(ReportRun(state=ReportState.AGGREGATING))
        return build_category_report(data.expenses, start, end)

    async def insights(self, instruction: Optional[str] = None) -> NarrativeResult:
        """
        Narrative for the full record history, without rendering a document.

        Raises:
            CollaboratorError: Records could not be loaded (HTTP 500)
        """
        data = await self._fetch(ReportRun(state=ReportState.AGGREGATING))
        dates = [r.date.date() for r in (*data.incomes, *data.expenses)]
        today = date.today()
        context = aggregate(
            data.incomes,
            data.expenses,
            data.budgets,
            min(dates, default=today),
            max(dates, default=today),
        )
        return await self.narrator.summarize(context, instruction)
