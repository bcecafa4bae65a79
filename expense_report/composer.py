"""
Document composer for Expense Report Service.

Lays out the report through a PaginationEngine:

1. Header (title + period)             - page 1
2. Financial summary                   - page 1
3. Expense breakdown by category       - page 1 (flows on if long)
4. All income records                  - new page
5. All expense records                 - new page
6. AI insights & suggestions           - new page, written last

The composer never computes vertical positions itself; it only asks the
engine to write lines, rows and gaps.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Awaitable, Callable, Optional, Sequence

from .aggregator import STATUS_NO_BUDGET, STATUS_OVERSPENT, STATUS_WITHIN_BUDGET, status_for
from .config import REPORT_TITLE
from .layout import DEFAULT_LAYOUT, LayoutConfig
from .models import Expense, FinancialRecord, Income, ReportContext, record_date
from .narrative import NarrativeResult
from .pagination import Cell, Document, PaginationEngine

logger = logging.getLogger(__name__)

NO_BUDGET_PLACEHOLDER = "—"
NO_OVERSPENDING_TEXT = "No overspending detected. Well done!"
ELLIPSIS = "…"

INCOME_TITLE = "All Income Records"
EXPENSE_TITLE = "All Expense Records"
NARRATIVE_TITLE = "AI Insights & Suggestions"


def format_currency(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def format_long_date(value: date) -> str:
    """e.g. ``September 4, 2025``"""
    return f"{value:%B} {value.day}, {value.year}"


def format_record_date(value: datetime) -> str:
    """e.g. ``04 Sep 2025``"""
    return value.strftime("%d %b %Y")


def shorten(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    if limit <= 0:
        return ""
    return text[:limit - 1].rstrip() + ELLIPSIS


def format_income(item: Income, max_chars: Optional[int] = None) -> str:
    """
    One income line. With ``max_chars`` the source is shortened so the
    date and amount always stay on the line.
    """
    prefix = f"[{format_record_date(item.date)}] "
    suffix = f" - {format_currency(item.amount)}"
    source = item.source or "Income"
    if max_chars is not None:
        source = shorten(source, max_chars - len(prefix) - len(suffix))
    return f"{prefix}{source}{suffix}"


def format_expense(item: Expense, max_chars: Optional[int] = None) -> str:
    """
    One expense line. With ``max_chars`` the description (and, if still
    needed, the category) is shortened so the amount is never cut off.
    """
    prefix = f"[{format_record_date(item.date)}] "
    suffix = f" - {format_currency(item.amount)}"
    category = item.category
    description = item.description or ""
    if max_chars is not None:
        room = max_chars - len(prefix) - len(suffix) - len(": ")
        category = shorten(category, room)
        description = shorten(description, room - len(category))
    return f"{prefix}{category}: {description}{suffix}"


class DocumentComposer:
    """Builds one report document. Create a new composer per report."""

    def __init__(self, layout: LayoutConfig = DEFAULT_LAYOUT, title: str = REPORT_TITLE):
        self.layout = layout
        self.title = title
        self.engine = PaginationEngine(layout)

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def compose(self, context: ReportContext, narrative_text: str) -> Document:
        """Compose the full report when the narrative is already known."""
        self.compose_immediate(context)
        self.compose_narrative(narrative_text)
        return self.finish()

    async def compose_with_narrative(
        self,
        context: ReportContext,
        narrative: Awaitable[NarrativeResult],
    ) -> Document:
        """
        Compose the report, waiting for the narrative only before the last section.

        All earlier sections are laid out while the narrative call is still
        in flight.
        """
        self.compose_immediate(context)
        result = await narrative
        self.compose_narrative(result.text)
        return self.finish()

    def compose_immediate(self, context: ReportContext) -> None:
        """Every section that does not depend on the narrative."""
        self.compose_header(context)
        self.compose_summary(context)
        self.compose_breakdown_table(context)
        self.compose_income_list(context)
        self.compose_expense_list(context)

    def finish(self) -> Document:
        document = self.engine.finish(self.title)
        logger.info(f"Document composed: {document.page_count} page(s)")
        return document

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def compose_header(self, context: ReportContext) -> None:
        engine = self.engine
        engine.write_line(self.title, "h1", align="center")
        engine.space_before(self.layout.paragraph_gap)
        engine.write_line(
            f"Period: {format_long_date(context.period_start)} to {format_long_date(context.period_end)}",
            "body",
        )
        engine.space_before(self.layout.section_gap)

    def compose_summary(self, context: ReportContext) -> None:
        engine = self.engine
        colors = self.layout.colors

        engine.write_section_title("Financial Summary")
        engine.write_line(f"Total Income: {format_currency(context.total_income)}")
        engine.write_line(f"Total Expenses: {format_currency(context.total_expenses)}")
        engine.write_line(f"Net Savings: {format_currency(context.net_savings)}")
        engine.space_before(self.layout.paragraph_gap)

        if context.overspent_categories:
            engine.write_paragraph(
                f"Overspent Categories: {', '.join(context.overspent_categories)}",
                color=colors.danger,
            )
        else:
            engine.write_line(NO_OVERSPENDING_TEXT, color=colors.success)

        engine.space_before(self.layout.section_gap)

    def compose_breakdown_table(self, context: ReportContext) -> None:
        engine = self.engine
        cols = self.layout.columns
        colors = self.layout.colors
        status_colors = {
            STATUS_OVERSPENT: colors.danger,
            STATUS_WITHIN_BUDGET: colors.success,
            STATUS_NO_BUDGET: colors.primary,
        }

        engine.write_section_title("Expense Breakdown by Category")
        engine.write_row([
            Cell("Category", cols.category),
            Cell("Total Spent", cols.amount),
            Cell("Budget", cols.budget),
            Cell("Status", cols.status),
        ], style="h3")
        engine.draw_rule(cols.category, cols.end)

        for category, aggregate in context.category_aggregates.items():
            budget = context.budgets.get(category)
            status = status_for(aggregate.total, budget)
            engine.write_row([
                Cell(category, cols.category),
                Cell(format_currency(aggregate.total), cols.amount),
                Cell(format_currency(budget.limit) if budget is not None else NO_BUDGET_PLACEHOLDER, cols.budget),
                Cell(status, cols.status, color=status_colors[status]),
            ])

    def compose_income_list(self, context: ReportContext) -> None:
        self._compose_transaction_list(INCOME_TITLE, context.income_records, format_income)

    def compose_expense_list(self, context: ReportContext) -> None:
        self._compose_transaction_list(EXPENSE_TITLE, context.expense_records, format_expense)

    def compose_narrative(self, text: str) -> None:
        engine = self.engine
        engine.start_new_page()
        engine.write_section_title(NARRATIVE_TITLE)
        engine.write_paragraph(text, "body", color=self.layout.colors.secondary)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _compose_transaction_list(
        self,
        title: str,
        items: Sequence[FinancialRecord],
        formatter: Callable[[FinancialRecord, Optional[int]], str],
    ) -> None:
        """
        Write a date-sorted transaction list on a fresh page.

        A gap separates records on different calendar dates; records sharing
        a date are written back to back.
        """
        engine = self.engine
        engine.start_new_page()
        engine.write_section_title(title)
        max_chars = engine.max_chars("small")

        last_date = None
        with engine.running_header(f"{title} (continued)"):
            for item in sorted(items, key=record_date):
                current_date = record_date(item).date()
                if last_date is not None and current_date != last_date:
                    engine.space_before(self.layout.date_gap)
                engine.write_line(formatter(item, max_chars), "small")
                engine.space_before(self.layout.list_line_gap)
                last_date = current_date
