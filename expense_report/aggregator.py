"""
Aggregation module for Expense Report Service.

Turns raw records into the ReportContext used for composition and into the
rows of the tabular category report. Pure functions, no I/O.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from .models import (
    BudgetLimit,
    CategoryAggregate,
    Expense,
    Income,
    ReportContext,
    record_to_dict,
)

STATUS_OVERSPENT = "Overspent"
STATUS_WITHIN_BUDGET = "Within Budget"
STATUS_NO_BUDGET = "No Budget"


def status_for(total: Decimal, budget: Optional[BudgetLimit]) -> str:
    """Budget status of a category total."""
    if budget is None:
        return STATUS_NO_BUDGET
    if total > budget.limit:
        return STATUS_OVERSPENT
    return STATUS_WITHIN_BUDGET


def group_by_category(expenses: Iterable[Expense]) -> dict[str, CategoryAggregate]:
    """
    Group expenses by category.

    Categories keep the order in which they first appear in ``expenses``,
    and items keep their input order within a category.
    """
    grouped: dict[str, list[Expense]] = {}
    for expense in expenses:
        grouped.setdefault(expense.category, []).append(expense)

    return {
        category: CategoryAggregate(
            category=category,
            total=sum((e.amount for e in items), Decimal("0")),
            items=tuple(items),
        )
        for category, items in grouped.items()
    }


def aggregate(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    budgets: dict[str, BudgetLimit],
    period_start: date,
    period_end: date,
) -> ReportContext:
    """
    Build the report context from raw records.

    Every supplied record participates; the period only labels the report.
    Filtering, if wanted, is the caller's job.

    Args:
        incomes: Income records in any order
        expenses: Expense records in any order
        budgets: Budget limits keyed by category
        period_start: First day of the reporting period
        period_end: Last day of the reporting period

    Returns:
        ReportContext with totals, per-category aggregates and overspending flags
    """
    incomes = list(incomes)
    expenses = list(expenses)

    total_income = sum((i.amount for i in incomes), Decimal("0"))
    total_expenses = sum((e.amount for e in expenses), Decimal("0"))

    by_category = group_by_category(expenses)
    overspent = tuple(
        category
        for category, agg in by_category.items()
        if status_for(agg.total, budgets.get(category)) == STATUS_OVERSPENT
    )

    return ReportContext(
        period_start=period_start,
        period_end=period_end,
        total_income=total_income,
        total_expenses=total_expenses,
        net_savings=total_income - total_expenses,
        income_records=tuple(sorted(incomes, key=lambda i: i.date)),
        expense_records=tuple(sorted(expenses, key=lambda e: e.date)),
        category_aggregates=by_category,
        overspent_categories=overspent,
        budgets=dict(budgets),
    )


# =============================================================================
# TABULAR CATEGORY REPORT
# =============================================================================

@dataclass(frozen=True)
class CategoryReportRow:
    category: str
    total_amount: Decimal
    records: tuple[Expense, ...]

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "totalAmount": float(self.total_amount),
            "records": [record_to_dict(r) for r in self.records],
        }


def filter_by_range(expenses: Iterable[Expense], start: date, end: date) -> list[Expense]:
    """Expenses whose calendar date lies in [start, end], both inclusive."""
    return [e for e in expenses if start <= e.date.date() <= end]


def build_category_report(
    expenses: Iterable[Expense],
    start: date,
    end: date,
) -> list[CategoryReportRow]:
    """
    Expense totals per category within a date range, largest first.

    Unlike ``aggregate``, this report only counts records inside the range.
    """
    grouped = group_by_category(filter_by_range(expenses, start, end))
    rows = [
        CategoryReportRow(category=agg.category, total_amount=agg.total, records=agg.items)
        for agg in grouped.values()
    ]
    rows.sort(key=lambda row: row.total_amount, reverse=True)
    return rows
