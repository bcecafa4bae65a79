"""
Data models for Expense Report Service.

Records are immutable once they enter the report pipeline. Expense and
Income form a closed union (FinancialRecord); code that consumes records
handles both variants and rejects anything else.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Union


@dataclass(frozen=True)
class Expense:
    id: str
    description: str
    amount: Decimal
    category: str
    date: datetime


@dataclass(frozen=True)
class Income:
    id: str
    source: str
    amount: Decimal
    date: datetime


FinancialRecord = Union[Expense, Income]


@dataclass(frozen=True)
class BudgetLimit:
    category: str
    limit: Decimal


@dataclass(frozen=True)
class CategoryAggregate:
    category: str
    total: Decimal
    items: tuple[Expense, ...] = ()


@dataclass(frozen=True)
class FinanceData:
    """Everything the record store returns for one report."""
    incomes: list[Income] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    budgets: dict[str, BudgetLimit] = field(default_factory=dict)


@dataclass(frozen=True)
class ReportContext:
    """Aggregated view of one report request. Built once, read-only."""
    period_start: date
    period_end: date
    total_income: Decimal
    total_expenses: Decimal
    net_savings: Decimal
    income_records: tuple[Income, ...]
    expense_records: tuple[Expense, ...]
    category_aggregates: dict[str, CategoryAggregate]
    overspent_categories: tuple[str, ...]
    budgets: dict[str, BudgetLimit]


# =============================================================================
# PARSING
# =============================================================================

def parse_date(value: Any) -> datetime:
    """
    Parse an ISO 8601 date or datetime.

    Accepts ``date``/``datetime`` objects and strings such as
    ``2025-09-01``, ``2025-09-01T10:00:00`` and ``2025-09-01T10:00:00.000Z``.
    Timezone information is dropped so that all records compare consistently.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid date: {value!r}")

    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text).replace(tzinfo=None)


def parse_amount(value: Any) -> Decimal:
    """Parse a non-negative monetary amount."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Amount must be a non-negative number: {value!r}")
    return amount


def _record_id(data: dict) -> str:
    return str(data.get("id") or data.get("_id") or "")


def expense_from_dict(data: dict) -> Expense:
    return Expense(
        id=_record_id(data),
        description=data.get("description") or "",
        amount=parse_amount(data.get("amount")),
        category=data.get("category") or "Uncategorized",
        date=parse_date(data.get("date")),
    )


def income_from_dict(data: dict) -> Income:
    return Income(
        id=_record_id(data),
        source=data.get("source") or "",
        amount=parse_amount(data.get("amount")),
        date=parse_date(data.get("date")),
    )


def budget_from_dict(data: dict) -> BudgetLimit:
    category = data.get("category")
    if not category:
        raise ValueError("Budget is missing a category")
    return BudgetLimit(category=category, limit=parse_amount(data.get("limit")))


def budgets_from_list(items: list[dict]) -> dict[str, BudgetLimit]:
    """Index budgets by category. A later entry for the same category wins."""
    budgets: dict[str, BudgetLimit] = {}
    for item in items:
        budget = budget_from_dict(item)
        budgets[budget.category] = budget
    return budgets


def record_to_dict(record: FinancialRecord) -> dict:
    """JSON-friendly representation of a record."""
    if isinstance(record, Expense):
        return {
            "id": record.id,
            "description": record.description,
            "amount": float(record.amount),
            "category": record.category,
            "date": record.date.isoformat(),
        }
    if isinstance(record, Income):
        return {
            "id": record.id,
            "source": record.source,
            "amount": float(record.amount),
            "date": record.date.isoformat(),
        }
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


def record_date(record: FinancialRecord) -> datetime:
    if isinstance(record, (Expense, Income)):
        return record.date
    raise TypeError(f"Unsupported record type: {type(record).__name__}")

