"""Shared fixtures for the expense report tests."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest

from expense_report import (
    BudgetLimit,
    Expense,
    FinanceData,
    Income,
    NarrativeFallback,
    NarrativeOk,
    aggregate,
)

PERIOD_START = date(2025, 9, 1)
PERIOD_END = date(2025, 9, 30)


class FakeNarrator:
    """Narrative client stand-in that records calls and returns a fixed result."""

    def __init__(self, text: str = "Spend less on food.", fallback: bool = False):
        self.text = text
        self.fallback = fallback
        self.calls = []

    async def summarize(self, context, instruction: Optional[str] = None):
        self.calls.append((context, instruction))
        if self.fallback:
            return NarrativeFallback(text=self.text, reason="simulated failure")
        return NarrativeOk(text=self.text)


class FailingStore:
    """Record store that always raises ``error``."""

    def __init__(self, error: Exception):
        self.error = error

    async def fetch_all(self):
        raise self.error


def fake_renderer(document, layout) -> bytes:
    """Stands in for weasyprint so tests need no native libraries."""
    return b"%PDF-1.4\n" + f"pages={document.page_count}\n".encode() + b"x" * 100


@pytest.fixture
def make_expense():
    counter = iter(range(1, 10_000))

    def _make(amount, category="Food", day=1, description="", hour=10, month=9) -> Expense:
        return Expense(
            id=f"exp-{next(counter)}",
            description=description,
            amount=Decimal(str(amount)),
            category=category,
            date=datetime(2025, month, day, hour, 0),
        )

    return _make


@pytest.fixture
def make_income():
    counter = iter(range(1, 10_000))

    def _make(amount, day=1, source="Salary", hour=9, month=9) -> Income:
        return Income(
            id=f"inc-{next(counter)}",
            source=source,
            amount=Decimal(str(amount)),
            date=datetime(2025, month, day, hour, 0),
        )

    return _make


@pytest.fixture
def food_scenario(make_expense, make_income) -> FinanceData:
    """One income of 1000, two Food expenses (300 + 800) against a 500 budget."""
    return FinanceData(
        incomes=[make_income(1000, day=1)],
        expenses=[
            make_expense(300, "Food", day=1, description="Groceries"),
            make_expense(800, "Food", day=2, description="Party"),
        ],
        budgets={"Food": BudgetLimit(category="Food", limit=Decimal("500"))},
    )


@pytest.fixture
def food_context(food_scenario):
    return aggregate(
        food_scenario.incomes,
        food_scenario.expenses,
        food_scenario.budgets,
        PERIOD_START,
        PERIOD_END,
    )


@pytest.fixture
def empty_context():
    return aggregate([], [], {}, PERIOD_START, PERIOD_END)
