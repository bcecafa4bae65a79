"""
Prompts module for Expense Report Service.

Contains the AI prompt used for the narrative section of the report.
"""

import json
from typing import Optional

from .models import ReportContext, record_to_dict

DEFAULT_INSTRUCTION = (
    "Summarize the following financial period. Highlight any overspending "
    "compared to budgets and provide actionable savings tips."
)


def get_narrative_prompt(context: ReportContext, instruction: Optional[str] = None) -> str:
    """
    Generate the prompt for the AI insights section.

    Args:
        context: Aggregated report data
        instruction: Optional free-form instruction replacing the default preamble

    Returns:
        The formatted prompt string
    """
    data = {
        "period": {
            "start": context.period_start.isoformat(),
            "end": context.period_end.isoformat(),
        },
        "totalIncome": float(context.total_income),
        "totalExpenses": float(context.total_expenses),
        "netSavings": float(context.net_savings),
        "categories": [
            {
                "category": agg.category,
                "total": float(agg.total),
                "budget": float(context.budgets[agg.category].limit)
                if agg.category in context.budgets else None,
            }
            for agg in context.category_aggregates.values()
        ],
        "overspentCategories": list(context.overspent_categories),
        "budgets": {c: float(b.limit) for c, b in context.budgets.items()},
        "expenses": [record_to_dict(e) for e in context.expense_records],
    }

    return f"""{instruction or DEFAULT_INSTRUCTION}

Total income was {context.total_income:,.2f} and total expenses were {context.total_expenses:,.2f}.
Answer in plain text paragraphs, without markdown.

Data:
{json.dumps(data)}"""
