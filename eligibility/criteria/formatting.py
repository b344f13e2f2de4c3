"""Human-readable rendering of criterion values and comparisons."""

from __future__ import annotations

import re
from typing import Any

from eligibility.core.thresholds import round_half_up
from eligibility.logic.operators import normalize_number

DOLLAR_FIELD = re.compile(
    r"income|asset|resource|amount|cost|rent|expense|balance|wage|earning|"
    r"salary|benefit|payment|deduction|savings|value|limit|threshold",
    re.IGNORECASE,
)

MIRRORED = {"<": ">", ">": "<", "<=": ">=", ">=": "<=", "in": "contains"}


def is_dollar_field(name: str | None) -> bool:
    """Whether a variable name reads like a dollar amount."""
    return bool(name) and DOLLAR_FIELD.search(name) is not None


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_currency(value: int | float) -> str:
    """Whole US dollars: ``1800 -> "$1,800"``."""
    amount = round_half_up(abs(value))
    sign = "-" if value < 0 and amount else ""
    return f"{sign}${amount:,}"


def format_number(value: int | float) -> str:
    value = normalize_number(value)
    if isinstance(value, int):
        return f"{value:,}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def format_operand(value: Any, as_currency: bool = False) -> str:
    """Render an actual value or threshold for a comparison sentence."""
    if value is None:
        return "not provided"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if is_number(value):
        return format_currency(value) if as_currency else format_number(value)
    if isinstance(value, list):
        return ", ".join(format_operand(item, as_currency) for item in value)
    return str(value)


def format_comparison(
    operator: str,
    value: Any,
    threshold: Any,
    met: bool,
    criterion: str | None = None,
) -> str:
    """Deterministic sentence describing one comparison outcome."""
    currency = is_dollar_field(criterion)
    v = format_operand(value, currency)

    if operator == "between":
        low, high = (format_operand(bound, currency) for bound in threshold)
        return f"{v} is between {low} and {high}" if met else f"{v} is outside the range of {low} to {high}"

    t = format_operand(threshold, currency)

    if operator == "<=":
        return f"{v} is within the limit of {t}" if met else f"{v} exceeds the limit of {t}"
    if operator == "<":
        return f"{v} is below the threshold of {t}" if met else f"{v} is not below the threshold of {t}"
    if operator == ">=":
        return f"{v} meets the minimum of {t}" if met else f"{v} is below the minimum of {t}"
    if operator == ">":
        return f"{v} exceeds the minimum of {t}" if met else f"{v} does not exceed the minimum of {t}"
    if operator in ("==", "==="):
        return f"{v} matches the required value of {t}" if met else f"{v} does not match the required value of {t}"
    if operator in ("!=", "!=="):
        return f"{v} is different from {t} (as required)" if met else f"{v} incorrectly matches {t}"
    if operator == "in":
        return f"{v} is one of {t}" if met else f"{v} is not one of {t}"
    if operator == "contains":
        return f"{v} includes {t}" if met else f"{v} does not include {t}"
    return f"{v} compared to {t}"


def format_income_test(income: Any, limit: Any, met: bool) -> str:
    return f"{format_operand(income, True)} {'is within' if met else 'exceeds'} the limit of {format_operand(limit, True)}"


def format_household_size(size: Any) -> str:
    noun = "person" if size == 1 else "people"
    return f"{format_operand(size)} {noun} (determines income limit)"
