"""Explanations of eligibility results for end users."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, Mapping

from pydantic import BaseModel, Field

from eligibility.core.exceptions import InvalidExpressionError
from eligibility.core.models import CamelModel
from eligibility.logic.expression import resolve_path
from eligibility.logic.operators import is_missing

from .fields import format_field_name, format_value
from .rule_description import explain_rule

if TYPE_CHECKING:
    from eligibility.runtime.models import EligibilityResult

LanguageLevel = Literal["simple", "standard", "technical"]


class ExplanationOptions(BaseModel):
    include_technical: bool = False
    language_level: LanguageLevel = "standard"
    include_suggestions: bool = True
    max_length: int = 1000


class ResultExplanation(CamelModel):
    summary: str
    reasoning: list[str] = Field(default_factory=list)
    criteria_checked: list[str] = Field(default_factory=list)
    criteria_passed: list[str] = Field(default_factory=list)
    criteria_failed: list[str] = Field(default_factory=list)
    missing_information: list[str] = Field(default_factory=list)
    what_would_change: list[str] | None = None
    plain_language: str
    technical_details: str | None = None


def _verified(field: str) -> str:
    return f"✓ We verified {format_field_name(field)} and you meet this requirement"


def analyze_result(
    result: EligibilityResult, criteria_checked: list[str]
) -> tuple[list[str], list[str], list[str]]:
    """Reasoning lines plus passed and failed criterion lines."""
    reasoning: list[str] = []
    passed: list[str] = []
    failed: list[str] = []

    if result.eligible:
        reasoning.append("You meet all the eligibility requirements for this program.")
        if result.criteria_results:
            passed.extend(_verified(c.criterion) for c in result.criteria_results if c.met)
        else:
            passed.extend(
                f"✓ We verified {field} and you meet this requirement" for field in criteria_checked
            )
    elif result.incomplete:
        reasoning.append("We need more information to determine your eligibility.")
        for field in result.missing_fields:
            description = format_field_name(field)
            reasoning.append(f"Please provide information about {description}")
            failed.append(f"? We need information about {description} to continue")
    else:
        reasoning.append(
            "Based on the information provided, you do not currently meet the eligibility requirements."
        )
        for criterion in result.criteria_results:
            if criterion.met:
                passed.append(_verified(criterion.criterion))
            else:
                description = criterion.comparison or format_field_name(criterion.criterion)
                failed.append(f"✗ {description} does not meet the program requirements")
                reasoning.append(f"• {description} does not meet the program requirements")

    return reasoning, passed, failed


def generate_change_suggestions(result: EligibilityResult) -> list[str]:
    suggestions = []
    if result.missing_fields:
        suggestions.append("Complete your profile by providing the missing information")

    for criterion in result.criteria_results:
        if criterion.met or criterion.threshold is None:
            continue
        field = format_field_name(criterion.criterion)
        current, required = format_value(criterion.value), format_value(criterion.threshold)
        name = criterion.criterion.lower()
        if "income" in name:
            suggestions.append(f"If {field} changes from {current} to {required} or below, you may qualify")
        elif "age" in name:
            suggestions.append(
                f"This program requires a different age range than your current age of {current}"
            )
        else:
            suggestions.append(
                f"If {field} changes from {current} to meet the requirement of {required}, you may qualify"
            )
    return suggestions


def _status_message(result: EligibilityResult, level: LanguageLevel) -> str:
    simple = level == "simple"
    if result.eligible:
        return (
            "Good news! You qualify for this program."
            if simple
            else "Based on the information you provided, you appear to be eligible for this benefit program."
        )
    if result.incomplete:
        return (
            "We need more information to check if you qualify."
            if simple
            else "We need additional information to complete your eligibility evaluation."
        )
    return (
        "Unfortunately, you do not qualify for this program right now."
        if simple
        else "Based on the information provided, you do not currently meet the eligibility requirements for this program."
    )


def plain_language(result: EligibilityResult, reasoning: list[str], level: LanguageLevel) -> str:
    parts = [_status_message(result, level)]

    if reasoning and level != "simple":
        parts.append("")
        parts.extend(reasoning)

    if result.eligible and result.next_steps:
        parts.append("")
        parts.append("Here's what to do next:" if level == "simple" else "Recommended next steps:")
        parts.extend(f"• {step.step}" for step in result.next_steps)

    if result.incomplete and result.missing_fields:
        parts.append("")
        parts.append("We need to know:" if level == "simple" else "Please provide the following information:")
        parts.extend(f"• {format_field_name(field)}" for field in result.missing_fields)

    return "\n".join(parts)


def missing_information(
    result: EligibilityResult, variables: list[str], data: Mapping[str, Any] | None
) -> list[str]:
    """Required fields the result flagged, then any other field the rule reads
    that the record leaves absent, null or blank."""
    missing = list(result.missing_fields)
    if data is None:
        return missing
    for variable in variables:
        if variable in missing:
            continue
        value = resolve_path(data, variable)
        if is_missing(value) or value == "":
            missing.append(variable)
    return missing


def _truncate(text: str, limit: int) -> str:
    if limit <= 0 or len(text) <= limit:
        return text
    return text[: max(limit - 1, 0)].rstrip() + "…"


def explain_result(
    result: EligibilityResult,
    logic: Any,
    data: Mapping[str, Any] | None = None,
    options: ExplanationOptions | None = None,
) -> ResultExplanation:
    """Full explanation of a determination against the rule logic it used.

    ``data`` is the record that was evaluated; when given, fields the rule
    reads but the record lacks are listed as missing information.
    """
    opts = options or ExplanationOptions()
    try:
        rule_explanation = explain_rule(logic, opts.language_level)
    except InvalidExpressionError:
        rule_explanation = None
    criteria_checked = list(rule_explanation.criteria_checked) if rule_explanation else []
    variables = list(rule_explanation.variables) if rule_explanation else []

    reasoning, passed, failed = analyze_result(result, criteria_checked)

    suggestions = None
    if opts.include_suggestions and not result.eligible:
        suggestions = generate_change_suggestions(result) or None

    technical = None
    if opts.include_technical and rule_explanation is not None:
        technical = (
            f"Rule {result.rule_id} (version {result.rule_version or 'unknown'}); "
            f"operators: {', '.join(rule_explanation.operators) or 'none'}; "
            f"complexity: {rule_explanation.complexity}"
        )

    return ResultExplanation(
        summary=result.reason,
        reasoning=reasoning,
        criteria_checked=criteria_checked,
        criteria_passed=passed,
        criteria_failed=failed,
        missing_information=missing_information(result, variables, data),
        what_would_change=suggestions,
        plain_language=_truncate(plain_language(result, reasoning, opts.language_level), opts.max_length),
        technical_details=technical,
    )
