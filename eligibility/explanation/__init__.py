"""Explanation generation: criteria summaries, result and rule explanations."""

from .fields import FIELD_NAME_MAPPINGS, format_field_name, format_value
from .results import (
    ExplanationOptions,
    ResultExplanation,
    analyze_result,
    explain_result,
    generate_change_suggestions,
    plain_language,
)
from .rule_description import (
    RuleDifference,
    RuleExplanation,
    RuleExplanationNode,
    build_breakdown,
    complexity_level,
    explain_difference,
    explain_rule,
    explain_what_would_pass,
    format_rule_explanation,
)
from .summary import CriteriaExplanation, explain, summarize

__all__ = [
    # Criteria summaries
    "CriteriaExplanation",
    "explain",
    "summarize",
    # Result explanations
    "ExplanationOptions",
    "ResultExplanation",
    "analyze_result",
    "explain_result",
    "generate_change_suggestions",
    "plain_language",
    # Rule explanations
    "RuleDifference",
    "RuleExplanation",
    "RuleExplanationNode",
    "build_breakdown",
    "complexity_level",
    "explain_difference",
    "explain_rule",
    "explain_what_would_pass",
    "format_rule_explanation",
    # Fields
    "FIELD_NAME_MAPPINGS",
    "format_field_name",
    "format_value",
]
