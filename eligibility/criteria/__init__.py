"""Detailed criteria extraction and formatting."""

from .extractor import CriteriaExtractor, extract_criteria
from .formatting import (
    format_comparison,
    format_currency,
    format_operand,
    is_dollar_field,
)
from .models import DetailedCriterionResult, DetailedEvaluationResult

__all__ = [
    "CriteriaExtractor",
    "extract_criteria",
    "format_comparison",
    "format_currency",
    "format_operand",
    "is_dollar_field",
    "DetailedCriterionResult",
    "DetailedEvaluationResult",
]
