"""Runtime: detailed evaluation and eligibility determination."""

from .models import EligibilityResult
from .service import (
    determine_eligibility,
    determine_program_eligibility,
    evaluate_program,
    evaluate_programs,
    evaluate_programs_sync,
    evaluate_rule_with_details,
    find_missing_fields,
)

__all__ = [
    "EligibilityResult",
    "determine_eligibility",
    "determine_program_eligibility",
    "evaluate_program",
    "evaluate_programs",
    "evaluate_programs_sync",
    "evaluate_rule_with_details",
    "find_missing_fields",
]
