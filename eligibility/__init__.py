"""Offline benefit eligibility rule engine.

Evaluates JSON-Logic rule expressions against applicant data, extracts
per-criterion results, explains outcomes, and verifies rule packages.
"""

__version__ = "0.1.0"

from eligibility.core import FPL_2024, PovertyGuidelines, Settings, get_settings
from eligibility.criteria import CriteriaExtractor, DetailedCriterionResult, DetailedEvaluationResult
from eligibility.explanation import explain, explain_result, explain_rule
from eligibility.logic import LogicEvaluator, OperatorRegistry, build_default_registry, evaluate
from eligibility.rules import RuleDefinition, RulePackage, RulePackageLoader
from eligibility.runtime import EligibilityResult, determine_eligibility, evaluate_rule_with_details
from eligibility.verification import (
    ValidationReport,
    run_package_tests,
    run_test_suite,
    validate_rule_package,
)

__all__ = [
    "__version__",
    # Core
    "FPL_2024",
    "PovertyGuidelines",
    "Settings",
    "get_settings",
    # Logic
    "LogicEvaluator",
    "OperatorRegistry",
    "build_default_registry",
    "evaluate",
    # Criteria
    "CriteriaExtractor",
    "DetailedCriterionResult",
    "DetailedEvaluationResult",
    # Explanation
    "explain",
    "explain_result",
    "explain_rule",
    # Rules
    "RuleDefinition",
    "RulePackage",
    "RulePackageLoader",
    # Runtime
    "EligibilityResult",
    "determine_eligibility",
    "evaluate_rule_with_details",
    # Verification
    "ValidationReport",
    "run_package_tests",
    "run_test_suite",
    "validate_rule_package",
]
