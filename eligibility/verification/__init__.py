"""Verification: package validation and embedded test runs."""

from .generators import generate_boundary_tests, generate_combination_tests, with_expected
from .runner import (
    RuleTestReport,
    TestFailure,
    TestSuiteReport,
    coverage_report,
    format_test_report,
    run_package_tests,
    run_rule_tests,
    run_test_case,
    run_test_suite,
)
from .service import (
    PackageValidator,
    ValidationIssue,
    ValidationReport,
    check_citations,
    check_date_window,
    check_draft_active,
    check_duplicate_ids,
    check_rule_logic,
    check_schema,
    check_test_cases,
    format_schema_errors,
    validate_rule_package,
)

__all__ = [
    # Validation
    "PackageValidator",
    "ValidationIssue",
    "ValidationReport",
    "check_citations",
    "check_date_window",
    "check_draft_active",
    "check_duplicate_ids",
    "check_rule_logic",
    "check_schema",
    "check_test_cases",
    "format_schema_errors",
    "validate_rule_package",
    # Test runner
    "RuleTestReport",
    "TestFailure",
    "TestSuiteReport",
    "coverage_report",
    "format_test_report",
    "run_package_tests",
    "run_rule_tests",
    "run_test_case",
    "run_test_suite",
    # Generators
    "generate_boundary_tests",
    "generate_combination_tests",
    "with_expected",
]
