"""Embedded test runner.

Runs each rule's bundled test cases through the logic evaluator and compares
the result to the expected value with strict equality. A case marked
``shouldPass: false`` passes only when evaluation fails. A failure in one
case never stops its siblings.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import Field, computed_field

from eligibility.core.models import CamelModel
from eligibility.logic.evaluator import LogicEvaluator, get_evaluator, to_json_value
from eligibility.logic.operators import strict_equals
from eligibility.rules.schema import RuleDefinition, RulePackage, TestCase

logger = logging.getLogger(__name__)


class TestFailure(CamelModel):
    """A test case whose actual value did not equal the expected value."""

    __test__ = False

    test_id: str
    description: str = ""
    expected: Any = None
    actual: Any = None
    error: str | None = None
    expected_error: bool = False


class RuleTestReport(CamelModel):
    rule_id: str
    rule_name: str = ""
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    failures: list[TestFailure] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TestSuiteReport(CamelModel):
    """Roll-up of rule reports for one package or suite."""

    __test__ = False

    name: str = ""
    total_rules: int = 0
    total: int = 0
    passed: int = 0
    failed: int = 0
    rule_results: list[RuleTestReport] = Field(default_factory=list)

    @computed_field(alias="successRate")
    @property
    def success_rate(self) -> float:
        return 100.0 * self.passed / self.total if self.total else 0.0

    @property
    def all_passed(self) -> bool:
        return self.failed == 0


def run_test_case(test: TestCase, logic: Any, evaluator: LogicEvaluator) -> TestFailure | None:
    """Run one case; None when it passes."""
    if not test.should_pass:
        outcome = evaluator.evaluate(logic, test.input)
        if not outcome.success:
            return None
        return TestFailure(
            test_id=test.id,
            description=test.description,
            actual=outcome.result,
            expected_error=True,
        )

    try:
        actual = to_json_value(evaluator.apply(logic, test.input))
    except Exception as e:
        logger.debug("Test %s raised: %s", test.id, e)
        return TestFailure(
            test_id=test.id,
            description=test.description,
            expected=test.expected,
            error=str(e) or type(e).__name__,
        )

    if strict_equals(actual, test.expected):
        return None
    return TestFailure(
        test_id=test.id,
        description=test.description,
        expected=test.expected,
        actual=actual,
    )


def run_rule_tests(rule: RuleDefinition, evaluator: LogicEvaluator | None = None) -> RuleTestReport:
    """Run every test case of one rule."""
    evaluator = evaluator or get_evaluator()
    failures: list[TestFailure] = []
    warnings: list[str] = []
    total = 0

    for test in rule.test_cases:
        if not test.has_expected:
            warnings.append(f"Test {test.id} has no expected value, skipped")
            continue
        total += 1
        failure = run_test_case(test, rule.rule_logic, evaluator)
        if failure is not None:
            failures.append(failure)

    return RuleTestReport(
        rule_id=rule.id,
        rule_name=rule.name,
        total=total,
        passed=total - len(failures),
        failed=len(failures),
        skipped=len(warnings),
        failures=failures,
        warnings=warnings,
    )


def run_test_suite(
    rules: Iterable[RuleDefinition],
    evaluator: LogicEvaluator | None = None,
    name: str = "",
) -> TestSuiteReport:
    """Run the tests of every rule that has at least one test case."""
    evaluator = evaluator or get_evaluator()
    reports = [run_rule_tests(rule, evaluator) for rule in rules if rule.test_cases]
    return TestSuiteReport(
        name=name,
        total_rules=len(reports),
        total=sum(r.total for r in reports),
        passed=sum(r.passed for r in reports),
        failed=sum(r.failed for r in reports),
        rule_results=reports,
    )


def run_package_tests(package: RulePackage, evaluator: LogicEvaluator | None = None) -> TestSuiteReport:
    return run_test_suite(package.rules, evaluator, name=package.metadata.name)


def format_test_report(report: TestSuiteReport, verbose: bool = False) -> str:
    """Plain-text report of a suite run."""
    lines = [
        f"Test Suite: {report.name or 'unnamed'}",
        f"Total: {report.total} | Passed: {report.passed} | Failed: {report.failed}",
        f"Success Rate: {report.success_rate:.1f}%",
    ]
    for rule in report.rule_results:
        status = "PASS" if rule.failed == 0 else "FAIL"
        lines.append(f"  [{status}] {rule.rule_id}: {rule.passed}/{rule.total} passed")
        for failure in rule.failures:
            lines.append(f"    - {failure.test_id}: {failure.description}")
            if failure.expected_error:
                lines.append(f"      expected an evaluation error, got {failure.actual!r}")
            elif failure.error:
                lines.append(f"      error: {failure.error}")
            elif verbose:
                lines.append(f"      expected: {failure.expected!r}")
                lines.append(f"      actual:   {failure.actual!r}")
        if verbose:
            lines.extend(f"    ! {warning}" for warning in rule.warnings)
    return "\n".join(lines)


def coverage_report(rules: Iterable[RuleDefinition]) -> dict[str, Any]:
    """Which rules carry tests, and how many."""
    rules = list(rules)
    tested = [rule.id for rule in rules if rule.test_cases]
    untested = [rule.id for rule in rules if not rule.test_cases]
    return {
        "total_rules": len(rules),
        "tested_rules": tested,
        "untested_rules": untested,
        "total_test_cases": sum(len(rule.test_cases) for rule in rules),
        "coverage": 100.0 * len(tested) / len(rules) if rules else 0.0,
    }
