"""Rule package validation.

Runs schema validation and structural checks over a whole package:

- Schema: the package must parse as a ``RulePackage`` (error)
- Duplicate rule ids (error)
- Rule logic: parses, uses registered operators, stays within depth and
  complexity limits (error)
- Effective date after expiration date (error)
- Missing citations, missing test cases (warning, error in strict mode)
- Rule marked both draft and active (warning, never promoted)

Structural checks run over the raw document, so they still report when
the schema check fails.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Literal

from pydantic import Field, TypeAdapter, ValidationError

from eligibility.core.models import CamelModel
from eligibility.logic.evaluator import get_evaluator
from eligibility.logic.operators import OperatorRegistry
from eligibility.logic.validation import LogicValidationOptions, validate_logic
from eligibility.rules.schema import RulePackage

logger = logging.getLogger(__name__)

Severity = Literal["error", "warning"]


class ValidationIssue(CamelModel):
    """One validation finding."""

    message: str
    code: str
    severity: Severity = "error"
    rule_id: str | None = None
    promotable: bool = Field(False, description="Escalates to an error in strict mode")


class ValidationReport(CamelModel):
    """Outcome of validating one package."""

    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    rule_count: int = 0
    strict: bool = False

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.errors]

    @property
    def warning_messages(self) -> list[str]:
        return [issue.message for issue in self.warnings]


# =============================================================================
# Issue Factory
# =============================================================================


def _issue(
    message: str,
    code: str,
    severity: Severity = "error",
    rule_id: str | None = None,
    promotable: bool = False,
) -> ValidationIssue:
    return ValidationIssue(
        message=message, code=code, severity=severity, rule_id=rule_id, promotable=promotable
    )


def _rule_label(raw: dict[str, Any], index: int) -> str:
    rule_id = raw.get("id")
    return rule_id if isinstance(rule_id, str) and rule_id else f"#{index + 1}"


def _raw_rules(document: Any) -> list[dict[str, Any]]:
    rules = document.get("rules") if isinstance(document, dict) else None
    if not isinstance(rules, list):
        return []
    return [rule for rule in rules if isinstance(rule, dict)]


# =============================================================================
# Checks
# =============================================================================


def format_schema_errors(error: ValidationError) -> list[str]:
    """``path: message`` per pydantic error, path joined with dots."""
    messages = []
    for item in error.errors():
        path = ".".join(str(part) for part in item["loc"]) or "<root>"
        messages.append(f"{path}: {item['msg']}")
    return messages


def check_schema(document: Any) -> list[ValidationIssue]:
    try:
        RulePackage.model_validate(document)
    except ValidationError as e:
        return [_issue(f"Schema violation at {message}", "SCHEMA") for message in format_schema_errors(e)]
    return []


def check_duplicate_ids(rules: list[dict[str, Any]]) -> list[ValidationIssue]:
    """One error per id that appears more than once."""
    counts = Counter(rule.get("id") for rule in rules if isinstance(rule.get("id"), str))
    return [
        _issue(f"Duplicate rule ID: {rule_id}", "DUPLICATE_ID", rule_id=rule_id)
        for rule_id, count in counts.items()
        if count > 1
    ]


def check_citations(rules: list[dict[str, Any]]) -> list[ValidationIssue]:
    return [
        _issue(f"Rule {_rule_label(rule, i)} has no citations", "MISSING_CITATIONS", "warning",
               rule.get("id"), promotable=True)
        for i, rule in enumerate(rules)
        if not rule.get("citations")
    ]


def check_test_cases(rules: list[dict[str, Any]]) -> list[ValidationIssue]:
    return [
        _issue(f"Rule {_rule_label(rule, i)} has no test cases", "MISSING_TESTS", "warning",
               rule.get("id"), promotable=True)
        for i, rule in enumerate(rules)
        if not rule.get("testCases", rule.get("test_cases"))
    ]


def check_draft_active(rules: list[dict[str, Any]]) -> list[ValidationIssue]:
    return [
        _issue(f"Rule {_rule_label(rule, i)} is marked as both draft and active", "DRAFT_ACTIVE",
               "warning", rule.get("id"))
        for i, rule in enumerate(rules)
        if rule.get("draft") is True and rule.get("active") is True
    ]


_DATETIME = TypeAdapter(datetime)


def _as_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    try:
        moment = _DATETIME.validate_python(value)
    except ValidationError:
        return None
    return moment.replace(tzinfo=None) if moment.tzinfo else moment


def check_date_window(rules: list[dict[str, Any]]) -> list[ValidationIssue]:
    issues = []
    for i, rule in enumerate(rules):
        effective = _as_datetime(rule.get("effectiveDate", rule.get("effective_date")))
        expiration = _as_datetime(rule.get("expirationDate", rule.get("expiration_date")))
        if effective and expiration and effective > expiration:
            issues.append(_issue(
                f"Rule {_rule_label(rule, i)} has an effective date after its expiration date",
                "DATE_ORDER",
                rule_id=rule.get("id"),
            ))
    return issues


def check_rule_logic(
    rules: list[dict[str, Any]],
    registry: OperatorRegistry,
    options: LogicValidationOptions | None = None,
) -> list[ValidationIssue]:
    """Logic errors per rule; complexity warnings pass through as warnings."""
    issues = []
    for i, rule in enumerate(rules):
        key = "ruleLogic" if "ruleLogic" in rule else "rule_logic"
        if key not in rule:
            continue
        label = _rule_label(rule, i)
        result = validate_logic(rule[key], registry, options)
        issues.extend(
            _issue(f"Rule {label}: {issue.message}", issue.code, rule_id=rule.get("id"))
            for issue in result.errors
        )
        issues.extend(
            _issue(f"Rule {label}: {issue.message}", issue.code, "warning", rule.get("id"))
            for issue in result.warnings
        )
    return issues


# =============================================================================
# Package Validator
# =============================================================================


class PackageValidator:
    """Runs every package check and sorts findings by severity."""

    def __init__(
        self,
        registry: OperatorRegistry | None = None,
        logic_options: LogicValidationOptions | None = None,
    ):
        self.registry = registry or get_evaluator().registry
        self.logic_options = logic_options

        self._rule_checks: list[Callable[[list[dict[str, Any]]], list[ValidationIssue]]] = [
            check_duplicate_ids,
            lambda rules: check_rule_logic(rules, self.registry, self.logic_options),
            check_date_window,
            check_citations,
            check_test_cases,
            check_draft_active,
        ]

    def validate(self, package: RulePackage | dict[str, Any] | Any, strict: bool = False) -> ValidationReport:
        """Validate a package without modifying it."""
        if isinstance(package, RulePackage):
            document = package.model_dump(mode="json", by_alias=True)
        else:
            document = package

        if not isinstance(document, dict):
            return ValidationReport(
                valid=False,
                errors=[_issue("Rule package must be a JSON object", "SCHEMA")],
                strict=strict,
            )

        issues = check_schema(document)
        rules = _raw_rules(document)
        for check in self._rule_checks:
            try:
                issues.extend(check(rules))
            except Exception as e:
                logger.exception("Validation check failed")
                issues.append(_issue(f"Check failed with error: {e}", "CHECK_ERROR"))

        errors, warnings = [], []
        for issue in issues:
            if issue.severity == "error":
                errors.append(issue)
            elif strict and issue.promotable:
                errors.append(issue.model_copy(update={"severity": "error"}))
            else:
                warnings.append(issue)

        return ValidationReport(
            valid=not errors,
            errors=errors,
            warnings=warnings,
            rule_count=len(rules),
            strict=strict,
        )


def validate_rule_package(
    package: RulePackage | dict[str, Any] | Any,
    strict: bool = False,
    registry: OperatorRegistry | None = None,
) -> ValidationReport:
    """Convenience function to validate a package."""
    return PackageValidator(registry).validate(package, strict=strict)
