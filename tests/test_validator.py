"""Tests for rule package validation and logic validation."""

import copy

import pytest

from conftest import make_package, make_rule
from eligibility.logic import LogicValidationOptions, complexity_score, parse_expression, validate_logic
from eligibility.rules import RulePackage
from eligibility.verification import PackageValidator, validate_rule_package


class TestPackageValidator:
    def test_valid_package(self, raw_package):
        report = validate_rule_package(raw_package)
        assert report.valid is True
        assert report.errors == []
        assert report.warnings == []
        assert report.rule_count == 1

    def test_accepts_parsed_package(self, package: RulePackage):
        assert validate_rule_package(package).valid is True

    def test_duplicate_ids(self):
        report = validate_rule_package(make_package(make_rule("r1"), make_rule("r1")))
        assert report.valid is False
        duplicates = [e for e in report.errors if "Duplicate rule ID" in e.message]
        assert len(duplicates) == 1
        assert duplicates[0].message == "Duplicate rule ID: r1"

    def test_triplicate_id_is_one_error(self):
        report = validate_rule_package(make_package(make_rule("r1"), make_rule("r1"), make_rule("r1")))
        assert report.error_messages == ["Duplicate rule ID: r1"]

    def test_draft_and_active(self):
        report = validate_rule_package(make_package(make_rule("r1", draft=True, active=True)))
        assert report.valid is True
        assert report.warning_messages == ["Rule r1 is marked as both draft and active"]

    def test_draft_and_active_is_never_promoted(self):
        report = validate_rule_package(make_package(make_rule("r1", draft=True, active=True)), strict=True)
        assert report.valid is True
        assert len(report.warnings) == 1

    def test_missing_citations_and_tests_are_warnings(self):
        report = validate_rule_package(make_package(make_rule("r1", citations=[], testCases=[])))
        assert report.valid is True
        assert report.warning_messages == ["Rule r1 has no citations", "Rule r1 has no test cases"]

    def test_strict_mode_promotes(self):
        report = validate_rule_package(make_package(make_rule("r1", citations=[], testCases=[])), strict=True)
        assert report.valid is False
        assert report.strict is True
        assert report.error_messages == ["Rule r1 has no citations", "Rule r1 has no test cases"]
        assert all(e.severity == "error" for e in report.errors)
        assert report.warnings == []

    def test_schema_violation(self):
        rule = make_rule("r1", ruleType="not-a-type")
        del rule["programId"]
        report = validate_rule_package(make_package(rule))
        assert report.valid is False
        messages = report.error_messages
        assert any(m.startswith("Schema violation at rules.0.programId") for m in messages)
        assert any(m.startswith("Schema violation at rules.0.ruleType") for m in messages)

    def test_structural_checks_run_despite_schema_failure(self):
        bad = make_rule("r1")
        del bad["name"]
        report = validate_rule_package(make_package(bad, make_rule("r1")))
        assert "Duplicate rule ID: r1" in report.error_messages

    def test_non_object_document(self):
        report = validate_rule_package(["not", "a", "package"])
        assert report.valid is False
        assert report.error_messages == ["Rule package must be a JSON object"]

    def test_unknown_operator_in_logic(self):
        report = validate_rule_package(make_package(make_rule("r1", ruleLogic={"no_such_op": [1]})))
        assert report.valid is False
        assert 'Rule r1: Unknown operator "no_such_op"' in report.error_messages

    def test_malformed_logic(self):
        report = validate_rule_package(make_package(make_rule("r1", ruleLogic={"<": [1, 2], ">": [1, 2]})))
        assert report.valid is False
        assert any(e.code == "VAL_INVALID_STRUCTURE" for e in report.errors)

    def test_date_window(self):
        rule = make_rule("r1", effectiveDate="2025-01-01T00:00:00", expirationDate="2024-01-01T00:00:00")
        report = validate_rule_package(make_package(rule))
        assert report.error_messages == ["Rule r1 has an effective date after its expiration date"]

    def test_does_not_mutate_input(self):
        document = make_package(make_rule("r1"), make_rule("r1", draft=True))
        snapshot = copy.deepcopy(document)
        validate_rule_package(document, strict=True)
        assert document == snapshot

    def test_failing_check_is_reported(self):
        validator = PackageValidator()

        def broken(rules):
            raise RuntimeError("boom")

        validator._rule_checks.append(broken)
        report = validator.validate(make_package())
        assert report.error_messages == ["Check failed with error: boom"]

    def test_bundled_packages_are_strictly_valid(self, rule_loader):
        for package in rule_loader.get_all_packages():
            report = validate_rule_package(package, strict=True)
            assert report.valid, report.error_messages

    def test_report_serializes_camel_case(self, raw_package):
        dumped = validate_rule_package(raw_package).model_dump(by_alias=True)
        assert "ruleCount" in dumped


class TestLogicValidation:
    def test_valid_logic(self, registry):
        result = validate_logic({"and": [{"<": [{"var": "a"}, 1]}, {"var": "b"}]}, registry)
        assert result.valid
        assert result.operators == ["and", "<"]
        assert result.variables == ["a", "b"]
        assert result.depth == 2

    def test_depth_limit(self, registry):
        logic = {"!": {"!": {"!": True}}}
        result = validate_logic(logic, registry, LogicValidationOptions(max_depth=2))
        assert not result.valid
        assert result.errors[0].code == "VAL_MAX_DEPTH"

    def test_disallowed_and_required(self, registry):
        options = LogicValidationOptions(disallowed_operators=["in"], required_variables=["income"])
        result = validate_logic({"in": [{"var": "state"}, ["CA"]]}, registry, options)
        codes = [e.code for e in result.errors]
        assert codes == ["VAL_DISALLOWED_OPERATOR", "VAL_MISSING_VARIABLE"]

    def test_complexity(self, registry):
        node = parse_expression({"<=": [{"var": "householdIncome"}, 2072]}, registry)
        assert complexity_score(node) == 8

    @pytest.mark.parametrize("limit,valid,warned", [(100, True, False), (9, True, True), (7, False, False)])
    def test_complexity_limits(self, registry, limit, valid, warned):
        result = validate_logic(
            {"<=": [{"var": "householdIncome"}, 2072]}, registry, LogicValidationOptions(max_complexity=limit)
        )
        assert result.valid is valid
        assert bool(result.warnings) is warned
