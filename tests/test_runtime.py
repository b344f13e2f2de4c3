"""Tests for eligibility determination and concurrent program scoring."""

import asyncio
import threading
from datetime import datetime, timedelta, timezone

from conftest import make_rule
from eligibility.rules import RuleDefinition
from eligibility.runtime import service
from eligibility.runtime import (
    determine_eligibility,
    determine_program_eligibility,
    evaluate_programs,
    evaluate_programs_sync,
    find_missing_fields,
)

NOW = datetime(2026, 1, 15, tzinfo=timezone.utc)
SNAP_DATA = {"householdIncome": 2000, "householdSize": 2}


class TestDetermineEligibility:
    def test_eligible(self, snap_rule, evaluator):
        result = determine_eligibility(snap_rule, SNAP_DATA, evaluator, profile_id="p1", now=NOW)

        assert result.eligible is True
        assert result.confidence == 95
        assert result.reason == "You meet the eligibility criteria for this program"
        assert result.needs_review is False
        assert result.profile_id == "p1"
        assert result.program_id == "snap"
        assert result.rule_version == "1.0.0"
        assert len(result.criteria_results) == 2
        assert result.explanation == "All eligibility requirements have been met"
        assert result.next_steps[0].step == "Apply at your local SNAP office"

    def test_rule_explanation_is_the_reason(self, snap_rule, evaluator):
        rule = snap_rule.model_copy(update={"explanation": "Income is under the SNAP limit"})
        assert determine_eligibility(rule, SNAP_DATA, evaluator, now=NOW).reason == "Income is under the SNAP limit"

    def test_ineligible(self, snap_rule, evaluator):
        result = determine_eligibility(snap_rule, {"householdIncome": 5000, "householdSize": 2}, evaluator, now=NOW)
        assert result.eligible is False
        assert result.confidence == 95
        assert result.reason == "You do not meet the eligibility criteria for this program"

    def test_incomplete(self, snap_rule, evaluator):
        result = determine_eligibility(snap_rule, {"householdSize": 2}, evaluator, now=NOW)
        assert result.eligible is False
        assert result.incomplete is True
        assert result.needs_review is True
        assert result.confidence == 50
        assert result.missing_fields == ["householdIncome"]
        assert result.reason == "Cannot fully determine eligibility - missing required information"

    def test_evaluation_error_degrades_to_review(self, income_rule, evaluator):
        broken = income_rule.model_copy(update={"rule_logic": {"no_such_op": [1]}})
        result = determine_eligibility(broken, {"income": 100}, evaluator, now=NOW)
        assert result.eligible is False
        assert result.needs_review is True
        assert result.confidence == 0
        assert result.reason == "Unable to evaluate eligibility due to an error"
        assert result.error == "Unrecognized operation no_such_op"

    def test_expiry(self, snap_rule, evaluator, monkeypatch):
        monkeypatch.setenv("RESULT_TTL_DAYS", "7")
        result = determine_eligibility(snap_rule, SNAP_DATA, evaluator, now=NOW)
        assert result.evaluated_at == NOW
        assert result.expires_at == NOW + timedelta(days=7)

    def test_find_missing_fields(self, snap_rule):
        assert find_missing_fields(snap_rule, {"householdIncome": "", "householdSize": None}) == [
            "householdIncome", "householdSize",
        ]
        assert find_missing_fields(snap_rule, SNAP_DATA) == []


class TestProgramEligibility:
    def rules(self) -> list[RuleDefinition]:
        return [
            RuleDefinition.model_validate(make_rule("income", programId="prog")),
            RuleDefinition.model_validate(make_rule(
                "age", programId="prog", ruleLogic={">=": [{"var": "age"}, 18]}, requiredFields=["age"],
            )),
        ]

    def test_all_rules_must_pass(self, evaluator):
        result = determine_program_eligibility("prog", self.rules(), {"income": 1000, "age": 30}, evaluator, now=NOW)
        assert result.eligible is True
        assert result.rule_id == "income"
        assert len(result.criteria_results) == 2

    def test_first_failed_rule_is_reported(self, evaluator):
        result = determine_program_eligibility("prog", self.rules(), {"income": 1000, "age": 16}, evaluator, now=NOW)
        assert result.eligible is False
        assert result.rule_id == "age"

    def test_missing_fields_are_merged(self, evaluator):
        result = determine_program_eligibility("prog", self.rules(), {}, evaluator, now=NOW)
        assert result.missing_fields == ["income", "age"]
        assert result.incomplete is True

    def test_no_rules(self, evaluator):
        result = determine_program_eligibility("prog", [], {}, evaluator, now=NOW)
        assert result.eligible is False
        assert result.needs_review is True
        assert result.reason == "No active rules found for this program"


class TestConcurrentEvaluation:
    def test_evaluate_programs(self, rule_loader, evaluator):
        programs = {
            "snap-federal": rule_loader.get_applicable_rules("snap-federal", on=datetime(2024, 3, 1)),
            "wic-federal": rule_loader.get_applicable_rules("wic-federal"),
        }
        data = {
            "householdIncome": 2000,
            "householdSize": 3,
            "netIncome": 1800,
            "countableAssets": 500,
            "hasElderlyOrDisabledMember": False,
            "participantCategory": "pregnant",
        }
        results = asyncio.run(evaluate_programs(programs, data, evaluator, profile_id="p1"))

        assert [r.program_id for r in results] == ["snap-federal", "wic-federal"]
        assert all(r.eligible for r in results)
        assert all(r.profile_id == "p1" for r in results)

    def test_programs_are_scored_on_worker_threads(self, income_rule, evaluator, monkeypatch):
        threads = []
        original = service.determine_program_eligibility

        def recording(*args, **kwargs):
            threads.append(threading.get_ident())
            return original(*args, **kwargs)

        monkeypatch.setattr(service, "determine_program_eligibility", recording)
        programs = {"a": [income_rule], "b": [income_rule]}
        results = evaluate_programs_sync(programs, {"income": 1000}, evaluator)

        assert [r.program_id for r in results] == ["a", "b"]
        assert len(threads) == 2
        assert threading.get_ident() not in threads

    def test_sync_wrapper(self, income_rule, evaluator):
        results = evaluate_programs_sync({"test-program": [income_rule]}, {"income": 3000}, evaluator)
        assert len(results) == 1
        assert results[0].eligible is False

    def test_results_serialize_for_storage(self, snap_rule, evaluator):
        dumped = determine_eligibility(snap_rule, SNAP_DATA, evaluator, now=NOW).model_dump(mode="json", by_alias=True)
        assert dumped["programId"] == "snap"
        assert "expiresAt" in dumped
        assert dumped["criteriaResults"][0]["criterion"] == "householdIncome"
