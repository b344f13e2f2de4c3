"""Runtime evaluation services.

``evaluate_rule_with_details`` runs the evaluator and the criteria
extractor over the same ``(logic, data)`` pair. ``determine_eligibility``
turns that into the result record callers persist, degrading evaluation
errors to a needs-review result instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Sequence

from eligibility.core.config import get_settings
from eligibility.criteria.extractor import CriteriaExtractor
from eligibility.criteria.models import DetailedEvaluationResult
from eligibility.explanation.summary import summarize
from eligibility.logic.evaluator import LogicEvaluator, get_evaluator
from eligibility.logic.expression import resolve_path
from eligibility.logic.operators import is_missing, truthy
from eligibility.rules.schema import RuleDefinition

from .models import (
    CONFIDENCE_COMPLETE,
    CONFIDENCE_ERROR,
    CONFIDENCE_INCOMPLETE,
    EligibilityResult,
)

logger = logging.getLogger(__name__)

REASON_ERROR = "Unable to evaluate eligibility due to an error"
REASON_INCOMPLETE = "Cannot fully determine eligibility - missing required information"
REASON_ELIGIBLE = "You meet the eligibility criteria for this program"
REASON_INELIGIBLE = "You do not meet the eligibility criteria for this program"
REASON_NO_RULES = "No active rules found for this program"


# =============================================================================
# Detailed Evaluation
# =============================================================================


def evaluate_rule_with_details(
    rule: RuleDefinition | Any,
    data: Mapping[str, Any] | None = None,
    evaluator: LogicEvaluator | None = None,
) -> DetailedEvaluationResult:
    """Evaluate a rule and reconstruct its per-criterion reasoning.

    ``rule`` is a ``RuleDefinition`` or a bare logic tree. Never raises.
    """
    evaluator = evaluator or get_evaluator()
    logic = rule.rule_logic if isinstance(rule, RuleDefinition) else rule
    data = {} if data is None else data

    start = time.perf_counter()
    outcome = evaluator.evaluate(logic, data)
    if not outcome.success:
        return DetailedEvaluationResult(
            result=False,
            success=False,
            execution_time=(time.perf_counter() - start) * 1000,
            error=outcome.error,
            error_code=outcome.error_code,
        )

    criteria = CriteriaExtractor(evaluator).extract(logic, data)
    return DetailedEvaluationResult(
        result=outcome.result,
        success=True,
        execution_time=(time.perf_counter() - start) * 1000,
        criteria_results=criteria,
        explanation=summarize(criteria, truthy(outcome.result)),
    )


# =============================================================================
# Eligibility Determination
# =============================================================================


def find_missing_fields(rule: RuleDefinition, data: Mapping[str, Any]) -> list[str]:
    """Required fields that are absent, null or blank in the record."""
    missing = []
    for field in rule.required_fields:
        value = resolve_path(data, field)
        if is_missing(value) or value == "":
            missing.append(field)
    return missing


def _reason(rule: RuleDefinition, detailed: DetailedEvaluationResult, incomplete: bool) -> str:
    if not detailed.success:
        return REASON_ERROR
    if incomplete:
        return REASON_INCOMPLETE
    if truthy(detailed.result):
        return rule.explanation or REASON_ELIGIBLE
    return REASON_INELIGIBLE


def _confidence(detailed: DetailedEvaluationResult, incomplete: bool) -> int:
    if not detailed.success:
        return CONFIDENCE_ERROR
    if incomplete:
        return CONFIDENCE_INCOMPLETE
    return CONFIDENCE_COMPLETE


def determine_eligibility(
    rule: RuleDefinition,
    data: Mapping[str, Any],
    evaluator: LogicEvaluator | None = None,
    profile_id: str | None = None,
    now: datetime | None = None,
) -> EligibilityResult:
    """Determine eligibility for one rule. Never raises on evaluation errors."""
    evaluated_at = now or datetime.now(timezone.utc)
    ttl = timedelta(days=get_settings().result_ttl_days)

    detailed = evaluate_rule_with_details(rule, data, evaluator)
    missing = find_missing_fields(rule, data)
    incomplete = bool(missing)

    if not detailed.success:
        logger.warning("Rule %s needs manual review: %s", rule.id, detailed.error)

    return EligibilityResult(
        profile_id=profile_id,
        program_id=rule.program_id,
        rule_id=rule.id,
        rule_version=str(rule.version),
        eligible=detailed.success and truthy(detailed.result),
        confidence=_confidence(detailed, incomplete),
        reason=_reason(rule, detailed, incomplete),
        incomplete=incomplete,
        needs_review=not detailed.success or incomplete,
        missing_fields=missing,
        criteria_results=detailed.criteria_results,
        explanation=detailed.explanation,
        next_steps=rule.next_steps,
        required_documents=rule.required_documents,
        evaluated_at=evaluated_at,
        expires_at=evaluated_at + ttl,
        execution_time=detailed.execution_time,
        error=detailed.error,
    )


def determine_program_eligibility(
    program_id: str,
    rules: Sequence[RuleDefinition],
    data: Mapping[str, Any],
    evaluator: LogicEvaluator | None = None,
    profile_id: str | None = None,
    now: datetime | None = None,
) -> EligibilityResult:
    """Combine every rule of a program: eligible only when all rules pass.

    The reported rule is the first one that failed, or the first rule when
    all passed. Missing fields and criteria are merged across rules.
    """
    evaluated_at = now or datetime.now(timezone.utc)
    if not rules:
        return EligibilityResult(
            profile_id=profile_id,
            program_id=program_id,
            rule_id="none",
            eligible=False,
            confidence=CONFIDENCE_ERROR,
            reason=REASON_NO_RULES,
            incomplete=True,
            needs_review=True,
            evaluated_at=evaluated_at,
            expires_at=evaluated_at + timedelta(days=get_settings().result_ttl_days),
        )

    results = [determine_eligibility(rule, data, evaluator, profile_id, evaluated_at) for rule in rules]
    failed = next((r for r in results if not r.eligible), None)
    chosen = failed or results[0]

    missing: list[str] = []
    for r in results:
        missing.extend(f for f in r.missing_fields if f not in missing)

    return chosen.model_copy(update={
        "program_id": program_id,
        "missing_fields": missing,
        "incomplete": bool(missing),
        "needs_review": any(r.needs_review for r in results),
        "criteria_results": [c for r in results for c in r.criteria_results],
        "execution_time": sum(r.execution_time for r in results),
    })


async def evaluate_program(
    program_id: str,
    rules: Sequence[RuleDefinition],
    data: Mapping[str, Any],
    evaluator: LogicEvaluator | None = None,
    profile_id: str | None = None,
) -> EligibilityResult:
    """Score one program on a worker thread so many can run concurrently."""
    return await asyncio.to_thread(
        determine_program_eligibility, program_id, rules, data, evaluator, profile_id
    )


async def evaluate_programs(
    programs: Mapping[str, Sequence[RuleDefinition]],
    data: Mapping[str, Any],
    evaluator: LogicEvaluator | None = None,
    profile_id: str | None = None,
) -> list[EligibilityResult]:
    """Score one profile against several programs in parallel.

    Uses asyncio.gather over worker threads; evaluation shares no mutable
    state, so no locking. Results keep the order of ``programs``.
    """
    tasks = [
        evaluate_program(program_id, rules, data, evaluator, profile_id)
        for program_id, rules in programs.items()
    ]
    return list(await asyncio.gather(*tasks))


def evaluate_programs_sync(
    programs: Mapping[str, Sequence[RuleDefinition]],
    data: Mapping[str, Any],
    evaluator: LogicEvaluator | None = None,
    profile_id: str | None = None,
) -> list[EligibilityResult]:
    """Synchronous wrapper for evaluate_programs."""
    return asyncio.run(evaluate_programs(programs, data, evaluator, profile_id))
