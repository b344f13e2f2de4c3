"""Routes for evaluation, explanation and rule package verification."""

from __future__ import annotations

from collections import defaultdict

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from eligibility.core.config import get_settings
from eligibility.criteria.models import DetailedEvaluationResult
from eligibility.explanation.results import ResultExplanation, explain_result
from eligibility.logic.evaluator import get_evaluator
from eligibility.rules.loader import RulePackageLoader
from eligibility.rules.schema import RuleDefinition, RulePackage
from eligibility.runtime.models import EligibilityResult
from eligibility.runtime.service import (
    determine_eligibility,
    evaluate_programs,
    evaluate_rule_with_details,
)
from eligibility.verification.runner import TestSuiteReport, run_package_tests
from eligibility.verification.service import ValidationReport, format_schema_errors, validate_rule_package

from .schemas import (
    EligibilityRequest,
    EvaluateRequest,
    ExplainRequest,
    ProgramsRequest,
    RuleSummary,
    TestRequest,
    ValidateRequest,
)

router = APIRouter(tags=["Eligibility"])

# Global instances
_loader: RulePackageLoader | None = None


def get_loader() -> RulePackageLoader:
    """Get or create the rule package loader, loading the rules directory once."""
    global _loader
    if _loader is None:
        settings = get_settings()
        _loader = RulePackageLoader(settings.rules_dir)
        _loader.load_directory()
    return _loader


def _lookup(rule_id: str) -> RuleDefinition:
    rule = get_loader().get_rule(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail=f"Rule not found: {rule_id}")
    return rule


def _resolve_rule(request: EligibilityRequest) -> RuleDefinition:
    if request.rule is not None:
        return request.rule
    if request.rule_id is not None:
        return _lookup(request.rule_id)
    raise HTTPException(status_code=422, detail="Provide rule or ruleId")


@router.post("/evaluate", response_model=DetailedEvaluationResult)
async def evaluate(request: EvaluateRequest) -> DetailedEvaluationResult:
    """Evaluate one rule against one data record with per-criterion detail."""
    if request.rule_id is not None:
        target = _lookup(request.rule_id)
    else:
        target = request.rule if request.rule is not None else request.rule_logic
    return evaluate_rule_with_details(target, request.data, get_evaluator())


@router.post("/eligibility", response_model=EligibilityResult)
async def eligibility(request: EligibilityRequest) -> EligibilityResult:
    """Determine eligibility for one rule; errors degrade to needs-review."""
    rule = _resolve_rule(request)
    return determine_eligibility(rule, request.data, get_evaluator(), request.profile_id)


@router.post("/explain", response_model=ResultExplanation)
async def explain(request: ExplainRequest) -> ResultExplanation:
    """Determine eligibility and explain the outcome in plain language."""
    rule = _resolve_rule(request)
    result = determine_eligibility(rule, request.data, get_evaluator(), request.profile_id)
    return explain_result(result, rule.rule_logic, request.data, request.options)


@router.post("/programs/evaluate", response_model=list[EligibilityResult])
async def evaluate_loaded_programs(request: ProgramsRequest) -> list[EligibilityResult]:
    """Score one record against every loaded program (or the listed ones)."""
    programs: dict[str, list[RuleDefinition]] = defaultdict(list)
    for rule in get_loader().get_applicable_rules():
        if request.program_ids is None or rule.program_id in request.program_ids:
            programs[rule.program_id].append(rule)
    return await evaluate_programs(programs, request.data, get_evaluator(), request.profile_id)


@router.post("/validate", response_model=ValidationReport)
async def validate(request: ValidateRequest) -> ValidationReport:
    """Validate a rule package document."""
    strict = get_settings().strict if request.strict is None else request.strict
    return validate_rule_package(request.package, strict=strict, registry=get_evaluator().registry)


@router.post("/test", response_model=TestSuiteReport)
async def run_tests(request: TestRequest) -> TestSuiteReport:
    """Run a package's embedded test cases."""
    try:
        package = RulePackage.model_validate(request.package)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=format_schema_errors(e)) from e
    return run_package_tests(package, get_evaluator())


@router.get("/rules", response_model=list[RuleSummary])
async def list_rules() -> list[RuleSummary]:
    """List rules loaded from the rules directory."""
    return [
        RuleSummary(
            id=rule.id,
            program_id=rule.program_id,
            name=rule.name,
            version=str(rule.version),
            active=rule.active,
            draft=rule.draft,
            test_case_count=len(rule.test_cases),
        )
        for rule in get_loader().get_all_rules()
    ]
