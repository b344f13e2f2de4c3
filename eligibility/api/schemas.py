"""Request models for the HTTP surface. Responses reuse the engine models."""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from eligibility.core.models import CamelModel
from eligibility.explanation.results import ExplanationOptions
from eligibility.rules.schema import RuleDefinition


class RuleSelector(CamelModel):
    """Exactly one of an inline rule, a bare logic tree, or a loaded rule id."""

    rule: RuleDefinition | None = None
    rule_logic: Any = None
    rule_id: str | None = None

    @model_validator(mode="after")
    def _one_source(self):
        given = [self.rule is not None, self.rule_logic is not None, self.rule_id is not None]
        if sum(given) != 1:
            raise ValueError("Provide exactly one of rule, ruleLogic or ruleId")
        return self


class EvaluateRequest(RuleSelector):
    data: dict[str, Any] = Field(default_factory=dict)


class EligibilityRequest(CamelModel):
    rule_id: str | None = None
    rule: RuleDefinition | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    profile_id: str | None = None


class ExplainRequest(EligibilityRequest):
    options: ExplanationOptions = Field(default_factory=ExplanationOptions)


class ValidateRequest(CamelModel):
    package: Any = Field(..., description="Raw rule package document")
    strict: bool | None = Field(None, description="Defaults to the STRICT setting")


class TestRequest(CamelModel):
    __test__ = False

    package: Any = Field(..., description="Raw rule package document")


class ProgramsRequest(CamelModel):
    data: dict[str, Any] = Field(default_factory=dict)
    program_ids: list[str] | None = Field(None, description="Defaults to every loaded program")
    profile_id: str | None = None


class RuleSummary(CamelModel):
    id: str
    program_id: str
    name: str
    version: str
    active: bool
    draft: bool
    test_case_count: int
