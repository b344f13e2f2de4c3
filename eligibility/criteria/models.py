"""Per-criterion evaluation records."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from eligibility.core.models import CamelModel


class DetailedCriterionResult(CamelModel):
    """One condition reconstructed from a logic tree."""

    criterion: str = Field(..., description="Variable name the condition tests")
    met: bool
    value: Any = Field(None, description="Actual value from the data record")
    threshold: Any = Field(None, description="Value the variable was compared against")
    operator: str | None = None
    comparison: str | None = Field(None, description="Formatted comparison sentence")
    message: str | None = None


class DetailedEvaluationResult(CamelModel):
    """Evaluator outcome plus the criteria trace and summary sentence."""

    result: Any = False
    success: bool
    execution_time: float = 0.0
    criteria_results: list[DetailedCriterionResult] = Field(default_factory=list)
    explanation: str | None = None
    error: str | None = None
    error_code: str | None = None
