"""Eligibility determination records handed to storage and UI collaborators."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from eligibility.core.models import CamelModel
from eligibility.criteria.models import DetailedCriterionResult
from eligibility.rules.schema import DocumentRequirement, NextStep

CONFIDENCE_ERROR = 0
CONFIDENCE_INCOMPLETE = 50
CONFIDENCE_COMPLETE = 95


class EligibilityResult(CamelModel):
    """One program determination for one profile.

    Persisted by the caller keyed by ``(profile_id, program_id)``; the
    engine never reads it back. ``expires_at`` drives cache invalidation.
    """

    profile_id: str | None = None
    program_id: str
    rule_id: str
    rule_version: str | None = None

    eligible: bool
    confidence: int = Field(..., ge=0, le=100)
    reason: str
    incomplete: bool = False
    needs_review: bool = False
    missing_fields: list[str] = Field(default_factory=list)

    criteria_results: list[DetailedCriterionResult] = Field(default_factory=list)
    explanation: str | None = None
    next_steps: list[NextStep] = Field(default_factory=list)
    required_documents: list[DocumentRequirement] = Field(default_factory=list)

    evaluated_at: datetime
    expires_at: datetime
    execution_time: float = 0.0
    error: str | None = None
