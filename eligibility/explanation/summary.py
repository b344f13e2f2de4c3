"""Summary and itemized text for a criteria trace."""

from __future__ import annotations

from typing import Sequence

from pydantic import Field

from eligibility.core.models import CamelModel
from eligibility.criteria.models import DetailedCriterionResult

ELIGIBLE_NO_CRITERIA = "Eligibility confirmed"
INELIGIBLE_NO_CRITERIA = "Eligibility requirements not met"
ALL_MET = "All eligibility requirements have been met"
NOT_MET_LEAD = "Eligibility requirements not met: "
NOT_MET_BY_RULES = "Eligibility requirements not met due to program rules"
REASON_DELIMITER = ", "


class CriteriaExplanation(CamelModel):
    summary: str
    passed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


def _describe(criterion: DetailedCriterionResult) -> str:
    return criterion.comparison or f"{criterion.criterion} requirement not met"


def summarize(criteria: Sequence[DetailedCriterionResult], eligible: bool) -> str:
    """One sentence for the overall outcome.

    An eligible outcome always gets the affirming sentence, even when a
    criterion under an ``or`` branch was not met.
    """
    if not criteria:
        return ELIGIBLE_NO_CRITERIA if eligible else INELIGIBLE_NO_CRITERIA
    if eligible:
        return ALL_MET
    failed = [c for c in criteria if not c.met]
    if failed:
        return NOT_MET_LEAD + REASON_DELIMITER.join(_describe(c) for c in failed)
    return NOT_MET_BY_RULES


def explain(criteria: Sequence[DetailedCriterionResult], eligible: bool) -> CriteriaExplanation:
    """Summary plus passed and failed comparison strings.

    Failed items are only listed for an ineligible outcome.
    """
    passed = [_describe(c) for c in criteria if c.met]
    failed = [] if eligible else [_describe(c) for c in criteria if not c.met]
    return CriteriaExplanation(summary=summarize(criteria, eligible), passed=passed, failed=failed)
