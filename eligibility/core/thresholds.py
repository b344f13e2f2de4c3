"""Poverty guideline tables used by the income threshold operators.

A table covers one policy year. Amounts are monthly and keyed by household
size; sizes above the largest listed size add ``per_additional`` for every
extra member. Agencies publish some percentage limits directly (SNAP's 130%
gross income table, for example) and those published figures take precedence
over a computed percentage because the agency rounds each size independently.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up, so 1882.5 becomes 1883."""
    return int(math.floor(value + 0.5))


class PublishedLimits(BaseModel):
    """Limits published verbatim for one percentage of the guideline."""

    model_config = ConfigDict(frozen=True)

    monthly: dict[int, int]
    per_additional: int


class PovertyGuidelines(BaseModel):
    """One policy year of Federal Poverty Level amounts."""

    model_config = ConfigDict(frozen=True)

    year: int
    monthly: dict[int, int] = Field(..., description="100% FPL monthly amount by household size")
    per_additional: int = Field(..., description="Added per member beyond the largest size")
    published: dict[int, PublishedLimits] = Field(
        default_factory=dict,
        description="Published limits keyed by percentage of FPL",
    )

    @field_validator("monthly")
    @classmethod
    def _not_empty(cls, value: dict[int, int]) -> dict[int, int]:
        if not value:
            raise ValueError("guideline table must list at least one household size")
        return value

    @staticmethod
    def _lookup(table: dict[int, int], increment: int, size: int) -> int:
        if size in table:
            return table[size]
        largest = max(table)
        return table[largest] + (size - largest) * increment

    def base(self, household_size: int) -> int:
        """100% FPL monthly amount for a household size."""
        if household_size < 1:
            raise ValueError(f"household size must be positive, got {household_size}")
        return self._lookup(self.monthly, self.per_additional, household_size)

    def threshold(self, household_size: int, percent: float = 100) -> int:
        """Monthly income limit at ``percent`` of FPL for a household size."""
        if household_size < 1:
            raise ValueError(f"household size must be positive, got {household_size}")
        key = int(percent) if float(percent).is_integer() else None
        if key is not None and key in self.published:
            limits = self.published[key]
            return self._lookup(limits.monthly, limits.per_additional, household_size)
        return round_half_up(self.base(household_size) * percent / 100)


FPL_2024 = PovertyGuidelines(
    year=2024,
    monthly={1: 1255, 2: 1702, 3: 2148, 4: 2594, 5: 3040, 6: 3486, 7: 3932, 8: 4378},
    per_additional=446,
    published={
        130: PublishedLimits(
            monthly={1: 1696, 2: 2292, 3: 2888, 4: 3483, 5: 4079, 6: 4675, 7: 5271, 8: 5867},
            per_additional=596,
        ),
    },
)
