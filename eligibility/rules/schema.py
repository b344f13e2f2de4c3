"""Rule document model.

Pydantic models for rule packages as they appear on disk. Files use camelCase
keys; models expose snake_case attributes and accept either spelling.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import Field, NonNegativeInt, model_validator

from eligibility.core.models import CamelModel


# =============================================================================
# Enums
# =============================================================================


class RuleType(str, Enum):
    """What a rule's logic computes."""

    ELIGIBILITY = "eligibility"
    BENEFIT_AMOUNT = "benefit_amount"
    DOCUMENT_REQUIREMENTS = "document_requirements"
    CONDITIONAL = "conditional"


# =============================================================================
# Versioning
# =============================================================================


class RuleVersion(CamelModel):
    """Semantic version. Also accepts ``"1.2.3"`` or ``"1.2.3.beta"``."""

    major: NonNegativeInt
    minor: NonNegativeInt
    patch: NonNegativeInt = 0
    label: str | None = Field(None, max_length=50)

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return _split_version(data)
        return data

    def __str__(self) -> str:
        return format_version(self)


def _split_version(text: str) -> dict[str, Any]:
    base, _, dash_label = text.strip().partition("-")
    parts = base.split(".")
    if len(parts) < 2 or len(parts) > 4:
        raise ValueError(f"Invalid version format: {text}")
    label = parts[3] if len(parts) == 4 else (dash_label or None)
    try:
        numbers = [int(part) for part in parts[:3]]
    except ValueError:
        raise ValueError(f"Invalid version format: {text}") from None
    major, minor, patch = (numbers + [0])[:3]
    return {"major": major, "minor": minor, "patch": patch, "label": label}


def parse_version(text: str) -> RuleVersion:
    return RuleVersion.model_validate(_split_version(text))


def format_version(version: RuleVersion) -> str:
    base = f"{version.major}.{version.minor}.{version.patch}"
    return f"{base}-{version.label}" if version.label else base


def compare_versions(a: RuleVersion, b: RuleVersion) -> int:
    """-1, 0 or 1. Labels are ignored."""
    left, right = (a.major, a.minor, a.patch), (b.major, b.minor, b.patch)
    return (left > right) - (left < right)


def is_newer_version(a: RuleVersion, b: RuleVersion) -> bool:
    return compare_versions(a, b) > 0


def increment_version(version: RuleVersion, level: Literal["major", "minor", "patch"]) -> RuleVersion:
    if level == "major":
        return RuleVersion(major=version.major + 1, minor=0, patch=0)
    if level == "minor":
        return RuleVersion(major=version.major, minor=version.minor + 1, patch=0)
    if level == "patch":
        return RuleVersion(major=version.major, minor=version.minor, patch=version.patch + 1)
    raise ValueError(f"Unknown version level: {level}")


# =============================================================================
# Supporting Documents
# =============================================================================


class RuleAuthor(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str | None = None
    organization: str | None = None


class Citation(CamelModel):
    """Legal or policy source backing a rule."""

    title: str = Field(..., min_length=1, max_length=500)
    url: str | None = None
    document: str | None = None
    date: str | None = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    legal_reference: str | None = Field(None, description="e.g. 7 CFR 273.9")
    notes: str | None = None


class DocumentRequirement(CamelModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str | None = None
    required: bool = True
    alternatives: list[str] = Field(default_factory=list)
    where: str | None = None


class NextStep(CamelModel):
    step: str = Field(..., min_length=1)
    url: str | None = None
    priority: Literal["high", "medium", "low"] | None = None
    estimated_time: str | None = None


class RuleChange(CamelModel):
    version: RuleVersion
    date: datetime
    author: str
    description: str = Field(..., min_length=1)
    breaking: bool = False


class TestCase(CamelModel):
    """An input record and the value the rule must produce for it."""

    __test__ = False  # not a pytest class

    id: str = Field(..., min_length=1)
    description: str = ""
    input: dict[str, Any] = Field(default_factory=dict)
    expected: Any = Field(None, description="Expected evaluation result")
    should_pass: bool = Field(True, description="False asserts that evaluation must fail")
    tags: list[str] = Field(default_factory=list)

    @property
    def has_expected(self) -> bool:
        """Whether the case asserts anything: an ``expected`` value (null counts
        as given) or an evaluation failure."""
        return "expected" in self.model_fields_set or not self.should_pass


# =============================================================================
# Rules and Packages
# =============================================================================


class RuleDefinition(CamelModel):
    """One versioned rule for one program."""

    id: str = Field(..., min_length=1, max_length=128)
    program_id: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None

    rule_logic: Any = Field(..., description="Logic expression tree")
    rule_type: RuleType = RuleType.ELIGIBILITY
    explanation: str | None = Field(None, description="Plain language explanation")

    required_fields: list[str] = Field(default_factory=list)
    required_documents: list[DocumentRequirement] = Field(default_factory=list)
    next_steps: list[NextStep] = Field(default_factory=list)

    version: RuleVersion
    effective_date: datetime | None = None
    expiration_date: datetime | None = None
    supersedes: str | None = None

    author: RuleAuthor | str | None = None
    citations: list[Citation] = Field(default_factory=list)
    source: str | None = None
    legal_reference: str | None = None

    active: bool
    draft: bool = False
    priority: NonNegativeInt | None = None

    test_cases: list[TestCase] = Field(default_factory=list)
    changelog: list[RuleChange] = Field(default_factory=list)

    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None

    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    jurisdiction: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def is_effective(self, when: datetime) -> bool:
        """Inside the effective/expiration window (bounds inclusive)."""
        if self.effective_date and _naive(self.effective_date) > _naive(when):
            return False
        if self.expiration_date and _naive(self.expiration_date) < _naive(when):
            return False
        return True


def _naive(moment: datetime) -> datetime:
    return moment.replace(tzinfo=None) if moment.tzinfo else moment


class RulePackageMetadata(CamelModel):
    id: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    version: RuleVersion
    author: RuleAuthor | str | None = None
    license: str | None = None
    jurisdiction: str | None = None
    programs: list[str] = Field(default_factory=list)
    source: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RulePackage(CamelModel):
    """Bundle of rules for one program or jurisdiction."""

    metadata: RulePackageMetadata
    rules: list[RuleDefinition] = Field(default_factory=list)
    checksum: str | None = None
    signature: str | None = None

    def get_rule(self, rule_id: str) -> RuleDefinition | None:
        return next((rule for rule in self.rules if rule.id == rule_id), None)

    @property
    def rule_ids(self) -> list[str]:
        return [rule.id for rule in self.rules]
