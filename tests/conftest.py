"""Pytest fixtures for test suite."""

import copy
from pathlib import Path
from typing import Any

import pytest

from eligibility.core.config import get_settings
from eligibility.criteria import CriteriaExtractor
from eligibility.logic import LogicEvaluator, OperatorRegistry, build_default_registry
from eligibility.rules import RuleDefinition, RulePackage, RulePackageLoader


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def rules_dir() -> Path:
    """Path to the bundled rule packages."""
    return Path(__file__).parent.parent / "eligibility" / "rules" / "data"


@pytest.fixture
def registry() -> OperatorRegistry:
    """Fresh default registry, safe to mutate."""
    return build_default_registry()


@pytest.fixture
def evaluator(registry: OperatorRegistry) -> LogicEvaluator:
    return LogicEvaluator(registry)


@pytest.fixture
def extractor(evaluator: LogicEvaluator) -> CriteriaExtractor:
    return CriteriaExtractor(evaluator)


@pytest.fixture
def rule_loader(rules_dir: Path) -> RulePackageLoader:
    """Loader with the bundled packages loaded."""
    loader = RulePackageLoader(rules_dir)
    loader.load_directory()
    return loader


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; tests that patch env need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Rule Package Builders
# =============================================================================


INCOME_LOGIC = {"<=": [{"var": "income"}, 2000]}


def make_rule(rule_id: str = "r1", **overrides: Any) -> dict[str, Any]:
    """A complete, valid raw rule document."""
    rule = {
        "id": rule_id,
        "programId": "test-program",
        "name": f"Rule {rule_id}",
        "ruleLogic": copy.deepcopy(INCOME_LOGIC),
        "ruleType": "eligibility",
        "requiredFields": ["income"],
        "version": "1.0.0",
        "citations": [{"title": "Test Regulation", "legalReference": "1 CFR 1.1"}],
        "active": True,
        "draft": False,
        "testCases": [
            {
                "id": "under-limit",
                "description": "Income under the limit",
                "input": {"income": 1500},
                "expected": True,
            }
        ],
    }
    rule.update(overrides)
    return rule


def make_package(*rules: dict[str, Any], package_id: str = "test-package") -> dict[str, Any]:
    """A raw package document; one default rule when none are given."""
    return {
        "metadata": {
            "id": package_id,
            "name": "Test Package",
            "version": "1.0.0",
            "jurisdiction": "US-TEST",
        },
        "rules": list(rules) if rules else [make_rule()],
    }


@pytest.fixture
def raw_package() -> dict[str, Any]:
    return make_package()


@pytest.fixture
def package(raw_package: dict[str, Any]) -> RulePackage:
    return RulePackage.model_validate(raw_package)


@pytest.fixture
def income_rule() -> RuleDefinition:
    return RuleDefinition.model_validate(make_rule())


@pytest.fixture
def snap_rule() -> RuleDefinition:
    """SNAP gross income rule using the poverty-line operator."""
    return RuleDefinition.model_validate(make_rule(
        "snap-gross",
        programId="snap",
        ruleLogic={"snap_income_eligible": [{"var": "householdIncome"}, {"var": "householdSize"}]},
        requiredFields=["householdIncome", "householdSize"],
        nextSteps=[{"step": "Apply at your local SNAP office", "priority": "high"}],
        testCases=[],
    ))
