"""Test case authoring helpers.

Generated cases carry no expected value; the runner skips them until an
author fills one in, or ``with_expected`` snapshots the current result.
"""

from __future__ import annotations

import itertools
import json
from typing import Any, Mapping, Sequence

from eligibility.logic.evaluator import LogicEvaluator, get_evaluator, to_json_value
from eligibility.logic.operators import normalize_number
from eligibility.rules.schema import TestCase


def generate_boundary_tests(variables: Mapping[str, Mapping[str, float]]) -> list[TestCase]:
    """Cases at min, max, and around a boundary for each numeric variable.

    ``variables`` maps a name to ``{"min": .., "max": .., "boundary": ..}``;
    the boundary defaults to the midpoint.
    """
    cases: list[TestCase] = []
    for name, config in variables.items():
        low, high = config["min"], config["max"]
        boundary = normalize_number(config.get("boundary", (low + high) / 2))

        points = [("min", f"at minimum ({low})", low)]
        if boundary > low:
            points.append(("below", f"below boundary ({boundary - 1})", boundary - 1))
        points.append(("boundary", f"at boundary ({boundary})", boundary))
        if boundary < high:
            points.append(("above", f"above boundary ({boundary + 1})", boundary + 1))
        points.append(("max", f"at maximum ({high})", high))

        cases.extend(
            TestCase(id=f"{name}-{suffix}", description=f"{name} {label}", input={name: value})
            for suffix, label, value in points
        )
    return cases


def generate_combination_tests(variables: Mapping[str, Sequence[Any]]) -> list[TestCase]:
    """One case per element of the cartesian product of candidate values."""
    names = list(variables)
    cases = []
    for index, combination in enumerate(itertools.product(*variables.values()), start=1):
        record = dict(zip(names, combination))
        cases.append(TestCase(
            id=f"combination-{index}",
            description=f"Combination: {json.dumps(record, sort_keys=True, default=str)}",
            input=record,
        ))
    return cases


def with_expected(
    cases: Sequence[TestCase], logic: Any, evaluator: LogicEvaluator | None = None
) -> list[TestCase]:
    """Copies of ``cases`` whose expected value is the current evaluation result."""
    evaluator = evaluator or get_evaluator()
    return [
        TestCase(
            id=case.id,
            description=case.description,
            input=case.input,
            expected=to_json_value(evaluator.apply(logic, case.input)),
            should_pass=case.should_pass,
            tags=case.tags,
        )
        for case in cases
    ]
