"""Detailed criteria extraction.

Walks a logic tree depth first, parents before children, and emits one
``DetailedCriterionResult`` per comparison or membership test that names a
variable. Thresholds that are nested expressions are evaluated with the same
evaluator, and ``met`` is computed with the same ``compare``/``contains``
helpers the evaluator's operators use, so an extracted criterion agrees with
the evaluator about that node.

Every branch is visited, including ones the evaluator short-circuits, so a
false criterion can appear under an ``or`` that is true overall.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from eligibility.core.exceptions import EvaluationError, InvalidExpressionError
from eligibility.logic.evaluator import LogicEvaluator, get_evaluator, to_json_value
from eligibility.logic.expression import UNDEFINED, Node, Operation, Var, iter_nodes
from eligibility.logic.operators import OperatorKind, OperatorSpec, compare, contains, is_missing

from .formatting import (
    MIRRORED,
    format_comparison,
    format_household_size,
    format_income_test,
)
from .models import DetailedCriterionResult

logger = logging.getLogger(__name__)

DEFAULT_INCOME_FIELD = "householdIncome"
DEFAULT_SIZE_FIELD = "householdSize"

_SILENT_KINDS = frozenset({
    OperatorKind.LOGIC,
    OperatorKind.DATA,
    OperatorKind.ARITHMETIC,
    OperatorKind.STRING,
    OperatorKind.CUSTOM,
})


class CriteriaExtractor:
    """Reconstructs per-condition results from a logic tree."""

    def __init__(self, evaluator: LogicEvaluator | None = None):
        self.evaluator = evaluator or get_evaluator()

    @property
    def registry(self):
        return self.evaluator.registry

    def extract(self, logic: Any, data: Mapping[str, Any] | None = None) -> list[DetailedCriterionResult]:
        """Criteria for every comparison node, in tree order.

        Raises:
            InvalidExpressionError: the tree does not parse.
        """
        node = self.evaluator.parse(logic)
        data = {} if data is None else data
        criteria: list[DetailedCriterionResult] = []
        for current in iter_nodes(node):
            if isinstance(current, Operation):
                criteria.extend(self._criteria_for(current, data))
        return criteria

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _criteria_for(self, node: Operation, data: Any) -> list[DetailedCriterionResult]:
        spec = self.registry.get(node.op)
        if spec is None:
            return []

        try:
            if spec.kind is OperatorKind.COMPARISON:
                if len(node.args) == 3:
                    return self._range(node, data)
                return self._binary(node, data)
            if spec.kind is OperatorKind.MEMBERSHIP:
                return self._binary(node, data)
            if spec.kind is OperatorKind.INCOME_TEST:
                return self._income_test(node, spec, data)
        except EvaluationError as e:
            # Only reachable in branches the evaluator skipped.
            logger.debug("Skipping criterion for '%s': %s", node.op, e)
            return []

        if spec.kind in _SILENT_KINDS:
            return []
        raise InvalidExpressionError(f"Unhandled operator kind: {spec.kind}")

    def _value(self, node: Node, data: Any) -> Any:
        return self.evaluator.evaluate_node(node, data)

    # -------------------------------------------------------------------------
    # Comparison and membership
    # -------------------------------------------------------------------------

    def _binary(self, node: Operation, data: Any) -> list[DetailedCriterionResult]:
        left, right = node.args[0], node.args[1]

        if isinstance(left, Var) and left.name:
            criterion, var_node, other, displayed = left.name, left, right, node.op
        elif isinstance(right, Var) and right.name:
            criterion, var_node, other = right.name, right, left
            displayed = MIRRORED.get(node.op, node.op)
        else:
            return []

        value = self._value(var_node, data)
        threshold = self._value(other, data)
        if value is UNDEFINED or threshold is UNDEFINED:
            return []

        operands = (value, threshold) if var_node is left else (threshold, value)
        if node.op == "in":
            met = contains(*operands)
        else:
            met = compare(node.op, *operands)

        value, threshold = to_json_value(value), to_json_value(threshold)
        return [DetailedCriterionResult(
            criterion=criterion,
            met=met,
            value=value,
            threshold=threshold,
            operator=displayed,
            comparison=format_comparison(displayed, value, threshold, met, criterion),
        )]

    def _range(self, node: Operation, data: Any) -> list[DetailedCriterionResult]:
        low_node, middle, high_node = node.args
        if not (isinstance(middle, Var) and middle.name):
            return []

        value = self._value(middle, data)
        low, high = self._value(low_node, data), self._value(high_node, data)
        if UNDEFINED in (value, low, high):
            return []

        met = compare(node.op, low, value) and compare(node.op, value, high)
        threshold = [to_json_value(low), to_json_value(high)]
        value = to_json_value(value)
        return [DetailedCriterionResult(
            criterion=middle.name,
            met=met,
            value=value,
            threshold=threshold,
            operator="between",
            comparison=format_comparison("between", value, threshold, met, middle.name),
        )]

    # -------------------------------------------------------------------------
    # Income tests
    # -------------------------------------------------------------------------

    def _income_test(self, node: Operation, spec: OperatorSpec, data: Any) -> list[DetailedCriterionResult]:
        """Two criteria: income against the limit, and the household size
        that selected the limit. Size never fails on its own."""
        values = [self._value(arg, data) for arg in node.args]
        income, size = values[0], values[1]
        if is_missing(income) or is_missing(size) or spec.limit is None:
            return []

        limit = spec.limit(*values)
        if limit is UNDEFINED:
            return []
        met = bool(spec.fn(*values))

        income_node, size_node = node.args[0], node.args[1]
        income_field = income_node.name if isinstance(income_node, Var) and income_node.name else DEFAULT_INCOME_FIELD
        size_field = size_node.name if isinstance(size_node, Var) and size_node.name else DEFAULT_SIZE_FIELD

        return [
            DetailedCriterionResult(
                criterion=income_field,
                met=met,
                value=income,
                threshold=limit,
                operator=node.op,
                comparison=format_income_test(income, limit, met),
            ),
            DetailedCriterionResult(
                criterion=size_field,
                met=True,
                value=size,
                threshold=size,
                operator="household_size",
                comparison=format_household_size(size),
            ),
        ]


def extract_criteria(
    logic: Any,
    data: Mapping[str, Any] | None = None,
    evaluator: LogicEvaluator | None = None,
) -> list[DetailedCriterionResult]:
    """Extract criteria with a throwaway extractor."""
    return CriteriaExtractor(evaluator).extract(logic, data)
