"""Logic evaluator.

``LogicEvaluator.apply`` interprets a logic tree and raises
``EvaluationError`` on malformed input. ``LogicEvaluator.evaluate`` is the
public boundary: it never raises and reports failures as
``RuleEvaluationResult(success=False, result=False, error=...)``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from pydantic import BaseModel, Field

from eligibility.core.exceptions import (
    EvaluationError,
    InvalidExpressionError,
    MaxDepthExceededError,
    OperandTypeError,
    UnknownOperatorError,
)

from .expression import (
    UNDEFINED,
    ArrayLiteral,
    Literal,
    Node,
    Operation,
    UnknownOperation,
    Var,
    parse_expression,
    resolve_path,
)
from .operators import OperatorRegistry, build_default_registry

logger = logging.getLogger(__name__)

NODE_TYPES = (Literal, ArrayLiteral, Var, Operation, UnknownOperation)
DEFAULT_MAX_DEPTH = 100


class RuleEvaluationResult(BaseModel):
    """Outcome of evaluating one logic tree against one data record."""

    result: Any = Field(..., description="Evaluated value, False on failure")
    success: bool
    execution_time: float = Field(0.0, description="Milliseconds spent evaluating")
    error: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = Field(None, description="Input record, when captured")


def to_json_value(value: Any) -> Any:
    """Replace the undefined marker with None, recursively."""
    if value is UNDEFINED:
        return None
    if isinstance(value, list):
        return [to_json_value(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json_value(item) for key, item in value.items()}
    return value


class LogicEvaluator:
    """Interprets logic trees with an explicitly supplied operator registry."""

    def __init__(self, registry: OperatorRegistry | None = None, max_depth: int = DEFAULT_MAX_DEPTH):
        self.registry = registry if registry is not None else build_default_registry()
        self.max_depth = max_depth

    def parse(self, logic: Any) -> Node:
        """Parse raw logic, passing already-parsed nodes through."""
        if isinstance(logic, NODE_TYPES):
            return logic
        return parse_expression(logic, self.registry)

    def apply(self, logic: Any, data: Mapping[str, Any] | None = None) -> Any:
        """Evaluate and return the raw value, possibly ``UNDEFINED``.

        Raises:
            EvaluationError: malformed tree, unknown operator, bad operand.
        """
        node = self.parse(logic)
        return self.evaluate_node(node, {} if data is None else data)

    def evaluate_node(self, node: Node, data: Any, depth: int = 0) -> Any:
        if depth > self.max_depth:
            raise MaxDepthExceededError(self.max_depth)

        def child(n: Node) -> Any:
            return self.evaluate_node(n, data, depth + 1)

        if isinstance(node, Literal):
            return node.value

        if isinstance(node, ArrayLiteral):
            return [child(item) for item in node.items]

        if isinstance(node, Var):
            value = resolve_path(data, child(node.path))
            if value is UNDEFINED and node.default is not None:
                return child(node.default)
            return value

        if isinstance(node, Operation):
            spec = self.registry.get(node.op)
            if spec is None:
                raise UnknownOperatorError(node.op)
            if spec.lazy:
                return spec.fn(child, node.args, data)
            values = [child(arg) for arg in node.args]
            try:
                return spec.fn(*values)
            except TypeError as e:
                raise OperandTypeError(f"Operator '{node.op}' failed: {e}") from e

        if isinstance(node, UnknownOperation):
            raise UnknownOperatorError(node.op)

        raise InvalidExpressionError(f"Unsupported logic node: {node!r}")

    def evaluate(
        self,
        logic: Any,
        data: Mapping[str, Any] | None = None,
        capture_context: bool = False,
    ) -> RuleEvaluationResult:
        """Evaluate at the public boundary. Never raises."""
        data = {} if data is None else data
        start = time.perf_counter()
        try:
            value = to_json_value(self.apply(logic, data))
        except EvaluationError as e:
            logger.warning("Rule evaluation failed (%s): %s", e.code, e)
            return self._failure(str(e), e.code, start, data, capture_context)
        except Exception as e:
            logger.warning("Rule evaluation failed unexpectedly: %s", e)
            return self._failure(str(e) or type(e).__name__, EvaluationError.code, start, data, capture_context)

        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("Rule evaluated to %r in %.3fms", value, elapsed)
        return RuleEvaluationResult(
            result=value,
            success=True,
            execution_time=elapsed,
            context=dict(data) if capture_context else None,
        )

    def evaluate_many(
        self, rules: Mapping[str, Any], data: Mapping[str, Any] | None = None
    ) -> dict[str, RuleEvaluationResult]:
        """Evaluate several named logic trees against the same record."""
        return {name: self.evaluate(logic, data) for name, logic in rules.items()}

    @staticmethod
    def _failure(message, code, start, data, capture_context) -> RuleEvaluationResult:
        return RuleEvaluationResult(
            result=False,
            success=False,
            execution_time=(time.perf_counter() - start) * 1000,
            error=message,
            error_code=code,
            context=dict(data) if capture_context else None,
        )


# =============================================================================
# Module-level convenience
# =============================================================================

_default_evaluator: LogicEvaluator | None = None


def get_evaluator() -> LogicEvaluator:
    """Process-wide evaluator with the default registry, built on first use."""
    global _default_evaluator
    if _default_evaluator is None:
        _default_evaluator = LogicEvaluator(build_default_registry())
    return _default_evaluator


def evaluate(logic: Any, data: Mapping[str, Any] | None = None) -> RuleEvaluationResult:
    """Evaluate with the process-wide evaluator."""
    return get_evaluator().evaluate(logic, data)
