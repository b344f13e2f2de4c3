"""Exception hierarchy for the eligibility engine.

Evaluation errors never cross the public evaluation surface; they are
converted into ``success=False`` results at the call boundary. Each one
carries a stable ``code`` so callers can branch without parsing messages.
"""

from __future__ import annotations


class EligibilityEngineError(Exception):
    """Base class for all engine errors."""


class EvaluationError(EligibilityEngineError):
    """Raised while interpreting a logic expression."""

    code = "EVAL_UNKNOWN"


class InvalidExpressionError(EvaluationError):
    """Malformed tree: multi-key node, wrong operand count, bad var path."""

    code = "EVAL_INVALID_RULE"


class UnknownOperatorError(EvaluationError):
    """Operator name not present in the registry."""

    code = "EVAL_UNKNOWN_OPERATOR"

    def __init__(self, operator: str):
        super().__init__(f"Unrecognized operation {operator}")
        self.operator = operator


class OperandTypeError(EvaluationError):
    """Operand of the wrong type for an operator (e.g. text to a numeric op)."""

    code = "EVAL_OPERATOR_ERROR"


class MaxDepthExceededError(EvaluationError):
    """Expression nesting deeper than the configured limit."""

    code = "EVAL_MAX_DEPTH"

    def __init__(self, max_depth: int):
        super().__init__(f"Maximum evaluation depth of {max_depth} exceeded")
        self.max_depth = max_depth


class RulePackageLoadError(EligibilityEngineError):
    """A rule package file could not be read or decoded."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to load {path}: {reason}")
        self.path = path
        self.reason = reason
