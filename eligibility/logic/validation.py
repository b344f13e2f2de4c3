"""Static checks over a single logic tree.

Used by the package validator for every rule's ``ruleLogic`` and by the
rule explainer for its complexity rating.
"""

from __future__ import annotations

from typing import Any, Literal as TypingLiteral

from pydantic import BaseModel, Field

from eligibility.core.exceptions import InvalidExpressionError
from eligibility.core.thresholds import round_half_up

from .expression import (
    ArrayLiteral,
    Node,
    Operation,
    UnknownOperation,
    Var,
    iter_nodes,
    node_depth,
    parse_expression,
)
from .operators import OperatorRegistry, build_default_registry

INVALID_STRUCTURE = "VAL_INVALID_STRUCTURE"
UNKNOWN_OPERATOR = "VAL_UNKNOWN_OPERATOR"
DISALLOWED_OPERATOR = "VAL_DISALLOWED_OPERATOR"
MAX_DEPTH_EXCEEDED = "VAL_MAX_DEPTH"
MAX_COMPLEXITY_EXCEEDED = "VAL_MAX_COMPLEXITY"
MISSING_REQUIRED_VARIABLE = "VAL_MISSING_VARIABLE"
COMPLEXITY_WARNING = "COMPLEXITY_WARNING"

ARRAY_OPERATORS = frozenset({"count_true", "all_true", "any_true", "matches_any"})


class LogicIssue(BaseModel):
    """A single validation finding."""

    message: str
    code: str
    severity: TypingLiteral["critical", "error", "warning"] = "error"


class LogicValidationOptions(BaseModel):
    """Limits applied by ``validate_logic``."""

    disallowed_operators: list[str] = Field(default_factory=list)
    max_complexity: int = 100
    max_depth: int = 20
    required_variables: list[str] = Field(default_factory=list)


class LogicValidationResult(BaseModel):
    valid: bool
    errors: list[LogicIssue] = Field(default_factory=list)
    warnings: list[LogicIssue] = Field(default_factory=list)
    complexity: int = 0
    depth: int = 0
    operators: list[str] = Field(default_factory=list)
    variables: list[str] = Field(default_factory=list)


def complexity_score(node: Node) -> int:
    """Weighted size of a tree.

    Operators score 1 (array operators 3), variables 0.5, and every node or
    operand list adds twice its nesting level.
    """
    total = 0.0

    def visit(current: Node, level: int) -> None:
        nonlocal total
        if isinstance(current, ArrayLiteral):
            total += level * 2
            for item in current.items:
                visit(item, level + 1)
        elif isinstance(current, Var):
            total += level * 2 + 0.5
        elif isinstance(current, (Operation, UnknownOperation)):
            total += level * 2 + (3 if current.op in ARRAY_OPERATORS else 1)
            total += (level + 1) * 2
            for arg in current.args:
                visit(arg, level + 2)

    visit(node, 0)
    return round_half_up(total)


def collect_operators(node: Node) -> list[str]:
    """Distinct operator names in first-seen order."""
    names: dict[str, None] = {}
    for current in iter_nodes(node):
        if isinstance(current, (Operation, UnknownOperation)):
            names.setdefault(current.op, None)
    return list(names)


def collect_variables(node: Node) -> list[str]:
    """Distinct static variable paths in first-seen order."""
    names: dict[str, None] = {}
    for current in iter_nodes(node):
        if isinstance(current, Var) and current.name:
            names.setdefault(current.name, None)
    return list(names)


def validate_logic(
    logic: Any,
    registry: OperatorRegistry | None = None,
    options: LogicValidationOptions | None = None,
) -> LogicValidationResult:
    """Validate one logic tree against a registry and limits."""
    registry = registry if registry is not None else build_default_registry()
    opts = options or LogicValidationOptions()
    errors: list[LogicIssue] = []
    warnings: list[LogicIssue] = []

    try:
        node = parse_expression(logic, registry)
    except InvalidExpressionError as e:
        errors.append(LogicIssue(message=f"Invalid rule structure: {e}", code=INVALID_STRUCTURE, severity="critical"))
        return LogicValidationResult(valid=False, errors=errors)
    except RecursionError:
        errors.append(LogicIssue(message="Invalid rule structure: nesting too deep", code=INVALID_STRUCTURE, severity="critical"))
        return LogicValidationResult(valid=False, errors=errors)

    depth = node_depth(node)
    if depth > opts.max_depth:
        errors.append(LogicIssue(
            message=f"Rule depth ({depth}) exceeds maximum ({opts.max_depth})",
            code=MAX_DEPTH_EXCEEDED,
        ))

    complexity = complexity_score(node)
    if complexity > opts.max_complexity:
        errors.append(LogicIssue(
            message=f"Rule complexity ({complexity}) exceeds maximum ({opts.max_complexity})",
            code=MAX_COMPLEXITY_EXCEEDED,
        ))
    elif complexity > opts.max_complexity * 0.8:
        warnings.append(LogicIssue(
            message=f"Rule complexity ({complexity}) is approaching maximum",
            code=COMPLEXITY_WARNING,
            severity="warning",
        ))

    operators = collect_operators(node)
    for op in operators:
        if op in opts.disallowed_operators:
            errors.append(LogicIssue(message=f'Operator "{op}" is disallowed', code=DISALLOWED_OPERATOR))
        if op not in registry:
            errors.append(LogicIssue(message=f'Unknown operator "{op}"', code=UNKNOWN_OPERATOR))

    variables = collect_variables(node)
    for required in opts.required_variables:
        if required not in variables:
            errors.append(LogicIssue(
                message=f'Required variable "{required}" not found in rule',
                code=MISSING_REQUIRED_VARIABLE,
            ))

    return LogicValidationResult(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        complexity=complexity,
        depth=depth,
        operators=operators,
        variables=variables,
    )
