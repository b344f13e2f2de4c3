"""Structural descriptions of rule logic."""

from __future__ import annotations

import json
from typing import Any, Callable, Literal, Mapping

from pydantic import Field

from eligibility.core.exceptions import InvalidExpressionError
from eligibility.core.models import CamelModel
from eligibility.logic.evaluator import get_evaluator
from eligibility.logic.expression import (
    ArrayLiteral,
    Literal as LiteralNode,
    Node,
    Operation,
    UnknownOperation,
    Var,
    iter_nodes,
    parse_expression,
)
from eligibility.logic.operators import OperatorRegistry
from eligibility.logic.validation import validate_logic

from .fields import format_field_name, format_value

ComplexityLevel = Literal["simple", "moderate", "complex", "very-complex"]


class RuleExplanationNode(CamelModel):
    type: Literal["operator", "variable", "constant", "expression"]
    description: str
    level: int
    operator: str | None = None
    variable: str | None = None
    value: Any = None
    children: list[RuleExplanationNode] = Field(default_factory=list)


class RuleExplanation(CamelModel):
    description: str
    breakdown: list[RuleExplanationNode] = Field(default_factory=list)
    variables: list[str] = Field(default_factory=list)
    operators: list[str] = Field(default_factory=list)
    complexity: ComplexityLevel = "simple"
    criteria_checked: list[str] = Field(default_factory=list)


class RuleDifference(CamelModel):
    summary: str
    differences: list[str] = Field(default_factory=list)
    changed_fields: list[dict[str, Any]] = Field(default_factory=list)


RuleExplanationNode.model_rebuild()


def _operand_text(node: Node) -> str:
    if isinstance(node, Var):
        return format_field_name(node.name) if node.name else "a computed field"
    if isinstance(node, LiteralNode):
        return format_value(node.value)
    if isinstance(node, ArrayLiteral):
        return f"[{len(node.items)} items]"
    return f"the result of {node.op}"


def _pair(template: str) -> Callable[[tuple[Node, ...]], str]:
    def describe(args: tuple[Node, ...]) -> str:
        return template.format(_operand_text(args[0]), _operand_text(args[1]) if len(args) > 1 else "")

    return describe


OPERATOR_DESCRIPTIONS: dict[str, Callable[[tuple[Node, ...]], str]] = {
    ">": _pair("{} is greater than {}"),
    ">=": _pair("{} is greater than or equal to {}"),
    "<": _pair("{} is less than {}"),
    "<=": _pair("{} is less than or equal to {}"),
    "==": _pair("{} equals {}"),
    "===": _pair("{} strictly equals {}"),
    "!=": _pair("{} does not equal {}"),
    "!==": _pair("{} does not strictly equal {}"),
    "in": _pair("{} is in {}"),
    "and": lambda args: f"All of the following are true: {len(args)} conditions",
    "or": lambda args: f"At least one of the following is true: {len(args)} conditions",
    "!": lambda args: f"NOT {_operand_text(args[0])}",
    "not": lambda args: f"NOT {_operand_text(args[0])}",
    "if": lambda args: f"Conditional with {len(args)} branches",
    "+": lambda args: f"sum of {len(args)} values",
    "*": lambda args: f"product of {len(args)} values",
    "/": _pair("{} divided by {}"),
    "%": _pair("{} modulo {}"),
    "between": lambda args: (
        f"{_operand_text(args[0])} is between {_operand_text(args[1])} and {_operand_text(args[2])}"
    ),
    "matches_any": lambda args: f"{_operand_text(args[0])} matches one of the allowed values",
    "snap_income_eligible": lambda args: (
        f"{_operand_text(args[0])} is within the SNAP gross income limit for {_operand_text(args[1])}"
    ),
    "fpl_income_eligible": lambda args: (
        f"{_operand_text(args[0])} is within the poverty-level income limit for {_operand_text(args[1])}"
    ),
}

SIMPLE_DESCRIPTIONS = {
    ">": "Your value must be higher",
    "<": "Your value must be lower",
    ">=": "Your value must be at least the required amount",
    "<=": "Your value must be no more than the required amount",
    "==": "Your value must match exactly",
    "and": "You must meet all of these requirements",
    "or": "You must meet at least one of these requirements",
    "in": "Your value must be one of the allowed options",
    "between": "Your value must be in the acceptable range",
    "snap_income_eligible": "Your income must be under the limit for your household size",
    "fpl_income_eligible": "Your income must be under the limit for your household size",
}


def _describe_operation(node: Operation | UnknownOperation) -> str:
    describe = OPERATOR_DESCRIPTIONS.get(node.op)
    if describe is None:
        return f"Operation: {node.op}"
    try:
        return describe(node.args)
    except IndexError:
        return f"Operation: {node.op}"


def build_breakdown(node: Node, level: int = 0) -> list[RuleExplanationNode]:
    """Explanation tree mirroring the logic tree."""
    if isinstance(node, LiteralNode):
        return [RuleExplanationNode(
            type="constant", value=node.value, description=f"Constant value: {format_value(node.value)}", level=level,
        )]
    if isinstance(node, ArrayLiteral):
        return [RuleExplanationNode(
            type="expression",
            description=f"Array of {len(node.items)} items",
            level=level,
            children=[child for item in node.items for child in build_breakdown(item, level + 1)],
        )]
    if isinstance(node, Var):
        name = node.name or "computed path"
        return [RuleExplanationNode(
            type="variable", operator="var", variable=name, description=f"Get {format_field_name(name)}", level=level,
        )]
    return [RuleExplanationNode(
        type="operator",
        operator=node.op,
        description=_describe_operation(node),
        level=level,
        children=[child for arg in node.args for child in build_breakdown(arg, level + 1)],
    )]


def _description(logic: Any, node: Node, level: str) -> str:
    if isinstance(node, LiteralNode):
        return f"The value must be {format_value(node.value)}"
    if isinstance(node, ArrayLiteral):
        return "Multiple conditions must be met"
    if isinstance(node, Var):
        return f"{format_field_name(node.name or 'computed path')} must be true"
    if level == "technical":
        return f"Rule: {json.dumps(logic, sort_keys=True, default=str)}"
    if level == "simple":
        return SIMPLE_DESCRIPTIONS.get(node.op, "You must meet this requirement")
    description = _describe_operation(node)
    return description if node.op in OPERATOR_DESCRIPTIONS else f"Must meet {node.op} condition"


def complexity_level(score: int) -> ComplexityLevel:
    if score > 80:
        return "very-complex"
    if score > 50:
        return "complex"
    if score > 20:
        return "moderate"
    return "simple"


def explain_rule(
    logic: Any,
    language_level: str = "standard",
    registry: OperatorRegistry | None = None,
) -> RuleExplanation:
    """Describe what a logic tree checks.

    Raises:
        InvalidExpressionError: the tree does not parse.
    """
    registry = registry or get_evaluator().registry
    node = parse_expression(logic, registry)
    validation = validate_logic(logic, registry)

    return RuleExplanation(
        description=_description(logic, node, language_level),
        breakdown=build_breakdown(node),
        variables=validation.variables,
        operators=validation.operators,
        complexity=complexity_level(validation.complexity),
        criteria_checked=[format_field_name(v) for v in validation.variables],
    )


def format_rule_explanation(explanation: RuleExplanation) -> str:
    lines = [explanation.description, "", "This rule checks:"]
    lines.extend(f"• {criterion}" for criterion in explanation.criteria_checked)
    if explanation.complexity != "simple":
        lines.append("")
        lines.append(f"Complexity: {explanation.complexity}")
    return "\n".join(lines)


def explain_difference(
    eligible_before: bool,
    eligible_after: bool,
    data_before: Mapping[str, Any],
    data_after: Mapping[str, Any],
) -> RuleDifference:
    """What changed between two evaluations of the same program."""
    differences = []
    changed = []

    if eligible_before != eligible_after:
        change = "eligible → ineligible" if eligible_before else "ineligible → eligible"
        differences.append(f"Eligibility status changed: {change}")

    keys = list(dict.fromkeys([*data_before, *data_after]))
    for key in keys:
        before = data_before.get(key)
        after = data_after.get(key)
        if key in data_before and key in data_after and before == after and type(before) is type(after):
            continue
        field = format_field_name(key)
        changed.append({"field": field, "before": before, "after": after})
        before_text = format_value(before) if key in data_before else "not provided"
        after_text = format_value(after) if key in data_after else "not provided"
        differences.append(f"{field} changed from {before_text} to {after_text}")

    summary = (
        f"{len(changed)} field(s) changed between evaluations"
        if changed
        else "No data changes detected - results differ due to rule changes"
    )
    return RuleDifference(summary=summary, differences=differences, changed_fields=changed)


def explain_what_would_pass(
    logic: Any,
    data: Mapping[str, Any],
    registry: OperatorRegistry | None = None,
) -> list[str]:
    """Suggestions for numeric thresholds a record would need to reach."""
    registry = registry or get_evaluator().registry
    try:
        node = parse_expression(logic, registry)
    except InvalidExpressionError:
        node = None

    suggestions = []
    if node is not None:
        for current in iter_nodes(node):
            if not isinstance(current, Operation) or len(current.args) != 2:
                continue
            left, right = current.args
            if not (isinstance(left, Var) and left.name and isinstance(right, LiteralNode)):
                continue
            if isinstance(right.value, bool) or not isinstance(right.value, (int, float)):
                continue
            field = format_field_name(left.name)
            current_value = format_value(data[left.name]) if left.name in data else "not provided"
            target = format_value(right.value)
            if current.op in (">", ">="):
                suggestions.append(f"Increase {field} from {current_value} to at least {target}")
            elif current.op in ("<", "<="):
                suggestions.append(f"Reduce {field} from {current_value} to {target} or below")

    if not suggestions:
        suggestions.append("Eligibility criteria cannot be easily modified. Please consult program guidelines.")
    return suggestions

