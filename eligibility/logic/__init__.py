"""Logic language: expression tree, operator registry, evaluator."""

from .expression import (
    UNDEFINED,
    ArrayLiteral,
    Literal,
    Node,
    Operation,
    UnknownOperation,
    Var,
    iter_nodes,
    node_depth,
    parse_expression,
    resolve_path,
)
from .operators import (
    COMPARISON_OPERATORS,
    OperatorKind,
    OperatorRegistry,
    OperatorSpec,
    benefit_operators,
    build_default_registry,
    compare,
    contains,
    standard_operators,
    strict_equals,
    to_number,
    truthy,
)
from .evaluator import (
    LogicEvaluator,
    RuleEvaluationResult,
    evaluate,
    get_evaluator,
    to_json_value,
)
from .validation import (
    LogicIssue,
    LogicValidationOptions,
    LogicValidationResult,
    complexity_score,
    validate_logic,
)

__all__ = [
    # Expression tree
    "UNDEFINED",
    "ArrayLiteral",
    "Literal",
    "Node",
    "Operation",
    "UnknownOperation",
    "Var",
    "iter_nodes",
    "node_depth",
    "parse_expression",
    "resolve_path",
    # Operators
    "COMPARISON_OPERATORS",
    "OperatorKind",
    "OperatorRegistry",
    "OperatorSpec",
    "benefit_operators",
    "build_default_registry",
    "compare",
    "contains",
    "standard_operators",
    "strict_equals",
    "to_number",
    "truthy",
    # Evaluator
    "LogicEvaluator",
    "RuleEvaluationResult",
    "evaluate",
    "get_evaluator",
    "to_json_value",
    # Validation
    "LogicIssue",
    "LogicValidationOptions",
    "LogicValidationResult",
    "complexity_score",
    "validate_logic",
]
