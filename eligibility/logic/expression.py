"""Logic expression tree.

Raw rule logic is JSON: a literal, an array, or a single-key object whose key
names an operator and whose value holds the operands. ``parse_expression``
turns that JSON into a closed set of node types so that every consumer
(evaluator, criteria extractor, logic validator, rule explainer) dispatches
over the same shapes. Operator names missing from the registry become
``UnknownOperation`` nodes instead of being dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from eligibility.core.exceptions import InvalidExpressionError

if TYPE_CHECKING:
    from .operators import OperatorRegistry


class _Undefined:
    """Marker for a variable that does not resolve in the data record."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()


# =============================================================================
# Node Types
# =============================================================================


@dataclass(frozen=True)
class Literal:
    """A scalar JSON value: number, string, bool or null."""

    value: Any


@dataclass(frozen=True)
class ArrayLiteral:
    """A JSON array whose items are themselves expressions."""

    items: tuple[Node, ...]


@dataclass(frozen=True)
class Var:
    """Variable reference: ``{"var": "a.b"}`` or ``{"var": ["a.b", default]}``."""

    path: Node
    default: Node | None = None

    @property
    def name(self) -> str | None:
        """Static dotted path, or None when the path is computed."""
        if isinstance(self.path, Literal) and self.path.value is not None:
            return str(self.path.value)
        return None


@dataclass(frozen=True)
class Operation:
    """A registered operator applied to operand expressions."""

    op: str
    args: tuple[Node, ...]


@dataclass(frozen=True)
class UnknownOperation:
    """An operator name absent from the registry. Evaluating it fails."""

    op: str
    args: tuple[Node, ...]


Node = Union[Literal, ArrayLiteral, Var, Operation, UnknownOperation]


# =============================================================================
# Parsing
# =============================================================================


def _operands(raw: Any) -> list[Any]:
    return raw if isinstance(raw, list) else [raw]


def parse_expression(raw: Any, registry: OperatorRegistry) -> Node:
    """Parse raw JSON logic into a node tree.

    Raises:
        InvalidExpressionError: multi-key objects, empty objects or operand
            counts outside a registered operator's arity.
    """
    if isinstance(raw, list):
        return ArrayLiteral(tuple(parse_expression(item, registry) for item in raw))

    if not isinstance(raw, dict):
        if raw is not None and not isinstance(raw, (str, int, float, bool)):
            raise InvalidExpressionError(f"Unsupported literal type: {type(raw).__name__}")
        return Literal(raw)

    if len(raw) != 1:
        keys = ", ".join(sorted(str(k) for k in raw)) or "<none>"
        raise InvalidExpressionError(
            f"Logic node must have exactly one operator key, got: {keys}"
        )

    op, value = next(iter(raw.items()))

    if op == "var":
        operands = _operands(value)
        if len(operands) > 2:
            raise InvalidExpressionError("var takes a path and an optional default")
        path = parse_expression(operands[0], registry) if operands else Literal("")
        default = parse_expression(operands[1], registry) if len(operands) == 2 else None
        return Var(path=path, default=default)

    args = tuple(parse_expression(arg, registry) for arg in _operands(value))

    spec = registry.get(op)
    if spec is None:
        return UnknownOperation(op=op, args=args)

    if len(args) < spec.min_args:
        raise InvalidExpressionError(
            f"Operator '{op}' expects at least {spec.min_args} operand(s), got {len(args)}"
        )
    if spec.max_args is not None and len(args) > spec.max_args:
        raise InvalidExpressionError(
            f"Operator '{op}' expects at most {spec.max_args} operand(s), got {len(args)}"
        )

    return Operation(op=op, args=args)


# =============================================================================
# Data Access
# =============================================================================


def resolve_path(data: Any, path: Any) -> Any:
    """Look up a dotted path in the data record.

    An empty or null path returns the whole record. Missing keys, out of
    range indexes and traversal through null yield ``UNDEFINED``.
    """
    if path is None or path == "":
        return data
    if isinstance(path, bool) or not isinstance(path, (str, int, float)):
        raise InvalidExpressionError(f"Variable path must be a string or number, got {path!r}")

    current = data
    for part in str(path).split("."):
        if isinstance(current, dict):
            if part not in current:
                return UNDEFINED
            current = current[part]
        elif isinstance(current, list):
            if not part.isdigit() or int(part) >= len(current):
                return UNDEFINED
            current = current[int(part)]
        else:
            return UNDEFINED
    return current


def iter_nodes(node: Node):
    """Yield every node depth first, parents before children, left to right."""
    yield node
    if isinstance(node, ArrayLiteral):
        children: tuple[Node, ...] = node.items
    elif isinstance(node, Var):
        children = (node.path,) if node.default is None else (node.path, node.default)
    elif isinstance(node, (Operation, UnknownOperation)):
        children = node.args
    else:
        children = ()
    for child in children:
        yield from iter_nodes(child)


def node_depth(node: Node) -> int:
    """Nesting depth of operator nodes; a literal or var counts as 0."""
    if isinstance(node, ArrayLiteral):
        return max((node_depth(item) for item in node.items), default=0)
    if isinstance(node, (Operation, UnknownOperation)):
        return 1 + max((node_depth(arg) for arg in node.args), default=0)
    return 0
