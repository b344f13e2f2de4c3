"""Operator registry and operator implementations.

The registry is built explicitly and handed to the evaluator at construction
time. Nothing registers itself on import. Coercion helpers (``to_number``,
``strict_equals``, ``truthy``, ``compare``) live here so that the evaluator
and the criteria extractor share a single definition of what a comparison
means.
"""

from __future__ import annotations

import logging
import math
import operator as _op
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable

from eligibility.core.exceptions import InvalidExpressionError, OperandTypeError
from eligibility.core.thresholds import FPL_2024, PovertyGuidelines

from .expression import UNDEFINED, ArrayLiteral, Node, resolve_path

logger = logging.getLogger(__name__)


class OperatorKind(str, Enum):
    """Families of operators. The criteria extractor dispatches on these."""

    LOGIC = "logic"
    COMPARISON = "comparison"
    MEMBERSHIP = "membership"
    DATA = "data"
    ARITHMETIC = "arithmetic"
    STRING = "string"
    CUSTOM = "custom"
    INCOME_TEST = "income_test"


@dataclass(frozen=True)
class OperatorSpec:
    """A registered operator.

    Eager operators receive evaluated operand values. Lazy operators receive
    ``(evaluate, args, data)`` and decide which operand nodes to evaluate.
    Income tests also expose ``limit``, which maps the evaluated operands to
    the dollar limit the income was compared against.
    """

    name: str
    fn: Callable[..., Any]
    kind: OperatorKind
    min_args: int = 0
    max_args: int | None = None
    lazy: bool = False
    limit: Callable[..., Any] | None = None
    description: str = ""


class OperatorRegistry:
    """Name to ``OperatorSpec`` mapping passed by reference to evaluators."""

    def __init__(self, specs: Iterable[OperatorSpec] = ()):
        self._specs: dict[str, OperatorSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: OperatorSpec, replace: bool = False) -> None:
        """Add an operator. Re-registering a name requires ``replace=True``."""
        if spec.name in ("var",):
            raise ValueError("'var' is built into the expression grammar")
        if spec.name in self._specs and not replace:
            raise ValueError(f"Operator already registered: {spec.name}")
        self._specs[spec.name] = spec

    def unregister(self, name: str) -> None:
        self._specs.pop(name, None)

    def get(self, name: str) -> OperatorSpec | None:
        return self._specs.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._specs or name == "var"

    def __len__(self) -> int:
        return len(self._specs)

    def names(self) -> list[str]:
        return sorted(self._specs)

    def names_of_kind(self, *kinds: OperatorKind) -> list[str]:
        return sorted(name for name, spec in self._specs.items() if spec.kind in kinds)

    def copy(self) -> OperatorRegistry:
        return OperatorRegistry(self._specs.values())


# =============================================================================
# Coercion
# =============================================================================


def is_missing(value: Any) -> bool:
    """True for an unresolved variable or JSON null."""
    return value is UNDEFINED or value is None


def to_number(value: Any) -> int | float | None:
    """Numeric coercion for ordering and arithmetic.

    Booleans count as 0/1 and numeric strings are parsed. Anything else
    (null, undefined, text, containers, NaN) is not coercible.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and math.isnan(value) else value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def normalize_number(value: int | float) -> int | float:
    """Collapse integral floats so 4 / 2 reports as 2."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def strict_equals(left: Any, right: Any) -> bool:
    """Type-aware equality.

    Booleans equal only booleans, numbers compare numerically across int and
    float, containers compare element-wise. Undefined equals nothing.
    """
    if left is UNDEFINED or right is UNDEFINED:
        return False
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(
            strict_equals(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(
            strict_equals(left[key], right[key]) for key in left
        )
    if type(left) is not type(right):
        return False
    return left == right


def truthy(value: Any) -> bool:
    """Truthiness used by logic operators. Empty arrays are falsy, objects truthy."""
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, dict):
        return True
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


ORDERING_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "<": _op.lt,
    ">": _op.gt,
    "<=": _op.le,
    ">=": _op.ge,
}
EQUALITY_OPERATORS = ("==", "===")
INEQUALITY_OPERATORS = ("!=", "!==")
COMPARISON_OPERATORS = (*ORDERING_OPERATORS, *EQUALITY_OPERATORS, *INEQUALITY_OPERATORS)


def compare(op: str, left: Any, right: Any) -> bool:
    """Evaluate a binary comparison. Undefined on either side is always false."""
    if left is UNDEFINED or right is UNDEFINED:
        return False
    if op in EQUALITY_OPERATORS:
        return strict_equals(left, right)
    if op in INEQUALITY_OPERATORS:
        return not strict_equals(left, right)
    if op not in ORDERING_OPERATORS:
        raise InvalidExpressionError(f"Not a comparison operator: {op}")
    a, b = to_number(left), to_number(right)
    if a is None or b is None:
        return False
    return ORDERING_OPERATORS[op](a, b)


def contains(needle: Any, haystack: Any) -> bool:
    """Membership: array element (strict equality) or substring."""
    if needle is UNDEFINED or haystack is UNDEFINED:
        return False
    if isinstance(haystack, list):
        return any(strict_equals(needle, item) for item in haystack)
    if isinstance(haystack, str) and isinstance(needle, str):
        return needle in haystack
    return False


def _require_number(op: str, value: Any) -> int | float:
    number = to_number(value)
    if number is None:
        raise OperandTypeError(f"Operator '{op}' requires a numeric operand, got {value!r}")
    return number


def _numbers(op: str, values: Iterable[Any]) -> list[int | float] | None:
    """Coerce operands; None when any operand is missing."""
    values = list(values)
    if any(is_missing(value) for value in values):
        return None
    return [_require_number(op, value) for value in values]


def household_size(op: str, value: Any) -> int:
    """Validate a household size operand as a positive whole number."""
    number = _require_number(op, value)
    if number < 1 or not float(number).is_integer():
        raise OperandTypeError(
            f"Operator '{op}' requires a positive whole household size, got {value!r}"
        )
    return int(number)


# =============================================================================
# Logic (lazy)
# =============================================================================


def _and(evaluate, args, data):
    value: Any = True
    for arg in args:
        value = evaluate(arg)
        if not truthy(value):
            return value
    return value


def _or(evaluate, args, data):
    value: Any = False
    for arg in args:
        value = evaluate(arg)
        if truthy(value):
            return value
    return value


def _if(evaluate, args, data):
    index = 0
    while index + 1 < len(args):
        if truthy(evaluate(args[index])):
            return evaluate(args[index + 1])
        index += 2
    if index < len(args):
        return evaluate(args[index])
    return None


def _not(value):
    return not truthy(value)


def _double_not(value):
    return truthy(value)


# =============================================================================
# Data (lazy, read the record)
# =============================================================================


def _missing_keys(keys: list[Any], data: Any) -> list[Any]:
    missing = []
    for key in keys:
        value = resolve_path(data, key)
        if is_missing(value) or value == "":
            missing.append(key)
    return missing


def _missing(evaluate, args, data):
    keys = [evaluate(arg) for arg in args]
    if len(keys) == 1 and isinstance(keys[0], list):
        keys = keys[0]
    return _missing_keys(keys, data)


def _missing_some(evaluate, args, data):
    need = _require_number("missing_some", evaluate(args[0]))
    keys = evaluate(args[1])
    if not isinstance(keys, list):
        raise OperandTypeError("Operator 'missing_some' requires an array of keys")
    missing = _missing_keys(keys, data)
    if len(keys) - len(missing) >= need:
        return []
    return missing


# =============================================================================
# Comparison and membership
# =============================================================================


def _comparison(op: str) -> Callable[..., bool]:
    def fn(*values):
        if len(values) == 3 and op in ("<", "<="):
            return compare(op, values[0], values[1]) and compare(op, values[1], values[2])
        return compare(op, values[0], values[1])

    fn.__name__ = f"compare_{op}"
    return fn


def _in(needle, haystack):
    return contains(needle, haystack)


# =============================================================================
# Arithmetic and string
# =============================================================================


def _add(*values):
    numbers = _numbers("+", values)
    if numbers is None:
        return UNDEFINED
    return normalize_number(sum(numbers))


def _subtract(*values):
    numbers = _numbers("-", values)
    if numbers is None:
        return UNDEFINED
    if len(numbers) == 1:
        return normalize_number(-numbers[0])
    return normalize_number(numbers[0] - numbers[1])


def _multiply(*values):
    numbers = _numbers("*", values)
    if numbers is None:
        return UNDEFINED
    return normalize_number(math.prod(numbers))


def _divide(left, right):
    numbers = _numbers("/", (left, right))
    if numbers is None:
        return UNDEFINED
    if numbers[1] == 0:
        raise OperandTypeError("Division by zero")
    return normalize_number(numbers[0] / numbers[1])


def _modulo(left, right):
    numbers = _numbers("%", (left, right))
    if numbers is None:
        return UNDEFINED
    if numbers[1] == 0:
        raise OperandTypeError("Modulo by zero")
    return normalize_number(math.fmod(numbers[0], numbers[1]))


def _min(*values):
    numbers = _numbers("min", values)
    return UNDEFINED if numbers is None else min(numbers)


def _max(*values):
    numbers = _numbers("max", values)
    return UNDEFINED if numbers is None else max(numbers)


def _to_text(value: Any) -> str:
    if is_missing(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(normalize_number(value))
    if isinstance(value, list):
        return ",".join(_to_text(item) for item in value)
    return str(value)


def _cat(*values):
    return "".join(_to_text(value) for value in values)


# =============================================================================
# Benefit Operators
# =============================================================================


def _between(value, low, high):
    numbers = _numbers("between", (value, low, high))
    if numbers is None:
        return False
    return numbers[1] <= numbers[0] <= numbers[2]


def _within_percent(value, target, percent):
    numbers = _numbers("within_percent", (value, target, percent))
    if numbers is None:
        return False
    value, target, percent = numbers
    return abs(value - target) <= abs(target) * percent / 100


def _matches_any(value, candidates):
    if is_missing(value) or is_missing(candidates):
        return False
    if not isinstance(candidates, list):
        raise OperandTypeError("Operator 'matches_any' requires an array of candidates")
    if isinstance(value, str):
        lowered = value.casefold()
        return any(isinstance(item, str) and item.casefold() == lowered for item in candidates)
    return any(strict_equals(value, item) for item in candidates)


def _truthy_list(op: str, values: Any) -> list[bool] | None:
    if is_missing(values):
        return None
    if not isinstance(values, list):
        raise OperandTypeError(f"Operator '{op}' requires an array operand")
    return [truthy(value) for value in values]


def _count_true(values):
    flags = _truthy_list("count_true", values)
    return 0 if flags is None else sum(flags)


def _all_true(values):
    flags = _truthy_list("all_true", values)
    return False if flags is None else all(flags)


def _any_true(values):
    flags = _truthy_list("any_true", values)
    return False if flags is None else any(flags)


def _switch(evaluate, args, data):
    """``{"switch": [value, [case, result], ..., default?]}``."""
    subject = evaluate(args[0])
    default: Node | None = None
    for entry in args[1:]:
        if isinstance(entry, ArrayLiteral) and len(entry.items) == 2:
            if strict_equals(evaluate(entry.items[0]), subject):
                return evaluate(entry.items[1])
        elif default is None:
            default = entry
        else:
            raise InvalidExpressionError("switch accepts a single default branch")
    return UNDEFINED if default is None else evaluate(default)


def _income_operators(guidelines: PovertyGuidelines) -> list[OperatorSpec]:
    """Operators bound to one poverty guideline table."""

    def limit_at(op: str, size: Any, percent: Any = 100) -> Any:
        if is_missing(size) or is_missing(percent):
            return UNDEFINED
        pct = _require_number(op, percent)
        if pct <= 0:
            raise OperandTypeError(f"Operator '{op}' requires a positive percentage, got {percent!r}")
        return guidelines.threshold(household_size(op, size), pct)

    def fpl_income_threshold(size, percent=100):
        return limit_at("fpl_income_threshold", size, percent)

    def snap_threshold(size):
        return limit_at("snap_income_threshold_130_fpl", size, 130)

    def income_test(op: str, percent_default: Any):
        def limit(income, size, percent=percent_default):
            return limit_at(op, size, percent)

        def fn(income, size, percent=percent_default):
            threshold = limit(income, size, percent)
            if threshold is UNDEFINED or is_missing(income):
                return False
            eligible = _require_number(op, income) <= threshold
            logger.debug(
                "%s: income=%s size=%s limit=%s eligible=%s", op, income, size, threshold, eligible
            )
            return eligible

        return fn, limit

    snap_fn, snap_limit = income_test("snap_income_eligible", 130)
    fpl_fn, fpl_limit = income_test("fpl_income_eligible", 100)

    return [
        OperatorSpec(
            "fpl_income_threshold", fpl_income_threshold, OperatorKind.CUSTOM, 1, 2,
            description=f"Monthly limit at a percentage of the {guidelines.year} FPL",
        ),
        OperatorSpec(
            "snap_income_threshold_130_fpl", snap_threshold, OperatorKind.CUSTOM, 1, 1,
            description="SNAP gross income limit (130% FPL)",
        ),
        OperatorSpec(
            "snap_income_eligible", snap_fn, OperatorKind.INCOME_TEST, 2, 2, limit=snap_limit,
            description="Income at or below the SNAP 130% FPL limit",
        ),
        OperatorSpec(
            "fpl_income_eligible", fpl_fn, OperatorKind.INCOME_TEST, 2, 3, limit=fpl_limit,
            description="Income at or below a percentage of FPL (default 100%)",
        ),
    ]


# =============================================================================
# Registry Construction
# =============================================================================


def standard_operators() -> list[OperatorSpec]:
    """Operators of the base logic language."""
    logic = OperatorKind.LOGIC
    specs = [
        OperatorSpec("and", _and, logic, 1, lazy=True),
        OperatorSpec("or", _or, logic, 1, lazy=True),
        OperatorSpec("if", _if, logic, 1, lazy=True),
        OperatorSpec("?:", _if, logic, 3, 3, lazy=True),
        OperatorSpec("!", _not, logic, 1, 1),
        OperatorSpec("not", _not, logic, 1, 1),
        OperatorSpec("!!", _double_not, logic, 1, 1),
        OperatorSpec("missing", _missing, OperatorKind.DATA, 0, lazy=True),
        OperatorSpec("missing_some", _missing_some, OperatorKind.DATA, 2, 2, lazy=True),
        OperatorSpec("in", _in, OperatorKind.MEMBERSHIP, 2, 2),
        OperatorSpec("+", _add, OperatorKind.ARITHMETIC, 1),
        OperatorSpec("-", _subtract, OperatorKind.ARITHMETIC, 1, 2),
        OperatorSpec("*", _multiply, OperatorKind.ARITHMETIC, 1),
        OperatorSpec("/", _divide, OperatorKind.ARITHMETIC, 2, 2),
        OperatorSpec("%", _modulo, OperatorKind.ARITHMETIC, 2, 2),
        OperatorSpec("min", _min, OperatorKind.ARITHMETIC, 1),
        OperatorSpec("max", _max, OperatorKind.ARITHMETIC, 1),
        OperatorSpec("cat", _cat, OperatorKind.STRING, 0),
    ]
    for op in ORDERING_OPERATORS:
        specs.append(
            OperatorSpec(op, _comparison(op), OperatorKind.COMPARISON, 2, 3 if op in ("<", "<=") else 2)
        )
    for op in (*EQUALITY_OPERATORS, *INEQUALITY_OPERATORS):
        specs.append(OperatorSpec(op, _comparison(op), OperatorKind.COMPARISON, 2, 2))
    return specs


def benefit_operators(guidelines: PovertyGuidelines = FPL_2024) -> list[OperatorSpec]:
    """Domain operators for benefit rules."""
    custom = OperatorKind.CUSTOM
    return [
        OperatorSpec("between", _between, custom, 3, 3, description="Inclusive range check"),
        OperatorSpec("within_percent", _within_percent, custom, 3, 3),
        OperatorSpec("matches_any", _matches_any, custom, 2, 2, description="Case-insensitive match"),
        OperatorSpec("count_true", _count_true, custom, 1, 1),
        OperatorSpec("all_true", _all_true, custom, 1, 1),
        OperatorSpec("any_true", _any_true, custom, 1, 1),
        OperatorSpec("switch", _switch, custom, 1, lazy=True),
        *_income_operators(guidelines),
    ]


def build_default_registry(guidelines: PovertyGuidelines = FPL_2024) -> OperatorRegistry:
    """Standard plus benefit operators, income tests bound to ``guidelines``."""
    return OperatorRegistry([*standard_operators(), *benefit_operators(guidelines)])
