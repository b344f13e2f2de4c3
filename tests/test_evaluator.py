"""Tests for the logic evaluator."""

import pytest

from eligibility.core.exceptions import (
    InvalidExpressionError,
    MaxDepthExceededError,
    OperandTypeError,
    UnknownOperatorError,
)
from eligibility.logic import (
    UNDEFINED,
    LogicEvaluator,
    OperatorKind,
    OperatorSpec,
    evaluate,
)


class TestComparisons:
    @pytest.mark.parametrize("a,b", [(1, 2), (2, 1), (2, 2), (-3.5, 0), (1000, 999.99)])
    @pytest.mark.parametrize("op,native", [
        ("<", lambda a, b: a < b),
        (">", lambda a, b: a > b),
        ("<=", lambda a, b: a <= b),
        (">=", lambda a, b: a >= b),
        ("==", lambda a, b: a == b),
        ("!=", lambda a, b: a != b),
    ])
    def test_numeric_comparison_matches_native(self, evaluator: LogicEvaluator, op, native, a, b):
        result = evaluator.evaluate({op: [a, b]})
        assert result.success
        assert result.result is native(a, b)

    def test_numeric_strings_are_coerced_for_ordering(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"<": ["5", 10]}) is True
        assert evaluator.apply({">=": ["10.5", 10]}) is True

    def test_text_never_orders(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"<": ["abc", 10]}) is False
        assert evaluator.apply({">": ["abc", 10]}) is False

    def test_null_never_orders(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"<": [None, 5]}) is False
        assert evaluator.apply({">=": [None, 0]}) is False

    def test_equality_is_strict(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"==": [1, 1.0]}) is True
        assert evaluator.apply({"==": [1, "1"]}) is False
        assert evaluator.apply({"==": [True, 1]}) is False
        assert evaluator.apply({"==": [None, None]}) is True
        assert evaluator.apply({"!=": [1, "1"]}) is True

    def test_three_argument_range(self, evaluator: LogicEvaluator):
        logic = {"<": [0, {"var": "x"}, 10]}
        assert evaluator.apply(logic, {"x": 5}) is True
        assert evaluator.apply(logic, {"x": 10}) is False
        assert evaluator.apply({"<=": [0, {"var": "x"}, 10]}, {"x": 10}) is True


class TestMissingVariables:
    def test_missing_variable_fails_closed(self, evaluator: LogicEvaluator):
        result = evaluator.evaluate({"<=": [{"var": "income"}, 2000]}, {})
        assert result.success is True
        assert result.result is False
        assert result.error is None

    @pytest.mark.parametrize("op", ["<", ">", "<=", ">=", "==", "!="])
    def test_every_comparison_against_undefined_is_false(self, evaluator: LogicEvaluator, op):
        assert evaluator.apply({op: [{"var": "x"}, 5]}, {}) is False
        assert evaluator.apply({op: [5, {"var": "x"}]}, {}) is False

    def test_undefined_result_is_reported_as_null(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"var": "nope"}, {}) is UNDEFINED
        assert evaluator.evaluate({"var": "nope"}, {}).result is None

    def test_arithmetic_with_missing_operand_is_undefined(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"+": [1, {"var": "x"}]}, {}) is UNDEFINED
        assert evaluator.apply({"<": [{"+": [1, {"var": "x"}]}, 5]}, {}) is False


class TestVariables:
    def test_nested_path(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"var": "a.b"}, {"a": {"b": 3}}) == 3

    def test_list_index_path(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"var": "items.1"}, {"items": ["x", "y"]}) == "y"
        assert evaluator.apply({"var": "items.5"}, {"items": ["x", "y"]}) is UNDEFINED

    def test_default_value(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"var": ["a.b", 7]}, {}) == 7
        assert evaluator.apply({"var": ["a", 7]}, {"a": 1}) == 1

    def test_empty_path_returns_record(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"var": ""}, {"x": 1}) == {"x": 1}

    def test_null_value_is_not_a_default(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"var": ["a", 7]}, {"a": None}) is None

    def test_missing(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"missing": ["a", "b"]}, {"a": 1}) == ["b"]
        assert evaluator.apply({"missing": ["a"]}, {"a": ""}) == ["a"]

    def test_missing_some(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"missing_some": [1, ["a", "b"]]}, {"a": 1}) == []
        assert evaluator.apply({"missing_some": [2, ["a", "b"]]}, {"a": 1}) == ["b"]


class TestLogicOperators:
    def test_and_or(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"and": [True, {"<": [1, 2]}]}) is True
        assert evaluator.apply({"or": [False, {">": [1, 2]}]}) is False

    def test_short_circuit_skips_unreached_branch(self, evaluator: LogicEvaluator):
        assert evaluator.evaluate({"or": [True, {"no_such_op": [1]}]}).result is True
        assert evaluator.evaluate({"and": [False, {"no_such_op": [1]}]}).result is False

    def test_if_chain(self, evaluator: LogicEvaluator):
        logic = {"if": [{"<": [{"var": "age"}, 18]}, "minor", {"<": [{"var": "age"}, 65]}, "adult", "senior"]}
        assert evaluator.apply(logic, {"age": 10}) == "minor"
        assert evaluator.apply(logic, {"age": 30}) == "adult"
        assert evaluator.apply(logic, {"age": 70}) == "senior"

    def test_negation_and_truthiness(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"!": [0]}) is True
        assert evaluator.apply({"not": [True]}) is False
        assert evaluator.apply({"!!": [[]]}) is False
        assert evaluator.apply({"!!": ["0"]}) is True

    def test_membership(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"in": ["CA", ["CA", "NY"]]}) is True
        assert evaluator.apply({"in": ["TX", ["CA", "NY"]]}) is False
        assert evaluator.apply({"in": ["yz", "xyz"]}) is True
        assert evaluator.apply({"in": [{"var": "state"}, ["CA"]]}, {}) is False


class TestArithmetic:
    def test_integral_results_are_ints(self, evaluator: LogicEvaluator):
        result = evaluator.apply({"/": [4, 2]})
        assert result == 2
        assert isinstance(result, int)

    def test_operations(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"+": [1, 2, 3]}) == 6
        assert evaluator.apply({"-": [10, 4]}) == 6
        assert evaluator.apply({"-": [3]}) == -3
        assert evaluator.apply({"*": [2, 2.5]}) == 5
        assert evaluator.apply({"%": [7, 3]}) == 1
        assert evaluator.apply({"min": [3, 1, 2]}) == 1
        assert evaluator.apply({"max": [3, 1, 2]}) == 3
        assert evaluator.apply({"cat": ["a", 1, True]}) == "a1true"

    def test_non_numeric_operand_is_an_error(self, evaluator: LogicEvaluator):
        with pytest.raises(OperandTypeError):
            evaluator.apply({"+": [1, "a"]})

    def test_division_by_zero_is_an_error(self, evaluator: LogicEvaluator):
        result = evaluator.evaluate({"/": [1, 0]})
        assert result.success is False
        assert result.error_code == "EVAL_OPERATOR_ERROR"


class TestBenefitOperators:
    def test_between(self, evaluator: LogicEvaluator):
        logic = {"between": [{"var": "age"}, 18, 64]}
        assert evaluator.apply(logic, {"age": 18}) is True
        assert evaluator.apply(logic, {"age": 65}) is False
        assert evaluator.apply(logic, {}) is False

    def test_within_percent(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"within_percent": [105, 100, 5]}) is True
        assert evaluator.apply({"within_percent": [106, 100, 5]}) is False

    def test_matches_any_ignores_case(self, evaluator: LogicEvaluator):
        logic = {"matches_any": [{"var": "state"}, ["CA", "ny"]]}
        assert evaluator.apply(logic, {"state": "NY"}) is True
        assert evaluator.apply(logic, {"state": "TX"}) is False

    def test_counting(self, evaluator: LogicEvaluator):
        assert evaluator.apply({"count_true": [[True, False, 1]]}) == 2
        assert evaluator.apply({"all_true": [[True, 1]]}) is True
        assert evaluator.apply({"any_true": [[False, 0]]}) is False

    def test_switch(self, evaluator: LogicEvaluator):
        logic = {"switch": [{"var": "s"}, ["a", 1], ["b", 2], 0]}
        assert evaluator.apply(logic, {"s": "b"}) == 2
        assert evaluator.apply(logic, {"s": "z"}) == 0

    def test_income_operator(self, evaluator: LogicEvaluator):
        logic = {"snap_income_eligible": [{"var": "householdIncome"}, {"var": "householdSize"}]}
        assert evaluator.apply(logic, {"householdIncome": 2000, "householdSize": 2}) is True
        assert evaluator.apply(logic, {"householdIncome": 3000, "householdSize": 2}) is False
        assert evaluator.apply(logic, {"householdSize": 2}) is False


class TestFailureSemantics:
    def test_unknown_operator(self, evaluator: LogicEvaluator):
        result = evaluator.evaluate({"no_such_op": [1, 2]})
        assert result.success is False
        assert result.result is False
        assert result.error == "Unrecognized operation no_such_op"
        assert result.error_code == "EVAL_UNKNOWN_OPERATOR"

    def test_unknown_operator_raises_from_apply(self, evaluator: LogicEvaluator):
        with pytest.raises(UnknownOperatorError):
            evaluator.apply({"no_such_op": [1]})

    def test_wrong_arity(self, evaluator: LogicEvaluator):
        result = evaluator.evaluate({"<=": [1]})
        assert result.success is False
        assert result.error_code == "EVAL_INVALID_RULE"

    def test_multi_key_node(self, evaluator: LogicEvaluator):
        with pytest.raises(InvalidExpressionError):
            evaluator.apply({"<": [1, 2], ">": [2, 1]})

    def test_non_numeric_income_operand(self, evaluator: LogicEvaluator):
        result = evaluator.evaluate({"snap_income_eligible": ["abc", 2]})
        assert result.success is False
        assert result.error_code == "EVAL_OPERATOR_ERROR"

    def test_max_depth(self):
        shallow = LogicEvaluator(max_depth=3)
        logic = {"!": {"!": {"!": {"!": True}}}}
        with pytest.raises(MaxDepthExceededError):
            shallow.apply(logic)
        result = shallow.evaluate(logic)
        assert result.success is False
        assert result.error_code == "EVAL_MAX_DEPTH"

    def test_evaluation_never_raises(self, evaluator: LogicEvaluator):
        for logic in ({"+": [1, "x"]}, {}, {"var": [1, 2, 3]}, {"no_such_op": []}):
            assert evaluator.evaluate(logic, {}).success is False


class TestEvaluatorContract:
    def test_deterministic(self, evaluator: LogicEvaluator):
        logic = {"and": [{"<=": [{"var": "income"}, 2000]}, {"in": [{"var": "state"}, ["CA", "NY"]]}]}
        data = {"income": 1500, "state": "CA"}
        first = evaluator.evaluate(logic, data)
        second = evaluator.evaluate(logic, data)
        assert (first.result, first.success) == (second.result, second.success)

    def test_does_not_mutate_inputs(self, evaluator: LogicEvaluator):
        logic = {"missing": ["a", "b"]}
        data = {"a": 1}
        evaluator.evaluate(logic, data)
        assert logic == {"missing": ["a", "b"]}
        assert data == {"a": 1}

    def test_capture_context(self, evaluator: LogicEvaluator):
        result = evaluator.evaluate({"var": "a"}, {"a": 1}, capture_context=True)
        assert result.context == {"a": 1}
        assert evaluator.evaluate({"var": "a"}, {"a": 1}).context is None

    def test_evaluate_many(self, evaluator: LogicEvaluator):
        results = evaluator.evaluate_many({"low": {"<": [{"var": "x"}, 5]}, "bad": {"nope": []}}, {"x": 1})
        assert results["low"].result is True
        assert results["bad"].success is False

    def test_registry_is_explicit(self, registry):
        registry.unregister("snap_income_eligible")
        evaluator = LogicEvaluator(registry)
        result = evaluator.evaluate({"snap_income_eligible": [1000, 1]})
        assert result.error_code == "EVAL_UNKNOWN_OPERATOR"

    def test_custom_operator(self, registry):
        registry.register(OperatorSpec("double", lambda x: x * 2, OperatorKind.CUSTOM, 1, 1))
        assert LogicEvaluator(registry).apply({"double": [21]}) == 42

    def test_module_level_evaluate(self):
        assert evaluate({">": [{"var": "age"}, 17]}, {"age": 18}).result is True
