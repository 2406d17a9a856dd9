"""Tests unitaires pour l'évaluation des conditions de règles."""

import pytest

from model_gateway.domain.conditions import (
    evaluate_condition,
    evaluate_conditions,
    parse_conditions,
    to_number,
)
from model_gateway.domain.errors import InvalidRuleCondition
from model_gateway.domain.models import ConditionOperator, RuleCondition


def condition(field: str, operator: str, value) -> RuleCondition:
    return RuleCondition(field=field, operator=ConditionOperator(operator), value=value)


class TestToNumber:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (5, 5.0),
            (2.5, 2.5),
            ("42", 42.0),
            (" 3.5 ", 3.5),
            ("abc", None),
            (True, None),
            (None, None),
            ("nan", None),
            ("inf", None),
        ],
    )
    def test_conversion(self, value, expected):
        assert to_number(value) == expected


class TestOperators:
    """Sémantique de chaque opérateur."""

    @pytest.mark.parametrize(
        "actual,expected,result",
        [
            ("enterprise", "enterprise", True),
            ("enterprise", "free", False),
            ("100", 100, True),
            (100.0, "100", True),
            (True, "True", False),
        ],
    )
    def test_equals(self, actual, expected, result):
        assert evaluate_condition(condition("x", "equals", expected), {"x": actual}) is result

    def test_not_equals(self):
        assert evaluate_condition(condition("plan", "not_equals", "free"), {"plan": "pro"})
        assert not evaluate_condition(condition("plan", "not_equals", "pro"), {"plan": "pro"})
        assert not evaluate_condition(condition("n", "not_equals", 5), {"n": "5.0"})

    def test_contains_is_substring_match(self):
        assert evaluate_condition(condition("msg", "contains", "refund"), {"msg": "I want a refund"})
        assert not evaluate_condition(condition("msg", "contains", "Refund"), {"msg": "a refund"})

    def test_contains_on_numbers_uses_text(self):
        assert evaluate_condition(condition("code", "contains", 234), {"code": 12345})
        assert evaluate_condition(condition("amount", "contains", "100"), {"amount": 100.0})

    def test_not_contains(self):
        assert evaluate_condition(condition("msg", "not_contains", "urgent"), {"msg": "hello"})
        assert not evaluate_condition(condition("msg", "not_contains", "ell"), {"msg": "hello"})

    def test_greater_than_and_less_than(self):
        assert evaluate_condition(condition("seats", "greater_than", 5), {"seats": "10"})
        assert not evaluate_condition(condition("seats", "greater_than", 10), {"seats": 10})
        assert evaluate_condition(condition("seats", "less_than", 10), {"seats": 9.5})

    def test_numeric_operator_on_non_numeric_value_is_false(self):
        assert not evaluate_condition(condition("seats", "greater_than", 5), {"seats": "many"})
        assert not evaluate_condition(condition("flag", "less_than", 5), {"flag": False})

    @pytest.mark.parametrize("operator", [op.value for op in ConditionOperator])
    def test_missing_attribute_is_false_for_every_operator(self, operator):
        assert not evaluate_condition(condition("plan", operator, "x"), {"other": "x"})


class TestEvaluateConditions:
    def test_empty_conditions_match(self):
        assert evaluate_conditions((), {})

    def test_all_conditions_must_hold(self):
        conditions = (
            condition("plan", "equals", "enterprise"),
            condition("seats", "greater_than", 50),
        )
        assert evaluate_conditions(conditions, {"plan": "enterprise", "seats": 100})
        assert not evaluate_conditions(conditions, {"plan": "enterprise", "seats": 10})
        assert not evaluate_conditions(conditions, {"plan": "enterprise"})


class TestParseConditions:
    def test_empty(self):
        assert parse_conditions(None) == ((), None)
        assert parse_conditions([]) == ((), None)

    def test_valid_list(self):
        conditions, reason = parse_conditions(
            [{"field": "plan", "operator": "equals", "value": "pro"}]
        )
        assert reason is None
        assert conditions == (condition("plan", "equals", "pro"),)

    def test_not_a_list(self):
        conditions, reason = parse_conditions({"field": "plan"})
        assert conditions == ()
        assert reason == "Conditions must be a list, got dict"

    def test_unknown_operator_marks_rule_invalid(self):
        conditions, reason = parse_conditions(
            [
                {"field": "plan", "operator": "equals", "value": "pro"},
                {"field": "seats", "operator": "between", "value": 3},
            ]
        )
        assert conditions == ()
        assert reason.startswith("Condition #2:")
        assert "between" in reason

    def test_boolean_value_is_rejected(self):
        with pytest.raises(InvalidRuleCondition):
            RuleCondition.from_dict({"field": "beta", "operator": "equals", "value": True})

    def test_blank_field_is_rejected(self):
        _, reason = parse_conditions([{"field": "  ", "operator": "equals", "value": "x"}])
        assert reason == "Condition #1: Condition field is required"
