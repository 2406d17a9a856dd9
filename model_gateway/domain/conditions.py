"""Condition Evaluation - Pure business logic.

AUCUNE dépendance externe. Logique pure.

Les conditions sont des données, pas du code: chaque opérateur est une
fonction d'une table fermée. L'évaluateur est total: toute combinaison
(opérateur, type) renvoie un booléen, et un type inattendu donne False.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Mapping

from model_gateway.domain.errors import InvalidRuleCondition
from model_gateway.domain.models import ConditionOperator, RuleCondition

__all__ = [
    "OPERATORS",
    "evaluate_condition",
    "evaluate_conditions",
    "parse_conditions",
    "to_number",
]


def to_number(value: Any) -> float | None:
    """Convertit en nombre fini, ou None si la valeur n'est pas numérique.

    Les booléens ne sont jamais numériques.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _as_text(value: Any) -> str | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        # 100.0 -> "100" so that numeric attributes read naturally in substring tests
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return None


def _equals(actual: Any, expected: Any) -> bool:
    actual_number, expected_number = to_number(actual), to_number(expected)
    if actual_number is not None and expected_number is not None:
        return actual_number == expected_number
    actual_text, expected_text = _as_text(actual), _as_text(expected)
    if actual_text is None or expected_text is None:
        return False
    return actual_text == expected_text


def _not_equals(actual: Any, expected: Any) -> bool:
    if _as_text(actual) is None or _as_text(expected) is None:
        return False
    return not _equals(actual, expected)


def _contains(actual: Any, expected: Any) -> bool:
    actual_text, expected_text = _as_text(actual), _as_text(expected)
    if actual_text is None or expected_text is None:
        return False
    return expected_text in actual_text


def _not_contains(actual: Any, expected: Any) -> bool:
    actual_text, expected_text = _as_text(actual), _as_text(expected)
    if actual_text is None or expected_text is None:
        return False
    return expected_text not in actual_text


def _greater_than(actual: Any, expected: Any) -> bool:
    actual_number, expected_number = to_number(actual), to_number(expected)
    if actual_number is None or expected_number is None:
        return False
    return actual_number > expected_number


def _less_than(actual: Any, expected: Any) -> bool:
    actual_number, expected_number = to_number(actual), to_number(expected)
    if actual_number is None or expected_number is None:
        return False
    return actual_number < expected_number


OPERATORS: dict[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQUALS: _equals,
    ConditionOperator.NOT_EQUALS: _not_equals,
    ConditionOperator.CONTAINS: _contains,
    ConditionOperator.NOT_CONTAINS: _not_contains,
    ConditionOperator.GREATER_THAN: _greater_than,
    ConditionOperator.LESS_THAN: _less_than,
}


def evaluate_condition(condition: RuleCondition, attributes: Mapping[str, Any]) -> bool:
    """Évalue une condition contre les attributs du contexte.

    Un attribut absent rend la condition fausse, quel que soit l'opérateur.
    """
    if condition.field not in attributes:
        return False
    operator = OPERATORS.get(condition.operator)
    if operator is None:
        return False
    return operator(attributes[condition.field], condition.value)


def evaluate_conditions(
    conditions: tuple[RuleCondition, ...] | list[RuleCondition],
    attributes: Mapping[str, Any],
) -> bool:
    """Sémantique ET: toutes les conditions doivent être vraies (vide = vrai)."""
    return all(evaluate_condition(c, attributes) for c in conditions)


def parse_conditions(raw: Any) -> tuple[tuple[RuleCondition, ...], str | None]:
    """Lit les conditions stockées (liste JSON).

    Returns:
        (conditions, invalid_reason). invalid_reason est renseigné au lieu de
        lever une exception: la règle reste chargée mais ne matche jamais.
    """
    if raw is None or raw == "":
        return (), None
    if not isinstance(raw, (list, tuple)):
        return (), f"Conditions must be a list, got {type(raw).__name__}"

    parsed = []
    for index, item in enumerate(raw):
        try:
            parsed.append(RuleCondition.from_dict(item))
        except InvalidRuleCondition as e:
            return (), f"Condition #{index + 1}: {e.message}"
    return tuple(parsed), None
