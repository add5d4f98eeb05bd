"""
Where-condition dialect shared by the data-access backends.

    {"name": "NZ"}                              equality
    {"id": {"in": [1, 2]}}                      operator form
    {"and": [{...}, {...}]}, {"or": [...]}      logical groups

Operators: eq, neq, gt, gte, lt, lte, in, inq, nin, between, like, ilike.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterator, Mapping

from ..core.paths import read_node

LOGICAL_KEYS = ("and", "or")


def _like(pattern: Any, flags: int = 0) -> Callable[[Any], bool]:
    regex = re.compile(
        "^" + re.escape(str(pattern)).replace("%", ".*").replace("_", ".") + "$",
        flags,
    )
    return lambda value: value is not None and bool(regex.match(str(value)))


def _compare(check: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def evaluate(value: Any, operand: Any) -> bool:
        if value is None:
            return False
        return bool(check(value, operand))
    return evaluate


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": lambda value, operand: value == operand,
    "neq": lambda value, operand: value != operand,
    "gt": _compare(lambda value, operand: value > operand),
    "gte": _compare(lambda value, operand: value >= operand),
    "lt": _compare(lambda value, operand: value < operand),
    "lte": _compare(lambda value, operand: value <= operand),
    "in": lambda value, operand: value in operand,
    "inq": lambda value, operand: value in operand,
    "nin": lambda value, operand: value not in operand,
    "between": _compare(lambda value, operand: operand[0] <= value <= operand[1]),
    "like": lambda value, operand: _like(operand)(value),
    "ilike": lambda value, operand: _like(operand, re.IGNORECASE)(value),
}


def field_conditions(value: Any) -> Iterator[tuple[str, Any]]:
    """
    Split the condition on one field into (operator, operand) pairs.

    {"gte": 1, "lte": 5} -> ("gte", 1), ("lte", 5)
    "NZ"                 -> ("eq", "NZ")
    """
    if isinstance(value, Mapping) and value and all(key in OPERATORS for key in value):
        yield from value.items()
    else:
        yield "eq", value


def matches(row: Any, where: Mapping[str, Any] | None) -> bool:
    """Evaluate a where condition against a single record."""
    if not where:
        return True

    for key, value in where.items():
        if key == "and":
            if not all(matches(row, sub) for sub in value):
                return False
        elif key == "or":
            if not any(matches(row, sub) for sub in value):
                return False
        else:
            field_value = read_node(row, key)
            for op, operand in field_conditions(value):
                if not OPERATORS[op](field_value, operand):
                    return False

    return True
