"""
Utility functions for relpath.

Includes:
- Case conversion (camelCase -> snake_case)
- Relation path splitting and normalization
"""

from __future__ import annotations

import re
from typing import Sequence, Union


# Pre-compiled regex patterns for better performance
_CAMEL_TO_SNAKE_PATTERN = re.compile(r'([a-z0-9])([A-Z])')
_CONSECUTIVE_UPPER_PATTERN = re.compile(r'([A-Z]+)([A-Z][a-z])')

RelationPath = Union[str, Sequence[str]]


def to_snake_case(name: str) -> str:
    """
    Convert camelCase to snake_case.

    Examples:
        ownedProperties -> owned_properties
        cityId -> city_id
        HTTPResponse -> http_response
    """
    # Handle consecutive uppercase (HTTP -> http)
    result = _CONSECUTIVE_UPPER_PATTERN.sub(r'\1_\2', name)
    result = _CAMEL_TO_SNAKE_PATTERN.sub(r'\1_\2', result)
    return result.lower()


def split_relation_path(path: RelationPath) -> list[str]:
    """
    Split a dotted relation path into its steps.

    Accepts "city.country" or an already split sequence.
    """
    if isinstance(path, str):
        return path.split(".") if path else []
    return list(path)


def normalize_relation_path(path: RelationPath, normalize_case: bool = False) -> list[str]:
    """Split a relation path, converting camelCase steps to snake_case if asked."""
    steps = split_relation_path(path)
    if normalize_case:
        return [to_snake_case(step) for step in steps]
    return steps
