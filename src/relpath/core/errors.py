"""
Custom exceptions for relpath.
"""

from __future__ import annotations

from typing import Any, Optional


class RelpathError(Exception):
    """Base exception for all relpath errors."""
    pass


class MalformedFilter(RelpathError):
    """Raised when the serialized filter cannot be parsed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed filter: {reason}")


class UnknownRelation(RelpathError):
    """Raised when a relation path segment does not exist on the current entity."""

    def __init__(self, entity: str, relation: str):
        self.entity = entity
        self.relation = relation
        super().__init__(f"Entity '{entity}' has no relation '{relation}'")


class AmbiguousOrMissingRelation(RelpathError):
    """Raised when no relation connects two consecutive entities."""

    def __init__(self, entity: str, target: str):
        self.entity = entity
        self.target = target
        super().__init__(f"No relation from '{entity}' to '{target}'")


class UnsupportedRelationKind(RelpathError):
    """Raised when the root relation can not be reversed."""

    def __init__(self, entity: str, relation: str, kind: Any):
        self.entity = entity
        self.relation = relation
        self.kind = kind
        super().__init__(
            f"Relation '{entity}.{relation}' of kind '{getattr(kind, 'value', kind)}' "
            f"can not be reversed"
        )


class RelationPathTooDeep(RelpathError):
    """Raised when a relation path has more steps than allowed."""

    def __init__(self, path: str, max_depth: int):
        self.path = path
        self.max_depth = max_depth
        super().__init__(f"Relation path '{path}' exceeds {max_depth} steps")


class MissingRelationNode(RelpathError):
    """Raised by the fail-fast extraction policy on a null node."""

    def __init__(self, path: list[str], segment: Optional[str]):
        self.path = path
        self.segment = segment
        where = f"'{segment}'" if segment else "leaf"
        super().__init__(f"Missing node at {where} while walking {'.'.join(path) or '<leaf>'}")


class DataAccessFailure(RelpathError):
    """Raised when the underlying data-access fetch fails."""

    def __init__(self, entity: str, message: str, status_code: Optional[int] = None):
        self.entity = entity
        self.status_code = status_code
        status = f" ({status_code})" if status_code is not None else ""
        super().__init__(f"Fetching '{entity}' failed{status}: {message}")


class GraphConfigError(RelpathError):
    """Raised when the schema graph configuration is invalid."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Graph compilation failed:\n" + "\n".join(errors))
