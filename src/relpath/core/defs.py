"""
Core dataclass definitions for the relpath schema graph.

These define the entities and the directed relations between them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RelationKind(str, Enum):
    """Kind of a relation, named after the owning entity's point of view."""
    HAS_MANY = "hasMany"
    BELONGS_TO = "belongsTo"
    HAS_ONE = "hasOne"
    HAS_AND_BELONGS_TO_MANY = "hasAndBelongsToMany"


@dataclass(frozen=True)
class RelationDef:
    """
    Directed edge from an owning entity to a target entity.

    For BELONGS_TO the foreign key lives on the owner's records and holds the
    target's identifier. For HAS_MANY (and HAS_ONE) it lives on the target's
    records and holds the owner's identifier.
    """
    name: str
    kind: RelationKind
    target: str  # target entity name
    foreign_key: str


@dataclass(frozen=True)
class EntityDef:
    """A named schema node with its relations."""
    name: str
    relations: dict[str, RelationDef] = field(default_factory=dict)
    primary_key: str = "id"
    fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class GraphDef:
    """Complete schema graph definition."""
    version: int
    entities: dict[str, EntityDef]
