"""
Schema registry - read-only view over entity and relation definitions.

The registry is an explicit value passed to every call; nothing is looked up
from global state. It can be built from a GraphDef, from the JSON graph form,
or by introspecting SQLAlchemy declarative models.

Usage:
    from relpath.core.registry import SchemaRegistry

    registry = SchemaRegistry.from_models([Country, City, Person, Product])
    registry.relation("Person", "city")
    # RelationDef(name="city", kind=RelationKind.BELONGS_TO, target="City", foreign_key="city_id")
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.orm.interfaces import MANYTOMANY, MANYTOONE, ONETOMANY

from .compiler import compile_graph
from .defs import EntityDef, GraphDef, RelationDef, RelationKind
from .errors import GraphConfigError, UnknownRelation

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """
    Immutable lookup of entities and their relations by name.

    Example:
        registry = SchemaRegistry.from_dict(graph_json)
        person = registry.entity("Person")
        registry.find_relation_to("City", "Person")  # first City relation targeting Person
    """

    GRAPH_VERSION = 1

    def __init__(self, graph: GraphDef):
        self._version = graph.version
        self._entities: Mapping[str, EntityDef] = MappingProxyType(dict(graph.entities))

    @classmethod
    def from_dict(cls, graph: dict[str, Any]) -> "SchemaRegistry":
        """Build a registry from the JSON graph form (validated)."""
        return cls(compile_graph(graph))

    @classmethod
    def from_models(cls, models: Iterable[type[DeclarativeBase]]) -> "SchemaRegistry":
        """
        Build a registry by introspecting SQLAlchemy declarative models.

        Entity names are the model class names. Relationship direction maps to
        relation kind:
        - MANYTOONE -> belongsTo (foreign key on the owning model)
        - ONETOMANY -> hasMany, or hasOne when uselist=False (foreign key on the target)
        - MANYTOMANY -> hasAndBelongsToMany
        """
        models = list(models)
        known = {model.__name__ for model in models}
        entities: dict[str, EntityDef] = {}

        for model in models:
            mapper = inspect(model)
            relations: dict[str, RelationDef] = {}

            for rel in mapper.relationships:
                target = rel.mapper.class_.__name__
                if target not in known:
                    logger.debug(f"Skipping relation {model.__name__}.{rel.key}: '{target}' not registered")
                    continue
                relations[rel.key] = RelationDef(
                    name=rel.key,
                    kind=_relation_kind(rel),
                    target=target,
                    foreign_key=_foreign_key(rel),
                )

            primary_key = [column.key for column in mapper.primary_key]
            entities[model.__name__] = EntityDef(
                name=model.__name__,
                relations=relations,
                primary_key=primary_key[0] if primary_key else "id",
                fields=tuple(column.key for column in mapper.columns),
            )

        return cls(GraphDef(version=cls.GRAPH_VERSION, entities=entities))

    def __contains__(self, name: object) -> bool:
        return name in self._entities

    def entity_names(self) -> list[str]:
        return list(self._entities)

    def entity(self, name: str) -> EntityDef:
        """Get entity definition by name."""
        try:
            return self._entities[name]
        except KeyError:
            raise GraphConfigError([f"[{name}] Unknown entity"]) from None

    def relations(self, entity: str) -> Mapping[str, RelationDef]:
        return MappingProxyType(self.entity(entity).relations)

    def relation(self, entity: str, name: str) -> RelationDef:
        """Get a relation by name, raising UnknownRelation if absent."""
        relation = self.entity(entity).relations.get(name)
        if relation is None:
            raise UnknownRelation(entity, name)
        return relation

    def relations_to(self, entity: str, target: str) -> list[RelationDef]:
        """All relations of an entity pointing at target, in declaration order."""
        return [rel for rel in self.entity(entity).relations.values() if rel.target == target]

    def find_relation_to(self, entity: str, target: str) -> Optional[RelationDef]:
        """First relation of an entity pointing at target, or None."""
        matches = self.relations_to(entity, target)
        return matches[0] if matches else None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON graph form."""
        return {
            "version": self._version,
            "entities": {
                name: {
                    "primary_key": entity.primary_key,
                    "fields": list(entity.fields),
                    "relations": {
                        rel_name: {
                            "kind": rel.kind.value,
                            "target": rel.target,
                            "foreign_key": rel.foreign_key,
                        }
                        for rel_name, rel in entity.relations.items()
                    },
                }
                for name, entity in self._entities.items()
            },
        }


def _relation_kind(rel) -> RelationKind:
    if rel.direction is MANYTOONE:
        return RelationKind.BELONGS_TO
    if rel.direction is ONETOMANY:
        return RelationKind.HAS_MANY if rel.uselist else RelationKind.HAS_ONE
    if rel.direction is MANYTOMANY:
        return RelationKind.HAS_AND_BELONGS_TO_MANY
    raise GraphConfigError([f"[{rel.parent.class_.__name__}.{rel.key}] Unknown direction {rel.direction}"])


def _foreign_key(rel) -> str:
    """Name of the column holding the foreign key for a relationship."""
    if rel.direction is MANYTOONE:
        columns = list(rel.local_columns)
    elif rel.direction is ONETOMANY:
        columns = list(rel.remote_side)
    else:
        # Association table column pointing back at the owner
        columns = [secondary for _, secondary in rel.synchronize_pairs]
    if not columns:
        raise GraphConfigError([f"[{rel.parent.class_.__name__}.{rel.key}] No foreign key column"])
    return columns[0].key
