"""
Data-access layer consumed by the condition reverser.

The reverser only needs `find(entity, where=..., include=...)` returning
record-like nodes where every included relation is readable under its name,
either as a nested node or as a list of nodes.

IncludingDataAccess implements includes on top of a plain `_select`, one
batched "in" query per relation level:

    find("Country", where={"name": "NZ"}, include={"relation": "cities"})
    -> _select("Country", {"name": "NZ"})
    -> _select("City", {"country_id": {"in": [100]}})
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from ..core.defs import EntityDef, RelationDef, RelationKind
from ..core.errors import UnsupportedRelationKind
from ..core.registry import SchemaRegistry
from .where import matches

logger = logging.getLogger(__name__)

Include = Any  # None | str | list | {"relation": ..., "scope": {...}} | {name: nested}


class DataAccess(ABC):
    """Interface of the host data-access layer."""

    @abstractmethod
    async def find(
        self,
        entity: str,
        *,
        where: Optional[dict[str, Any]] = None,
        include: Include = None,
    ) -> list[dict[str, Any]]:
        """Fetch records of entity matching where, with include relations attached."""


def iter_includes(include: Include) -> Iterable[tuple[str, Include]]:
    """
    Normalize an include specification to (relation name, nested include) pairs.

    Accepted forms:
        "city"
        ["city", "products"]
        {"relation": "city", "scope": {"include": "country"}}
        {"city": "country"}
    """
    if include is None:
        return
    if isinstance(include, str):
        yield include, None
    elif isinstance(include, (list, tuple)):
        for item in include:
            yield from iter_includes(item)
    elif isinstance(include, Mapping):
        if "relation" in include:
            scope = include.get("scope") or {}
            yield include["relation"], scope.get("include")
        else:
            for name, nested in include.items():
                yield name, nested
    else:
        raise TypeError(f"Unsupported include specification: {include!r}")


def _unique(values: Iterable[Any]) -> list[Any]:
    seen = set()
    result = []
    for value in values:
        if value is not None and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class IncludingDataAccess(DataAccess):
    """
    Base class resolving include trees with batched follow-up selects.

    Subclasses implement `_select(entity, where)`.
    """

    def __init__(self, registry: SchemaRegistry):
        self.registry = registry

    @abstractmethod
    async def _select(self, entity: EntityDef, where: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
        """Fetch plain records of an entity."""

    async def find(
        self,
        entity: str,
        *,
        where: Optional[dict[str, Any]] = None,
        include: Include = None,
    ) -> list[dict[str, Any]]:
        entity_def = self.registry.entity(entity)
        rows = await self._select(entity_def, where)
        await self._attach(entity_def, rows, include)
        return rows

    async def _attach(self, entity: EntityDef, rows: list[dict[str, Any]], include: Include):
        for name, nested in iter_includes(include):
            relation = self.registry.relation(entity.name, name)
            target = self.registry.entity(relation.target)

            if relation.kind is RelationKind.BELONGS_TO:
                await self._attach_belongs_to(relation, target, rows, nested)
            elif relation.kind in (RelationKind.HAS_MANY, RelationKind.HAS_ONE):
                await self._attach_has_many(entity, relation, target, rows, nested)
            else:
                raise UnsupportedRelationKind(entity.name, name, relation.kind)

    async def _attach_belongs_to(
        self,
        relation: RelationDef,
        target: EntityDef,
        rows: list[dict[str, Any]],
        nested: Include,
    ):
        keys = _unique(row.get(relation.foreign_key) for row in rows)
        children = await self._select(target, {target.primary_key: {"in": keys}}) if keys else []
        await self._attach(target, children, nested)

        by_key = {child.get(target.primary_key): child for child in children}
        for row in rows:
            row[relation.name] = by_key.get(row.get(relation.foreign_key))

    async def _attach_has_many(
        self,
        owner: EntityDef,
        relation: RelationDef,
        target: EntityDef,
        rows: list[dict[str, Any]],
        nested: Include,
    ):
        keys = _unique(row.get(owner.primary_key) for row in rows)
        children = await self._select(target, {relation.foreign_key: {"in": keys}}) if keys else []
        await self._attach(target, children, nested)

        grouped: dict[Any, list[dict[str, Any]]] = {}
        for child in children:
            grouped.setdefault(child.get(relation.foreign_key), []).append(child)

        for row in rows:
            related = grouped.get(row.get(owner.primary_key), [])
            if relation.kind is RelationKind.HAS_ONE:
                row[relation.name] = related[0] if related else None
            else:
                row[relation.name] = related


class InMemoryDataAccess(IncludingDataAccess):
    """
    Dict-backed data access.

    Usage:
        data_access = InMemoryDataAccess(registry, {
            "Country": [{"id": 100, "name": "NZ"}],
            "City": [{"id": 110, "name": "Auckland", "country_id": 100}],
        })
        await data_access.find("City", where={"name": "Auckland"}, include="country")
    """

    def __init__(self, registry: SchemaRegistry, tables: Optional[dict[str, list[dict[str, Any]]]] = None):
        super().__init__(registry)
        self.tables: dict[str, list[dict[str, Any]]] = {
            name: list(rows) for name, rows in (tables or {}).items()
        }

    def insert(self, entity: str, *rows: dict[str, Any]):
        self.tables.setdefault(entity, []).extend(rows)

    async def _select(self, entity: EntityDef, where: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
        rows = [
            copy.copy(row)
            for row in self.tables.get(entity.name, [])
            if matches(row, where)
        ]
        logger.debug(f"Selected {len(rows)} [{entity.name}] rows")
        return rows
