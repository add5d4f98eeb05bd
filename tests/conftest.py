"""Shared fixtures: Country hasMany City hasMany Person hasMany Product."""

from __future__ import annotations

import copy
from typing import Any, Optional

import pytest

from relpath.core.defs import EntityDef
from relpath.core.registry import SchemaRegistry
from relpath.runtime.data_access import InMemoryDataAccess


GRAPH = {
    "version": 1,
    "entities": {
        "Country": {
            "fields": ["id", "name"],
            "relations": {
                "cities": {"kind": "hasMany", "target": "City", "foreign_key": "country_id"},
            },
        },
        "City": {
            "fields": ["id", "name", "country_id"],
            "relations": {
                "country": {"kind": "belongsTo", "target": "Country", "foreign_key": "country_id"},
                "people": {"kind": "hasMany", "target": "Person", "foreign_key": "city_id"},
            },
        },
        "Person": {
            "fields": ["id", "name", "city_id"],
            "relations": {
                "city": {"kind": "belongsTo", "target": "City", "foreign_key": "city_id"},
                "products": {"kind": "hasMany", "target": "Product", "foreign_key": "person_id"},
            },
        },
        "Product": {
            "fields": ["id", "name", "person_id"],
            "relations": {
                "person": {"kind": "belongsTo", "target": "Person", "foreign_key": "person_id"},
            },
        },
    },
}

TABLES = {
    "Country": [
        {"id": 100, "name": "NZ"},
        {"id": 200, "name": "AUS"},
    ],
    "City": [
        {"id": 110, "name": "Auckland", "country_id": 100},
        {"id": 120, "name": "Wellington", "country_id": 100},
        {"id": 210, "name": "Melbourne", "country_id": 200},
        {"id": 220, "name": "Sydney", "country_id": 200},
    ],
    "Person": [
        {"id": 111, "name": "John", "city_id": 110},
        {"id": 112, "name": "Joe", "city_id": 110},
        {"id": 121, "name": "Jeff", "city_id": 120},
        {"id": 122, "name": "Jane", "city_id": 120},
        {"id": 211, "name": "Sam", "city_id": 210},
        {"id": 212, "name": "Sandy", "city_id": 210},
        {"id": 221, "name": "Steve", "city_id": 220},
        {"id": 222, "name": "Seth", "city_id": 220},
    ],
    "Product": [
        {"id": 1110, "name": "A1", "person_id": 111},
        {"id": 1120, "name": "A2", "person_id": 112},
        {"id": 1210, "name": "B1", "person_id": 121},
        {"id": 1220, "name": "B2", "person_id": 122},
        {"id": 2110, "name": "C1", "person_id": 211},
        {"id": 2120, "name": "C2", "person_id": 212},
        {"id": 2210, "name": "D1", "person_id": 221},
        {"id": 2220, "name": "D2", "person_id": 222},
    ],
}


@pytest.fixture
def graph() -> dict:
    return copy.deepcopy(GRAPH)


@pytest.fixture
def registry(graph: dict) -> SchemaRegistry:
    return SchemaRegistry.from_dict(graph)


@pytest.fixture
def tables() -> dict:
    return copy.deepcopy(TABLES)


class RecordingInMemoryDataAccess(InMemoryDataAccess):
    """In-memory data access that remembers every (entity, where) select."""

    def __init__(self, registry: SchemaRegistry, tables: dict):
        super().__init__(registry, tables)
        self.calls: list[tuple[str, Optional[dict[str, Any]]]] = []

    async def _select(self, entity: EntityDef, where: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
        self.calls.append((entity.name, where))
        return await super()._select(entity, where)


@pytest.fixture
def data_access(registry: SchemaRegistry, tables: dict) -> RecordingInMemoryDataAccess:
    return RecordingInMemoryDataAccess(registry, tables)
