"""
relpath - relation-path require filters for single-entity data layers.

Rewrites a constraint on related entities into a constraint on the root
entity's own fields:

    {"require": {"city.country": {"name": "NZ"}}}
    ->
    {"where": {"and": [{"city_id": {"in": [110, 120]}}]}}

Usage:
    from relpath import SchemaRegistry, InMemoryDataAccess, compile_filter

    registry = SchemaRegistry.from_dict(graph)
    data_access = InMemoryDataAccess(registry, tables)
    compiled = await compile_filter(registry, data_access, "Person", raw_filter)
"""

from __future__ import annotations

from .api import RequireFilterInterceptor, create_app, create_find_router, register_exception_handlers
from .config import RelpathSettings, get_settings
from .core import (
    AmbiguousOrMissingRelation,
    DataAccessFailure,
    EntityDef,
    GraphConfigError,
    GraphDef,
    MalformedFilter,
    MissingRelationNode,
    RelationDef,
    RelationKind,
    RelationPathTooDeep,
    RelpathError,
    RequireFilter,
    SchemaRegistry,
    UnknownRelation,
    UnsupportedRelationKind,
    build_include_scope,
    compile_graph,
    extract_leaf_ids,
    parse_filter,
    resolve_models,
    resolve_relation_names,
)
from .runtime import (
    ConditionReverser,
    DataAccess,
    FilterCompiler,
    InMemoryDataAccess,
    IncludingDataAccess,
    SQLAlchemyDataAccess,
    ServiceDataAccess,
    compile_filter,
)

__version__ = "0.1.0"

__all__ = [
    # Definitions
    "RelationKind",
    "RelationDef",
    "EntityDef",
    "GraphDef",
    "SchemaRegistry",
    "compile_graph",
    # Errors
    "RelpathError",
    "MalformedFilter",
    "UnknownRelation",
    "AmbiguousOrMissingRelation",
    "UnsupportedRelationKind",
    "RelationPathTooDeep",
    "MissingRelationNode",
    "DataAccessFailure",
    "GraphConfigError",
    # Paths
    "resolve_models",
    "resolve_relation_names",
    "build_include_scope",
    "extract_leaf_ids",
    # Filters
    "RequireFilter",
    "parse_filter",
    "ConditionReverser",
    "FilterCompiler",
    "compile_filter",
    # Data access
    "DataAccess",
    "IncludingDataAccess",
    "InMemoryDataAccess",
    "SQLAlchemyDataAccess",
    "ServiceDataAccess",
    # API
    "RequireFilterInterceptor",
    "create_find_router",
    "register_exception_handlers",
    "create_app",
    # Config
    "RelpathSettings",
    "get_settings",
]
