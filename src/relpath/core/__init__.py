"""
Core module - schema definitions, registry, and relation path helpers.
"""

from __future__ import annotations

from .compiler import CompilationError, CompilationResult, GraphCompiler, compile_graph
from .defs import EntityDef, GraphDef, RelationDef, RelationKind
from .errors import (
    AmbiguousOrMissingRelation,
    DataAccessFailure,
    GraphConfigError,
    MalformedFilter,
    MissingRelationNode,
    RelationPathTooDeep,
    RelpathError,
    UnknownRelation,
    UnsupportedRelationKind,
)
from .paths import (
    build_include_scope,
    extract_leaf_ids,
    resolve_models,
    resolve_relation_names,
)
from .query_types import FindRequest, FindResponse, RequireFilter, parse_filter
from .registry import SchemaRegistry
from .utils import normalize_relation_path, split_relation_path, to_snake_case

__all__ = [
    # Definitions
    "RelationKind",
    "RelationDef",
    "EntityDef",
    "GraphDef",
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
    # Compiler
    "GraphCompiler",
    "CompilationResult",
    "CompilationError",
    "compile_graph",
    # Registry
    "SchemaRegistry",
    # Paths
    "resolve_models",
    "resolve_relation_names",
    "build_include_scope",
    "extract_leaf_ids",
    # Query types
    "RequireFilter",
    "FindRequest",
    "FindResponse",
    "parse_filter",
    # Utils
    "to_snake_case",
    "split_relation_path",
    "normalize_relation_path",
]
