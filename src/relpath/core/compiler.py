"""
Graph compiler - validates a JSON schema graph and converts it to definitions.

Usage:
    from relpath.core.compiler import GraphCompiler

    compiler = GraphCompiler()
    result = compiler.compile({
        "version": 1,
        "entities": {
            "Person": {
                "relations": {
                    "city": {"kind": "belongsTo", "target": "City", "foreign_key": "city_id"},
                },
            },
            "City": {"relations": {}},
        },
    })
    graph_def = result.graph  # GraphDef, or None when result.errors is not empty
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .defs import EntityDef, GraphDef, RelationDef, RelationKind
from .errors import GraphConfigError


@dataclass
class CompilationError:
    """Single compilation error."""
    entity: Optional[str]
    relation: Optional[str]
    message: str

    def __str__(self) -> str:
        parts = []
        if self.entity:
            parts.append(self.entity)
        if self.relation:
            parts.append(self.relation)
        location = ".".join(parts) if parts else "global"
        return f"[{location}] {self.message}"


@dataclass
class CompilationResult:
    """Result of compilation."""
    success: bool
    graph: Optional[GraphDef] = None
    errors: list[CompilationError] = field(default_factory=list)

    def error_messages(self) -> list[str]:
        """Get all error messages as strings."""
        return [str(e) for e in self.errors]


class GraphCompiler:
    """
    Compiles the JSON form of a schema graph to a GraphDef.

    Performs validation:
    - Every entity declares a relations mapping
    - Every relation kind is known
    - Every relation target exists
    - Every relation names its foreign key
    """

    GRAPH_VERSION = 1

    def __init__(self):
        self.errors: list[CompilationError] = []

    def compile(self, graph: dict[str, Any]) -> CompilationResult:
        """
        Compile and validate a graph.

        Args:
            graph: JSON graph with an "entities" mapping

        Returns:
            CompilationResult with either the GraphDef or errors
        """
        self.errors = []

        entities = graph.get("entities")
        if not isinstance(entities, dict):
            self._add_error("'entities' must be a mapping")
            return CompilationResult(success=False, errors=self.errors)

        for entity_name, entity in entities.items():
            self._validate_entity(entity_name, entity, entities)

        if self.errors:
            return CompilationResult(success=False, errors=self.errors)

        return CompilationResult(
            success=True,
            graph=self._build_graph_def(graph.get("version", self.GRAPH_VERSION), entities),
        )

    def _add_error(
        self,
        message: str,
        entity: Optional[str] = None,
        relation: Optional[str] = None,
    ):
        self.errors.append(CompilationError(
            entity=entity,
            relation=relation,
            message=message,
        ))

    def _validate_entity(self, entity_name: str, entity: Any, entities: dict):
        if not isinstance(entity, dict):
            self._add_error("Entity definition must be a mapping", entity=entity_name)
            return

        relations = entity.get("relations", {})
        if not isinstance(relations, dict):
            self._add_error("'relations' must be a mapping", entity=entity_name)
            return

        for rel_name, rel in relations.items():
            self._validate_relation(entity_name, rel_name, rel, entities)

    def _validate_relation(self, entity_name: str, rel_name: str, rel: Any, entities: dict):
        if not isinstance(rel, dict):
            self._add_error("Relation definition must be a mapping", entity=entity_name, relation=rel_name)
            return

        kind = rel.get("kind")
        valid_kinds = {k.value for k in RelationKind}
        if kind not in valid_kinds:
            self._add_error(
                f"Invalid kind '{kind}', must be one of {sorted(valid_kinds)}",
                entity=entity_name,
                relation=rel_name,
            )

        target = rel.get("target")
        if not target:
            self._add_error("Missing target", entity=entity_name, relation=rel_name)
        elif target not in entities:
            self._add_error(
                f"Unknown target entity '{target}'",
                entity=entity_name,
                relation=rel_name,
            )

        if not rel.get("foreign_key"):
            self._add_error("Missing foreign_key", entity=entity_name, relation=rel_name)

    def _build_graph_def(self, version: int, entities: dict) -> GraphDef:
        return GraphDef(
            version=version,
            entities={
                name: EntityDef(
                    name=name,
                    primary_key=entity.get("primary_key", "id"),
                    fields=tuple(entity.get("fields", ())),
                    relations={
                        rel_name: RelationDef(
                            name=rel_name,
                            kind=RelationKind(rel["kind"]),
                            target=rel["target"],
                            foreign_key=rel["foreign_key"],
                        )
                        for rel_name, rel in entity.get("relations", {}).items()
                    },
                )
                for name, entity in entities.items()
            },
        )


def compile_graph(graph: dict[str, Any]) -> GraphDef:
    """
    Convenience function to compile a JSON graph.

    Raises:
        GraphConfigError: If compilation fails

    Returns:
        Validated GraphDef
    """
    result = GraphCompiler().compile(graph)

    if not result.success:
        raise GraphConfigError(result.error_messages())

    return result.graph
