"""
Relation path helpers.

Walks a relation path over the schema graph, builds the nested include scope
for the data-access layer, and collects identifiers from the nested result tree.

Example:
    Person belongsTo City belongsTo Country, path "city.country":

    resolve_models(registry, "Person", "city.country")
    # [City, Country]
    resolve_relation_names(registry, "Country", [City])
    # ["cities"]
    build_include_scope(["cities"])
    # {"relation": "cities"}
    extract_leaf_ids({"id": 100, "cities": [{"id": 110}, {"id": 120}]}, ["cities"])
    # [110, 120]
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Literal, Optional, Sequence

from .defs import EntityDef
from .errors import AmbiguousOrMissingRelation, MissingRelationNode, RelationPathTooDeep, UnknownRelation
from .registry import SchemaRegistry
from .utils import RelationPath, split_relation_path

logger = logging.getLogger(__name__)

MissingNodePolicy = Literal["skip", "fail"]

DEFAULT_MAX_DEPTH = 16


def resolve_models(
    registry: SchemaRegistry,
    root: str,
    path: RelationPath,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[EntityDef]:
    """
    Resolve the entities visited by a relation path.

    Args:
        registry: Schema registry
        root: Name of the entity the path starts from
        path: Dotted relation path ("city.country") or list of relation names
        max_depth: Maximum number of steps allowed

    Returns:
        One entity per path step, ending at the furthest entity

    Raises:
        UnknownRelation: If a step is not a relation of the current entity
        RelationPathTooDeep: If the path has more than max_depth steps
    """
    steps = split_relation_path(path)
    if not steps:
        raise UnknownRelation(root, "")
    if len(steps) > max_depth:
        raise RelationPathTooDeep(".".join(steps), max_depth)

    entities: list[EntityDef] = []
    current = root
    for step in steps:
        logger.debug(f"Resolving relation [{step}] on [{current}]")
        relation = registry.relation(current, step)
        current = relation.target
        entities.append(registry.entity(current))

    return entities


def resolve_relation_names(
    registry: SchemaRegistry,
    start: str,
    entities: Sequence[EntityDef],
) -> list[str]:
    """
    Find the relation names connecting start to each entity in turn.

    For start "Country" and entities [City, Person] the result is
    ["cities", "people"]. The first relation (in declaration order) whose target
    matches is used for each pair.

    Raises:
        AmbiguousOrMissingRelation: If no relation connects a consecutive pair
    """
    names: list[str] = []
    current = start
    for entity in entities:
        relation = registry.find_relation_to(current, entity.name)
        if relation is None:
            raise AmbiguousOrMissingRelation(current, entity.name)
        names.append(relation.name)
        current = entity.name
    return names


def build_include_scope(names: Sequence[str]) -> Optional[dict[str, Any]]:
    """
    Build a nested include scope from a list of relation names.

    The first name is outermost:
        []          -> None
        ["a"]       -> {"relation": "a"}
        ["a", "b"]  -> {"relation": "a", "scope": {"include": {"relation": "b"}}}
    """
    include: Optional[dict[str, Any]] = None
    for name in reversed(names):
        scope = {"relation": name}
        if include is not None:
            scope["scope"] = {"include": include}
        include = scope
    return include


def read_node(node: Any, key: str) -> Any:
    """Read a field or included relation from a mapping or an object."""
    if isinstance(node, Mapping):
        return node.get(key)
    return getattr(node, key, None)


def extract_leaf_ids(
    node: Any,
    path: Sequence[str] = (),
    id_field: str = "id",
    missing: MissingNodePolicy = "skip",
) -> list[Any]:
    """
    Collect id_field from every leaf reachable from node along path.

    Intermediate values may be single nodes or lists of nodes; lists are
    flattened in depth-first encounter order. A null relation node is skipped
    with missing="skip" and raises MissingRelationNode with missing="fail".
    Null id values are skipped under both policies.
    """
    return _extract(node, list(path), id_field, missing, list(path))


def _extract(
    node: Any,
    remaining: list[str],
    id_field: str,
    missing: MissingNodePolicy,
    full_path: list[str],
) -> list[Any]:
    if not remaining:
        # A null id is an unset (nullable) key, not a missing node
        value = read_node(node, id_field)
        return [] if value is None else [value]

    segment, rest = remaining[0], remaining[1:]
    child = read_node(node, segment)

    if child is None:
        return _missing(full_path, segment, missing)

    if isinstance(child, (list, tuple)):
        ids: list[Any] = []
        for item in child:
            if item is None:
                ids.extend(_missing(full_path, segment, missing))
                continue
            ids.extend(_extract(item, rest, id_field, missing, full_path))
        return ids

    return _extract(child, rest, id_field, missing, full_path)


def _missing(full_path: list[str], segment: Optional[str], missing: MissingNodePolicy) -> list[Any]:
    if missing == "fail":
        raise MissingRelationNode(full_path, segment)
    logger.debug(f"Skipping null node at [{segment or 'leaf'}] of [{'.'.join(full_path)}]")
    return []
