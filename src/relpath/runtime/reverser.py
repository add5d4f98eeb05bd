"""
Condition reverser - rewrites a condition on a far entity as a condition on the root.

People belongsTo City belongsTo Country, require {"city.country": {"name": "NZ"}}:

    1. Resolve the path:           [City, Country]
    2. Root relation kind:         Person.city is belongsTo
    3. Walk back from Country:     ["cities"]
    4. Fetch:                      Country where {"name": "NZ"} include cities
    5. Extract:                    City.id from country.cities[*]
    6. Condition on Person:        {"city_id": {"in": [110, 120]}}

Country hasMany City hasMany Person, require {"cities.people": {"name": "Seth"}}:

    Fetch Person where {"name": "Seth"} include city, extract city.country_id
    (the foreign key City carries back to Country) and produce
    {"id": {"in": [200]}} on Country.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..core.defs import RelationKind
from ..core.errors import AmbiguousOrMissingRelation, DataAccessFailure, RelpathError, UnsupportedRelationKind
from ..core.paths import (
    DEFAULT_MAX_DEPTH,
    MissingNodePolicy,
    build_include_scope,
    extract_leaf_ids,
    resolve_models,
    resolve_relation_names,
)
from ..core.registry import SchemaRegistry
from ..core.utils import RelationPath, split_relation_path
from .data_access import DataAccess

logger = logging.getLogger(__name__)


class ConditionReverser:
    """
    Turns one (relation path, condition) pair into one root-local condition.

    Usage:
        reverser = ConditionReverser(registry, data_access)
        condition = await reverser.reverse("Person", "city.country", {"name": "NZ"})
        # {"city_id": {"in": [110, 120]}}
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        data_access: DataAccess,
        *,
        missing: MissingNodePolicy = "skip",
        deduplicate: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.registry = registry
        self.data_access = data_access
        self.missing = missing
        self.deduplicate = deduplicate
        self.max_depth = max_depth

    async def reverse(
        self,
        root: str,
        relation_path: RelationPath,
        condition: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Reverse a condition stated on the far end of relation_path onto root.

        Args:
            root: Root entity name
            relation_path: Dotted relation path from root ("city.country")
            condition: Where condition on the furthest entity

        Returns:
            {"<primary key>": {"in": ids}} for a hasMany root relation, or
            {"<foreign key>": {"in": ids}} for a belongsTo root relation

        Raises:
            UnknownRelation, AmbiguousOrMissingRelation, UnsupportedRelationKind,
            RelationPathTooDeep, MissingRelationNode, DataAccessFailure
        """
        steps = split_relation_path(relation_path)
        logger.debug(f"Reversing condition on [{root}] with path [{'.'.join(steps)}]: {condition}")

        root_def = self.registry.entity(root)
        entities = resolve_models(self.registry, root, steps, max_depth=self.max_depth)
        adjacent, furthest = entities[0], entities[-1]

        root_relation = self.registry.relation(root, steps[0])
        kind = root_relation.kind
        logger.debug(f"Relation kind is [{kind.value}] between [{root}] and [{adjacent.name}]")

        # Id field on the adjacent entity and the root field it is compared with
        if kind is RelationKind.HAS_MANY:
            id_field = self._foreign_key(adjacent.name, root)
            root_field = root_def.primary_key
        elif kind is RelationKind.BELONGS_TO:
            id_field = adjacent.primary_key
            root_field = root_relation.foreign_key
        else:
            raise UnsupportedRelationKind(root, root_relation.name, kind)

        walk_back = list(reversed(entities))
        names = resolve_relation_names(self.registry, furthest.name, walk_back[1:])
        include = build_include_scope(names)
        logger.debug(f"Fetching [{furthest.name}] with include {include}")

        try:
            results = await self.data_access.find(furthest.name, where=condition or {}, include=include)
        except RelpathError:
            raise
        except Exception as e:
            raise DataAccessFailure(furthest.name, str(e)) from e

        ids: list[Any] = []
        for item in results:
            ids.extend(extract_leaf_ids(item, names, id_field, missing=self.missing))

        if self.deduplicate:
            ids = list(dict.fromkeys(ids))

        logger.debug(f"Extracted {len(ids)} [{id_field}] values for [{root}.{root_field}]")
        return {root_field: {"in": ids}}

    def _foreign_key(self, entity: str, target: str) -> str:
        """Foreign key of the first relation on entity pointing at target."""
        relation = self.registry.find_relation_to(entity, target)
        if relation is None:
            raise AmbiguousOrMissingRelation(entity, target)
        return relation.foreign_key

