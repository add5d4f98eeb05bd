"""
Filter compiler - replaces a filter's "require" section with root-local conditions.

Input:
    {"order": "id", "where": {"name": "John"}, "require": {"city.country": {"name": "NZ"}}}

Output:
    {"order": "id", "where": {"and": [{"name": "John"}, {"city_id": {"in": [110, 120]}}]}}
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Union

from ..core.query_types import RequireFilter, parse_filter
from ..core.registry import SchemaRegistry
from ..core.utils import normalize_relation_path
from .data_access import DataAccess
from .reverser import ConditionReverser

logger = logging.getLogger(__name__)

RawFilter = Union[str, bytes, Mapping[str, Any], RequireFilter]


class FilterCompiler:
    """
    Compiles require filters for a root entity.

    All require entries are reversed concurrently. If any reversal fails the
    whole compilation fails with that error and nothing is merged.

    Usage:
        compiler = FilterCompiler(ConditionReverser(registry, data_access))
        compiled = await compiler.compile("Person", {"require": {"city": {"name": "Auckland"}}})
    """

    def __init__(self, reverser: ConditionReverser, *, normalize_case: bool = False):
        self.reverser = reverser
        self.normalize_case = normalize_case

    async def compile(self, root: str, raw_filter: RawFilter) -> dict[str, Any]:
        """
        Compile a filter for root.

        Args:
            root: Root entity name
            raw_filter: Filter mapping, RequireFilter or its JSON serialization

        Returns:
            The filter with "require" removed and "where" extended. A filter
            without require entries is returned as given (parsed if serialized).

        Raises:
            MalformedFilter: If a serialized filter can not be parsed
            RelpathError: If any reversal fails
        """
        if isinstance(raw_filter, Mapping) and not raw_filter.get("require"):
            return raw_filter

        filter_ = parse_filter(raw_filter)
        require = filter_.get("require")
        if not require:
            return filter_

        conditions = await self._reverse_all(root, require)
        logger.debug(f"Resultant conditions on [{root}]: {conditions}")

        compiled = {key: value for key, value in filter_.items() if key != "require"}
        where = filter_.get("where")
        compiled["where"] = {"and": [where, *conditions]} if where is not None else {"and": conditions}
        return compiled

    async def _reverse_all(self, root: str, require: Mapping[str, Any]) -> list[dict[str, Any]]:
        tasks = [
            asyncio.ensure_future(
                self.reverser.reverse(
                    root,
                    normalize_relation_path(path, self.normalize_case),
                    condition,
                )
            )
            for path, condition in require.items()
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise


async def compile_filter(
    registry: SchemaRegistry,
    data_access: DataAccess,
    root: str,
    raw_filter: RawFilter,
    *,
    normalize_case: bool = False,
    **options: Any,
) -> dict[str, Any]:
    """
    Convenience function to compile a single filter.

    Args:
        registry: Schema registry
        data_access: Data-access layer used for the reversal fetches
        root: Root entity name
        raw_filter: Filter to compile
        normalize_case: Convert camelCase relation paths to snake_case
        **options: Passed to ConditionReverser (missing, deduplicate, max_depth)

    Returns:
        Compiled filter
    """
    reverser = ConditionReverser(registry, data_access, **options)
    return await FilterCompiler(reverser, normalize_case=normalize_case).compile(root, raw_filter)
