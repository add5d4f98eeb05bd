"""
Request interceptor - compiles the require filter of an incoming request.

Reads the serialized filter from the query string (?filter={...}), compiles
it for the root entity and hands the result to the real query, the same way a
before-operation hook would substitute it.

Usage:
    interceptor = RequireFilterInterceptor(registry, data_access)

    @app.get("/people")
    async def people(filter_: dict | None = Depends(interceptor.dependency("Person"))):
        ...
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi import Request

from ..config import RelpathSettings, get_settings
from ..core.registry import SchemaRegistry
from ..runtime.data_access import DataAccess
from ..runtime.filter_compiler import FilterCompiler
from ..runtime.reverser import ConditionReverser

logger = logging.getLogger(__name__)


class RequireFilterInterceptor:
    """Extracts, compiles and re-serializes request filters."""

    def __init__(
        self,
        registry: SchemaRegistry,
        data_access: DataAccess,
        settings: Optional[RelpathSettings] = None,
    ):
        self.registry = registry
        self.settings = settings or get_settings()
        self.compiler = FilterCompiler(
            ConditionReverser(
                registry,
                data_access,
                missing=self.settings.MISSING_NODE_POLICY,
                deduplicate=self.settings.DEDUPLICATE_IDS,
                max_depth=self.settings.MAX_PATH_DEPTH,
            ),
            normalize_case=self.settings.NORMALIZE_CASE,
        )

    async def intercept(self, root: str, request: Request) -> Optional[dict[str, Any]]:
        """
        Compile the filter carried by request for root.

        Returns:
            The compiled filter, or None when the request has no filter

        Raises:
            MalformedFilter: If the filter is not valid JSON
            RelpathError: If compilation fails
        """
        raw = request.query_params.get(self.settings.FILTER_PARAM)
        if not raw:
            return None
        compiled = await self.compiler.compile(root, raw)
        logger.debug(f"Compiled filter on [{root}]: {compiled}")
        return compiled

    def serialize(self, compiled: dict[str, Any]) -> str:
        """Re-serialize a compiled filter for substitution into the request."""
        return json.dumps(compiled, default=str)

    def dependency(self, root: str) -> Callable[[Request], Awaitable[Optional[dict[str, Any]]]]:
        """FastAPI dependency yielding the compiled filter for root."""

        async def compiled_filter(request: Request) -> Optional[dict[str, Any]]:
            return await self.intercept(root, request)

        return compiled_filter
