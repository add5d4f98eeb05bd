"""
Internal API router for relpath services.

Serves the other side of ServiceDataAccess:
- POST /internal/find - Find records with where + include

Usage:
    from relpath.service import create_internal_router

    app.include_router(create_internal_router(registry, data_access))
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from ..core.errors import DataAccessFailure, RelpathError
from ..core.query_types import FindRequest, FindResponse
from ..core.registry import SchemaRegistry
from ..runtime.data_access import DataAccess

logger = logging.getLogger(__name__)


class InternalRouter:
    """
    Factory for the internal find router over a data-access backend.
    """

    def __init__(self, registry: SchemaRegistry, data_access: DataAccess):
        self.registry = registry
        self.data_access = data_access

    def create_router(self, prefix: str = "") -> APIRouter:
        """Create FastAPI router with the internal endpoints."""
        router = APIRouter(prefix=prefix)

        @router.post("/internal/find")
        async def internal_find(request: FindRequest) -> FindResponse:
            return await self._handle_find(request)

        return router

    async def _handle_find(self, request: FindRequest) -> FindResponse:
        if request.entity not in self.registry:
            raise HTTPException(status_code=404, detail={"error": f"Entity '{request.entity}' not found"})

        try:
            items = await self.data_access.find(
                request.entity,
                where=request.where,
                include=request.include,
            )
        except DataAccessFailure as e:
            logger.error(f"Internal find on [{request.entity}] failed: {e}", exc_info=True)
            raise HTTPException(status_code=502, detail={"error": str(e)})
        except RelpathError as e:
            raise HTTPException(status_code=400, detail={"error": str(e)})

        return FindResponse(items=items)


def create_internal_router(
    registry: SchemaRegistry,
    data_access: DataAccess,
    prefix: str = "",
) -> APIRouter:
    """
    Create an internal API router.

    Args:
        registry: Schema registry of the entities served
        data_access: Backend executing the finds
        prefix: URL prefix for routes

    Returns:
        FastAPI router with POST /internal/find
    """
    return InternalRouter(registry, data_access).create_router(prefix)
