"""
FastAPI router and app factory for relpath.

Endpoints:
- GET /__graph - Returns the schema graph
- GET /{resource} - Find records of an entity, honouring ?filter={...}

Supported filter keys on the find endpoints:
    where     condition on the entity itself
    require   {"<relation path>": <condition on the far entity>}
    include   relations to attach to the results
    order     "name", "name DESC" or a list of those
    limit, skip (or offset)

Example:
    GET /people?filter={"order": "id", "require": {"city.country": {"name": "NZ"}}}
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from ..config import RelpathSettings
from ..core.errors import DataAccessFailure, MalformedFilter, RelpathError
from ..core.paths import read_node
from ..core.registry import SchemaRegistry
from ..runtime.data_access import DataAccess
from .interceptor import RequireFilterInterceptor

logger = logging.getLogger(__name__)


def create_find_router(
    registry: SchemaRegistry,
    data_access: DataAccess,
    resources: dict[str, str],
    settings: Optional[RelpathSettings] = None,
) -> APIRouter:
    """
    Create a router with one find endpoint per enabled entity.

    Args:
        registry: Schema registry
        data_access: Backend for the compiled finds and the reversal fetches
        resources: URL path -> entity name, e.g. {"/people": "Person"}
        settings: Optional settings (defaults to environment settings)

    Returns:
        Configured FastAPI router
    """
    router = APIRouter()
    interceptor = RequireFilterInterceptor(registry, data_access, settings)

    @router.get("/__graph")
    async def get_graph_endpoint() -> dict[str, Any]:
        """Return the schema graph (JSON)."""
        return registry.to_dict()

    for path, entity in resources.items():
        if entity not in registry:
            raise ValueError(f"Entity '{entity}' for resource '{path}' is not registered")
        router.add_api_route(
            path,
            _find_endpoint(entity, data_access, interceptor),
            methods=["GET"],
            name=f"find_{entity}",
        )

    return router


def _find_endpoint(entity: str, data_access: DataAccess, interceptor: RequireFilterInterceptor):
    async def find(
        compiled: Optional[dict[str, Any]] = Depends(interceptor.dependency(entity)),
    ) -> list[dict[str, Any]]:
        filter_ = compiled or {}
        items = await data_access.find(
            entity,
            where=filter_.get("where"),
            include=filter_.get("include"),
        )
        return _apply_window(items, filter_)

    return find


def _apply_window(items: list[dict[str, Any]], filter_: dict[str, Any]) -> list[dict[str, Any]]:
    """Apply order, skip/offset and limit from the filter."""
    order = filter_.get("order")
    if order:
        for clause in reversed([order] if isinstance(order, str) else list(order)):
            parts = str(clause).split()
            if not parts:
                raise MalformedFilter(f"Empty order clause in {order!r}")
            field = parts[0]
            descending = len(parts) > 1 and parts[1].upper() == "DESC"
            items = sorted(
                items,
                key=lambda item: (read_node(item, field) is None, read_node(item, field)),
                reverse=descending,
            )

    skip = _window_value("skip", filter_.get("skip", filter_.get("offset"))) or 0
    limit = _window_value("limit", filter_.get("limit"))
    items = items[skip:]
    if limit is not None:
        items = items[:limit]
    return items


def _window_value(key: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise MalformedFilter(f"'{key}' must be a non-negative integer, got {value!r}") from None
    if number < 0:
        raise MalformedFilter(f"'{key}' must be a non-negative integer, got {value!r}")
    return number


def register_exception_handlers(app: FastAPI):
    """Turn relpath errors into JSON error responses."""

    @app.exception_handler(DataAccessFailure)
    async def data_access_failure_handler(request: Request, exc: DataAccessFailure) -> JSONResponse:
        logger.error(f"Data access failed for {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=502,
            content={"error": str(exc), "type": type(exc).__name__},
        )

    @app.exception_handler(RelpathError)
    async def relpath_error_handler(request: Request, exc: RelpathError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": str(exc), "type": type(exc).__name__},
        )


def create_app(
    registry: SchemaRegistry,
    data_access: DataAccess,
    resources: dict[str, str],
    *,
    settings: Optional[RelpathSettings] = None,
    title: str = "relpath",
) -> FastAPI:
    """
    Create a FastAPI app serving find endpoints with require filters.

    Usage:
        models = [Country, City, Person, Product]
        registry = SchemaRegistry.from_models(models)
        app = create_app(
            registry,
            SQLAlchemyDataAccess(registry, models),
            resources={"/people": "Person", "/countries": "Country"},
        )
    """
    app = FastAPI(title=title, version="1.0.0")
    register_exception_handlers(app)
    app.include_router(create_find_router(registry, data_access, resources, settings))
    logger.info(f"Find endpoints registered: {', '.join(resources)}")
    return app
