"""
HTTP data access for entities served by other services.

Makes POST /internal/find calls; the remote service resolves includes itself
(see relpath.service.internal_api).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..core.errors import DataAccessFailure
from ..core.query_types import FindRequest, FindResponse
from .data_access import DataAccess, Include

logger = logging.getLogger(__name__)


class ServiceDataAccess(DataAccess):
    """
    HTTP client for internal find calls.

    Usage:
        data_access = ServiceDataAccess(
            services={"Country": "http://geo:8001", "City": "http://geo:8001"},
        )
        items = await data_access.find("City", where={"name": "Auckland"})
    """

    def __init__(
        self,
        services: dict[str, str],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize service data access.

        Args:
            services: Entity name -> base URL of the service owning it
            timeout: HTTP request timeout in seconds
            transport: Optional httpx transport (e.g. ASGITransport in tests)
        """
        self.services = services
        self.timeout = timeout
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def find(
        self,
        entity: str,
        *,
        where: Optional[dict[str, Any]] = None,
        include: Include = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch records of an entity from its service.

        Raises:
            DataAccessFailure: If the entity has no service, the service returns
                an error or the request fails
        """
        service_url = self.services.get(entity)
        if not service_url:
            raise DataAccessFailure(entity, "No service registered")

        client = await self._get_client()
        url = f"{service_url.rstrip('/')}/internal/find"
        request = FindRequest(entity=entity, where=where, include=include)

        try:
            response = await client.post(url, json=request.model_dump())
        except httpx.RequestError as e:
            raise DataAccessFailure(entity, str(e), status_code=0) from e

        if response.status_code != 200:
            raise DataAccessFailure(entity, response.text, status_code=response.status_code)

        items = FindResponse.model_validate(response.json()).items
        logger.debug(f"Fetched {len(items)} [{entity}] items from {service_url}")
        return items
