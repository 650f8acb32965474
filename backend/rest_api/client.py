"""
Async HTTP client for the generic resource endpoints.

One ResourceClient talks to one resource route (base URL + route name) and
mirrors the server operations. Items travel as plain dicts.

Usage:
    async with httpx.AsyncClient() as http:
        companies = ResourceClient(http, "http://localhost:8000", "companies")
        grid = await companies.load_page(page=0, page_size=20, sort_by="name")
        taken = await companies.exists("nit", "900123")
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx

from shared.config.constants import QueryParams
from shared.config.logging import get_logger

logger = get_logger(__name__)


@dataclass
class GridData:
    """One page of items for a data grid."""

    items: list[dict[str, Any]] = field(default_factory=list)
    total_items: int = 0


class ResourceClient:
    """
    Client for one resource route.

    Args:
        http: Shared httpx.AsyncClient; its lifecycle belongs to the caller.
        base_url: API root, with or without a trailing slash.
        resource: Route name, e.g. "companies".
        token: Optional bearer token sent as the acting user.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        resource: str,
        *,
        token: str | None = None,
    ):
        if not base_url or not base_url.strip():
            raise ValueError("base_url cannot be empty")
        self._http = http
        self.endpoint = f"{base_url.rstrip('/')}/{resource.strip('/')}"
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._http.get(url, params=params, headers=self._headers)
        response.raise_for_status()
        return response.json()

    async def get_all(self) -> list[dict[str, Any]]:
        data = await self._get_json(self.endpoint)
        return data.get("items", []) if data else []

    async def get_by_id(self, item_id: Any) -> dict[str, Any] | None:
        """The item, or None when the server answers 404."""
        response = await self._http.get(f"{self.endpoint}/{item_id}", headers=self._headers)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        return response.json()

    async def add(self, item: dict[str, Any]) -> dict[str, Any]:
        response = await self._http.post(self.endpoint, json=item, headers=self._headers)
        response.raise_for_status()
        return response.json()

    async def update(self, item_id: Any, item: dict[str, Any]) -> None:
        """Send the item back; it must carry the `version` it was read with."""
        response = await self._http.put(
            f"{self.endpoint}/{item_id}", json=item, headers=self._headers
        )
        response.raise_for_status()

    async def delete(self, item_id: Any, soft_delete: bool = False) -> None:
        response = await self._http.delete(
            f"{self.endpoint}/{item_id}",
            params={QueryParams.SOFT_DELETE: str(soft_delete).lower()},
            headers=self._headers,
        )
        response.raise_for_status()

    async def load_page(
        self,
        *,
        page: int,
        page_size: int,
        sort_by: str | None = None,
        sort_desc: bool = False,
        search: str | None = None,
    ) -> GridData:
        """
        Load one page for a data grid.

        A failed load yields an empty grid so the grid simply renders no rows.
        A CancelledError raised by the transport while the task itself is not
        being cancelled is treated the same way. When the task is being
        cancelled (asyncio.timeout, TaskGroup, task.cancel()) the error
        propagates, so the caller's cancellation semantics hold; the grid then
        gets no result at all.
        """
        params = {
            QueryParams.PAGE: page,
            QueryParams.PAGE_SIZE: page_size,
            QueryParams.SORT_BY: sort_by,
            QueryParams.SORT_DESC: str(sort_desc).lower(),
            QueryParams.SEARCH: search,
        }
        params = {k: v for k, v in params.items() if v is not None and str(v).strip()}

        try:
            data = await self._get_json(self.endpoint, params=params)
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            logger.info("Page load cancelled", endpoint=self.endpoint)
            return GridData()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Page load failed", endpoint=self.endpoint, error=str(e))
            return GridData()

        return GridData(
            items=data.get("items", []),
            total_items=data.get("totalItems", 0),
        )

    async def find(self, predicate: str) -> list[dict[str, Any]]:
        """Items matching a filter expression; errors propagate."""
        data = await self._get_json(
            f"{self.endpoint}/find", params={QueryParams.PREDICATE: predicate}
        )
        return data.get("items", [])

    async def exists(self, property_name: str, value: Any) -> bool:
        data = await self._get_json(
            f"{self.endpoint}/exists",
            params={QueryParams.PROPERTY: property_name, QueryParams.VALUE: str(value)},
        )
        return bool(data)
