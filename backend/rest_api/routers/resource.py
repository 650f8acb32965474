"""
Generic resource endpoints.

build_resource_router() mounts the same seven operations for any mapped
model; the handlers stay thin and delegate to ResourceService.

    GET    /{name}                  list (page, pageSize, search, sortBy, sortDesc)
    GET    /{name}/find?predicate=  filter expression
    GET    /{name}/exists?property=&value=
    GET    /{name}/{id}
    POST   /{name}                  201 + Location
    PUT    /{name}/{id}             204, body must carry "version"
    DELETE /{name}/{id}?softDelete= 204
"""

import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from rest_api.services.resource_service import ResourceService
from shared.config.constants import QueryParams
from shared.infrastructure.db import get_db
from shared.security.auth import current_actor_id
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import ErrorResponse, FindResult, ListResult
from shared.utils.validators import parse_bool


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Invalid id, field, value or expression"},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "No live entity with that id"},
    status.HTTP_409_CONFLICT: {"model": ErrorResponse, "description": "Stale concurrency token"},
    status.HTTP_428_PRECONDITION_REQUIRED: {"model": ErrorResponse, "description": "Update without a version"},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse, "description": "Store failure"},
}


def _optional_bool(raw: str | None, name: str) -> bool | None:
    if raw is None or raw == "":
        return None
    try:
        return parse_bool(raw)
    except ValueError:
        raise ValidationError(f"Query parameter '{name}' must be a boolean, got '{raw}'")


def build_resource_router(model: type, name: str) -> APIRouter:
    """
    Create the router exposing one entity type.

    Args:
        model: Mapped SQLAlchemy model.
        name: Route segment, e.g. "companies".
    """
    router = APIRouter(prefix=f"/{name}", tags=[name], responses=ERROR_RESPONSES)

    def get_service(
        db: AsyncSession = Depends(get_db),
        actor_id: uuid.UUID | None = Depends(current_actor_id),
    ) -> ResourceService:
        return ResourceService(db, model, actor_id=actor_id)

    @router.get("", response_model=ListResult, response_model_by_alias=True)
    async def list_items(
        page: int | None = Query(default=None, alias=QueryParams.PAGE),
        page_size: int | None = Query(default=None, alias=QueryParams.PAGE_SIZE),
        search: str | None = Query(default=None, alias=QueryParams.SEARCH),
        sort_by: str | None = Query(default=None, alias=QueryParams.SORT_BY),
        sort_desc: str | None = Query(default=None, alias=QueryParams.SORT_DESC),
        service: ResourceService = Depends(get_service),
    ) -> ListResult:
        """List items with optional search, sort and pagination."""
        return await service.list(
            page=page,
            page_size=page_size,
            search=search,
            sort_by=sort_by,
            sort_desc=bool(_optional_bool(sort_desc, QueryParams.SORT_DESC)),
        )

    @router.get("/find", response_model=FindResult)
    async def find_items(
        predicate: str | None = Query(default=None, alias=QueryParams.PREDICATE),
        service: ResourceService = Depends(get_service),
    ) -> FindResult:
        """Items matching a filter expression, e.g. `Nid == "A1" and IsActive`."""
        return await service.find(predicate)

    @router.get("/exists", response_model=bool)
    async def item_exists(
        property_name: str = Query(alias=QueryParams.PROPERTY),
        value: str | None = Query(default=None, alias=QueryParams.VALUE),
        service: ResourceService = Depends(get_service),
    ) -> bool:
        return await service.exists(property_name, value)

    @router.get("/{item_id}")
    async def get_item(
        item_id: str,
        service: ResourceService = Depends(get_service),
    ) -> dict[str, Any]:
        return await service.get_by_id(item_id)

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_item(
        request: Request,
        response: Response,
        payload: dict[str, Any] = Body(...),
        service: ResourceService = Depends(get_service),
    ) -> dict[str, Any]:
        """Create an item; the Location header points at the new item."""
        created = await service.create(payload)
        item_id = created.get(service.capabilities.id_field.name)
        response.headers["Location"] = f"{request.url.path.rstrip('/')}/{item_id}"
        return created

    @router.put("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def update_item(
        item_id: str,
        payload: dict[str, Any] = Body(...),
        service: ResourceService = Depends(get_service),
    ) -> Response:
        """Update an item. The body must carry the current `version`."""
        await service.update(item_id, payload)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_item(
        item_id: str,
        soft_delete: str | None = Query(default=None, alias=QueryParams.SOFT_DELETE),
        service: ResourceService = Depends(get_service),
    ) -> Response:
        """Delete an item; soft by default where supported."""
        await service.delete(item_id, _optional_bool(soft_delete, QueryParams.SOFT_DELETE))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
