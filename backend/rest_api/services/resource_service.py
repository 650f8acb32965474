"""
Resource Service: the generic operations behind every REST resource.

Architecture:
    Router (thin) → ResourceService (validation, orchestration)
        → ResourceRepository (reads) / AuditInterceptor (writes) → Model

Every operation validates its input against the entity's capability
descriptor before the store is touched. Store failures are logged with the
operation, entity and identifier, then surfaced as StoreFailureError.

Usage:
    from rest_api.services.resource_service import ResourceService

    service = ResourceService(db, Company, actor_id=actor_id)
    page = await service.list(page=0, page_size=20, search="acme", sort_by="Name")
    company = await service.create({"nit": "900123", "name": "Acme", ...})
    await service.update(str(company["id"]), {**company, "city": "Cali"})
    await service.delete(str(company["id"]))
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, Mapping, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rest_api.models import Base
from rest_api.services.crud.capabilities import EntityCapabilities, FieldInfo, convert_scalar
from rest_api.services.crud.entity_builder import build_output, build_outputs
from rest_api.services.crud.repository import ResourceRepository
from rest_api.services.crud.soft_delete import AuditInterceptor, DeleteRequest
from shared.config.constants import AuditFields, IS_DELETED_FIELD
from shared.config.logging import get_logger, mask_actor_id
from shared.utils.exceptions import (
    ConcurrencyConflictError,
    ConcurrencyTokenRequiredError,
    IdMismatchError,
    NotFoundError,
    StoreFailureError,
    TypeMismatchError,
    UnknownPropertyError,
    UnsupportedSoftDeleteError,
    ValidationError,
)
from shared.utils.schemas import FindResult, ListResult

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

_default_interceptor = AuditInterceptor()


class ResourceService(Generic[ModelT]):
    """
    Generic operation facade for one entity type.

    One instance serves one request: it holds the request's session and
    acting user, never state shared between requests.
    """

    def __init__(
        self,
        db: AsyncSession,
        model: type[ModelT],
        *,
        actor_id: uuid.UUID | None = None,
        interceptor: AuditInterceptor | None = None,
    ):
        self._db = db
        self._model = model
        self._actor_id = actor_id
        self._interceptor = interceptor or _default_interceptor
        self._repo = ResourceRepository(model, db)
        self._caps = self._repo.capabilities

    @property
    def db(self) -> AsyncSession:
        """Database session."""
        return self._db

    @property
    def repo(self) -> ResourceRepository[ModelT]:
        """Repository for data access."""
        return self._repo

    @property
    def capabilities(self) -> EntityCapabilities:
        return self._caps

    @property
    def entity_name(self) -> str:
        return self._caps.entity_name

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def list(
        self,
        *,
        page: int | None = None,
        page_size: int | None = None,
        search: str | None = None,
        sort_by: str | None = None,
        sort_desc: bool = False,
    ) -> ListResult:
        """
        List entities with optional search, sort and pagination.

        Raises:
            UnknownSortFieldError: If sort_by names no field.
            InvalidPageParametersError: If page or page_size is negative.
        """
        plan = self._repo.plan(
            self._repo.search(search),
            sort_by=sort_by,
            sort_desc=sort_desc,
            page=page,
            page_size=page_size,
        )
        async with self._store_guard("list"):
            total, entities = await self._repo.execute(plan)
        return ListResult(total_items=total, items=build_outputs(entities))

    async def find(self, expression: str | None) -> FindResult:
        """
        All entities matching a filter expression.

        Raises:
            InvalidFilterExpressionError: If the expression is blank or invalid.
        """
        spec = self._repo.filter(expression)
        async with self._store_guard("find", expression=expression):
            entities = await self._repo.find_all(spec)
        return FindResult(count=len(entities), items=build_outputs(entities))

    async def get_by_id(self, raw_id: str) -> dict[str, Any]:
        """
        Get entity by identifier text.

        Raises:
            InvalidIdentifierError: If the text is not a valid identifier.
            NotFoundError: If no live entity has that id.
        """
        entity_id = self._caps.parse_id(raw_id)
        entity = await self._load(entity_id, "get_by_id")
        return build_output(entity)

    async def exists(self, property_name: str, raw_value: Any) -> bool:
        """
        True when a live entity has `property == value`.

        Raises:
            UnknownPropertyError: If the property does not exist.
            TypeMismatchError: If the value cannot be converted.
        """
        spec = self._repo.equality(property_name, raw_value)
        async with self._store_guard("exists", property_name=property_name):
            return await self._repo.exists(spec)

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def create(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """
        Create a new entity.

        Audit and soft delete fields in the payload are ignored; they are
        stamped at commit time.

        Raises:
            UnknownPropertyError: If the payload names an unknown property.
            TypeMismatchError: If a value cannot be converted or a required
                property is missing.
        """
        values = self._convert_payload(payload, include_id=True)
        for name in self._caps.required_fields:
            if values.get(name) is None:
                info = self._caps.fields[name]
                raise TypeMismatchError(self.entity_name, name, None, info.kind)

        entity = self._model(**values)
        self._repo.add(entity)
        async with self._store_guard("create"):
            await self._interceptor.commit(self._db, actor_id=self._actor_id)
            entity_id = getattr(entity, self._caps.id_field.name)
            created = await self._repo.find_by_id(entity_id, refresh=True)

        logger.info(
            "Entity created",
            entity=self.entity_name,
            entity_id=entity_id,
            actor=mask_actor_id(self._actor_id),
        )
        return build_output(created if created is not None else entity)

    async def update(
        self,
        raw_id: str,
        payload: Mapping[str, Any],
        version: Any = None,
    ) -> None:
        """
        Apply a full or partial update guarded by the concurrency token.

        The token is `version` when given, otherwise the payload's `version`.

        Raises:
            InvalidIdentifierError: If raw_id is not a valid identifier.
            ConcurrencyTokenRequiredError: If no token was supplied.
            IdMismatchError: If the payload id differs from raw_id.
            UnknownPropertyError / TypeMismatchError: On invalid payload.
            NotFoundError: If no live entity has that id.
            ConcurrencyConflictError: If the token is stale.
        """
        entity_id = self._caps.parse_id(raw_id)
        if not isinstance(payload, Mapping):
            raise ValidationError(f"{self.entity_name} payload must be an object")

        token = self._concurrency_token(payload, version)
        self._check_payload_id(entity_id, raw_id, payload)
        values = self._convert_payload(payload, include_id=False)

        entity = await self._load(entity_id, "update")
        if self._caps.version_field and getattr(entity, self._caps.version_field) != token:
            raise ConcurrencyConflictError(self.entity_name, entity_id, supplied_version=token)

        for name, value in values.items():
            setattr(entity, name, value)

        async with self._store_guard("update", entity_id=entity_id):
            await self._interceptor.commit(self._db, actor_id=self._actor_id)

        logger.info(
            "Entity updated",
            entity=self.entity_name,
            entity_id=entity_id,
            fields=sorted(values),
            actor=mask_actor_id(self._actor_id),
        )

    async def delete(self, raw_id: str, soft_delete: bool | None = None) -> None:
        """
        Delete an entity.

        Args:
            raw_id: Identifier text.
            soft_delete: True flags the row as deleted, False removes it.
                None means soft when the type supports it, hard otherwise.

        Raises:
            InvalidIdentifierError: If raw_id is not a valid identifier.
            UnsupportedSoftDeleteError: If soft_delete is True for a type
                without an is_deleted flag.
            NotFoundError: If no live entity has that id.
        """
        entity_id = self._caps.parse_id(raw_id)
        if soft_delete is None:
            soft = self._caps.has_soft_delete
        elif soft_delete and not self._caps.has_soft_delete:
            raise UnsupportedSoftDeleteError(self.entity_name, entity_id=entity_id)
        else:
            soft = soft_delete

        entity = await self._load(entity_id, "delete")
        async with self._store_guard("delete", entity_id=entity_id):
            await self._interceptor.commit(
                self._db,
                actor_id=self._actor_id,
                deletions=[DeleteRequest(entity, soft=soft)],
            )

        logger.info(
            "Entity deleted",
            entity=self.entity_name,
            entity_id=entity_id,
            soft=soft,
            actor=mask_actor_id(self._actor_id),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @asynccontextmanager
    async def _store_guard(self, operation: str, **context: Any) -> AsyncIterator[None]:
        """Translate store errors into StoreFailureError, logging the cause."""
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(
                "Store operation failed",
                operation=operation,
                entity=self.entity_name,
                error=f"{type(e).__name__}: {e}",
                **context,
            )
            raise StoreFailureError(operation, self.entity_name, **context)

    async def _load(self, entity_id: Any, operation: str) -> ModelT:
        async with self._store_guard(operation, entity_id=entity_id):
            entity = await self._repo.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(self.entity_name, entity_id)
        return entity

    def _managed_fields(self) -> set[str]:
        managed = set(AuditFields.ALL) | {IS_DELETED_FIELD}
        if self._caps.version_field:
            managed.add(self._caps.version_field)
        return managed

    def _convert_payload(self, payload: Mapping[str, Any], *, include_id: bool) -> dict[str, Any]:
        """
        Validate and convert a payload into column values.

        Relation and computed keys are ignored; unknown keys are rejected.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError(f"{self.entity_name} payload must be an object")

        managed = self._managed_fields()
        values: dict[str, Any] = {}
        for key, raw in payload.items():
            info = self._caps.resolve_field(key)
            if info is None:
                if self._caps.is_relation(key) or self._caps.is_computed(key):
                    continue
                raise UnknownPropertyError(self.entity_name, key)
            if info.name in managed:
                continue
            if info.primary_key:
                if include_id and raw is not None:
                    values[info.name] = self._convert_id(info, raw)
                continue
            values[info.name] = self._caps.convert_value(info, raw)
        return values

    def _convert_id(self, info: FieldInfo, raw: Any) -> Any:
        if isinstance(raw, str):
            return self._caps.parse_id(raw)
        return self._caps.convert_value(info, raw)

    def _concurrency_token(self, payload: Mapping[str, Any], version: Any) -> Any:
        if not self._caps.version_field:
            return None
        if version is None:
            for key, raw in payload.items():
                info = self._caps.resolve_field(key)
                if info is not None and info.name == self._caps.version_field:
                    version = raw
                    break
        if version is None:
            raise ConcurrencyTokenRequiredError(self.entity_name)
        info = self._caps.fields[self._caps.version_field]
        return self._caps.convert_value(info, version)

    def _check_payload_id(self, entity_id: Any, raw_id: str, payload: Mapping[str, Any]) -> None:
        """An id in the payload is optional but must name the same entity as the path."""
        id_field = self._caps.id_field
        for key, raw in payload.items():
            info = self._caps.resolve_field(key)
            if info is None or info.name != id_field.name or raw is None:
                continue
            try:
                payload_id = convert_scalar(id_field.python_type, raw)
            except ValueError:
                payload_id = None
            if payload_id != entity_id:
                raise IdMismatchError(self.entity_name, raw_id, raw)
