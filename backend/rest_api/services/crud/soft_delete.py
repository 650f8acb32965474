"""
Audit and soft delete interceptor.

Every write of the resource layer is committed through
AuditInterceptor.commit(), which inspects the pending unit of work and:
- stamps creation provenance on new entities
- stamps modification provenance on changed entities and reverts any
  attempt to rewrite created_*/deleted_* through the update path
- turns soft deletions into an UPDATE of the deletion trail
- issues hard deletions as physical DELETEs
- commits once; a stale version token rolls back the whole unit

The soft/hard choice travels with each DeleteRequest; the interceptor keeps
no per-request state and one instance can be shared by every session.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Sequence

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.orm.exc import StaleDataError

from rest_api.models import AuditMixin
from rest_api.services.crud.capabilities import inspect_entity
from shared.config.constants import NO_ACTOR, AuditFields
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import ConcurrencyConflictError, UnsupportedSoftDeleteError

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DeleteRequest:
    """One entity to remove, soft (flag + trail) or hard (physical DELETE)."""

    entity: Any
    soft: bool


class AuditInterceptor:
    """
    Applies audit and soft delete rules to a session's pending changes.

    Args:
        clock: Returns the commit timestamp; one value is used for the whole
            unit of work.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock

    async def commit(
        self,
        session: AsyncSession,
        *,
        actor_id: uuid.UUID | None = None,
        deletions: Sequence[DeleteRequest] = (),
    ) -> None:
        """
        Stamp pending changes and commit them.

        Raises:
            UnsupportedSoftDeleteError: Soft deletion of a type without is_deleted.
            ConcurrencyConflictError: A versioned UPDATE/DELETE matched no row.
            SQLAlchemyError: Any other store failure, after rollback.
        """
        now = self._clock()
        soft_deleted = {id(request.entity) for request in deletions if request.soft}

        for request in deletions:
            if request.soft and not inspect_entity(type(request.entity)).has_soft_delete:
                raise UnsupportedSoftDeleteError(type(request.entity).__name__)

        for entity in list(session.new):
            self._stamp_new(entity, actor_id, now)

        modified = [
            entity
            for entity in list(session.dirty)
            if id(entity) not in soft_deleted and session.is_modified(entity)
        ]
        for entity in modified:
            self._stamp_modified(session, entity, actor_id, now)

        for request in deletions:
            if request.soft:
                self._stamp_soft_deleted(request.entity, actor_id, now)
            else:
                await session.delete(request.entity)

        subject = deletions[0].entity if deletions else next(iter(modified), None)
        subject_name = type(subject).__name__ if subject is not None else "Entity"
        subject_id = getattr(subject, "id", None)

        try:
            await safe_commit(session)
        except StaleDataError as e:
            raise ConcurrencyConflictError(subject_name, subject_id, error=str(e))

    # -------------------------------------------------------------------------
    # Stamping
    # -------------------------------------------------------------------------

    def _stamp_new(self, entity: Any, actor_id: uuid.UUID | None, now: datetime) -> None:
        caps = inspect_entity(type(entity))
        if caps.has_audit:
            entity.stamp_created(actor_id or NO_ACTOR, now)
        elif caps.has_soft_delete:
            entity.is_deleted = False

    def _stamp_modified(
        self,
        session: AsyncSession,
        entity: Any,
        actor_id: uuid.UUID | None,
        now: datetime,
    ) -> None:
        caps = inspect_entity(type(entity))
        if not caps.has_audit:
            return
        _revert_immutable(session, entity)
        entity.stamp_updated(actor_id, now)

    def _stamp_soft_deleted(self, entity: Any, actor_id: uuid.UUID | None, now: datetime) -> None:
        caps = inspect_entity(type(entity))
        if caps.has_audit:
            entity.stamp_deleted(actor_id, now)
        else:
            entity.is_deleted = True


def _revert_immutable(session: AsyncSession, entity: AuditMixin) -> None:
    """Restore created_*/deleted_* to their persisted values."""
    state = sa_inspect(entity)
    expire: list[str] = []
    for name in AuditFields.IMMUTABLE_ON_UPDATE:
        history = state.attrs[name].history
        if not history.has_changes():
            continue
        if history.deleted:
            set_committed_value(entity, name, history.deleted[0])
        else:
            expire.append(name)
        logger.warning(
            "Ignored write to immutable audit field",
            entity=type(entity).__name__,
            field=name,
        )
    if expire:
        session.expire(entity, expire)

