"""
Base class and mixins for all SQLAlchemy ORM models.

- EntityMixin: optimistic concurrency token (`version`)
- SoftDeleteMixin: `is_deleted` flag
- AuditMixin: soft delete plus created/updated/deleted timestamps and actors
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, Integer, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class EntityMixin:
    """
    Mixin providing the concurrency token.

    `version` is the mapper's version_id_col: every UPDATE/DELETE is issued as
    `... WHERE id = :id AND version = :version` and bumps the counter, so a
    stale writer affects zero rows and the flush fails.
    """

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    @declared_attr.directive
    def __mapper_args__(cls) -> dict[str, Any]:
        return {"version_id_col": cls.__table__.c.version}


class SoftDeleteMixin(EntityMixin):
    """Mixin providing the soft delete flag."""

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)


class AuditMixin(SoftDeleteMixin):
    """
    Mixin providing soft delete and audit trail fields.

    Fields added:
    - is_deleted: Soft delete flag
    - created_at, updated_at, deleted_at: Audit timestamps
    - created_by, updated_by, deleted_by: Acting user ids

    The stamp_* methods are the only writers of these fields; they are called
    by the audit interceptor at commit time, never by request handlers.
    """

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    deleted_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    def stamp_created(self, actor_id: uuid.UUID, now: datetime) -> None:
        """Set creation provenance; a new record carries no update or deletion trail."""
        self.created_at = now
        self.created_by = actor_id
        self.updated_at = None
        self.updated_by = None
        self.deleted_at = None
        self.deleted_by = None
        self.is_deleted = False

    def stamp_updated(self, actor_id: uuid.UUID | None, now: datetime) -> None:
        """Set modification provenance."""
        self.updated_at = now
        self.updated_by = actor_id

    def stamp_deleted(self, actor_id: uuid.UUID | None, now: datetime) -> None:
        """Mark as soft deleted with deletion provenance."""
        self.is_deleted = True
        self.deleted_at = now
        self.deleted_by = actor_id

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        id_val = getattr(self, "id", None)
        state = "deleted" if self.is_deleted else "active"
        return f"<{class_name}(id={id_val}, {state})>"
