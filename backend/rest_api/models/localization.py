"""
Localization Models: Culture, Resource, ResourceCulture.

A Resource is a translatable text key; ResourceCulture holds its text for one
Culture. ResourceCulture carries no audit trail and is always hard deleted.
"""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, EntityMixin


class Culture(AuditMixin, Base):
    """A language/region, e.g. es-CO."""

    __tablename__ = "culture"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)


class Resource(AuditMixin, Base):
    """A translatable text key."""

    __tablename__ = "resource"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(100), nullable=False)


class ResourceCulture(EntityMixin, Base):
    """Text of one resource in one culture."""

    __tablename__ = "resource_culture"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    text: Mapped[str] = mapped_column(String(2000), nullable=False)
    resource_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("resource.id"), nullable=False, index=True
    )
    culture_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("culture.id"), nullable=False, index=True
    )

    resource: Mapped[Resource] = relationship()
    culture: Mapped[Culture] = relationship()

    __table_args__ = (
        UniqueConstraint("resource_id", "culture_id", name="uq_resource_culture"),
    )
