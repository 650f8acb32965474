"""
User Model.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base

if TYPE_CHECKING:
    from .company import Company


class User(AuditMixin, Base):
    """
    Application user, optionally attached to a company.
    Inherits: is_deleted, version, created/updated/deleted at/by from AuditMixin.
    """

    __tablename__ = "app_user"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # National ID document
    nid: Mapped[Optional[str]] = mapped_column(String(20), unique=True)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("company.id"), nullable=True, index=True
    )
    # Culture id of the preferred UI language
    default_language: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)

    company: Mapped[Optional["Company"]] = relationship()

    @property
    def full_name(self) -> str:
        """Not persisted."""
        return f"{self.first_name} {self.last_name}"
