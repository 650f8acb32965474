"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class, EntityMixin, SoftDeleteMixin, AuditMixin
- company: Company
- user: User
- localization: Culture, Resource, ResourceCulture

RESOURCE_MODELS maps each REST route name to the model it exposes.
"""

# Base classes
from .base import Base, EntityMixin, SoftDeleteMixin, AuditMixin

from .company import Company
from .user import User
from .localization import Culture, Resource, ResourceCulture


# Route name -> model, one generic router is mounted per entry
RESOURCE_MODELS: dict[str, type[Base]] = {
    "companies": Company,
    "users": User,
    "cultures": Culture,
    "resources": Resource,
    "resource-cultures": ResourceCulture,
}


__all__ = [
    "Base",
    "EntityMixin",
    "SoftDeleteMixin",
    "AuditMixin",
    "Company",
    "User",
    "Culture",
    "Resource",
    "ResourceCulture",
    "RESOURCE_MODELS",
]
