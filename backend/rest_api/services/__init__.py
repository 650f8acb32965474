"""
Services module for business logic.

- resource_service.py: ResourceService, the generic operation facade
- crud/: Capabilities, predicates, repository, audit interceptor, output builder

Usage:
    from rest_api.services import ResourceService
    service = ResourceService(db, Company, actor_id=actor_id)
    companies = await service.list(page=0, page_size=20)
"""

from .resource_service import ResourceService

__all__ = ["ResourceService"]
