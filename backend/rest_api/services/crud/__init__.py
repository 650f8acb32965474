"""
CRUD Services - Generic operations for any mapped entity.

Provides:
- inspect_entity: Per-type capability descriptor (ids, soft delete, audit)
- Specification Pattern: Composable query predicates
- Predicate builders: search, equality, filter expressions
- ResourceRepository: Async query composition and execution
- AuditInterceptor: Audit stamping and soft delete at commit time
- EntityOutputBuilder: Convert SQLAlchemy models to JSON-ready dicts
"""

from .capabilities import EntityCapabilities, FieldInfo, inspect_entity
from .specification import (
    Specification,
    AndSpecification,
    OrSpecification,
    NotSpecification,
)
from .predicates import build_equality, build_filter, build_search, not_deleted
from .filter_expression import parse_filter
from .repository import QueryPlan, ResourceRepository
from .soft_delete import AuditInterceptor, DeleteRequest
from .entity_builder import EntityOutputBuilder, build_output, build_outputs

__all__ = [
    # Capabilities
    "EntityCapabilities",
    "FieldInfo",
    "inspect_entity",
    # Specification Pattern
    "Specification",
    "AndSpecification",
    "OrSpecification",
    "NotSpecification",
    # Predicates
    "build_equality",
    "build_filter",
    "build_search",
    "not_deleted",
    "parse_filter",
    # Repository
    "QueryPlan",
    "ResourceRepository",
    # Interceptor
    "AuditInterceptor",
    "DeleteRequest",
    # Entity builder
    "EntityOutputBuilder",
    "build_output",
    "build_outputs",
]
