"""
Centralized constants for the backend application.

Usage:
    from shared.config.constants import AuditFields, NO_ACTOR, QueryParams
"""

import uuid
from typing import Final


# =============================================================================
# Audit
# =============================================================================


# Recorded as created_by when the caller is not authenticated
NO_ACTOR: Final[uuid.UUID] = uuid.UUID(int=0)


class AuditFields:
    """Column names of the audit contract."""

    CREATED_AT: Final[str] = "created_at"
    CREATED_BY: Final[str] = "created_by"
    UPDATED_AT: Final[str] = "updated_at"
    UPDATED_BY: Final[str] = "updated_by"
    DELETED_AT: Final[str] = "deleted_at"
    DELETED_BY: Final[str] = "deleted_by"

    ALL: Final[tuple[str, ...]] = (
        CREATED_AT,
        CREATED_BY,
        UPDATED_AT,
        UPDATED_BY,
        DELETED_AT,
        DELETED_BY,
    )

    # Never written through the update path
    IMMUTABLE_ON_UPDATE: Final[tuple[str, ...]] = (
        CREATED_AT,
        CREATED_BY,
        DELETED_AT,
        DELETED_BY,
    )


IS_DELETED_FIELD: Final[str] = "is_deleted"


# =============================================================================
# Query parameter names (wire format of the list endpoint)
# =============================================================================


class QueryParams:
    """Query string names shared by the router and the HTTP client."""

    PAGE: Final[str] = "page"
    PAGE_SIZE: Final[str] = "pageSize"
    SEARCH: Final[str] = "search"
    SORT_BY: Final[str] = "sortBy"
    SORT_DESC: Final[str] = "sortDesc"
    PREDICATE: Final[str] = "predicate"
    PROPERTY: Final[str] = "property"
    VALUE: Final[str] = "value"
    SOFT_DELETE: Final[str] = "softDelete"
