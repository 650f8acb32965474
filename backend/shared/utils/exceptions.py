"""
Centralized HTTP exceptions for consistent error handling.

Every resource operation reports failures through these classes so the
transport layer maps them to status codes without per-entity code.

Usage:
    from shared.utils.exceptions import NotFoundError, UnknownPropertyError

    raise NotFoundError("Company", company_id)
    raise UnknownPropertyError("Company", "nitt")
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Company", company_id)
    """

    def __init__(self, entity: str, entity_id: Any = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} with id {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="info",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Raised before any store interaction.
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InvalidIdentifierError(ValidationError):
    """Identifier text cannot be parsed into the entity's id kind."""

    def __init__(self, entity: str, raw_id: Any, id_kind: str, **log_context: Any):
        super().__init__(
            f"'{raw_id}' is not a valid {id_kind} identifier for {entity}",
            entity=entity,
            raw_id=raw_id,
            id_kind=id_kind,
            **log_context,
        )


class UnknownPropertyError(ValidationError):
    """Referenced property does not exist on the entity."""

    def __init__(self, entity: str, property_name: str, **log_context: Any):
        super().__init__(
            f"{entity} has no property '{property_name}'",
            entity=entity,
            property_name=property_name,
            **log_context,
        )


class UnknownSortFieldError(ValidationError):
    """Sort field does not exist on the entity."""

    def __init__(self, entity: str, sort_by: str, **log_context: Any):
        super().__init__(
            f"Cannot sort {entity} by unknown field '{sort_by}'",
            entity=entity,
            sort_by=sort_by,
            **log_context,
        )


class TypeMismatchError(ValidationError):
    """Value cannot be converted to the property's scalar kind."""

    def __init__(
        self,
        entity: str,
        property_name: str,
        value: Any,
        expected: str,
        **log_context: Any,
    ):
        super().__init__(
            f"Value {value!r} is not a valid {expected} for {entity}.{property_name}",
            entity=entity,
            property_name=property_name,
            expected=expected,
            **log_context,
        )


class InvalidFilterExpressionError(ValidationError):
    """Filter expression is malformed or references unknown fields."""

    def __init__(self, entity: str, expression: str, reason: str, **log_context: Any):
        super().__init__(
            f"Invalid filter expression for {entity}: {reason}",
            entity=entity,
            expression=expression,
            reason=reason,
            **log_context,
        )


class InvalidPageParametersError(ValidationError):
    """Negative or inconsistent pagination values."""

    def __init__(self, page: int | None, page_size: int | None, **log_context: Any):
        super().__init__(
            f"Invalid pagination: page={page}, pageSize={page_size} (both must be non-negative and the window within 64-bit range)",
            page=page,
            page_size=page_size,
            **log_context,
        )


class IdMismatchError(ValidationError):
    """Update payload id differs from the path id."""

    def __init__(self, entity: str, path_id: Any, payload_id: Any, **log_context: Any):
        super().__init__(
            f"{entity} id in payload ({payload_id}) does not match id in path ({path_id})",
            entity=entity,
            path_id=path_id,
            payload_id=payload_id,
            **log_context,
        )


class UnsupportedSoftDeleteError(ValidationError):
    """Soft delete requested on an entity without an is_deleted flag."""

    def __init__(self, entity: str, **log_context: Any):
        super().__init__(
            f"{entity} does not support soft delete; use softDelete=false",
            entity=entity,
            **log_context,
        )


class ConcurrencyTokenRequiredError(AppException):
    """Update issued without the current version token (428)."""

    def __init__(self, entity: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_428_PRECONDITION_REQUIRED,
            detail=f"Updating {entity} requires its current 'version'",
            log_level="warning",
            entity=entity,
            **log_context,
        )


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409).
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class ConcurrencyConflictError(ConflictError):
    """Stale version token: the record was modified by someone else."""

    def __init__(self, entity: str, entity_id: Any = None, **log_context: Any):
        super().__init__(
            f"{entity} {entity_id} was modified by another user; reload and retry",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """
    Internal server error (500).
    """

    def __init__(self, detail: str = "Internal server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class StoreFailureError(InternalError):
    """
    Underlying persistence error.

    The response detail never includes store internals; the log line does.
    """

    def __init__(self, operation: str, entity: str, **log_context: Any):
        super().__init__(
            "Internal server error",
            operation=operation,
            entity=entity,
            **log_context,
        )
