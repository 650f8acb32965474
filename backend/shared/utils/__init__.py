"""
Utilities module: Exceptions, validators, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ValidationError,
    ConflictError,
    ConcurrencyConflictError,
    StoreFailureError,
)
from shared.utils.validators import escape_like_pattern, parse_bool
from shared.utils.schemas import ErrorResponse, FindResult, ListResult

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ConcurrencyConflictError",
    "StoreFailureError",
    # validators
    "escape_like_pattern",
    "parse_bool",
    # schemas
    "ErrorResponse",
    "FindResult",
    "ListResult",
]
