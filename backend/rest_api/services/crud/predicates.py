"""
Predicate builders.

Each function turns caller input (a search token, a property/value pair, a
filter expression) into a Specification for one entity type. Every builder
validates against the capability descriptor first, so nothing reaches SQL
unless it names a real column and carries a correctly typed value.
"""

from __future__ import annotations

from rest_api.services.crud.capabilities import EntityCapabilities
from rest_api.services.crud.filter_expression import parse_filter
from rest_api.services.crud.specification import (
    AnyOfSpecification,
    ComparisonSpecification,
    ContainsIgnoreCaseSpecification,
    IsFalseSpecification,
    MatchAllSpecification,
    Specification,
)
from shared.config.constants import IS_DELETED_FIELD
from shared.utils.exceptions import InvalidFilterExpressionError, UnknownPropertyError
from shared.utils.validators import escape_like_pattern


def not_deleted(caps: EntityCapabilities) -> Specification:
    """Exclude soft-deleted rows; matches everything for types without the flag."""
    if not caps.has_soft_delete:
        return MatchAllSpecification()
    return IsFalseSpecification(caps.column(IS_DELETED_FIELD))


def build_search(caps: EntityCapabilities, token: str | None) -> Specification | None:
    """
    Case-insensitive substring match over every text field.

    Returns None for a blank token, meaning no search restriction. A type
    without text fields is not restricted either.
    """
    if token is None or not token.strip():
        return None
    pattern = escape_like_pattern(token.strip())
    return AnyOfSpecification(
        [ContainsIgnoreCaseSpecification(caps.column(name), pattern) for name in caps.search_fields]
    )


def build_equality(caps: EntityCapabilities, property_name: str, raw_value) -> Specification:
    """
    `property == value` with the value converted to the property's kind.

    Raises:
        UnknownPropertyError: If the property does not exist.
        TypeMismatchError: If the value cannot be converted.
    """
    info = caps.resolve_field(property_name)
    if info is None:
        raise UnknownPropertyError(caps.entity_name, property_name)
    value = caps.convert_value(info, raw_value) if raw_value is not None else None
    return ComparisonSpecification(caps.column(info.name), "==", value)


def build_filter(caps: EntityCapabilities, expression: str | None) -> Specification:
    """
    Parse a filter expression.

    Raises:
        InvalidFilterExpressionError: If the expression is blank or invalid.
    """
    if expression is None or not expression.strip():
        raise InvalidFilterExpressionError(caps.entity_name, expression or "", "empty expression")
    return parse_filter(caps, expression)
