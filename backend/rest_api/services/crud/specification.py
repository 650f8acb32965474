"""
Specification Pattern: composable, type-safe query predicates.

Specifications encapsulate query conditions that can be combined using
logical operators (&, |, ~) and are compiled to SQLAlchemy boolean clauses
only when a query is built. Values are always bound parameters.

Usage:
    from rest_api.services.crud.specification import ComparisonSpecification

    spec = ComparisonSpecification(Company.country, "==", "CO") & ~ComparisonSpecification(
        Company.city, "==", "Cali"
    )
    query = select(Company).where(spec.to_expression())
"""

from __future__ import annotations

import operator
from typing import Any, Callable

from sqlalchemy import and_, not_, or_, true
from sqlalchemy.sql.elements import ColumnElement


class Specification:
    """
    Base class for query specifications.

    Subclass this and implement to_expression() to create
    reusable query building blocks.
    """

    def to_expression(self) -> ColumnElement[bool]:
        """
        Convert specification to SQLAlchemy expression.

        Must be implemented by subclasses.
        """
        raise NotImplementedError

    def __and__(self, other: Specification) -> AndSpecification:
        """Combine with AND."""
        return AndSpecification(self, other)

    def __or__(self, other: Specification) -> OrSpecification:
        """Combine with OR."""
        return OrSpecification(self, other)

    def __invert__(self) -> NotSpecification:
        """Negate specification."""
        return NotSpecification(self)


class AndSpecification(Specification):
    """AND combination of two specifications."""

    def __init__(self, left: Specification, right: Specification):
        self._left = left
        self._right = right

    def to_expression(self) -> ColumnElement[bool]:
        return and_(self._left.to_expression(), self._right.to_expression())


class OrSpecification(Specification):
    """OR combination of two specifications."""

    def __init__(self, left: Specification, right: Specification):
        self._left = left
        self._right = right

    def to_expression(self) -> ColumnElement[bool]:
        return or_(self._left.to_expression(), self._right.to_expression())


class NotSpecification(Specification):
    """Negation of a specification."""

    def __init__(self, spec: Specification):
        self._spec = spec

    def to_expression(self) -> ColumnElement[bool]:
        return not_(self._spec.to_expression())


class MatchAllSpecification(Specification):
    """Always true."""

    def to_expression(self) -> ColumnElement[bool]:
        return true()


class AnyOfSpecification(Specification):
    """OR over any number of specifications; matches everything when empty."""

    def __init__(self, specs: list[Specification]):
        self._specs = specs

    def to_expression(self) -> ColumnElement[bool]:
        if not self._specs:
            return true()
        return or_(*(spec.to_expression() for spec in self._specs))


COMPARISON_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "==": operator.eq,
    "=": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class ComparisonSpecification(Specification):
    """`column <op> constant`; a None constant compiles to IS [NOT] NULL."""

    def __init__(self, column: Any, op: str, value: Any):
        if op not in COMPARISON_OPERATORS:
            raise ValueError(f"unsupported operator {op!r}")
        self._column = column
        self._op = op
        self._value = value

    def to_expression(self) -> ColumnElement[bool]:
        if self._value is None:
            if COMPARISON_OPERATORS[self._op] is operator.eq:
                return self._column.is_(None)
            return self._column.is_not(None)
        return COMPARISON_OPERATORS[self._op](self._column, self._value)


class TextMatchSpecification(Specification):
    """Literal LIKE match: contains / startswith / endswith."""

    MODES = ("contains", "startswith", "endswith")

    def __init__(self, column: Any, mode: str, value: str):
        if mode not in self.MODES:
            raise ValueError(f"unsupported text match {mode!r}")
        self._column = column
        self._mode = mode
        self._value = value

    def to_expression(self) -> ColumnElement[bool]:
        return getattr(self._column, self._mode)(self._value, autoescape=True)


class ContainsIgnoreCaseSpecification(Specification):
    """Case-insensitive substring match with LIKE wildcards escaped."""

    def __init__(self, column: Any, escaped_pattern: str):
        self._column = column
        self._pattern = escaped_pattern

    def to_expression(self) -> ColumnElement[bool]:
        return self._column.ilike(f"%{self._pattern}%", escape="\\")


class IsTrueSpecification(Specification):
    """Boolean column is true."""

    def __init__(self, column: Any):
        self._column = column

    def to_expression(self) -> ColumnElement[bool]:
        return self._column.is_(True)


class IsFalseSpecification(Specification):
    """Boolean column is false."""

    def __init__(self, column: Any):
        self._column = column

    def to_expression(self) -> ColumnElement[bool]:
        return self._column.is_(False)
