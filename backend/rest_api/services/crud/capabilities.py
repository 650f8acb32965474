"""
Entity Capability Inspector.

Derives, once per model class, which optional behaviors an entity supports:
identifier kind, soft delete, audit trail, free-text search fields and
navigable relationships and computed read-only properties. Everything is read from the SQLAlchemy mapper, i.e.
from the class declaration, never from instances.

Usage:
    from rest_api.services.crud.capabilities import inspect_entity

    caps = inspect_entity(Company)
    caps.has_soft_delete          # True
    caps.search_fields            # ("nit", "name", "country", ...)
    company_id = caps.parse_id("3f2c...")   # uuid.UUID
"""

from __future__ import annotations

import inspect
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import lru_cache
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import InstrumentedAttribute

from rest_api.models.base import AuditMixin
from shared.config.constants import AuditFields, IS_DELETED_FIELD
from shared.utils.exceptions import InvalidIdentifierError, TypeMismatchError
from shared.utils.validators import parse_bool


def normalize_field_name(name: str) -> str:
    """Case- and underscore-insensitive key: 'FirstName' == 'first_name'."""
    return name.replace("_", "").lower()


INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def _checked_int(raw: Any) -> int:
    """Parse an integer that fits a signed 64-bit column."""
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        if not raw.is_integer():
            raise ValueError(f"not an integer: {raw!r}")
        value = int(raw)
    elif isinstance(raw, str):
        value = int(raw.strip())
    else:
        raise ValueError(f"not an integer: {raw!r}")
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"integer out of range: {raw!r}")
    return value


def convert_scalar(python_type: type | None, raw: Any) -> Any:
    """
    Convert a raw value (usually text) to the given scalar type.

    Values already of the right type pass through. Booleans are never
    accepted as numbers.

    Raises:
        ValueError: If the value cannot be converted.
    """
    if raw is None or python_type is None:
        return raw

    if python_type is bool:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str):
            return parse_bool(raw)
        raise ValueError(f"not a boolean: {raw!r}")

    if isinstance(raw, bool):
        raise ValueError(f"boolean given for {python_type.__name__}")

    if python_type is int:
        return _checked_int(raw)

    if isinstance(raw, python_type):
        return raw

    try:
        if python_type is uuid.UUID:
            if not isinstance(raw, str):
                raise ValueError(f"not a UUID: {raw!r}")
            return uuid.UUID(raw.strip())
        if python_type is float:
            if isinstance(raw, (int, str)):
                return float(raw)
            raise ValueError(f"not a number: {raw!r}")
        if python_type is Decimal:
            if isinstance(raw, (int, float, str)):
                return Decimal(str(raw).strip())
            raise ValueError(f"not a decimal: {raw!r}")
        if python_type is datetime:
            if isinstance(raw, str):
                return datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
            raise ValueError(f"not a datetime: {raw!r}")
        if python_type is date:
            if isinstance(raw, str):
                return date.fromisoformat(raw.strip())
            raise ValueError(f"not a date: {raw!r}")
        if python_type is str:
            raise ValueError(f"not a string: {raw!r}")
        if issubclass(python_type, Enum):
            try:
                return python_type(raw)
            except ValueError:
                return python_type[str(raw)]
        return python_type(raw)
    except (TypeError, KeyError, InvalidOperation) as e:
        raise ValueError(str(e)) from e


@dataclass(frozen=True)
class FieldInfo:
    """A mapped column as seen by the resource layer."""

    name: str
    python_type: type | None
    nullable: bool
    has_default: bool
    primary_key: bool = False

    @property
    def kind(self) -> str:
        return self.python_type.__name__ if self.python_type else "value"

    @property
    def is_text(self) -> bool:
        return self.python_type is str


@dataclass(frozen=True)
class EntityCapabilities:
    """
    Per-type capability descriptor. Immutable and cached for the process.
    """

    model: type
    entity_name: str
    id_field: FieldInfo
    fields: dict[str, FieldInfo]
    has_soft_delete: bool
    has_audit: bool
    version_field: str | None
    search_fields: tuple[str, ...]
    relations: tuple[str, ...]
    computed: tuple[str, ...] = ()
    _normalized: dict[str, str] = field(repr=False, compare=False, default_factory=dict)

    def resolve_field(self, name: str) -> FieldInfo | None:
        """
        Look up a column by name.

        Exact attribute names win; otherwise 'Nid', 'firstName' and
        'FIRST_NAME' all resolve through the normalized form.
        """
        info = self.fields.get(name)
        if info is not None:
            return info
        key = self._normalized.get(normalize_field_name(name))
        return self.fields[key] if key is not None else None

    def column(self, name: str) -> InstrumentedAttribute:
        """The model attribute for a resolved field name."""
        return getattr(self.model, name)

    def is_relation(self, name: str) -> bool:
        key = normalize_field_name(name)
        return any(normalize_field_name(r) == key for r in self.relations)

    def is_computed(self, name: str) -> bool:
        key = normalize_field_name(name)
        return any(normalize_field_name(c) == key for c in self.computed)

    def parse_id(self, raw_id: str) -> Any:
        """
        Parse identifier text according to the id kind.

        Raises:
            InvalidIdentifierError: If the text is not a valid identifier.
        """
        try:
            value = convert_scalar(self.id_field.python_type, raw_id)
        except ValueError:
            raise InvalidIdentifierError(self.entity_name, raw_id, self.id_field.kind)
        if value is None or (isinstance(value, str) and not value):
            raise InvalidIdentifierError(self.entity_name, raw_id, self.id_field.kind)
        return value

    def convert_value(self, info: FieldInfo, raw: Any) -> Any:
        """
        Convert a raw value to the field's scalar kind.

        Raises:
            TypeMismatchError: If the value is not convertible, or is null
                for a non-nullable field.
        """
        if raw is None:
            if not info.nullable:
                raise TypeMismatchError(self.entity_name, info.name, raw, info.kind)
            return None
        try:
            return convert_scalar(info.python_type, raw)
        except ValueError:
            raise TypeMismatchError(self.entity_name, info.name, raw, info.kind)

    @property
    def required_fields(self) -> tuple[str, ...]:
        """Columns a create payload must provide."""
        managed = set(AuditFields.ALL) | {IS_DELETED_FIELD}
        if self.version_field:
            managed.add(self.version_field)
        return tuple(
            name
            for name, info in self.fields.items()
            if not info.nullable
            and not info.has_default
            and not info.primary_key
            and name not in managed
        )


def _field_info(column_attr) -> FieldInfo:
    column = column_attr.columns[0]
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        python_type = None
    return FieldInfo(
        name=column_attr.key,
        python_type=python_type,
        nullable=bool(column.nullable),
        has_default=column.default is not None or column.server_default is not None,
        primary_key=bool(column.primary_key),
    )


def _computed_properties(model: type, mapper: Any) -> tuple[str, ...]:
    """Public read-only properties declared on the model, e.g. User.full_name."""
    mapped = set(mapper.all_orm_descriptors.keys())
    return tuple(
        name
        for name in dir(model)
        if not name.startswith("_")
        and name not in mapped
        and isinstance(inspect.getattr_static(model, name), property)
    )


@lru_cache(maxsize=None)
def inspect_entity(model: type) -> EntityCapabilities:
    """
    Build the capability descriptor for a mapped class.

    Pure and deterministic for a given class; lru_cache makes repeated calls
    free. Two concurrent first calls may both compute it, with equal results.

    Raises:
        TypeError: If the class is not mapped or has a composite primary key.
    """
    mapper = sa_inspect(model, raiseerr=False)
    if mapper is None or not hasattr(mapper, "column_attrs"):
        raise TypeError(f"{model!r} is not a mapped class")

    if len(mapper.primary_key) != 1:
        raise TypeError(f"{model.__name__} must have exactly one primary key column")
    pk_column = mapper.primary_key[0]

    fields: dict[str, FieldInfo] = {}
    id_field: FieldInfo | None = None
    for column_attr in mapper.column_attrs:
        info = _field_info(column_attr)
        fields[info.name] = info
        if column_attr.columns[0] is pk_column:
            id_field = info
    if id_field is None:
        raise TypeError(f"{model.__name__} primary key is not a mapped attribute")

    soft_delete = fields.get(IS_DELETED_FIELD)
    has_soft_delete = soft_delete is not None and soft_delete.python_type is bool

    # All-or-nothing: partially declared audit columns are never stamped
    has_audit = (
        issubclass(model, AuditMixin)
        and has_soft_delete
        and all(name in fields for name in AuditFields.ALL)
    )

    version_field = None
    if mapper.version_id_col is not None:
        version_field = mapper.get_property_by_column(mapper.version_id_col).key

    return EntityCapabilities(
        model=model,
        entity_name=model.__name__,
        id_field=id_field,
        fields=fields,
        has_soft_delete=has_soft_delete,
        has_audit=has_audit,
        version_field=version_field,
        search_fields=tuple(name for name, info in fields.items() if info.is_text),
        relations=tuple(rel.key for rel in mapper.relationships),
        computed=_computed_properties(model, mapper),
        _normalized={normalize_field_name(name): name for name in fields},
    )
