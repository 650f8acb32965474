"""
Entity Output Builder.

Converts mapped entities into JSON-ready dicts: every column, every public
read-only property of the model (computed from columns), plus each
already-loaded relationship one level deep (columns only, no further
nesting). Unloaded relationships are skipped so serialization never
triggers I/O.

Usage:
    from rest_api.services.crud.entity_builder import build_output, build_outputs

    data = build_output(company)           # {"id": "...", "nit": "...", ...}
    items = build_outputs(companies)
"""

from typing import Any, Iterable

from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect as sa_inspect

from rest_api.services.crud.capabilities import inspect_entity


class EntityOutputBuilder:
    """
    Builds the wire representation of one entity type.

    Column and relation names are read from the mapper once per builder.
    """

    def __init__(self, model: type):
        mapper = sa_inspect(model)
        self.model = model
        self._columns = tuple(attr.key for attr in mapper.column_attrs)
        self._relations = tuple((rel.key, rel.uselist) for rel in mapper.relationships)
        self._computed = inspect_entity(model).computed

    def build(self, entity: Any) -> dict[str, Any]:
        data = _columns_of(entity, self._columns)
        unloaded = sa_inspect(entity).unloaded
        for name, uselist in self._relations:
            if name in unloaded:
                continue
            related = getattr(entity, name)
            if related is None:
                data[name] = None
            elif uselist:
                data[name] = [_flat(child) for child in related]
            else:
                data[name] = _flat(related)
        for name in self._computed:
            data[name] = getattr(entity, name)
        return jsonable_encoder(data)


def _columns_of(entity: Any, names: Iterable[str]) -> dict[str, Any]:
    return {name: getattr(entity, name) for name in names}


def _flat(entity: Any) -> dict[str, Any]:
    """Loaded columns of a related entity; its own relations are not followed."""
    state = sa_inspect(entity)
    return _columns_of(
        entity,
        (attr.key for attr in state.mapper.column_attrs if attr.key not in state.unloaded),
    )


_builders: dict[type, EntityOutputBuilder] = {}


def get_builder(model: type) -> EntityOutputBuilder:
    """Get or create the builder for a model class."""
    builder = _builders.get(model)
    if builder is None:
        builder = _builders[model] = EntityOutputBuilder(model)
    return builder


def build_output(entity: Any) -> dict[str, Any]:
    """Serialize one entity."""
    return get_builder(type(entity)).build(entity)


def build_outputs(entities: Iterable[Any]) -> list[dict[str, Any]]:
    """Serialize entities of one type."""
    return [build_output(entity) for entity in entities]
