"""
Repository Pattern for database access.

Composes and runs the read queries of a resource: soft-delete exclusion,
caller predicates, ordering, pagination and eager loading of relations.
Query construction (plan) is pure; only the repository methods touch the
session.

Usage:
    from rest_api.services.crud.repository import ResourceRepository

    repo = ResourceRepository(Company, db)

    plan = repo.plan(search=repo.search("acme"), sort_by="Name", page=0, page_size=20)
    total, companies = await repo.execute(plan)

    company = await repo.find_by_id(company_id)
    taken = await repo.exists(repo.equality("Nit", "900123"))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import exists as sql_exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from rest_api.models import Base
from rest_api.services.crud import predicates
from rest_api.services.crud.capabilities import INT64_MAX, EntityCapabilities, inspect_entity
from rest_api.services.crud.specification import Specification
from shared.utils.exceptions import InvalidPageParametersError, UnknownSortFieldError

ModelT = TypeVar("ModelT", bound=Base)


@dataclass(frozen=True)
class QueryPlan:
    """
    A composed read query.

    `statement` is filtered and ordered but not windowed; the total count is
    taken over it. `offset`/`limit` are None when the caller did not page.
    """

    statement: Select
    offset: int | None = None
    limit: int | None = None
    options: tuple[Any, ...] = field(default_factory=tuple)

    @property
    def is_paged(self) -> bool:
        return self.limit is not None

    def count_statement(self) -> Select:
        return select(func.count()).select_from(self.statement.order_by(None).subquery())

    def items_statement(self) -> Select:
        stmt = self.statement.options(*self.options)
        if self.offset is not None:
            stmt = stmt.offset(self.offset)
        if self.limit is not None:
            stmt = stmt.limit(self.limit)
        return stmt


class ResourceRepository(Generic[ModelT]):
    """
    Async repository for one entity type.

    Every read applies soft-delete exclusion first when the type supports it.
    """

    def __init__(self, model: type[ModelT], session: AsyncSession):
        self._model = model
        self._session = session
        self._caps = inspect_entity(model)

    @property
    def model(self) -> type[ModelT]:
        """The SQLAlchemy model class."""
        return self._model

    @property
    def session(self) -> AsyncSession:
        """The database session."""
        return self._session

    @property
    def capabilities(self) -> EntityCapabilities:
        return self._caps

    # -------------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------------

    def search(self, token: str | None) -> Specification | None:
        return predicates.build_search(self._caps, token)

    def equality(self, property_name: str, raw_value: Any) -> Specification:
        return predicates.build_equality(self._caps, property_name, raw_value)

    def filter(self, expression: str | None) -> Specification:
        return predicates.build_filter(self._caps, expression)

    # -------------------------------------------------------------------------
    # Query composition
    # -------------------------------------------------------------------------

    def _base_query(self) -> Select:
        """Select with soft-delete exclusion applied."""
        query = select(self._model)
        if self._caps.has_soft_delete:
            query = query.where(predicates.not_deleted(self._caps).to_expression())
        return query

    def _eager_options(self) -> tuple[Any, ...]:
        return tuple(
            selectinload(getattr(self._model, relation)) for relation in self._caps.relations
        )

    def _apply_sort(self, query: Select, sort_by: str | None, sort_desc: bool) -> Select:
        if sort_by is None or not sort_by.strip():
            return query
        info = self._caps.resolve_field(sort_by.strip())
        if info is None:
            raise UnknownSortFieldError(self._caps.entity_name, sort_by)
        column = self._caps.column(info.name)
        return query.order_by(column.desc() if sort_desc else column.asc())

    def _window(self, page: int | None, page_size: int | None) -> tuple[int | None, int | None]:
        if (page is not None and page < 0) or (page_size is not None and page_size < 0):
            raise InvalidPageParametersError(page, page_size)
        if page is None or page_size is None:
            return None, None
        offset = page * page_size
        if page_size > INT64_MAX or offset > INT64_MAX:
            raise InvalidPageParametersError(page, page_size)
        return offset, page_size

    def plan(
        self,
        *specs: Specification | None,
        sort_by: str | None = None,
        sort_desc: bool = False,
        page: int | None = None,
        page_size: int | None = None,
    ) -> QueryPlan:
        """
        Compose a read query.

        Args:
            *specs: Caller predicates, AND-ed after soft-delete exclusion.
                None entries are skipped.
            sort_by: Field to order by (resolved like any property name).
            sort_desc: Descending order.
            page: Zero-based page index.
            page_size: Items per page; 0 yields no items.

        Raises:
            UnknownSortFieldError: If sort_by names no field.
            InvalidPageParametersError: If page or page_size is negative, or the
                window falls outside the 64-bit range.
        """
        offset, limit = self._window(page, page_size)
        query = self._base_query()
        for spec in specs:
            if spec is not None:
                query = query.where(spec.to_expression())
        query = self._apply_sort(query, sort_by, sort_desc)
        return QueryPlan(statement=query, offset=offset, limit=limit, options=self._eager_options())

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def execute(self, plan: QueryPlan) -> tuple[int, Sequence[ModelT]]:
        """Run the count and the windowed item query of a plan."""
        total = await self._session.scalar(plan.count_statement()) or 0
        if plan.limit == 0:
            return total, []
        result = await self._session.scalars(plan.items_statement())
        return total, result.all()

    async def find_all(self, *specs: Specification | None) -> Sequence[ModelT]:
        """All entities matching the predicates, relations loaded."""
        result = await self._session.scalars(self.plan(*specs).items_statement())
        return result.all()

    async def find_by_id(self, entity_id: Any, *, refresh: bool = False) -> ModelT | None:
        """
        Find entity by primary key.

        Soft-deleted entities are treated as absent.

        Args:
            entity_id: The parsed primary key value.
            refresh: Overwrite an instance already in the session with the
                stored row, loading its relations.
        """
        id_column = self._caps.column(self._caps.id_field.name)
        query = self._base_query().where(id_column == entity_id).options(*self._eager_options())
        if refresh:
            query = query.execution_options(populate_existing=True)
        return await self._session.scalar(query)

    async def exists(self, spec: Specification) -> bool:
        """True when at least one non-deleted entity matches."""
        where = spec.to_expression()
        if self._caps.has_soft_delete:
            where = (predicates.not_deleted(self._caps) & spec).to_expression()
        return bool(await self._session.scalar(select(sql_exists().where(where))))

    def add(self, entity: ModelT) -> ModelT:
        """Add entity to session (not committed)."""
        self._session.add(entity)
        return entity
