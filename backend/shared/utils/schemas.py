"""
Shared Pydantic schemas used across the application.

Wire names are camelCase (totalItems, pageSize); Python attributes are
snake_case and either form is accepted on input.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ListResult(BaseModel):
    """A page of items plus the total number of matching items."""

    model_config = ConfigDict(populate_by_name=True)

    total_items: int = Field(alias="totalItems", ge=0)
    items: list[dict[str, Any]] = Field(default_factory=list)


class FindResult(BaseModel):
    """All items matching a filter expression."""

    count: int = Field(ge=0)
    items: list[dict[str, Any]] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str
