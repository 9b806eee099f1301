from math import ceil
from typing import Any, Generic, List, Optional, TypeVar

from fastapi import Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from app.core.config import get_settings

T = TypeVar("T")


class PaginationParams(BaseModel):
    """Query parameters for pagination"""

    page: int = Field(1, ge=1, description="Page number (starts at 1)")
    page_size: int = Field(10, ge=1, description="Items per page")

    @field_validator("page_size")
    @classmethod
    def _clamp_page_size(cls, value: int) -> int:
        # Oversized pages are clamped to PAGE_MAX_SIZE
        return min(value, get_settings().page_max_size)

    @property
    def skip(self) -> int:
        """Offset for the database query"""
        return (self.page - 1) * self.page_size


class PageResult(BaseModel, Generic[T]):
    """One page of records plus totals; travels as Result.data"""

    records: List[T] = Field(..., description="Items of the current page")
    total: int = Field(..., description="Total number of items")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Items per page")
    pages: int = Field(..., description="Total number of pages")


# -------------------------
# Pagination Dependency
# -------------------------


def get_pagination_params(
        page: int = Query(1, ge=1, description="Page number (starts at 1)"),
        page_size: int = Query(10, ge=1, description="Items per page, capped at PAGE_MAX_SIZE"),
) -> PaginationParams:
    """FastAPI dependency for pagination parameters"""
    return PaginationParams(page=page, page_size=page_size)


def paginate(
        db: Session,
        stmt: Select,
        params: PaginationParams,
        item_schema: Optional[type[BaseModel]] = None,
) -> PageResult[Any]:
    """
    Run ``stmt`` for one page and count the full result set.

    Args:
        db: Active session
        stmt: SELECT of ORM entities (ordering is kept for the page query)
        params: Page number and size
        item_schema: Optional pydantic schema each row is converted to

    Returns:
        PageResult with records and totals
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = db.scalar(count_stmt) or 0

    rows = db.scalars(stmt.offset(params.skip).limit(params.page_size)).all()
    if item_schema is not None:
        records = [item_schema.model_validate(row, from_attributes=True) for row in rows]
    else:
        records = list(rows)

    return PageResult(
        records=records,
        total=total,
        page=params.page,
        page_size=params.page_size,
        pages=ceil(total / params.page_size) if params.page_size > 0 else 0,
    )
