"""
Shared pytest fixtures.

Environment defaults are set before the application is imported so the
cached settings pick them up.
"""

import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Annotated, Optional

import pytest
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import BizException
from app.core.pagination import PaginationParams, get_pagination_params
from app.core.result_code import ResultCode
from app.core.validation import validated
from app.database.session import install_full_table_guard
from app.models.base import Base
from app.schemas.common import Result
from main import create_app


class UserIn(BaseModel):
    name: str
    age: int

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("age")
    @classmethod
    def age_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value


@validated
def reserve_stock(quantity: Annotated[int, Field(gt=0)]) -> int:
    return quantity


class UpstreamQuote(BaseModel):
    price: float


def _failure_router() -> APIRouter:
    """Routes that raise each kind of failure the handlers translate."""
    router = APIRouter()

    @router.get("/biz/{name}")
    def raise_biz(name: str):
        raise BizException(ResultCode[name])

    @router.get("/biz-custom")
    def raise_biz_custom():
        raise BizException(message="Quota reached", code=1050)

    @router.post("/users")
    def create_user(user: UserIn) -> Result[UserIn]:
        return Result.success(user)

    @router.get("/items")
    def read_item(id: int, q: str):
        return Result.success({"id": id, "q": q})

    @router.get("/sized")
    def sized(size: int = Query(..., ge=1)):
        return Result.success(size)

    @router.get("/headers")
    def with_header(x_tenant: str = Header(...)):
        return Result.success(x_tenant)

    @router.get("/reserve")
    def reserve(quantity: int):
        return Result.success(reserve_stock(quantity))

    @router.get("/quote")
    def quote():
        # Upstream payloads are internal data: a bad one is a server fault
        return Result.success(UpstreamQuote.model_validate({"price": "n/a (db-primary:5432 token=hunter2)"}))

    @router.get("/page")
    def page(params: PaginationParams = Depends(get_pagination_params)):
        return Result.success(params.model_dump())

    @router.get("/forbidden")
    def forbidden():
        raise HTTPException(status_code=403)

    @router.get("/order/{order_id}")
    def missing_order(order_id: int):
        raise HTTPException(status_code=404, detail=f"Order {order_id} does not exist")

    @router.get("/boom")
    def boom(detail: Optional[str] = None):
        raise RuntimeError(detail or "connection to db-primary:5432 refused, password=hunter2")

    return router


@pytest.fixture(scope="session")
def app() -> FastAPI:
    application = create_app()
    application.include_router(_failure_router(), prefix="/fail")
    return application


@pytest.fixture
def client(app: FastAPI):
    # The catch-all handler answers first; Starlette re-raises afterwards for server logs
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", future=True)
    install_full_table_guard(engine)
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield factory
    engine.dispose()
