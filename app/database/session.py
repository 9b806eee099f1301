from __future__ import annotations

from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.sql.dml import Delete, Update

from app.core.config import get_settings
from app.core.exceptions import BizException, FullTableOperationError
from app.core.result_code import ResultCode
from app.utils.logger import get_logger

logger = get_logger(__name__)

settings = get_settings()


def build_database_url() -> str | URL:
    # Prefer DATABASE_URL if provided; otherwise build from components
    if settings.database_url:
        return settings.database_url

    # Safe URL creation (handles special characters)
    return URL.create(
        "postgresql+psycopg",
        username=settings.postgres_conn_username,
        password=settings.postgres_conn_password,
        host=settings.postgres_conn_host,
        port=settings.postgres_conn_port,
        database=settings.postgres_conn_dbname,
    )


def _refuse_full_table_writes(conn, clauseelement, multiparams, params, execution_options):
    if isinstance(clauseelement, (Update, Delete)) and clauseelement.whereclause is None:
        operation = "UPDATE" if isinstance(clauseelement, Update) else "DELETE"
        table = getattr(clauseelement.table, "name", str(clauseelement.table))
        logger.warning("Blocked %s without WHERE clause on table '%s'", operation, table)
        raise FullTableOperationError(table, operation)


def install_full_table_guard(target: Engine) -> None:
    """Refuse UPDATE/DELETE statements that carry no WHERE clause on ``target``."""
    if not event.contains(target, "before_execute", _refuse_full_table_writes):
        event.listen(target, "before_execute", _refuse_full_table_writes)


def _pool_options(url: str | URL) -> dict:
    # SQLite (local development, tests) uses its own pool classes
    if str(url).startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,  # drops dead connections
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_recycle": settings.db_pool_recycle,
    }


_url = build_database_url()
engine = create_engine(
    _url,
    **_pool_options(_url),
    echo=settings.db_echo,
    future=True,
)
install_full_table_guard(engine)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_conflict(db: Session) -> None:
    """
    Commit ``db``; a lost optimistic-lock race becomes a business error.
    """
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.warning("Optimistic lock conflict: %s", exc)
        raise BizException(ResultCode.OPTIMISTIC_LOCK_FAILED) from exc
