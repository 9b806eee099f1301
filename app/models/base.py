from sqlalchemy import Column, Integer
from sqlalchemy.orm import DeclarativeBase


# Base class for SQLAlchemy models
class Base(DeclarativeBase):
    pass


class VersionedMixin:
    """
    Optimistic locking for a mapped class.

    Every UPDATE is issued with ``WHERE version = <loaded version>`` and bumps
    the column; a concurrent modification makes the flush raise
    ``StaleDataError``, which ``commit_or_conflict`` turns into
    ``ResultCode.OPTIMISTIC_LOCK_FAILED``.
    """

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
