from datetime import date, datetime, time
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, Field, field_serializer
from pydantic_core import to_jsonable_python

from app.core.result_code import ResultCode

T = TypeVar("T")

DATE_TIME_PATTERN = "%Y-%m-%d %H:%M:%S"
DATE_PATTERN = "%Y-%m-%d"
TIME_PATTERN = "%H:%M:%S"


def json_default(value: Any) -> Any:
    """``json.dumps`` fallback: temporal values in the envelope formats, models as JSON."""
    if isinstance(value, datetime):
        return value.strftime(DATE_TIME_PATTERN)
    if isinstance(value, date):
        return value.strftime(DATE_PATTERN)
    if isinstance(value, time):
        return value.strftime(TIME_PATTERN)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return to_jsonable_python(value)


class Result(BaseModel, Generic[T]):
    """
    Unified response envelope returned by every endpoint.

    Usage:
        return Result.success(user)
        return Result.success(user, message="Created")
        return Result.success()
        return Result.error("User not found")
        return Result.error(ResultCode.UNAUTHORIZED)
        return Result.error(1050, "Quota reached")
    """

    code: int
    message: str
    data: Optional[T] = Field(None, exclude_if=lambda value: value is None)
    timestamp: datetime = Field(default_factory=datetime.now)

    @field_serializer("timestamp")
    def _format_timestamp(self, value: datetime) -> str:
        return value.strftime(DATE_TIME_PATTERN)

    @classmethod
    def success(cls, data: Optional[T] = None, *, message: Optional[str] = None) -> "Result[T]":
        return cls(
            code=ResultCode.SUCCESS.code,
            message=message if message is not None else ResultCode.SUCCESS.message,
            data=data,
        )

    @classmethod
    def error(
            cls,
            error: Union[ResultCode, str, int, None] = None,
            message: Optional[str] = None,
    ) -> "Result[T]":
        """
        Build a failure envelope; ``data`` is always absent.

        - ``error()``                 -> INTERNAL_SERVER_ERROR code and message
        - ``error("msg")``            -> INTERNAL_SERVER_ERROR code, custom message
        - ``error(ResultCode.X)``     -> code and message of the entry
        - ``error(1050, "msg")``      -> fully custom
        """
        if error is None:
            error = ResultCode.INTERNAL_SERVER_ERROR

        if isinstance(error, ResultCode):
            return cls(code=error.code, message=message if message is not None else error.message)
        if isinstance(error, str):
            return cls(code=ResultCode.INTERNAL_SERVER_ERROR.code, message=error)
        if message is None:
            entry = ResultCode.from_code(error)
            message = entry.message if entry else ResultCode.INTERNAL_SERVER_ERROR.message
        return cls(code=error, message=message)

    def is_success(self) -> bool:
        return self.code == ResultCode.SUCCESS.code
