"""
Base exception classes for the application.

Exception hierarchy follows the layer structure:
- Repository layer raises technical exceptions (RepositoryError and subclasses)
- Service layer raises BizException when a business rule is violated
- API layer never catches them; app/api/exception_handlers.py translates
  every exception into a Result envelope exactly once
"""

from typing import Any, Optional, Union

from app.core.result_code import ResultCode


class AppException(Exception):
    """
    Base exception for all application-specific exceptions.
    """

    def __init__(self, message: str = "An application error occurred"):
        self.message = message
        super().__init__(self.message)


# ============================================================================
# BUSINESS EXCEPTIONS (raised by service layer)
# ============================================================================


class BizException(AppException):
    """
    Raised by application logic when a business rule is violated.

    The global handler returns it as HTTP 200 with the exception's own
    code and message in the envelope.

    Usage:
        raise BizException("Order already shipped")            # BUSINESS_ERROR code
        raise BizException(ResultCode.USER_NOT_FOUND)          # code + message of the entry
        raise BizException(ResultCode.USER_NOT_FOUND, "No user with id 42")
        raise BizException(message="Quota reached", code=1050)  # fully custom

    Chain the original cause with ``raise BizException(...) from exc``.
    """

    def __init__(
            self,
            error: Union[ResultCode, str, None] = None,
            message: Optional[str] = None,
            *,
            code: Optional[int] = None,
    ):
        if isinstance(error, ResultCode):
            resolved_code = error.code
            resolved_message = message if message is not None else error.message
        else:
            if error is not None and message is not None:
                raise TypeError("Pass the message either positionally or as message=, not both")
            resolved_code = ResultCode.BUSINESS_ERROR.code
            resolved_message = error if error is not None else message
            if resolved_message is None:
                resolved_message = ResultCode.BUSINESS_ERROR.message

        if code is not None:
            resolved_code = code

        self.code: int = resolved_code
        super().__init__(resolved_message)

    def __repr__(self) -> str:
        return f"BizException(code={self.code}, message={self.message!r})"


class ConstraintViolationError(AppException):
    """
    Raised when the arguments of a service call break their declared constraints.

    Produced by ``app.core.validation.validated``; ``errors`` holds the pydantic
    error entries in the order they were reported.
    """

    def __init__(self, errors: list[dict[str, Any]]):
        self.errors = errors
        super().__init__(f"{len(errors)} constraint violation(s)")


# ============================================================================
# REPOSITORY/TECHNICAL EXCEPTIONS
# ============================================================================


class RepositoryError(AppException):
    """
    Base exception for repository layer errors.

    Not translated specifically: surfaces to clients as a generic 500.
    """

    pass


class FullTableOperationError(RepositoryError):
    """
    Raised when an UPDATE or DELETE statement has no WHERE clause.
    """

    def __init__(self, table: str, operation: str):
        self.table = table
        self.operation = operation
        super().__init__(f"Refusing {operation} without WHERE clause on table '{table}'")


class MessagePublishError(AppException):
    """
    Raised when the broker refuses a message (nack) or cannot route it.
    """

    def __init__(self, exchange: str, routing_key: str, reason: str):
        self.exchange = exchange
        self.routing_key = routing_key
        super().__init__(f"Message to exchange='{exchange}', routing_key='{routing_key}' failed: {reason}")
