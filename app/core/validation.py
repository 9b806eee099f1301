"""
Argument validation for service functions.

``@validated`` checks call arguments with ``pydantic.validate_call`` and turns
argument violations into ``ConstraintViolationError`` (HTTP 400 at the API
boundary). A ``ValidationError`` raised inside the function body is internal
and propagates untouched, ending up as a generic 500.
"""

from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from pydantic import ConfigDict, ValidationError, validate_call

from app.core.exceptions import ConstraintViolationError

F = TypeVar("F", bound=Callable[..., Any])


class _BodyValidationError(Exception):
    """Carries a ValidationError raised by the function body past validate_call."""

    def __init__(self, error: ValidationError):
        self.error = error


def validated(func: Optional[F] = None, *, config: Optional[ConfigDict] = None):
    """
    Decorator validating arguments against the function's type hints.

    Example:
        >>> @validated
        ... def reserve(quantity: Annotated[int, Field(gt=0)]) -> int:
        ...     ...
    """

    def decorator(f: F) -> F:
        @wraps(f)
        def body(*args: Any, **kwargs: Any) -> Any:
            try:
                return f(*args, **kwargs)
            except ValidationError as exc:
                raise _BodyValidationError(exc) from exc

        checked = validate_call(body, config=config)

        @wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return checked(*args, **kwargs)
            except _BodyValidationError as wrapped:
                raise wrapped.error
            except ValidationError as exc:
                raise ConstraintViolationError(exc.errors()) from exc

        return wrapper  # type: ignore[return-value]

    # Allow usage with or without parentheses
    if func is None:
        return decorator
    return decorator(func)
