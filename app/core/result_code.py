"""
Result codes returned in every response envelope.

Code ranges:
- 200-299: success
- 400-499: client errors
- 500-599: server errors
- 1000+:   business errors

Codes are part of the public API contract. Never renumber an existing member.
"""

from enum import Enum
from typing import Optional


class ResultCode(Enum):
    # ========== Success ==========
    SUCCESS = (200, "Operation succeeded")

    # ========== Client errors (4xx) ==========
    BAD_REQUEST = (400, "Invalid request parameters")
    UNAUTHORIZED = (401, "Not authenticated, please log in")
    FORBIDDEN = (403, "Access denied")
    NOT_FOUND = (404, "Resource not found")
    METHOD_NOT_ALLOWED = (405, "Request method not supported")
    VALIDATION_FAILED = (422, "Request parameter validation failed")
    TOO_MANY_REQUESTS = (429, "Too many requests, please try again later")

    # ========== Server errors (5xx) ==========
    INTERNAL_SERVER_ERROR = (500, "Internal server error")
    SERVICE_UNAVAILABLE = (503, "Service temporarily unavailable, please try again later")

    # ========== Business errors (1xxx) ==========
    BUSINESS_ERROR = (1000, "Business operation failed")
    USER_NOT_FOUND = (1001, "User not found")
    INVALID_CREDENTIALS = (1002, "Invalid username or password")
    USER_ALREADY_EXISTS = (1003, "User already exists")
    USER_DISABLED = (1004, "User is disabled")
    INVALID_TOKEN = (1010, "Invalid token")
    TOKEN_EXPIRED = (1011, "Token has expired")
    FILE_UPLOAD_FAILED = (1020, "File upload failed")
    FILE_TYPE_NOT_SUPPORTED = (1021, "File type not supported")
    FILE_SIZE_EXCEEDED = (1022, "File size exceeds the limit")
    DATA_ALREADY_EXISTS = (1030, "Data already exists")
    DATA_NOT_FOUND = (1031, "Data not found")
    DATA_STATUS_ERROR = (1032, "Data is in an invalid state")
    OPTIMISTIC_LOCK_FAILED = (1040, "Data has been modified, please refresh and retry")

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message

    @classmethod
    def from_code(cls, code: int) -> Optional["ResultCode"]:
        """Return the member carrying ``code``, or None."""
        return _BY_CODE.get(code)


_BY_CODE: dict[int, ResultCode] = {}
for _member in ResultCode:
    if _member.code in _BY_CODE:
        raise RuntimeError(
            f"Duplicate result code {_member.code}: "
            f"{_BY_CODE[_member.code].name} and {_member.name}"
        )
    _BY_CODE[_member.code] = _member
del _member
