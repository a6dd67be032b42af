# Custom exceptions for the dashboard engine
from fastapi import HTTPException, status
from typing import Optional


class TableroException(Exception):
    """Base exception for the dashboard engine."""
    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class EmptyInputError(TableroException):
    """Raised when there are no tables, rows or columns to analyze."""
    pass


class UnsupportedFileError(TableroException):
    """Raised when an uploaded file cannot be decoded into tables."""
    pass


class LLMException(TableroException):
    """Raised when the external model call fails or returns garbage."""
    pass


class DanglingReferenceError(AssertionError):
    """A synthesized chart or KPI points at a column the table does not have."""
    pass


# HTTP Exception helpers
def bad_request(detail: str = "Bad request") -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def unprocessable(detail: str = "Unprocessable entity") -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)
