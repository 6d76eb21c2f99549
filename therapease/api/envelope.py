"""
Response envelope shared by every endpoint.

Success: ``{"success": true, "data": ..., "message": ...}``
Failure: ``{"success": false, "message": ...}``
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Success envelope."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class ErrorEnvelope(BaseModel):
    """Failure envelope."""
    success: bool = False
    message: str


def error_body(message: str) -> dict:
    return ErrorEnvelope(message=message).model_dump()
