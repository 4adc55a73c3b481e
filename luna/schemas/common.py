"""
Common schema types used across the API.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    """Standard success response without payload."""

    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    """Standard error response."""

    success: bool = False
    error: str
    code: str


class HealthResponse(CamelModel):
    """Health check response."""

    status: str = "ok"
    version: str
    timestamp: datetime
    ai_configured: bool = False
    environment: Optional[str] = None
