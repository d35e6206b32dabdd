"""Base schema models for the API.

Payloads are exchanged in camelCase; Python code keeps snake_case field names.
"""

from datetime import datetime
from typing import (
    Any,
    Dict,
    Optional,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serialises field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(description="Error type")
    error_code: Optional[str] = Field(None, description="Stable machine-readable code, e.g. SESSION_FULL")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    error_id: str = Field(description="Identifier to correlate with server logs")
    timestamp: datetime = Field(description="Error timestamp")
    path: str = Field(description="Request path")
