"""
Pydantic schemas for request/response validation.

This module contains:
- Request models for incoming data validation
- Response models for API responses

The Message model itself lives in models.py.
"""

from typing import Optional

from pydantic import BaseModel, Field

from msgboard.models import Message


# =============================================================================
# Pydantic Request Models
# =============================================================================

class SaveRequest(BaseModel):
    """
    Body of POST /save.

    `text` is optional here so that a missing or blank value is reported
    by the message service as a 400 with a readable message.
    """
    text: Optional[str] = Field(None, description="Message text (1-500 characters after trimming)")

    model_config = {
        "json_schema_extra": {
            "examples": [{"text": "Hello"}]
        }
    }


# =============================================================================
# Pydantic Response Models
# =============================================================================

class SaveResponse(BaseModel):
    """Response model for a stored message."""
    saved: bool = Field(default=True, description="Operation status")
    id: str = Field(..., description="Identifier of the new message")
    message: Message


class DeleteResponse(BaseModel):
    """Response model for a deleted message."""
    deleted: bool = Field(default=True, description="Operation status")
    id: str = Field(..., description="Identifier of the removed message")


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""
    status: str = Field(..., description="Health status")
    timestamp: str = Field(..., description="Server time (ISO-8601 UTC)")
    messagesCount: int = Field(..., ge=0, description="Number of stored messages")


class ErrorResponse(BaseModel):
    """Response model for error responses."""
    error: str = Field(..., description="Error description")
