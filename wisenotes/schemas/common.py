"""
WiseNotes API — Shared Response Schemas
========================================

What:  Error and health response models shared by every router.
Why:   Clients need one error shape to tell "fix your input" (400 with a
       field_name) from "not found" (404) from "try again later" (5xx).
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Title must be at most 25 characters",
            "field_name": "title",
            "details": {"max_length": 25},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error kind")
    message: str = Field(description="Human-readable error description")
    field_name: Optional[str] = Field(default=None, description="Offending input field, if any")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
