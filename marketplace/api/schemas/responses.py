"""Shared response schemas for API endpoints."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Response model for endpoints that only report an outcome."""
    success: bool = True
    message: str
