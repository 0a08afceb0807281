"""
Health check schema.
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for GET /health."""

    status: str = Field(default="ok", examples=["ok"])
    service: str = Field(default="bodywork-practice-backend")
    environment: str = Field(..., description="ENVIRONMENT the process runs in", examples=["production"])
