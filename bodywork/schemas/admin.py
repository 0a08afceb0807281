"""
Pydantic schemas for the admin portal endpoints.

Login and impersonation-start bodies declare their fields optional so the
routes can answer a missing field with 400 (the web client's contract)
instead of FastAPI's 422.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class AdminLoginRequest(BaseModel):
    """Request body for POST /admin/login."""
    email: Optional[str] = Field(None, description="Admin email")
    password: Optional[str] = Field(None, description="Admin password")


class SuccessResponse(BaseModel):
    """Bare acknowledgement."""
    success: bool = Field(..., description="Whether the operation succeeded")


class ImpersonationStartRequest(BaseModel):
    """Request body for POST /admin/impersonate."""
    practitioner_id: Optional[str] = Field(None, description="Practitioner to impersonate")


class RedirectResult(BaseModel):
    """Acknowledgement with the page the client should navigate to."""
    success: bool = Field(..., description="Whether the operation succeeded")
    redirect: str = Field(..., description="Client-side path to navigate to", examples=["/dashboard"])


class AdminEventResponse(BaseModel):
    """One admin_events row."""
    id: Optional[str] = None
    actor_type: str = Field(..., description="admin or system")
    actor_id: Optional[str] = None
    actor_email: Optional[str] = None
    event_type: str = Field(..., examples=["admin.impersonation_started"])
    event_category: Optional[str] = None
    practitioner_id: Optional[str] = None
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None


class AdminEventListResponse(BaseModel):
    """Response for GET /admin/events."""
    events: List[AdminEventResponse] = Field(..., description="Events, newest first")
    count: int = Field(..., description="Number of events returned")
    limit: int = Field(..., description="Page size used")
    offset: int = Field(..., description="Offset used")


class ImpersonationSessionResponse(BaseModel):
    """One impersonation_sessions row."""
    id: str
    admin_id: str
    practitioner_id: str
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class ImpersonationSessionListResponse(BaseModel):
    """Response for GET /admin/impersonation/sessions."""
    sessions: List[ImpersonationSessionResponse]
    count: int
