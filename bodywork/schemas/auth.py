"""
Pydantic schemas for authentication endpoints.

GET /auth/me is consumed by the web client, which expects camelCase keys.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class EffectiveUser(BaseModel):
    """The account data is currently scoped to."""
    id: str = Field(..., description="Account UUID (auth.users id)")
    email: Optional[str] = Field(None, description="Account email")


class AuthMeResponse(BaseModel):
    """
    Response for GET /auth/me - the effective identity.

    While an admin is impersonating, `user` is the practitioner's account
    and the impersonation banner fields are filled in.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "user": {
                        "id": "5b0e3c4e-8f0e-4d8a-9a55-1f4a3e2b7c10",
                        "email": "therapist@example.com"
                    },
                    "isImpersonating": True,
                    "practitionerName": "Dana Reyes",
                    "adminReturnUrl": "/admin/practitioners/0c1d..."
                }
            ]
        }
    )

    user: Optional[EffectiveUser] = Field(None, description="Effective user, or null")
    is_impersonating: bool = Field(False, alias="isImpersonating")
    practitioner_name: Optional[str] = Field(None, alias="practitionerName")
    admin_return_url: Optional[str] = Field(None, alias="adminReturnUrl")
