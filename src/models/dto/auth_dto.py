"""
Data Transfer Objects for authentication endpoints.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """Request model for user login."""
    username: str = Field(..., description="Username")
    password: str = Field(..., description="Password")


class LoginResponse(BaseModel):
    """Response model for successful login."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    username: str = Field(..., description="Authenticated username")


class RegisterRequest(BaseModel):
    """Request model for account registration."""
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr = Field(..., description="Address that receives expiry alerts")
    password: str = Field(..., min_length=8, max_length=72)


class ProfileResponse(BaseModel):
    username: str
    email: str
    alerts_enabled: bool
    created_at: Optional[datetime] = None


class UpdateProfileRequest(BaseModel):
    """Request model for profile changes; omitted fields stay unchanged."""
    email: Optional[EmailStr] = None
    alerts_enabled: Optional[bool] = None


class DeleteAccountRequest(BaseModel):
    password: str = Field(..., min_length=1, description="Current password for confirmation")
