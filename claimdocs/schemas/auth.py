"""Authentication schemas for Supabase-authenticated operators."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    """User creation model."""

    supabase_user_id: str = Field(..., description="Supabase user ID")
    email: EmailStr = Field(..., description="User email address")
    full_name: Optional[str] = Field(None, description="User's full name")
    role: str = Field(default="user", description="User role")


class CurrentUser(BaseModel):
    """Current authenticated user information."""

    id: str = Field(..., description="Supabase user ID")
    email: EmailStr = Field(..., description="User email")
    role: str = Field(default="user", description="User role")

    full_name: Optional[str] = Field(None, description="User's full name")
    app_metadata: Optional[Dict[str, Any]] = Field(None, description="Application metadata")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")


class UserProfile(BaseModel):
    """User profile information for API responses."""

    id: UUID = Field(..., description="Internal user ID")
    supabase_user_id: str = Field(..., description="Supabase user ID")
    email: str = Field(..., description="User email")
    full_name: Optional[str] = Field(None, description="User's full name")
    role: str = Field(default="user", description="User role")
    created_at: datetime = Field(..., description="Account creation date")
