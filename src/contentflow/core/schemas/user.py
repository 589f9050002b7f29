"""User schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.user import UserRole


class UserCreate(BaseModel):
    """Schema for registering a user known to the identity provider."""
    email: str = Field(..., min_length=3, max_length=255, description="Email address")
    name: Optional[str] = Field(None, max_length=255, description="Display name")
    role: UserRole = Field(default=UserRole.CONTRIBUTOR, description="Role")
    department: Optional[str] = Field(None, max_length=255)

    model_config = ConfigDict(use_enum_values=True)


class UserRoleUpdate(BaseModel):
    role: UserRole

    model_config = ConfigDict(use_enum_values=True)


class UserSummary(BaseModel):
    id: int
    email: str
    name: Optional[str]
    role: str

    model_config = ConfigDict(from_attributes=True)


class UserResponse(UserSummary):
    department: Optional[str]
    created_at: datetime
    updated_at: datetime
