"""Authentication schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel

from app.models.user import UserRole


class TokenPayload(BaseModel):
    """JWT token payload"""
    sub: str  # User ID
    role: str
    exp: datetime
    type: str = "access"


class UserResponse(BaseModel):
    """User response"""
    id: UUID
    email: str
    full_name: Optional[str]
    phone: Optional[str]
    role: UserRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
