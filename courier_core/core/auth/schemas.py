# courier_core/core/auth/schemas.py
from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

from courier_core.shared.schemas.enums import UserRole

class UserLogin(BaseModel):
    """Login with email and password"""
    email: str = Field(..., description="User email")
    password: str = Field(..., min_length=6, description="User password")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "driver@courier.ca",
                "password": "driver123"
            }
        }

class SignUpRequest(BaseModel):
    """Create an account, optionally with a driver invite code"""
    full_name: str = Field(..., min_length=2, max_length=255)
    email: str = Field(..., description="User email")
    phone: str = Field(..., description="Canadian phone number")
    password: str = Field(..., min_length=6)
    invite_code: Optional[str] = Field(None, description="Driver invite code")

    @validator('email')
    def validate_email(cls, v):
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError('Invalid email address')
        return v

    @validator('full_name')
    def validate_full_name(cls, v):
        if not v.strip():
            raise ValueError('Full name cannot be empty')
        return v.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "full_name": "Jane Doe",
                "email": "jane@courier.ca",
                "phone": "(416) 555-0199",
                "password": "secret123",
                "invite_code": "DRIVE2025"
            }
        }

class UserResponse(BaseModel):
    id: str
    full_name: str
    email: str
    phone: str
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
