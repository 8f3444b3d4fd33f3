"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from loadmate.app.models.enums import UserRole, AuthProvider


class UserRegister(BaseModel):
    """
    Schema for user registration.
    
    Used by POST /auth/register endpoint.
    Every self-registered account starts as a CUSTOMER.
    """
    name: str = Field(..., min_length=1, max_length=100, description="Full name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    phone: Optional[str] = Field(default=None, max_length=30, description="Contact phone number")


class UserLogin(BaseModel):
    """
    Schema for user login.
    
    Used by POST /auth/login endpoint.
    """
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class UserResponse(BaseModel):
    """
    Schema for user information response.
    
    Used by GET /auth/profile endpoint.
    """
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    auth_provider: AuthProvider
    profile_picture: Optional[str] = None
    business_name: Optional[str] = None
    license_number: Optional[str] = None
    is_verified: bool
    created_at: datetime
    
    class Config:
        from_attributes = True


class TokenResponse(UserResponse):
    """
    Schema for JWT token response.
    
    Returned by successful login/register operations: the profile plus a token.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
