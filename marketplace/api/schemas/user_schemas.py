"""Request and response schemas for auth and user endpoints."""

from pydantic import BaseModel
from typing import Any, Dict, List

from marketplace.models.user import User


class RegisterRequest(BaseModel):
    """Request model for creating an account."""
    email: str
    password: str
    role: str
    profile: Dict[str, Any] = {}


class LoginRequest(BaseModel):
    """Request model for logging in."""
    email: str
    password: str


class AuthResponse(BaseModel):
    """Access token issued on register/login."""
    access_token: str
    token_type: str = "bearer"
    user: User


class UserListResponse(BaseModel):
    """List of users."""
    users: List[User]
    total: int
