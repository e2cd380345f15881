"""Pydantic models for accounts and authenticated principals."""

from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """Role of an account."""
    FREELANCER = "freelancer"
    BUSINESS = "business"
    ADMIN = "admin"


class User(BaseModel):
    """Public view of an account. The password hash never leaves the repository layer.

    Attributes:
        id: Unique user identifier.
        email: Login email, stored lower-cased.
        role: Account role.
        profile: Free-form profile (name, bio, skills, hourly_rate, company_name, industry...).
        created_at: When the account was created.
    """
    id: Optional[str] = None
    email: str
    role: UserRole
    profile: Dict[str, Any] = {}
    created_at: Optional[datetime] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class Principal(BaseModel):
    """Authenticated actor on whose behalf an operation runs."""
    id: str
    role: UserRole

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        frozen = True
