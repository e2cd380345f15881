"""Service for account registration, login and profiles."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from marketplace.auth import create_access_token, hash_password, verify_password
from marketplace.config import Settings
from marketplace.constants import MIN_PASSWORD_LENGTH, SELF_SERVICE_ROLES
from marketplace.exceptions import AuthenticationError, NotFoundError, ValidationError
from marketplace.models.user import Principal, User, UserRole
from marketplace.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


def _to_user(user_row: Dict[str, Any]) -> User:
    """Convert a database row to a User, dropping the password hash."""
    public = {key: value for key, value in user_row.items() if key != "password_hash"}
    public["profile"] = public.get("profile") or {}
    return User.model_validate(public)


class UserService:
    """Service for managing accounts.

    Credential checks live here; the rest of the application only ever sees
    the Principal decoded from an access token.

    Attributes:
        user_repository: Repository for user data access.
        settings: Settings used to sign access tokens.
    """

    def __init__(self, user_repository: UserRepository, settings: Settings):
        """Initialize the service.

        Args:
            user_repository: UserRepository instance.
            settings: Application settings (JWT secret, algorithm, lifetime).
        """
        self.user_repository = user_repository
        self.settings = settings

    def register(
        self,
        email: str,
        password: str,
        role: str,
        profile: Optional[Dict[str, Any]] = None
    ) -> Tuple[User, str]:
        """Create a freelancer or business account.

        Args:
            email: Login email.
            password: Plain-text password, at least MIN_PASSWORD_LENGTH characters.
            role: "freelancer" or "business".
            profile: Optional initial profile.

        Returns:
            Tuple of (created user, access token).

        Raises:
            ValidationError: If email, password or role are invalid.
            ConflictError: If the email is already registered.
        """
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise ValidationError("A valid email is required")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if role not in SELF_SERVICE_ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(sorted(SELF_SERVICE_ROLES))}")

        user_row = self.user_repository.create({
            "email": email,
            "password_hash": hash_password(password),
            "role": role,
            "profile": profile or {}
        })
        user = _to_user(user_row)

        logger.info(f"Registered {role} account {user.id}")
        return user, self._issue_token(user)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """Verify credentials and issue an access token.

        Raises:
            AuthenticationError: If the email is unknown or the password wrong.
        """
        user_row = self.user_repository.get_by_email(email or "")
        if not user_row or not verify_password(password or "", user_row.get("password_hash")):
            raise AuthenticationError("Invalid email or password")

        user = _to_user(user_row)
        return user, self._issue_token(user)

    def get_user(self, user_id: str) -> User:
        """Get a user by ID.

        Raises:
            NotFoundError: If user not found.
        """
        user_row = self.user_repository.get_by_id(user_id)
        if not user_row:
            raise NotFoundError(f"User with ID {user_id} not found")
        return _to_user(user_row)

    def update_profile(self, principal: Principal, updates: Dict[str, Any]) -> User:
        """Merge updates into the caller's profile (top-level keys replace existing ones).

        Raises:
            ValidationError: If updates is empty.
            NotFoundError: If the account no longer exists.
        """
        if not updates:
            raise ValidationError("No profile fields to update")

        user = self.get_user(principal.id)
        user_row = self.user_repository.update(principal.id, {"profile": {**user.profile, **updates}})
        if not user_row:
            raise NotFoundError(f"User with ID {principal.id} not found")
        return _to_user(user_row)

    def list_freelancers(
        self,
        skills: Optional[List[str]] = None,
        hourly_rate_min: Optional[float] = None,
        hourly_rate_max: Optional[float] = None
    ) -> List[User]:
        """List freelancers, optionally filtered by skills and hourly rate.

        Args:
            skills: Keep freelancers listing any of these skills (case-insensitive).
            hourly_rate_min: Minimum profile hourly rate.
            hourly_rate_max: Maximum profile hourly rate.

        Returns:
            Freelancers, newest first.
        """
        freelancers = [_to_user(row) for row in self.user_repository.list_by_role(UserRole.FREELANCER.value)]

        if skills:
            wanted = {skill.strip().lower() for skill in skills if skill.strip()}
            freelancers = [
                user for user in freelancers
                if wanted & {str(s).lower() for s in user.profile.get("skills") or []}
            ]

        if hourly_rate_min is not None or hourly_rate_max is not None:
            def in_range(user: User) -> bool:
                try:
                    rate = float(user.profile.get("hourly_rate"))
                except (TypeError, ValueError):
                    return False
                if hourly_rate_min is not None and rate < hourly_rate_min:
                    return False
                if hourly_rate_max is not None and rate > hourly_rate_max:
                    return False
                return True

            freelancers = [user for user in freelancers if in_range(user)]

        return freelancers

    def list_businesses(self, industry: Optional[str] = None) -> List[User]:
        """List businesses, optionally filtered by industry (case-insensitive)."""
        businesses = [_to_user(row) for row in self.user_repository.list_by_role(UserRole.BUSINESS.value)]
        if industry:
            businesses = [
                user for user in businesses
                if str(user.profile.get("industry") or "").lower() == industry.strip().lower()
            ]
        return businesses

    def _issue_token(self, user: User) -> str:
        return create_access_token(user.id, user.role, self.settings)
