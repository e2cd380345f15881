"""Domain exceptions shared by services and the HTTP layer.

All errors derive from ValueError so the app-wide ValueError handler keeps
working for code that only knows about the base type. Each subclass carries
the HTTP status code it maps to at the transport boundary.
"""


class MarketplaceError(ValueError):
    """Base class for recoverable marketplace errors."""

    status_code = 400


class NotFoundError(MarketplaceError):
    """Referenced job, proposal or user does not exist."""

    status_code = 404


class ConflictError(MarketplaceError):
    """Operation would violate a lifecycle or uniqueness invariant."""

    status_code = 409


class ForbiddenError(MarketplaceError):
    """Actor lacks the role or ownership required for the operation."""

    status_code = 403


class ValidationError(MarketplaceError):
    """Malformed input: missing field, non-positive amount, unknown enum value."""

    status_code = 422


class AuthenticationError(MarketplaceError):
    """Credentials or bearer token could not be verified."""

    status_code = 401
