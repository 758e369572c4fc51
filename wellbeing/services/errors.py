"""
Operational errors raised by the services.

These are NOT bugs - they are the rules doing their job. Each one carries
the HTTP status the API layer answers with.
"""


class DomainError(Exception):
    """Base class for expected, caller-facing failures."""
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Malformed input or a violated static rule (e.g. max_members out of range)."""
    status_code = 400


class AuthError(DomainError):
    """Missing, invalid or expired credential."""
    status_code = 401


class AuthorizationError(DomainError):
    """Authenticated, but the membership or role does not allow the action."""
    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    status_code = 409


class CapacityError(DomainError):
    """Group or event is full."""
    status_code = 400


class InvariantError(DomainError):
    """The action would break a standing structural rule (e.g. last facilitator leaving)."""
    status_code = 403
