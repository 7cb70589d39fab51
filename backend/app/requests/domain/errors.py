from typing import Optional


class DomainError(Exception):
    """Base domain error with a user-facing message."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


class ValidationError(DomainError):
    """Raised when input is malformed or violates a constraint."""


class NotFound(DomainError):
    """Raised when a referenced user or request is missing."""


class DuplicateUsername(DomainError):
    """Raised when a username is already taken."""

    def __init__(self, username: str) -> None:
        super().__init__(f"Username '{username}' is already taken", field="username")


class PolicyError(DomainError):
    """Base for lifecycle rejections."""


class InvalidTransition(PolicyError):
    """Raised when the requested status change is not a legal edge."""


class Unauthorized(PolicyError):
    """Raised when the acting user may not perform the change."""


class TerminalState(PolicyError):
    """Raised when the request can no longer change."""


class ImmutableAfterDispatch(PolicyError):
    """Raised when descriptive fields are edited after dispatch."""
