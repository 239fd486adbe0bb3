from abc import ABC


class UserError(ABC, Exception):
    """Base class for caller-facing errors.

    Messages of UserError subclasses may be shown to end users, so they
    must never contain tokens or other secrets.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when a session token does not resolve to a live session."""

    def __init__(self, message: str = "Invalid or expired session") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when input fails validation."""


class SessionCollisionError(RuntimeError):
    """Raised when a new session's identifier already exists in the store.

    Under a sound random source this cannot happen, so it is reported as an
    internal failure rather than handled.
    """
