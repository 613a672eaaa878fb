"""Failure taxonomy for the auth domain.

DomainError subclasses are the only failures services let escape.  The
expected conditions (conflict, not found, credential mismatch, unchanged
password, unauthenticated) travel verbatim to the HTTP layer; anything
unexpected is logged where it happens and collapsed to
InternalFailureError, which carries no detail about the cause.

The remaining exceptions belong to collaborators (password hasher, user
directory, session store).  Services translate them; they never reach a
caller.
"""

from __future__ import annotations


class DomainError(Exception):
    code = "domain_error"


class ConflictError(DomainError):
    code = "conflict"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NotFoundError(DomainError):
    code = "not_found"


class CredentialMismatchError(DomainError):
    code = "credential_mismatch"


class PasswordUnchangedError(DomainError):
    code = "password_unchanged"


class UnauthenticatedError(DomainError):
    code = "unauthenticated"


class InternalFailureError(DomainError):
    code = "internal_failure"


# --- Collaborator errors ---


class PasswordHashingError(Exception):
    """The hashing library failed, or a stored hash cannot be parsed."""


class DuplicateEmailError(Exception):
    """The user directory refused an insert on its unique email constraint."""

    def __init__(self, email: str) -> None:
        super().__init__(email)
        self.email = email


class SessionStoreError(Exception):
    """The session backend could not be read or written."""
