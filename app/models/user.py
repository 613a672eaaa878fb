from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID

from app.models.errors import (
    CredentialMismatchError,
    InternalFailureError,
    PasswordHashingError,
    PasswordUnchangedError,
)
from app.services import password_service

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def new_user_id() -> str:
    """Return a UUIDv7 string: 48-bit Unix milliseconds, then random bits.

    Ids sort by creation time, which keeps the primary-key index append-mostly.
    """
    unix_ms = time.time_ns() // 1_000_000
    value = (unix_ms & 0xFFFF_FFFF_FFFF) << 80 | secrets.randbits(80)
    value = (value & ~(0xF << 76)) | (0x7 << 76)  # version 7
    value = (value & ~(0x3 << 62)) | (0x2 << 62)  # RFC 4122 variant
    return str(UUID(int=value))


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class User:
    """One account.

    Instances are immutable.  The only ways to obtain one are
    create_new_user() for a brand-new account and the user directory for
    a stored one; rotate_password() returns the rotated copy.
    """

    id: str
    email: str
    password: str = field(repr=False)  # argon2 hash, never plaintext
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def create_new_user(email: str, password: str) -> User:
        try:
            password_hash = password_service.hash_password(password)
        except PasswordHashingError:
            logger.exception("Password hashing failed for new user")
            raise InternalFailureError() from None

        now = _utcnow()
        return User(
            id=new_user_id(),
            email=normalize_email(email),
            password=password_hash,
            created_at=now,
            updated_at=now,
        )

    def verify_password(self, candidate: str) -> None:
        try:
            matches = password_service.verify_password(candidate, self.password)
        except PasswordHashingError:
            logger.exception("Stored password hash unreadable  user_id=%s", self.id)
            raise InternalFailureError() from None
        if not matches:
            raise CredentialMismatchError()

    def rotate_password(self, new_password: str) -> User:
        # Reject the rotation when the new password is the current one.
        try:
            unchanged = password_service.verify_password(new_password, self.password)
        except PasswordHashingError:
            # An unreadable current hash cannot match; replacing it is fine.
            unchanged = False
        if unchanged:
            raise PasswordUnchangedError()

        try:
            password_hash = password_service.hash_password(new_password)
        except PasswordHashingError:
            logger.exception("Password hashing failed  user_id=%s", self.id)
            raise InternalFailureError() from None

        return replace(self, password=password_hash, updated_at=_utcnow())

    def upgrade_password_hash(self, plain_password: str) -> User | None:
        """Rehash under the current argon2 parameters, or None if already current.

        Only meaningful right after verify_password() accepted
        *plain_password*.  Raises PasswordHashingError.
        """
        if not password_service.needs_rehash(self.password):
            return None
        return replace(
            self,
            password=password_service.hash_password(plain_password),
            updated_at=_utcnow(),
        )


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Public-safe projection of a User, kept in the session."""

    id: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> UserProfile:
        return cls(id=user.id, email=user.email)

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "email": self.email}

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> UserProfile:
        user_id = data.get("id")
        email = data.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str):
            raise ValueError("session identity must carry string id and email")
        return cls(id=user_id, email=email)
