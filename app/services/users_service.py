from __future__ import annotations

import logging

from app.models.errors import (
    ConflictError,
    DuplicateEmailError,
    InternalFailureError,
    NotFoundError,
    PasswordHashingError,
)
from app.models.user import User, normalize_email
from app.repos.user_repo import UserRepo

logger = logging.getLogger(__name__)

USER_ALREADY_EXISTS = "user_already_exists"


class UserService:
    """Owns the directory-facing decisions: duplicates, missing users, persistence.

    Directory errors never leave this class as-is.  They are logged here and
    re-raised as InternalFailureError.
    """

    def __init__(self, user_repo: UserRepo) -> None:
        self._user_repo = user_repo

    async def register(self, email: str, password: str) -> User:
        # Hash first: a hashing failure should not cost a directory round-trip.
        user = User.create_new_user(email, password)

        try:
            existing = await self._user_repo.find_by_email(user.email)
        except Exception:
            logger.exception("Error checking for existing user  email=%s", user.email)
            raise InternalFailureError() from None
        if existing is not None:
            logger.warning("Rejected duplicate registration  email=%s", user.email)
            raise ConflictError(USER_ALREADY_EXISTS)

        # The check above and this insert are not atomic.  Two concurrent
        # registrations can both get here; the unique index decides.
        try:
            saved = await self._user_repo.insert(user)
        except DuplicateEmailError:
            logger.warning("Duplicate registration lost insert race  email=%s", user.email)
            raise ConflictError(USER_ALREADY_EXISTS) from None
        except Exception:
            logger.exception("Error inserting user  email=%s", user.email)
            raise InternalFailureError() from None

        logger.info("Created user  user_id=%s email=%s", saved.id, saved.email)
        return saved

    async def find_by_email(self, email: str) -> User:
        email = normalize_email(email)
        try:
            user = await self._user_repo.find_by_email(email)
        except Exception:
            logger.exception("Error finding user by email  email=%s", email)
            raise InternalFailureError() from None
        if user is None:
            raise NotFoundError()
        return user

    async def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> User:
        try:
            user = await self._user_repo.find_by_id(user_id)
        except Exception:
            logger.exception("Error finding user by id  user_id=%s", user_id)
            raise InternalFailureError() from None
        if user is None:
            raise NotFoundError()

        user.verify_password(current_password)
        rotated = user.rotate_password(new_password)

        try:
            updated = await self._user_repo.update(rotated)
        except Exception:
            logger.exception("Error updating user  user_id=%s", user_id)
            raise InternalFailureError() from None

        logger.info("Password changed  user_id=%s", updated.id)
        return updated

    async def upgrade_password_hash(self, user: User, password: str) -> User:
        """Store a fresh hash when *user*'s was made under older parameters.

        Best effort: the caller has already authenticated, so a failure
        here is logged and the user is returned unchanged.
        """
        try:
            upgraded = user.upgrade_password_hash(password)
        except PasswordHashingError:
            logger.exception("Password rehash failed  user_id=%s", user.id)
            return user
        if upgraded is None:
            return user

        try:
            saved = await self._user_repo.update(upgraded)
        except Exception:
            logger.exception("Error storing rehashed password  user_id=%s", user.id)
            return user

        logger.info("Rehashed password  user_id=%s", saved.id)
        return saved
