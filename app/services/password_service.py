from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError

from app.models.errors import PasswordHashingError

# Argon2id with the library defaults.  The encoded hash carries its own
# parameters and salt; hashes made under older parameters are upgraded
# on the next successful login (see needs_rehash).
_ph = PasswordHasher()


def hash_password(plain_password: str) -> str:
    # Any string is hashable, the empty one included.  Length and
    # strength rules belong to request validation, not to the hasher.
    try:
        return _ph.hash(plain_password)
    except HashingError as e:
        raise PasswordHashingError("argon2 hashing failed") from e


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Return True when *plain_password* matches *password_hash*.

    A wrong password is an ordinary False.  Only a stored hash that
    argon2 cannot parse raises, since that points at corrupt data
    rather than a bad guess.
    """
    try:
        return _ph.verify(password_hash, plain_password)
    except VerificationError:
        # VerifyMismatchError and friends: the credentials differ
        return False
    except InvalidHashError as e:
        raise PasswordHashingError("stored password hash is unreadable") from e


def needs_rehash(password_hash: str) -> bool:
    """True when *password_hash* was made with other parameters than _ph's."""
    try:
        return _ph.check_needs_rehash(password_hash)
    except InvalidHashError as e:
        raise PasswordHashingError("stored password hash is unreadable") from e
