"""
Password hashing helpers (argon2) with support for legacy bcrypt and plaintext rows
"""
import secrets

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError

ARGON2_PREFIXES = ("$argon2id$", "$argon2i$", "$argon2d$")
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
HASH_PREFIXES = ARGON2_PREFIXES + BCRYPT_PREFIXES

ph = PasswordHasher()


def is_password_hash(stored: str | None) -> bool:
    """True when the stored credential carries a recognised hash prefix"""
    return bool(stored) and stored.startswith(HASH_PREFIXES)


def is_bcrypt_hash(stored: str | None) -> bool:
    return bool(stored) and stored.startswith(BCRYPT_PREFIXES)


def get_password_hash(password: str) -> str:
    return ph.hash(password)


def _verify_bcrypt(plain_password: str, hashed_password: str) -> bool:
    # $2y$ (PHP) and $2b$ hashes are computed identically
    if hashed_password.startswith("$2y$"):
        hashed_password = "$2b$" + hashed_password[4:]
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError:
        return False


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if is_bcrypt_hash(hashed_password):
        return _verify_bcrypt(plain_password, hashed_password)
    try:
        return ph.verify(hashed_password, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def verify_legacy_password(plain_password: str, stored: str | None) -> bool:
    """Constant-time comparison for rows still holding plaintext"""
    if not stored:
        return False
    return secrets.compare_digest(plain_password.encode(), stored.encode())


def needs_rehash(hashed_password: str) -> bool:
    """bcrypt rows are always moved to argon2 once the password is known"""
    if is_bcrypt_hash(hashed_password):
        return True
    return ph.check_needs_rehash(hashed_password)
