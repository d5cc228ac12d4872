"""Salted one-way password hashing (scrypt) with constant-time verification."""

import base64
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

_SCHEME = "scrypt"
_SALT_BYTES = 16
_KEY_LENGTH = 32
_N = 2**14
_R = 8
_P = 1


def _kdf(salt: bytes) -> Scrypt:
    return Scrypt(salt=salt, length=_KEY_LENGTH, n=_N, r=_R, p=_P)


def get_password_hash(password: str) -> str:
    """Hash a password with a fresh random salt.

    The result is ``scrypt$<salt>$<digest>`` with both parts urlsafe-base64.
    """
    salt = os.urandom(_SALT_BYTES)
    digest = _kdf(salt).derive(password.encode("utf-8"))
    return "$".join(
        [
            _SCHEME,
            base64.urlsafe_b64encode(salt).decode("ascii"),
            base64.urlsafe_b64encode(digest).decode("ascii"),
        ]
    )


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a stored hash using constant-time comparison."""
    try:
        scheme, salt_b64, digest_b64 = hashed_password.split("$")
    except ValueError:
        return False
    if scheme != _SCHEME:
        return False

    try:
        salt = base64.urlsafe_b64decode(salt_b64)
        expected = base64.urlsafe_b64decode(digest_b64)
    except ValueError:
        return False
    try:
        _kdf(salt).verify(plain_password.encode("utf-8"), expected)
    except InvalidKey:
        return False
    return True
