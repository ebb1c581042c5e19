"""Password policy and hashing."""

from __future__ import annotations

import hashlib
import hmac
import os
import string

from greenspace.identity.errors import InvalidPasswordError

MIN_LENGTH = 8
_ITERATIONS = 260_000
_SYMBOLS = set(string.punctuation + " ")


def check_policy(password: str) -> None:
    """Raise InvalidPasswordError listing every rule the password breaks."""
    problems: list[str] = []
    if len(password) < MIN_LENGTH:
        problems.append(f"must have length greater than or equal to {MIN_LENGTH}")
    if not any(c.islower() for c in password):
        problems.append("must have lowercase characters")
    if not any(c.isupper() for c in password):
        problems.append("must have uppercase characters")
    if not any(c.isdigit() for c in password):
        problems.append("must have numeric characters")
    if not any(c in _SYMBOLS for c in password):
        problems.append("must have symbol characters")
    if problems:
        raise InvalidPasswordError(
            "Password did not conform with policy: Password " + "; ".join(problems)
        )


def hash_password(password: str, salt: bytes | None = None) -> str:
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, _ITERATIONS)
    return f"pbkdf2_sha256${_ITERATIONS}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt_hex, digest_hex = encoded.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), bytes.fromhex(salt_hex), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), digest_hex)
