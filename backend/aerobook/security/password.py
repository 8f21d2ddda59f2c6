"""
Salted password hashing, verification and strength policy.

Stored form is ``base64(salt) + ":" + base64(sha256(salt || password))``
with a fresh 16-byte salt per hash. ":" never appears in the base64
alphabet, so the stored form always splits into exactly two parts.
"""

import base64
import binascii
import hashlib
import hmac
import re
import secrets
import string
from typing import List, Optional, Tuple

SALT_LENGTH = 16
DELIMITER = ":"
MIN_LENGTH = 6

_LETTER = re.compile(r"[^\W\d_]")
_DIGIT = re.compile(r"\d")

_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits

_random = secrets.SystemRandom()


def _digest(salt: bytes, plain_password: str) -> bytes:
    md = hashlib.sha256()
    md.update(salt)
    md.update(plain_password.encode("utf-8"))
    return md.digest()


def hash_password(plain_password: str) -> str:
    if not isinstance(plain_password, str) or not plain_password.strip():
        raise ValueError("Password must be a non-empty string")

    salt = secrets.token_bytes(SALT_LENGTH)
    digest = _digest(salt, plain_password)
    return (
        base64.b64encode(salt).decode("ascii")
        + DELIMITER
        + base64.b64encode(digest).decode("ascii")
    )


def verify_password(plain_password: Optional[str], stored_hash: Optional[str]) -> bool:
    """Check a password against a stored hash. Malformed hashes never match."""
    if not isinstance(plain_password, str) or not isinstance(stored_hash, str):
        return False

    parts = stored_hash.split(DELIMITER)
    if len(parts) != 2:
        return False

    try:
        salt = base64.b64decode(parts[0], validate=True)
        expected = base64.b64decode(parts[1], validate=True)
    except (binascii.Error, ValueError):
        return False

    if not salt or not expected:
        return False

    return hmac.compare_digest(_digest(salt, plain_password), expected)


def validate_password(pw: str) -> Tuple[bool, List[str]]:
    errors: List[str] = []

    if not isinstance(pw, str):
        return False, ["Password must be a string"]

    if len(pw) < MIN_LENGTH:
        errors.append(f"Password must be at least {MIN_LENGTH} characters")
    if not _LETTER.search(pw):
        errors.append("Password must include at least 1 letter")
    if not _DIGIT.search(pw):
        errors.append("Password must include at least 1 number")

    return (len(errors) == 0), errors


def is_valid_password(pw: str) -> bool:
    valid, _ = validate_password(pw)
    return valid


def password_requirements() -> str:
    return (
        f"Password must be at least {MIN_LENGTH} characters long "
        "and contain at least one letter and one number."
    )


def generate_random_password(length: int = 8) -> str:
    """
    Generate a password that always satisfies the strength policy.

    One uppercase letter, one lowercase letter and one digit are forced,
    the rest is drawn from the full alphabet, then the whole is shuffled.
    Lengths below the policy minimum are raised to it.
    """
    length = max(length, MIN_LENGTH)

    chars = [
        _random.choice(string.ascii_uppercase),
        _random.choice(string.ascii_lowercase),
        _random.choice(string.digits),
    ]
    chars.extend(_random.choice(_ALPHABET) for _ in range(length - 3))
    _random.shuffle(chars)
    return "".join(chars)
