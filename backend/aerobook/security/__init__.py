"""
Credential handling for user, airline and administrator accounts.
"""

from .password import (
    hash_password,
    verify_password,
    is_valid_password,
    validate_password,
    password_requirements,
    generate_random_password,
)

__all__ = [
    "hash_password",
    "verify_password",
    "is_valid_password",
    "validate_password",
    "password_requirements",
    "generate_random_password",
]
