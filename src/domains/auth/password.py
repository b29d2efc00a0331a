# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Password hashing and policy utilities using bcrypt.

Example:
    >>> hasher = PasswordHasher()
    >>> hashed = hasher.hash("S3cure!pass")
    >>> hasher.verify("S3cure!pass", hashed)
    True
    >>> password_policy_errors("short")
    ['must be at least 8 characters long', ...]
"""

import logging
import re
import secrets

import bcrypt

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
# bcrypt ignores input beyond 72 bytes
MAX_PASSWORD_BYTES = 72

_POLICY_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"[a-z]"), "must contain a lowercase letter"),
    (re.compile(r"[A-Z]"), "must contain an uppercase letter"),
    (re.compile(r"\d"), "must contain a digit"),
    (re.compile(r"[^A-Za-z0-9]"), "must contain a special character"),
]


def password_policy_errors(password: str) -> list[str]:
    """List the password policy rules a candidate password breaks.

    Args:
        password: Candidate plain text password.

    Returns:
        Human-readable rule violations; empty when the password is acceptable.
    """
    errors: list[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"must be at least {MIN_PASSWORD_LENGTH} characters long")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        errors.append(f"must be at most {MAX_PASSWORD_BYTES} bytes long")
    errors.extend(message for pattern, message in _POLICY_RULES if not pattern.search(password))
    return errors


def generate_reset_token() -> str:
    """Generate a random password reset token (64 hex characters)."""
    return secrets.token_hex(32)


class PasswordHasher:
    """Password hashing using bcrypt.

    Attributes:
        _rounds: Number of bcrypt rounds for hashing.
    """

    def __init__(self, rounds: int = 12) -> None:
        """Initialize the password hasher.

        Args:
            rounds: Number of bcrypt rounds. Tests pass a low value to stay fast.
        """
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password to hash.

        Returns:
            Bcrypt hash string with salt embedded.

        Raises:
            ValueError: If password is empty.
        """
        if not password:
            raise ValueError("Password cannot be empty")

        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a hash.

        Returns:
            True if password matches the hash, False otherwise.
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.warning("Password verification failed: %s", str(e))
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        """Check whether a hash was produced with fewer rounds than configured."""
        try:
            rounds = int(password_hash.split("$")[2])
        except (IndexError, ValueError):
            return True
        return rounds < self._rounds


_default_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password using the default hasher."""
    return _default_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password using the default hasher."""
    return _default_hasher.verify(password, password_hash)
