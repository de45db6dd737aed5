"""
Security utilities for password hashing and log masking
"""

from passlib.context import CryptContext

from authflow.exceptions import ValidationError


# bcrypt ignores everything past this many bytes of the password
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


class PasswordVerifier:
    """
    One-way password hashing with bcrypt

    Verification never raises: a malformed or unrecognised stored hash is
    treated as a mismatch, after spending the same bcrypt work as a real
    comparison so the two outcomes are indistinguishable by timing.
    """

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds
        )
        self._dummy_hash = self._context.hash("authflow-dummy-password")

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt

        Args:
            password: Plain text password

        Returns:
            Salted bcrypt hash

        Raises:
            ValidationError: If the password exceeds bcrypt's 72-byte input
        """
        if password_too_long(password):
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return self._context.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        """
        Verify a password against a hash

        Args:
            password: Plain text password to verify
            hashed_password: Stored hash to check against

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        if not isinstance(password, str):
            return False

        # A longer password would be compared on its truncated prefix only
        if password_too_long(password):
            self.burn(password)
            return False

        try:
            return self._context.verify(password, hashed_password)
        except (ValueError, TypeError):
            self.burn(password)
            return False

    def burn(self, password: str) -> None:
        """Spend one verification worth of work against a throwaway hash"""
        self._context.verify(password, self._dummy_hash)


def mask_email(email: str) -> str:
    """
    Mask email address for logging

    Args:
        email: Email address to mask

    Returns:
        Masked email (e.g., u***r@example.com)
    """
    if not email or '@' not in email:
        return "***"

    local, domain = email.split('@', 1)
    if len(local) <= 2:
        masked_local = '*' * len(local)
    else:
        masked_local = f"{local[0]}***{local[-1]}"

    return f"{masked_local}@{domain}"
