"""
Security utilities for password hashing and opaque token generation.
"""
import secrets

import bcrypt

# 32 random bytes, URL-safe base64 encoded (43 characters)
TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to verify against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed hash stored for the account
        return False


def generate_token() -> str:
    """
    Generate an unguessable URL-safe token.

    Used both for candidate test links and for admin session cookies.
    """
    return secrets.token_urlsafe(TOKEN_BYTES)
