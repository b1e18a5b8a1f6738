"""
Security utilities for password hashing and access code generation
"""
import secrets

import bcrypt

from core.config import get_settings

# bcrypt only looks at the first 72 bytes and recent releases reject longer input
BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt(rounds=get_settings().BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash

    bcrypt.checkpw compares digests in constant time.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    try:
        password_bytes = plain_password.encode('utf-8')
        hashed_bytes = hashed_password.encode('utf-8')
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except (ValueError, AttributeError):
        return False


def generate_access_code(length: int | None = None, alphabet: str | None = None) -> str:
    """
    Draw a random access code uniformly from the configured alphabet

    Args:
        length: Number of characters (defaults to ACCESS_CODE_LENGTH)
        alphabet: Allowed characters (defaults to ACCESS_CODE_ALPHABET)

    Returns:
        Access code string
    """
    settings = get_settings()
    length = length or settings.ACCESS_CODE_LENGTH
    alphabet = alphabet or settings.ACCESS_CODE_ALPHABET
    return "".join(secrets.choice(alphabet) for _ in range(length))
