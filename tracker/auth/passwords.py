"""Password hashing."""

from werkzeug.security import generate_password_hash, check_password_hash


def hash_password(password: str) -> str:
    """Generate a salted hash of a password."""
    return generate_password_hash(password)


def check_password(password: str, encrypted: str) -> bool:
    """Check a password against a hash; comparison is constant-time."""
    if not encrypted:
        return False
    return check_password_hash(encrypted, password)
