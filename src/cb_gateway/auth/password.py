"""Password hashing with the ``bcrypt`` library (>=4.0), no passlib."""

import bcrypt

# bcrypt only looks at the first 72 bytes; longer inputs are rejected at the
# schema layer (RegisterRequest.password max_length).
_MAX_BYTES = 72


def hash_password(plain: str) -> str:
    """Hash a plain-text password with bcrypt. Returns a utf-8 hash string."""
    hashed_bytes: bytes = bcrypt.hashpw(plain.encode("utf-8")[:_MAX_BYTES], bcrypt.gensalt())
    return hashed_bytes.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plain-text password against a bcrypt hash."""
    return bcrypt.checkpw(plain.encode("utf-8")[:_MAX_BYTES], hashed.encode("utf-8"))
