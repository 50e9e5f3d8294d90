import hmac

from passlib.context import CryptContext

# pbkdf2_sha256 is pure-python in passlib; no bcrypt backend needed.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Return a salted hash suitable for storing in UserRecord.password."""
    return pwd_context.hash(password)


def is_password_hash(stored: str) -> bool:
    """True if `stored` is a hash this context understands."""
    return bool(stored) and pwd_context.identify(stored) is not None


def verify_password(password: str, stored: str) -> bool:
    """
    Check a login password against a stored value.

    - "" never matches (OAuth-created accounts have no password)
    - a recognised hash is verified with passlib
    - anything else is a legacy plaintext value, compared exactly
    """
    if not stored:
        return False
    if is_password_hash(stored):
        return pwd_context.verify(password, stored)
    return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))
