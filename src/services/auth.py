"""Password hashing helpers."""

from passlib.context import CryptContext

# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def password_fits(password: str) -> bool:
    """Check that bcrypt will see the whole password."""
    return len(password.encode("utf-8")) <= MAX_PASSWORD_BYTES


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)
