# quizblitz/core/security.py

from passlib.context import CryptContext
import hashlib

# Configure the password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class PasswordHasher:
    @staticmethod
    def _prehash_long(password: str) -> str:
        """
        Bcrypt only reads the first 72 bytes, so longer passwords are
        reduced to their SHA-256 hex digest first.
        """
        if len(password.encode("utf-8")) > 72:
            return hashlib.sha256(password.encode("utf-8")).hexdigest()
        return password

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a plain password against its stored hash."""
        if not hashed_password:
            return False
        plain_password = PasswordHasher._prehash_long(plain_password)
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Hash a plain password for storage."""
        password = PasswordHasher._prehash_long(password)
        return pwd_context.hash(password)
