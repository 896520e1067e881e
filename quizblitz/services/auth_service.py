"""
Auth Service
Registration, login and caller lookup. Session tokens are issued by an
upstream gateway; this service only checks credentials and roles.
FILE: quizblitz/services/auth_service.py
"""
import logging

from quizblitz.core.errors import ForbiddenError, UnauthorizedError, ValidationError
from quizblitz.core.security import PasswordHasher
from quizblitz.db.gateway import PersistenceGateway
from quizblitz.models.user import LoginRequest, PublicUser, RegisterRequest, User

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, storage: PersistenceGateway):
        self.storage = storage

    async def register(self, request: RegisterRequest) -> PublicUser:
        """
        Create an account

        Raises:
            ValidationError: If the email is already registered
        """
        email = request.email.lower()
        if await self.storage.get_user_by_email(email) is not None:
            raise ValidationError("Email already registered")

        user = await self.storage.create_user(User(
            email=email,
            password_hash=PasswordHasher.get_password_hash(request.password),
            name=request.name.strip(),
            role=request.role,
        ))
        logger.info(f"✅ Registered {user.role} {user.id}")
        return user.to_public()

    async def login(self, request: LoginRequest) -> PublicUser:
        user = await self.storage.get_user_by_email(request.email.lower())
        if user is None or not PasswordHasher.verify_password(request.password, user.password_hash):
            logger.warning(f"⚠️ Failed login for {request.email}")
            raise UnauthorizedError("Invalid email or password")
        return user.to_public()

    async def get_user(self, user_id: str) -> User:
        """
        Raises:
            UnauthorizedError: If the id does not belong to a user
        """
        user = await self.storage.get_user(user_id)
        if user is None:
            raise UnauthorizedError("Unknown user")
        return user

    async def require_teacher(self, user_id: str) -> User:
        user = await self.get_user(user_id)
        if user.role != "teacher":
            raise ForbiddenError("Teacher role required")
        return user
