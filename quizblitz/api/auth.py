"""
Auth API Routes
"""
import logging

from fastapi import APIRouter, Depends, status

from quizblitz.api.dependencies import get_auth_service, get_current_user_id
from quizblitz.models.user import AuthResponse, LoginRequest, PublicUser, RegisterRequest
from quizblitz.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a teacher or student account"
)
async def register(
    request: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    user = await service.register(request)
    return AuthResponse(user=user)


@router.post("/login", response_model=AuthResponse, summary="Check credentials")
async def login(
    request: LoginRequest,
    service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    user = await service.login(request)
    return AuthResponse(user=user)


@router.get("/me", response_model=PublicUser, summary="Current user")
async def me(
    user_id: str = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service)
) -> PublicUser:
    user = await service.get_user(user_id)
    return user.to_public()
