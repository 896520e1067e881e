"""
Shared API dependencies
Storage and services live on app.state (created in the lifespan);
caller identity comes from the X-User-Id header set by the upstream gateway.
FILE: quizblitz/api/dependencies.py
"""
from typing import Optional

from fastapi import Depends, Header, Request

from quizblitz.core.errors import UnauthorizedError
from quizblitz.db.gateway import PersistenceGateway
from quizblitz.services.auth_service import AuthService
from quizblitz.services.badge_service import BadgeService
from quizblitz.services.game_session_service import GameSessionService
from quizblitz.services.leaderboard_service import LeaderboardService
from quizblitz.services.lesson_service import LessonService
from quizblitz.services.poll_service import PollService
from quizblitz.services.quiz_service import QuizService
from quizblitz.services.session_locks import SessionLockRegistry
from quizblitz.services.student_service import StudentService


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

def get_storage(request: Request) -> PersistenceGateway:
    """Dependency to get the storage backend"""
    return request.app.state.storage


def get_session_locks(request: Request) -> SessionLockRegistry:
    """Dependency to get the process-wide session lock registry"""
    return request.app.state.session_locks


def get_auth_service(storage: PersistenceGateway = Depends(get_storage)) -> AuthService:
    return AuthService(storage)


def get_lesson_service(storage: PersistenceGateway = Depends(get_storage)) -> LessonService:
    return LessonService(storage)


def get_quiz_service(storage: PersistenceGateway = Depends(get_storage)) -> QuizService:
    return QuizService(storage)


def get_student_service(storage: PersistenceGateway = Depends(get_storage)) -> StudentService:
    return StudentService(storage)


def get_badge_service(storage: PersistenceGateway = Depends(get_storage)) -> BadgeService:
    return BadgeService(storage)


def get_leaderboard_service(
    storage: PersistenceGateway = Depends(get_storage),
    badges: BadgeService = Depends(get_badge_service)
) -> LeaderboardService:
    return LeaderboardService(storage, badges)


def get_game_session_service(
    storage: PersistenceGateway = Depends(get_storage),
    locks: SessionLockRegistry = Depends(get_session_locks),
    leaderboard: LeaderboardService = Depends(get_leaderboard_service)
) -> GameSessionService:
    """Dependency to get GameSessionService bound to the shared locks"""
    return GameSessionService(storage, locks, leaderboard)


def get_poll_service(storage: PersistenceGateway = Depends(get_storage)) -> PollService:
    return PollService(storage)


# ============================================================================
# CALLER IDENTITY
# ============================================================================

def get_optional_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller's user id, or None for anonymous players"""
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()


def get_current_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    """Caller's user id; raises 401 when missing"""
    if user_id is None:
        raise UnauthorizedError("X-User-Id header required")
    return user_id


async def get_teacher_id(
    user_id: str = Depends(get_current_user_id),
    auth: AuthService = Depends(get_auth_service)
) -> str:
    """Caller's user id, checked to be a registered teacher"""
    await auth.require_teacher(user_id)
    return user_id
