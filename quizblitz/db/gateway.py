"""
Persistence Gateway
Abstract storage contract shared by the in-memory and MongoDB backends.

Lookups return None when the entity is absent. Creates return the stored
entity. Session, player and user mutations only accept the closed command
types from quizblitz.models.commands.
FILE: quizblitz/db/gateway.py
"""
from abc import ABC, abstractmethod
from typing import List, Literal, Optional

from quizblitz.models.badge import Badge, UserBadge
from quizblitz.models.commands import (
    PlayerCommand,
    SessionCommand,
    UserGameResult,
)
from quizblitz.models.game import GamePlayer, GameSession, PlayerAnswer
from quizblitz.models.lesson import Lesson
from quizblitz.models.quiz import Question, Quiz
from quizblitz.models.user import User


UserStatField = Literal["total_score", "games_played", "games_won"]


class PersistenceGateway(ABC):
    """Async storage contract"""

    # ==================== LIFECYCLE ====================

    async def initialize(self) -> None:
        """Prepare indexes / seed data. Default: seed badges only."""
        await self.seed_badges()

    async def close(self) -> None:
        return None

    async def ping(self) -> bool:
        return True

    # ==================== USERS ====================

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def create_user(self, user: User) -> User: ...

    @abstractmethod
    async def update_user(self, user_id: str, result: UserGameResult) -> Optional[User]:
        """Apply one finished game's statistics; returns the updated user"""

    @abstractmethod
    async def get_top_users(self, field: UserStatField, limit: int) -> List[User]:
        """Students ordered by field descending"""

    @abstractmethod
    async def get_all_students(self) -> List[User]:
        """Every user with the student role, ordered by name"""

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool:
        """Delete a user and their earned badges"""

    # ==================== LESSONS ====================

    @abstractmethod
    async def get_lesson(self, lesson_id: str) -> Optional[Lesson]: ...

    @abstractmethod
    async def get_lessons_by_teacher(self, teacher_id: str) -> List[Lesson]: ...

    @abstractmethod
    async def create_lesson(self, lesson: Lesson) -> Lesson: ...

    @abstractmethod
    async def delete_lesson(self, lesson_id: str) -> bool: ...

    # ==================== QUIZZES ====================

    @abstractmethod
    async def get_quiz(self, quiz_id: str) -> Optional[Quiz]: ...

    @abstractmethod
    async def get_quizzes_by_teacher(self, teacher_id: str) -> List[Quiz]: ...

    @abstractmethod
    async def get_quizzes_by_lesson(self, lesson_id: str) -> List[Quiz]: ...

    @abstractmethod
    async def get_published_quizzes(self) -> List[Quiz]: ...

    @abstractmethod
    async def create_quiz(self, quiz: Quiz) -> Quiz: ...

    @abstractmethod
    async def delete_quiz(self, quiz_id: str) -> bool:
        """Delete a quiz and its questions"""

    # ==================== QUESTIONS ====================

    @abstractmethod
    async def get_question(self, question_id: str) -> Optional[Question]: ...

    @abstractmethod
    async def get_questions_by_quiz(self, quiz_id: str) -> List[Question]:
        """Questions ordered by order_index"""

    @abstractmethod
    async def create_question(self, question: Question) -> Question: ...

    # ==================== SESSIONS ====================

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[GameSession]: ...

    @abstractmethod
    async def get_session_by_code(self, game_code: str) -> Optional[GameSession]: ...

    @abstractmethod
    async def get_recent_sessions_by_host(self, host_id: str, limit: int) -> List[GameSession]:
        """Newest first"""

    @abstractmethod
    async def get_active_sessions_by_quiz(self, quiz_id: str) -> List[GameSession]:
        """Sessions of a quiz that are waiting or playing"""

    @abstractmethod
    async def create_session(self, session: GameSession) -> GameSession:
        """
        Raises:
            DuplicateGameCodeError: If another session already holds the code
        """

    @abstractmethod
    async def update_session(self, session_id: str, command: SessionCommand) -> Optional[GameSession]:
        """
        Apply a session transition

        Returns:
            The updated session, or None if the session is missing or the
            command's precondition (status, pointer) no longer holds
        """

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool:
        """Delete a session and its players; answers are kept"""

    # ==================== PLAYERS ====================

    @abstractmethod
    async def get_player(self, player_id: str) -> Optional[GamePlayer]: ...

    @abstractmethod
    async def get_players_by_session(self, session_id: str) -> List[GamePlayer]: ...

    @abstractmethod
    async def create_player(self, player: GamePlayer) -> GamePlayer: ...

    @abstractmethod
    async def update_player(self, player_id: str, command: PlayerCommand) -> Optional[GamePlayer]:
        """
        Apply a player command

        Returns:
            The updated player, or None if the player is missing or a
            PlayerResultRecorded was already applied
        """

    # ==================== ANSWERS ====================

    @abstractmethod
    async def create_player_answer(self, answer: PlayerAnswer) -> PlayerAnswer:
        """
        Raises:
            DuplicateAnswerError: If the player already answered the question
        """

    @abstractmethod
    async def get_player_answer(self, player_id: str, question_id: str) -> Optional[PlayerAnswer]: ...

    @abstractmethod
    async def get_answers_by_question(self, session_id: str, question_id: str) -> List[PlayerAnswer]: ...

    # ==================== BADGES ====================

    @abstractmethod
    async def get_all_badges(self) -> List[Badge]: ...

    @abstractmethod
    async def get_user_badges(self, user_id: str) -> List[UserBadge]: ...

    @abstractmethod
    async def award_badge(self, user_id: str, badge_id: str) -> Optional[UserBadge]:
        """Returns None if the user already holds the badge"""

    @abstractmethod
    async def seed_badges(self) -> int:
        """Insert the default badges if none exist; returns how many were added"""
