"""
MongoDB Storage
Motor-backed persistence gateway. Session transitions are conditional
find_one_and_update calls so several API processes can share one database.
FILE: quizblitz/db/mongo_storage.py
"""
import functools
import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from quizblitz.core.errors import (
    DuplicateAnswerError,
    DuplicateGameCodeError,
    PersistenceError,
    QuizBlitzError,
)
from quizblitz.db.gateway import PersistenceGateway, UserStatField
from quizblitz.db.mongodb import close_mongo_connection, ensure_indexes
from quizblitz.models.badge import DEFAULT_BADGES, Badge, UserBadge
from quizblitz.models.commands import (
    AdvanceQuestionCommand,
    FinishSessionCommand,
    PlayerAnswerApplied,
    PlayerCommand,
    PlayerResultRecorded,
    ResultsRecordedCommand,
    RevealQuestionCommand,
    SessionCommand,
    StartSessionCommand,
    UserGameResult,
)
from quizblitz.models.game import GamePlayer, GameSession, PlayerAnswer, SessionStatus
from quizblitz.models.lesson import Lesson
from quizblitz.models.quiz import Question, Quiz
from quizblitz.models.user import User

logger = logging.getLogger(__name__)

NO_OBJECT_ID = {"_id": 0}


def _doc(model) -> Dict[str, Any]:
    return model.model_dump(mode="python")


def mongo_errors(func):
    """Translate driver failures into PersistenceError"""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except QuizBlitzError:
            raise
        except PyMongoError as e:
            logger.error(f"❌ MongoDB error in {func.__name__}: {e}")
            raise PersistenceError(f"Storage operation failed: {func.__name__}") from e
    return wrapper


class MongoStorage(PersistenceGateway):
    """Persistence gateway over a motor database"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.users = db["users"]
        self.lessons = db["lessons"]
        self.quizzes = db["quizzes"]
        self.questions = db["questions"]
        self.sessions = db["sessions"]
        self.players = db["players"]
        self.answers = db["answers"]
        self.badges = db["badges"]
        self.user_badges = db["user_badges"]

    @mongo_errors
    async def initialize(self) -> None:
        await ensure_indexes(self.db)
        await self.seed_badges()

    async def close(self) -> None:
        await close_mongo_connection()

    async def ping(self) -> bool:
        try:
            await self.db.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"❌ MongoDB ping failed: {e}")
            return False

    async def _find_one(self, collection, model_cls, query: Dict[str, Any]):
        doc = await collection.find_one(query, NO_OBJECT_ID)
        return model_cls(**doc) if doc else None

    async def _find_many(self, collection, model_cls, query: Dict[str, Any], sort=None, limit: int = 0):
        cursor = collection.find(query, NO_OBJECT_ID)
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)
        return [model_cls(**doc) async for doc in cursor]

    # ==================== USERS ====================

    @mongo_errors
    async def get_user(self, user_id: str) -> Optional[User]:
        return await self._find_one(self.users, User, {"id": user_id})

    @mongo_errors
    async def get_user_by_email(self, email: str) -> Optional[User]:
        return await self._find_one(self.users, User, {"email": email.lower()})

    @mongo_errors
    async def create_user(self, user: User) -> User:
        doc = _doc(user)
        doc["email"] = user.email.lower()
        await self.users.insert_one(doc)
        return user

    @mongo_errors
    async def update_user(self, user_id: str, result: UserGameResult) -> Optional[User]:
        doc = await self.users.find_one_and_update(
            {"id": user_id},
            {"$inc": {
                "total_score": result.score,
                "games_played": 1,
                "games_won": 1 if result.won else 0,
            }},
            projection=NO_OBJECT_ID,
            return_document=ReturnDocument.AFTER,
        )
        return User(**doc) if doc else None

    @mongo_errors
    async def get_top_users(self, field: UserStatField, limit: int) -> List[User]:
        return await self._find_many(
            self.users, User, {"role": "student"}, sort=[(field, DESCENDING)], limit=limit
        )

    @mongo_errors
    async def get_all_students(self) -> List[User]:
        return await self._find_many(
            self.users, User, {"role": "student"}, sort=[("name", ASCENDING)]
        )

    @mongo_errors
    async def delete_user(self, user_id: str) -> bool:
        result = await self.users.delete_one({"id": user_id})
        if result.deleted_count == 0:
            return False
        await self.user_badges.delete_many({"user_id": user_id})
        return True

    # ==================== LESSONS ====================

    @mongo_errors
    async def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        return await self._find_one(self.lessons, Lesson, {"id": lesson_id})

    @mongo_errors
    async def get_lessons_by_teacher(self, teacher_id: str) -> List[Lesson]:
        return await self._find_many(
            self.lessons, Lesson, {"teacher_id": teacher_id}, sort=[("created_at", DESCENDING)]
        )

    @mongo_errors
    async def create_lesson(self, lesson: Lesson) -> Lesson:
        await self.lessons.insert_one(_doc(lesson))
        return lesson

    @mongo_errors
    async def delete_lesson(self, lesson_id: str) -> bool:
        result = await self.lessons.delete_one({"id": lesson_id})
        return result.deleted_count > 0

    # ==================== QUIZZES ====================

    @mongo_errors
    async def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        return await self._find_one(self.quizzes, Quiz, {"id": quiz_id})

    @mongo_errors
    async def get_quizzes_by_teacher(self, teacher_id: str) -> List[Quiz]:
        return await self._find_many(
            self.quizzes, Quiz, {"teacher_id": teacher_id}, sort=[("created_at", DESCENDING)]
        )

    @mongo_errors
    async def get_quizzes_by_lesson(self, lesson_id: str) -> List[Quiz]:
        return await self._find_many(self.quizzes, Quiz, {"lesson_id": lesson_id})

    @mongo_errors
    async def get_published_quizzes(self) -> List[Quiz]:
        return await self._find_many(
            self.quizzes, Quiz, {"is_published": True}, sort=[("created_at", DESCENDING)]
        )

    @mongo_errors
    async def create_quiz(self, quiz: Quiz) -> Quiz:
        await self.quizzes.insert_one(_doc(quiz))
        return quiz

    @mongo_errors
    async def delete_quiz(self, quiz_id: str) -> bool:
        result = await self.quizzes.delete_one({"id": quiz_id})
        if result.deleted_count == 0:
            return False
        await self.questions.delete_many({"quiz_id": quiz_id})
        return True

    # ==================== QUESTIONS ====================

    @mongo_errors
    async def get_question(self, question_id: str) -> Optional[Question]:
        return await self._find_one(self.questions, Question, {"id": question_id})

    @mongo_errors
    async def get_questions_by_quiz(self, quiz_id: str) -> List[Question]:
        return await self._find_many(
            self.questions, Question, {"quiz_id": quiz_id}, sort=[("order_index", ASCENDING)]
        )

    @mongo_errors
    async def create_question(self, question: Question) -> Question:
        await self.questions.insert_one(_doc(question))
        return question

    # ==================== SESSIONS ====================

    def _session_doc(self, session: GameSession) -> Dict[str, Any]:
        doc = _doc(session)
        doc["status"] = session.status.value
        return doc

    @mongo_errors
    async def get_session(self, session_id: str) -> Optional[GameSession]:
        return await self._find_one(self.sessions, GameSession, {"id": session_id})

    @mongo_errors
    async def get_session_by_code(self, game_code: str) -> Optional[GameSession]:
        return await self._find_one(self.sessions, GameSession, {"game_code": game_code})

    @mongo_errors
    async def get_recent_sessions_by_host(self, host_id: str, limit: int) -> List[GameSession]:
        return await self._find_many(
            self.sessions, GameSession, {"host_id": host_id},
            sort=[("created_at", DESCENDING)], limit=limit
        )

    @mongo_errors
    async def get_active_sessions_by_quiz(self, quiz_id: str) -> List[GameSession]:
        return await self._find_many(
            self.sessions, GameSession,
            {"quiz_id": quiz_id, "status": {"$ne": SessionStatus.FINISHED.value}}
        )

    @mongo_errors
    async def create_session(self, session: GameSession) -> GameSession:
        try:
            await self.sessions.insert_one(self._session_doc(session))
        except DuplicateKeyError as e:
            raise DuplicateGameCodeError(f"Game code already in use: {session.game_code}") from e
        return session

    @mongo_errors
    async def update_session(self, session_id: str, command: SessionCommand) -> Optional[GameSession]:
        playing = SessionStatus.PLAYING.value

        if isinstance(command, StartSessionCommand):
            query = {"id": session_id, "status": SessionStatus.WAITING.value}
            update = {"$set": {
                "status": playing,
                "current_question_index": 0,
                "revealed_question_index": None,
                "started_at": command.started_at,
            }}
        elif isinstance(command, RevealQuestionCommand):
            query = {"id": session_id, "status": playing,
                     "current_question_index": command.question_index}
            update = {"$set": {"revealed_question_index": command.question_index}}
        elif isinstance(command, AdvanceQuestionCommand):
            query = {"id": session_id, "status": playing,
                     "current_question_index": command.from_index}
            update = {"$set": {
                "current_question_index": command.from_index + 1,
                "revealed_question_index": None,
            }}
        elif isinstance(command, FinishSessionCommand):
            query = {"id": session_id, "status": playing,
                     "current_question_index": command.last_index}
            update = {"$set": {
                "status": SessionStatus.FINISHED.value,
                "ended_at": command.ended_at,
            }}
        elif isinstance(command, ResultsRecordedCommand):
            query = {"id": session_id, "status": SessionStatus.FINISHED.value,
                     "results_recorded": {"$ne": True}}
            update = {"$set": {"results_recorded": True}}
        else:
            raise TypeError(f"Unsupported session command: {type(command).__name__}")

        doc = await self.sessions.find_one_and_update(
            query, update, projection=NO_OBJECT_ID, return_document=ReturnDocument.AFTER
        )
        return GameSession(**doc) if doc else None

    @mongo_errors
    async def delete_session(self, session_id: str) -> bool:
        result = await self.sessions.delete_one({"id": session_id})
        if result.deleted_count == 0:
            return False
        await self.players.delete_many({"session_id": session_id})
        return True

    # ==================== PLAYERS ====================

    @mongo_errors
    async def get_player(self, player_id: str) -> Optional[GamePlayer]:
        return await self._find_one(self.players, GamePlayer, {"id": player_id})

    @mongo_errors
    async def get_players_by_session(self, session_id: str) -> List[GamePlayer]:
        return await self._find_many(self.players, GamePlayer, {"session_id": session_id})

    @mongo_errors
    async def create_player(self, player: GamePlayer) -> GamePlayer:
        await self.players.insert_one(_doc(player))
        return player

    @mongo_errors
    async def update_player(self, player_id: str, command: PlayerCommand) -> Optional[GamePlayer]:
        if isinstance(command, PlayerAnswerApplied):
            query = {"id": player_id}
            update = {
                "$inc": {
                    "score": command.points_earned,
                    "correct_answers": 1 if command.is_correct else 0,
                },
                "$set": {"streak": command.streak},
                "$max": {"best_streak": command.streak},
            }
        elif isinstance(command, PlayerResultRecorded):
            query = {"id": player_id, "result_recorded": {"$ne": True}}
            update = {"$set": {"result_recorded": True}}
        else:
            raise TypeError(f"Unsupported player command: {type(command).__name__}")

        doc = await self.players.find_one_and_update(
            query,
            update,
            projection=NO_OBJECT_ID,
            return_document=ReturnDocument.AFTER,
        )
        return GamePlayer(**doc) if doc else None

    # ==================== ANSWERS ====================

    @mongo_errors
    async def create_player_answer(self, answer: PlayerAnswer) -> PlayerAnswer:
        try:
            await self.answers.insert_one(_doc(answer))
        except DuplicateKeyError as e:
            raise DuplicateAnswerError("Already answered this question") from e
        return answer

    @mongo_errors
    async def get_player_answer(self, player_id: str, question_id: str) -> Optional[PlayerAnswer]:
        return await self._find_one(
            self.answers, PlayerAnswer, {"player_id": player_id, "question_id": question_id}
        )

    @mongo_errors
    async def get_answers_by_question(self, session_id: str, question_id: str) -> List[PlayerAnswer]:
        return await self._find_many(
            self.answers, PlayerAnswer, {"session_id": session_id, "question_id": question_id}
        )

    # ==================== BADGES ====================

    @mongo_errors
    async def get_all_badges(self) -> List[Badge]:
        return await self._find_many(self.badges, Badge, {})

    @mongo_errors
    async def get_user_badges(self, user_id: str) -> List[UserBadge]:
        return await self._find_many(self.user_badges, UserBadge, {"user_id": user_id})

    @mongo_errors
    async def award_badge(self, user_id: str, badge_id: str) -> Optional[UserBadge]:
        user_badge = UserBadge(user_id=user_id, badge_id=badge_id)
        try:
            await self.user_badges.insert_one(_doc(user_badge))
        except DuplicateKeyError:
            return None
        return user_badge

    @mongo_errors
    async def seed_badges(self) -> int:
        if await self.badges.count_documents({}) > 0:
            return 0
        await self.badges.insert_many([_doc(Badge(**data)) for data in DEFAULT_BADGES])
        logger.info(f"🏅 Seeded {len(DEFAULT_BADGES)} default badges")
        return len(DEFAULT_BADGES)
