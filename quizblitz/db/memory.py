"""
In-Memory Storage
Default backend: plain dicts in process memory. Each method runs without
awaiting, so on one event loop every call is atomic.
FILE: quizblitz/db/memory.py
"""
import logging
from typing import Dict, List, Optional, Tuple

from quizblitz.core.errors import DuplicateAnswerError, DuplicateGameCodeError
from quizblitz.db.gateway import PersistenceGateway, UserStatField
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


def _copy(model):
    return model.model_copy(deep=True) if model is not None else None


class MemoryStorage(PersistenceGateway):
    """Dict-backed implementation of the persistence gateway"""

    def __init__(self):
        self.users: Dict[str, User] = {}
        self.lessons: Dict[str, Lesson] = {}
        self.quizzes: Dict[str, Quiz] = {}
        self.questions: Dict[str, Question] = {}
        self.sessions: Dict[str, GameSession] = {}
        self.players: Dict[str, GamePlayer] = {}
        self.answers: Dict[str, PlayerAnswer] = {}
        self.answer_keys: Dict[Tuple[str, str], str] = {}
        self.badges: Dict[str, Badge] = {}
        self.user_badges: Dict[str, UserBadge] = {}

    # ==================== USERS ====================

    async def get_user(self, user_id: str) -> Optional[User]:
        return _copy(self.users.get(user_id))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        for user in self.users.values():
            if user.email.lower() == email:
                return _copy(user)
        return None

    async def create_user(self, user: User) -> User:
        self.users[user.id] = _copy(user)
        return _copy(user)

    async def update_user(self, user_id: str, result: UserGameResult) -> Optional[User]:
        user = self.users.get(user_id)
        if user is None:
            return None
        user.total_score += result.score
        user.games_played += 1
        if result.won:
            user.games_won += 1
        return _copy(user)

    async def get_top_users(self, field: UserStatField, limit: int) -> List[User]:
        students = [u for u in self.users.values() if u.role == "student"]
        students.sort(key=lambda u: getattr(u, field), reverse=True)
        return [_copy(u) for u in students[:limit]]

    async def get_all_students(self) -> List[User]:
        students = [u for u in self.users.values() if u.role == "student"]
        students.sort(key=lambda u: u.name.lower())
        return [_copy(u) for u in students]

    async def delete_user(self, user_id: str) -> bool:
        if self.users.pop(user_id, None) is None:
            return False
        for user_badge_id in [ub.id for ub in self.user_badges.values() if ub.user_id == user_id]:
            del self.user_badges[user_badge_id]
        return True

    # ==================== LESSONS ====================

    async def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        return _copy(self.lessons.get(lesson_id))

    async def get_lessons_by_teacher(self, teacher_id: str) -> List[Lesson]:
        lessons = [l for l in self.lessons.values() if l.teacher_id == teacher_id]
        lessons.reverse()
        lessons.sort(key=lambda l: l.created_at, reverse=True)
        return [_copy(l) for l in lessons]

    async def create_lesson(self, lesson: Lesson) -> Lesson:
        self.lessons[lesson.id] = _copy(lesson)
        return _copy(lesson)

    async def delete_lesson(self, lesson_id: str) -> bool:
        return self.lessons.pop(lesson_id, None) is not None

    # ==================== QUIZZES ====================

    async def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        return _copy(self.quizzes.get(quiz_id))

    async def get_quizzes_by_teacher(self, teacher_id: str) -> List[Quiz]:
        quizzes = [q for q in self.quizzes.values() if q.teacher_id == teacher_id]
        quizzes.reverse()
        quizzes.sort(key=lambda q: q.created_at, reverse=True)
        return [_copy(q) for q in quizzes]

    async def get_quizzes_by_lesson(self, lesson_id: str) -> List[Quiz]:
        return [_copy(q) for q in self.quizzes.values() if q.lesson_id == lesson_id]

    async def get_published_quizzes(self) -> List[Quiz]:
        quizzes = [q for q in self.quizzes.values() if q.is_published]
        quizzes.reverse()
        quizzes.sort(key=lambda q: q.created_at, reverse=True)
        return [_copy(q) for q in quizzes]

    async def create_quiz(self, quiz: Quiz) -> Quiz:
        self.quizzes[quiz.id] = _copy(quiz)
        return _copy(quiz)

    async def delete_quiz(self, quiz_id: str) -> bool:
        if self.quizzes.pop(quiz_id, None) is None:
            return False
        for question_id in [q.id for q in self.questions.values() if q.quiz_id == quiz_id]:
            del self.questions[question_id]
        return True

    # ==================== QUESTIONS ====================

    async def get_question(self, question_id: str) -> Optional[Question]:
        return _copy(self.questions.get(question_id))

    async def get_questions_by_quiz(self, quiz_id: str) -> List[Question]:
        questions = [q for q in self.questions.values() if q.quiz_id == quiz_id]
        questions.sort(key=lambda q: q.order_index)
        return [_copy(q) for q in questions]

    async def create_question(self, question: Question) -> Question:
        self.questions[question.id] = _copy(question)
        return _copy(question)

    # ==================== SESSIONS ====================

    async def get_session(self, session_id: str) -> Optional[GameSession]:
        return _copy(self.sessions.get(session_id))

    async def get_session_by_code(self, game_code: str) -> Optional[GameSession]:
        for session in self.sessions.values():
            if session.game_code == game_code:
                return _copy(session)
        return None

    async def get_recent_sessions_by_host(self, host_id: str, limit: int) -> List[GameSession]:
        sessions = [s for s in self.sessions.values() if s.host_id == host_id]
        sessions.reverse()
        sessions.sort(key=lambda s: s.created_at, reverse=True)
        return [_copy(s) for s in sessions[:limit]]

    async def get_active_sessions_by_quiz(self, quiz_id: str) -> List[GameSession]:
        return [
            _copy(s) for s in self.sessions.values()
            if s.quiz_id == quiz_id and s.status != SessionStatus.FINISHED
        ]

    async def create_session(self, session: GameSession) -> GameSession:
        if any(s.game_code == session.game_code for s in self.sessions.values()):
            raise DuplicateGameCodeError(f"Game code already in use: {session.game_code}")
        self.sessions[session.id] = _copy(session)
        return _copy(session)

    async def update_session(self, session_id: str, command: SessionCommand) -> Optional[GameSession]:
        session = self.sessions.get(session_id)
        if session is None:
            return None

        if isinstance(command, StartSessionCommand):
            if session.status != SessionStatus.WAITING:
                return None
            session.status = SessionStatus.PLAYING
            session.current_question_index = 0
            session.revealed_question_index = None
            session.started_at = command.started_at

        elif isinstance(command, RevealQuestionCommand):
            if (session.status != SessionStatus.PLAYING
                    or session.current_question_index != command.question_index):
                return None
            session.revealed_question_index = command.question_index

        elif isinstance(command, AdvanceQuestionCommand):
            if (session.status != SessionStatus.PLAYING
                    or session.current_question_index != command.from_index):
                return None
            session.current_question_index = command.from_index + 1
            session.revealed_question_index = None

        elif isinstance(command, FinishSessionCommand):
            if (session.status != SessionStatus.PLAYING
                    or session.current_question_index != command.last_index):
                return None
            session.status = SessionStatus.FINISHED
            session.ended_at = command.ended_at

        elif isinstance(command, ResultsRecordedCommand):
            if session.status != SessionStatus.FINISHED or session.results_recorded:
                return None
            session.results_recorded = True

        else:
            raise TypeError(f"Unsupported session command: {type(command).__name__}")

        return _copy(session)

    async def delete_session(self, session_id: str) -> bool:
        if self.sessions.pop(session_id, None) is None:
            return False
        for player_id in [p.id for p in self.players.values() if p.session_id == session_id]:
            del self.players[player_id]
        return True

    # ==================== PLAYERS ====================

    async def get_player(self, player_id: str) -> Optional[GamePlayer]:
        return _copy(self.players.get(player_id))

    async def get_players_by_session(self, session_id: str) -> List[GamePlayer]:
        return [_copy(p) for p in self.players.values() if p.session_id == session_id]

    async def create_player(self, player: GamePlayer) -> GamePlayer:
        self.players[player.id] = _copy(player)
        return _copy(player)

    async def update_player(self, player_id: str, command: PlayerCommand) -> Optional[GamePlayer]:
        player = self.players.get(player_id)
        if player is None:
            return None

        if isinstance(command, PlayerAnswerApplied):
            player.score += command.points_earned
            if command.is_correct:
                player.correct_answers += 1
            player.streak = command.streak
            player.best_streak = max(player.best_streak, command.streak)
        elif isinstance(command, PlayerResultRecorded):
            if player.result_recorded:
                return None
            player.result_recorded = True
        else:
            raise TypeError(f"Unsupported player command: {type(command).__name__}")

        return _copy(player)

    # ==================== ANSWERS ====================

    async def create_player_answer(self, answer: PlayerAnswer) -> PlayerAnswer:
        key = (answer.player_id, answer.question_id)
        if key in self.answer_keys:
            raise DuplicateAnswerError("Already answered this question")
        self.answers[answer.id] = _copy(answer)
        self.answer_keys[key] = answer.id
        return _copy(answer)

    async def get_player_answer(self, player_id: str, question_id: str) -> Optional[PlayerAnswer]:
        answer_id = self.answer_keys.get((player_id, question_id))
        return _copy(self.answers.get(answer_id)) if answer_id else None

    async def get_answers_by_question(self, session_id: str, question_id: str) -> List[PlayerAnswer]:
        return [
            _copy(a) for a in self.answers.values()
            if a.session_id == session_id and a.question_id == question_id
        ]

    # ==================== BADGES ====================

    async def get_all_badges(self) -> List[Badge]:
        return [_copy(b) for b in self.badges.values()]

    async def get_user_badges(self, user_id: str) -> List[UserBadge]:
        return [_copy(ub) for ub in self.user_badges.values() if ub.user_id == user_id]

    async def award_badge(self, user_id: str, badge_id: str) -> Optional[UserBadge]:
        for ub in self.user_badges.values():
            if ub.user_id == user_id and ub.badge_id == badge_id:
                return None
        user_badge = UserBadge(user_id=user_id, badge_id=badge_id)
        self.user_badges[user_badge.id] = user_badge
        return _copy(user_badge)

    async def seed_badges(self) -> int:
        if self.badges:
            return 0
        for data in DEFAULT_BADGES:
            badge = Badge(**data)
            self.badges[badge.id] = badge
        logger.info(f"🏅 Seeded {len(DEFAULT_BADGES)} default badges")
        return len(DEFAULT_BADGES)
