"""
Game Session Service
The live game state machine: waiting -> playing -> finished.

Every mutating operation runs under the session's single-writer lock and
reaches the store only through the closed command types, so concurrent
requests for one session are applied one at a time.
FILE: quizblitz/services/game_session_service.py
"""
import logging
from typing import List, Optional, Tuple

from quizblitz.core.config import settings
from quizblitz.core.errors import (
    DuplicateAnswerError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from quizblitz.db.gateway import PersistenceGateway
from quizblitz.models.commands import (
    AdvanceQuestionCommand,
    FinishSessionCommand,
    PlayerAnswerApplied,
    RevealQuestionCommand,
    StartSessionCommand,
)
from quizblitz.models.game import GamePlayer, GameSession, PlayerAnswer, SessionStatus
from quizblitz.models.quiz import OPTIONS_PER_QUESTION, Question
from quizblitz.models.session_api import AdvanceResult, AnswerResult, RevealResult
from quizblitz.services.join_codes import allocate_with_unique_code, normalize_join_code
from quizblitz.services.leaderboard_service import LeaderboardService
from quizblitz.services.scoring import score_answer
from quizblitz.services.session_locks import SessionLockRegistry

logger = logging.getLogger(__name__)

NICKNAME_MIN_LENGTH = 2
NICKNAME_MAX_LENGTH = 20
GAME_NOT_JOINABLE = "Game not found or already started"


def tally_answers(answers: List[PlayerAnswer]) -> List[int]:
    """Answer count per option, zero counts included"""
    counts = [0] * OPTIONS_PER_QUESTION
    for answer in answers:
        counts[answer.selected_answer] += 1
    return counts


def current_question(session: GameSession, questions: List[Question]) -> Question:
    """
    The question under the session's pointer

    Raises:
        NotFoundError: If the quiz no longer has a question at the pointer
    """
    index = session.current_question_index
    if not 0 <= index < len(questions):
        raise NotFoundError(f"Question {index + 1} of session {session.id} not found")
    return questions[index]


class GameSessionService:
    """
    Host and player operations on live game sessions

    Only the host may start, reveal, advance or delete. Players may join
    while the session is waiting and answer the current question while it
    is playing and not yet revealed.
    """

    def __init__(
        self,
        storage: PersistenceGateway,
        locks: SessionLockRegistry,
        leaderboard: LeaderboardService = None
    ):
        """
        Initialize game session service

        Args:
            storage: Persistence gateway
            locks: Shared per-session lock registry (one per process)
            leaderboard: Used to record results when a game finishes
        """
        self.storage = storage
        self.locks = locks
        self.leaderboard = leaderboard or LeaderboardService(storage)

    # ==================== HELPERS ====================

    async def _require_session(self, session_id: str) -> GameSession:
        session = await self.storage.get_session(session_id)
        if session is None:
            raise NotFoundError(f"Session not found: {session_id}")
        return session

    async def _require_hosted_session(self, session_id: str, host_id: str) -> GameSession:
        session = await self._require_session(session_id)
        if session.host_id != host_id:
            logger.warning(f"⚠️ User {host_id} is not the host of session {session_id}")
            raise ForbiddenError("Only the host can control this game")
        return session

    async def _questions(self, session: GameSession) -> List[Question]:
        return await self.storage.get_questions_by_quiz(session.quiz_id)

    @staticmethod
    def _require_status(session: GameSession, status: SessionStatus, action: str):
        if session.status != status:
            raise InvalidStateError(
                f"Cannot {action}: game is {session.status.value}",
                detail={"status": session.status.value}
            )

    # ==================== LIFECYCLE ====================

    async def create_session(self, quiz_id: str, host_id: str) -> GameSession:
        """
        Create a waiting session with a fresh join code

        Raises:
            NotFoundError: If the quiz does not exist
            ForbiddenError: If the quiz is neither owned by the host nor published
        """
        quiz = await self.storage.get_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz not found: {quiz_id}")
        if quiz.teacher_id != host_id and not quiz.is_published:
            raise ForbiddenError("Quiz is not published")

        async def create(code: str) -> GameSession:
            return await self.storage.create_session(
                GameSession(quiz_id=quiz_id, host_id=host_id, game_code=code)
            )

        session = await allocate_with_unique_code(
            self.storage,
            create,
            length=settings.join_code_length,
            max_attempts=settings.join_code_max_attempts
        )

        logger.info(f"🎮 Created session {session.id} for quiz {quiz_id} - Code: {session.game_code}")
        return session

    async def join_session(
        self,
        game_code: str,
        nickname: str,
        user_id: Optional[str] = None
    ) -> Tuple[GamePlayer, GameSession]:
        """
        Add a player to a waiting session

        Nicknames are not required to be unique; every join creates a new
        player.

        Raises:
            ValidationError: If the nickname is not 2-20 characters
            NotFoundError: If no session has this code
            InvalidStateError: If the session already started
        """
        nickname = (nickname or "").strip()
        if not NICKNAME_MIN_LENGTH <= len(nickname) <= NICKNAME_MAX_LENGTH:
            raise ValidationError(
                f"Nickname must be {NICKNAME_MIN_LENGTH}-{NICKNAME_MAX_LENGTH} characters"
            )

        code = normalize_join_code(game_code or "")
        found = await self.storage.get_session_by_code(code)
        if found is None:
            raise NotFoundError(GAME_NOT_JOINABLE)

        async with self.locks.hold(found.id):
            session = await self.storage.get_session(found.id)
            if session is None:
                raise NotFoundError(GAME_NOT_JOINABLE)
            if session.status != SessionStatus.WAITING:
                raise InvalidStateError(GAME_NOT_JOINABLE)

            player = await self.storage.create_player(
                GamePlayer(session_id=session.id, user_id=user_id, nickname=nickname)
            )

        logger.info(f"👋 {nickname} joined session {session.id} as player {player.id}")
        return player, session

    async def start_session(self, session_id: str, host_id: str) -> GameSession:
        """
        waiting -> playing

        Raises:
            ForbiddenError: If the caller is not the host
            InvalidStateError: If not waiting or the quiz has no questions
        """
        async with self.locks.hold(session_id):
            session = await self._require_hosted_session(session_id, host_id)
            self._require_status(session, SessionStatus.WAITING, "start")

            if not await self._questions(session):
                raise InvalidStateError("Quiz has no questions")

            updated = await self.storage.update_session(session_id, StartSessionCommand())
            if updated is None:
                raise InvalidStateError("Game has already started")

        logger.info(f"▶️ Session {session_id} started")
        return updated

    # ==================== ANSWERS ====================

    async def submit_answer(
        self,
        session_id: str,
        player_id: str,
        question_id: str,
        selected_answer: int,
        time_taken: int
    ) -> AnswerResult:
        """
        Score one player's answer to the current question

        Args:
            session_id: Session being played
            player_id: Answering player (must belong to the session)
            question_id: Must be the session's current question
            selected_answer: Option index 0-3
            time_taken: Client-measured response time in milliseconds

        Returns:
            AnswerResult with correctness, points, streak and new total

        Raises:
            InvalidStateError: Not playing, not the current question, or revealed
            DuplicateAnswerError: Player already answered this question
            NotFoundError: Unknown player or question
            ValidationError: Answer index or time out of range
        """
        async with self.locks.hold(session_id):
            session = await self._require_session(session_id)
            self._require_status(session, SessionStatus.PLAYING, "answer")

            player = await self.storage.get_player(player_id)
            if player is None or player.session_id != session_id:
                raise NotFoundError(f"Player not found in session: {player_id}")

            question = await self.storage.get_question(question_id)
            if question is None or question.quiz_id != session.quiz_id:
                raise NotFoundError(f"Question not found in quiz: {question_id}")

            if not 0 <= selected_answer < OPTIONS_PER_QUESTION:
                raise ValidationError(f"selected_answer must be 0-{OPTIONS_PER_QUESTION - 1}")
            if time_taken < 0:
                raise ValidationError("time_taken must not be negative")

            current = current_question(session, await self._questions(session))
            if current.id != question_id:
                raise InvalidStateError("Wrong question")
            if session.is_current_revealed:
                raise InvalidStateError("Answers for this question have already been revealed")

            if await self.storage.get_player_answer(player_id, question_id) is not None:
                raise DuplicateAnswerError("Already answered this question")

            quiz = await self.storage.get_quiz(session.quiz_id)
            if quiz is None:
                raise NotFoundError(f"Quiz not found: {session.quiz_id}")

            is_correct = selected_answer == question.correct_answer
            result = score_answer(
                base_points=question.points,
                is_correct=is_correct,
                time_taken_ms=time_taken,
                time_limit_ms=quiz.time_per_question * 1000,
                prior_streak=player.streak
            )

            await self.storage.create_player_answer(PlayerAnswer(
                session_id=session_id,
                player_id=player_id,
                question_id=question_id,
                selected_answer=selected_answer,
                is_correct=is_correct,
                time_taken=time_taken,
                points_earned=result.points_earned
            ))
            updated = await self.storage.update_player(player_id, PlayerAnswerApplied(
                points_earned=result.points_earned,
                is_correct=is_correct,
                streak=result.streak
            ))

        logger.info(
            f"📝 Answer from {player.nickname} on Q{session.current_question_index + 1} - "
            f"Correct: {is_correct}, Points: {result.points_earned}"
        )

        return AnswerResult(
            is_correct=is_correct,
            points_earned=result.points_earned,
            streak=result.streak,
            score=updated.score if updated else player.score + result.points_earned
        )

    # ==================== HOST CONTROLS ====================

    async def reveal_answer(self, session_id: str, host_id: str) -> RevealResult:
        """
        Close intake for the current question and tally its answers

        Repeated calls return the same tally.

        Raises:
            ForbiddenError: If the caller is not the host
            InvalidStateError: If the session is not playing
            NotFoundError: If the current question no longer exists
        """
        async with self.locks.hold(session_id):
            session = await self._require_hosted_session(session_id, host_id)
            self._require_status(session, SessionStatus.PLAYING, "reveal")

            index = session.current_question_index
            current = current_question(session, await self._questions(session))

            if not session.is_current_revealed:
                updated = await self.storage.update_session(
                    session_id, RevealQuestionCommand(question_index=index)
                )
                if updated is None:
                    raise InvalidStateError("Question changed before reveal")

            answers = await self.storage.get_answers_by_question(session_id, current.id)

        counts = tally_answers(answers)

        logger.info(f"📊 Revealed Q{index + 1} of session {session_id} - Counts: {counts}")

        return RevealResult(
            question_id=current.id,
            question_index=index,
            correct_answer=current.correct_answer,
            answer_counts=counts,
            total_answers=len(answers)
        )

    async def advance_question(self, session_id: str, host_id: str) -> AdvanceResult:
        """
        Move to the next question, or finish after the last one

        Finishing records final standings, user statistics and badges.
        Calling it again on a finished session whose results were not fully
        recorded resumes the recording.

        Raises:
            ForbiddenError: If the caller is not the host
            InvalidStateError: If the session is not playing
        """
        async with self.locks.hold(session_id):
            session = await self._require_hosted_session(session_id, host_id)

            if session.status == SessionStatus.FINISHED and not session.results_recorded:
                question_count = len(await self._questions(session))
                standings = await self.leaderboard.record_results(session_id, question_count)
                logger.info(f"🔁 Resumed result recording for session {session_id}")
                return AdvanceResult(
                    session=await self._require_session(session_id),
                    finished=True,
                    standings=standings
                )

            self._require_status(session, SessionStatus.PLAYING, "advance")

            index = session.current_question_index
            question_count = len(await self._questions(session))

            if index >= question_count - 1:
                updated = await self.storage.update_session(
                    session_id, FinishSessionCommand(last_index=index)
                )
                if updated is None:
                    raise InvalidStateError("Game has already finished")

                standings = await self.leaderboard.record_results(session_id, question_count)
                logger.info(f"🏁 Session {session_id} finished after {question_count} questions")
                return AdvanceResult(
                    session=await self._require_session(session_id),
                    finished=True,
                    standings=standings
                )

            updated = await self.storage.update_session(
                session_id, AdvanceQuestionCommand(from_index=index)
            )
            if updated is None:
                raise InvalidStateError("Question already advanced")

        logger.info(f"⏭️ Session {session_id} advanced to Q{updated.current_question_index + 1}")
        return AdvanceResult(session=updated, finished=False)

    async def delete_session(self, session_id: str, host_id: str) -> None:
        """
        Delete a session and its players (answers are kept)

        Raises:
            ForbiddenError: If the caller is not the host
        """
        async with self.locks.hold(session_id):
            await self._require_hosted_session(session_id, host_id)
            await self.storage.delete_session(session_id)

        self.locks.discard(session_id)
        logger.info(f"🗑️ Deleted session {session_id}")

    # ==================== QUERIES ====================

    async def list_recent_sessions(self, host_id: str) -> List[GameSession]:
        return await self.storage.get_recent_sessions_by_host(
            host_id, settings.recent_sessions_limit
        )
