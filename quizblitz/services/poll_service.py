"""
Poll Service
Read-only projections of a live session for devices that poll.
Views may lag the engine by one poll interval.
FILE: quizblitz/services/poll_service.py
"""
import logging
from typing import List

from quizblitz.core.config import settings
from quizblitz.core.errors import InvalidStateError, NotFoundError
from quizblitz.db.gateway import PersistenceGateway
from quizblitz.models.game import GamePlayer, GameSession, SessionStatus
from quizblitz.models.session_api import (
    CurrentQuestionView,
    FinalResults,
    RevealResult,
    SessionSnapshot,
)
from quizblitz.services.game_session_service import current_question, tally_answers
from quizblitz.services.leaderboard_service import build_standings, rank_players

logger = logging.getLogger(__name__)


class PollService:
    """Snapshot, player list, current question, tally and results"""

    def __init__(self, storage: PersistenceGateway):
        self.storage = storage

    async def _load(self, session_id: str):
        session = await self.storage.get_session(session_id)
        if session is None:
            raise NotFoundError(f"Session not found: {session_id}")
        quiz = await self.storage.get_quiz(session.quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz not found: {session.quiz_id}")
        questions = await self.storage.get_questions_by_quiz(session.quiz_id)
        return session, quiz, questions

    @staticmethod
    def _current_revealed(session: GameSession) -> bool:
        return session.status == SessionStatus.FINISHED or session.is_current_revealed

    async def get_snapshot(self, session_id: str) -> SessionSnapshot:
        session, quiz, questions = await self._load(session_id)
        players = await self.storage.get_players_by_session(session_id)

        return SessionSnapshot(
            id=session.id,
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            game_code=session.game_code,
            status=session.status,
            current_question_index=session.current_question_index,
            question_count=len(questions),
            time_per_question=quiz.time_per_question,
            revealed=self._current_revealed(session),
            player_count=len(players),
            poll_interval_ms=settings.poll_interval_ms,
            started_at=session.started_at,
            ended_at=session.ended_at,
        )

    async def get_players(self, session_id: str) -> List[GamePlayer]:
        """Players sorted by standing (score desc, deterministic ties)"""
        if await self.storage.get_session(session_id) is None:
            raise NotFoundError(f"Session not found: {session_id}")
        return rank_players(await self.storage.get_players_by_session(session_id))

    async def get_current_question(self, session_id: str) -> CurrentQuestionView:
        """
        Current question in player view

        The correct index is included only once the question is revealed
        or the game has finished.

        Raises:
            InvalidStateError: If the game has not started
        """
        session, quiz, questions = await self._load(session_id)
        if session.status == SessionStatus.WAITING:
            raise InvalidStateError("Game has not started yet")

        question = current_question(session, questions)
        revealed = self._current_revealed(session)

        return CurrentQuestionView(
            question_index=session.current_question_index,
            question_count=len(questions),
            time_per_question=quiz.time_per_question,
            revealed=revealed,
            question=question.to_player_view(reveal=revealed),
        )

    async def get_tally(self, session_id: str) -> RevealResult:
        """
        Answer counts for the current question

        Raises:
            InvalidStateError: If the current question is not revealed yet
        """
        session, _, questions = await self._load(session_id)
        if not self._current_revealed(session):
            raise InvalidStateError("Answers have not been revealed yet")

        question = current_question(session, questions)
        answers = await self.storage.get_answers_by_question(session_id, question.id)

        return RevealResult(
            question_id=question.id,
            question_index=session.current_question_index,
            correct_answer=question.correct_answer,
            answer_counts=tally_answers(answers),
            total_answers=len(answers),
        )

    async def get_results(self, session_id: str) -> FinalResults:
        """
        Final standings

        Raises:
            InvalidStateError: If the game has not finished
        """
        session, _, questions = await self._load(session_id)
        if session.status != SessionStatus.FINISHED:
            raise InvalidStateError("Game has not finished yet")

        standings = build_standings(await self.storage.get_players_by_session(session_id))
        return FinalResults(
            session_id=session.id,
            status=session.status,
            question_count=len(questions),
            winner=standings[0] if standings else None,
            standings=standings,
        )

    async def get_player(self, player_id: str) -> GamePlayer:
        player = await self.storage.get_player(player_id)
        if player is None:
            raise NotFoundError(f"Player not found: {player_id}")
        return player
