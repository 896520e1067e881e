"""
Leaderboard Service
Final standings for a finished game, propagation of results into user
statistics, and the global student leaderboards
FILE: quizblitz/services/leaderboard_service.py
"""
import logging
from typing import Dict, List

from quizblitz.core.config import settings
from quizblitz.core.errors import ValidationError
from quizblitz.db.gateway import PersistenceGateway
from quizblitz.models.commands import PlayerResultRecorded, ResultsRecordedCommand, UserGameResult
from quizblitz.models.game import GamePlayer
from quizblitz.models.session_api import PlayerStanding
from quizblitz.models.user import PublicUser
from quizblitz.services.badge_service import BadgeService

logger = logging.getLogger(__name__)


def standing_key(player: GamePlayer):
    """Score desc, then correct answers desc, then earliest join, then id"""
    return (-player.score, -player.correct_answers, player.joined_at, player.id)


def rank_players(players: List[GamePlayer]) -> List[GamePlayer]:
    return sorted(players, key=standing_key)


def build_standings(players: List[GamePlayer]) -> List[PlayerStanding]:
    return [
        PlayerStanding(
            rank=rank,
            player_id=p.id,
            user_id=p.user_id,
            nickname=p.nickname,
            score=p.score,
            correct_answers=p.correct_answers,
            best_streak=p.best_streak,
        )
        for rank, p in enumerate(rank_players(players), start=1)
    ]


class LeaderboardService:
    """Standings and cumulative statistics"""

    BOARDS: Dict[str, str] = {
        "score": "total_score",
        "games": "games_played",
        "wins": "games_won",
    }

    def __init__(self, storage: PersistenceGateway, badge_service: BadgeService = None):
        self.storage = storage
        self.badge_service = badge_service or BadgeService(storage)

    async def record_results(
        self,
        session_id: str,
        question_count: int
    ) -> List[PlayerStanding]:
        """
        Propagate a finished game into user statistics and badges

        Only players linked to an existing user are counted; exactly the
        first-ranked player is the winner. Each player is marked once its
        result is applied and the session is marked at the end, so a call
        that failed partway can be repeated; marked players are skipped.

        Args:
            session_id: Finished session
            question_count: Questions in the session's quiz

        Returns:
            Final standings
        """
        players = rank_players(await self.storage.get_players_by_session(session_id))
        standings = build_standings(players)

        for rank, player in enumerate(players):
            if not player.user_id or player.result_recorded:
                continue

            result = UserGameResult(score=player.score, won=(rank == 0))
            user = await self.storage.update_user(player.user_id, result)
            if user is None:
                logger.warning(f"⚠️ Player {player.id} references missing user {player.user_id}")
            else:
                await self.badge_service.evaluate(user, player, question_count)

            await self.storage.update_player(player.id, PlayerResultRecorded())

        await self.storage.update_session(session_id, ResultsRecordedCommand())

        winner = standings[0].nickname if standings else None
        logger.info(
            f"🏆 Recorded results for session {session_id} - "
            f"Players: {len(standings)}, Winner: {winner}"
        )
        return standings

    async def get_leaderboard(self, board: str, limit: int = None) -> List[PublicUser]:
        """
        Top students for one board

        Raises:
            ValidationError: If board is not score/games/wins
        """
        field = self.BOARDS.get(board)
        if field is None:
            raise ValidationError(f"Unknown leaderboard: {board}")
        users = await self.storage.get_top_users(field, limit or settings.leaderboard_limit)
        return [u.to_public() for u in users]
