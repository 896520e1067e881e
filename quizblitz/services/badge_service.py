"""
Badge Service
Evaluates "category:threshold" badge requirements after a finished game
FILE: quizblitz/services/badge_service.py
"""
import logging
from typing import List, Optional, Tuple

from quizblitz.db.gateway import PersistenceGateway
from quizblitz.models.badge import Badge, UserBadge
from quizblitz.models.game import GamePlayer
from quizblitz.models.user import User

logger = logging.getLogger(__name__)


def parse_requirement(requirement: str) -> Optional[Tuple[str, float]]:
    """
    Split a requirement string into (category, threshold)

    Returns:
        None if the string is malformed
    """
    category, sep, threshold = requirement.partition(":")
    if not sep or not category.strip():
        return None
    try:
        return category.strip().lower(), float(threshold)
    except ValueError:
        return None


class BadgeService:
    """Awards badges from cumulative user stats and single-game results"""

    USER_TOTALS = {
        "score": "total_score",
        "games": "games_played",
        "wins": "games_won",
    }

    def __init__(self, storage: PersistenceGateway):
        self.storage = storage

    def is_earned(
        self,
        badge: Badge,
        user: User,
        player: GamePlayer,
        question_count: int
    ) -> bool:
        """
        Check one badge against the user's updated totals and this game

        Unknown or malformed requirements never match.
        """
        parsed = parse_requirement(badge.requirement)
        if parsed is None:
            logger.warning(f"⚠️ Skipping badge '{badge.name}': malformed requirement {badge.requirement!r}")
            return False

        category, threshold = parsed

        if category in self.USER_TOTALS:
            return getattr(user, self.USER_TOTALS[category]) >= threshold
        if category == "streak":
            return player.best_streak >= threshold
        if category == "accuracy":
            if question_count <= 0:
                return False
            return player.correct_answers / question_count * 100 >= threshold

        logger.warning(f"⚠️ Skipping badge '{badge.name}': unknown category {category!r}")
        return False

    async def evaluate(
        self,
        user: User,
        player: GamePlayer,
        question_count: int
    ) -> List[UserBadge]:
        """
        Award every badge the user newly qualifies for

        Args:
            user: User record after this game's stats were applied
            player: The user's player record in the finished game
            question_count: Number of questions in the game

        Returns:
            Newly awarded badges
        """
        badges = await self.storage.get_all_badges()
        held = {ub.badge_id for ub in await self.storage.get_user_badges(user.id)}

        awarded = []
        for badge in badges:
            if badge.id in held:
                continue
            if not self.is_earned(badge, user, player, question_count):
                continue
            user_badge = await self.storage.award_badge(user.id, badge.id)
            if user_badge is not None:
                awarded.append(user_badge)
                logger.info(f"🏅 Awarded '{badge.name}' to user {user.id}")

        return awarded

    async def get_all_badges(self) -> List[Badge]:
        return await self.storage.get_all_badges()

    async def get_user_badges(self, user_id: str) -> List[UserBadge]:
        return await self.storage.get_user_badges(user_id)
