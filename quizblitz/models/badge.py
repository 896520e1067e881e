"""
Badge Models
Static achievement metadata and per-user awards
"""
from datetime import datetime, timezone
import uuid

from pydantic import BaseModel, Field


class Badge(BaseModel):
    """Achievement; requirement is encoded as "category:threshold" """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str
    icon: str
    requirement: str
    category: str


class UserBadge(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    badge_id: str
    earned_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


DEFAULT_BADGES = [
    {"name": "First Steps", "description": "Play your first game", "icon": "rocket", "requirement": "games:1", "category": "games"},
    {"name": "Regular Player", "description": "Play 10 games", "icon": "target", "requirement": "games:10", "category": "games"},
    {"name": "Veteran", "description": "Play 50 games", "icon": "medal", "requirement": "games:50", "category": "games"},
    {"name": "Quick Learner", "description": "Score 1,000 points", "icon": "zap", "requirement": "score:1000", "category": "score"},
    {"name": "Rising Star", "description": "Score 10,000 points", "icon": "star", "requirement": "score:10000", "category": "score"},
    {"name": "Champion", "description": "Score 100,000 points", "icon": "trophy", "requirement": "score:100000", "category": "score"},
    {"name": "First Win", "description": "Win your first game", "icon": "crown", "requirement": "wins:1", "category": "games"},
    {"name": "Winner", "description": "Win 10 games", "icon": "award", "requirement": "wins:10", "category": "games"},
    {"name": "On Fire", "description": "Get a 5 answer streak", "icon": "flame", "requirement": "streak:5", "category": "streak"},
    {"name": "Unstoppable", "description": "Get a 10 answer streak", "icon": "flame", "requirement": "streak:10", "category": "streak"},
    {"name": "Sharp Shooter", "description": "80% accuracy in a game", "icon": "target", "requirement": "accuracy:80", "category": "accuracy"},
    {"name": "Perfect Game", "description": "100% accuracy in a game", "icon": "shield", "requirement": "accuracy:100", "category": "accuracy"},
]
