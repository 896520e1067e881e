"""
Game Session Models
Live sessions, their players, and the append-only answer log
FILE: quizblitz/models/game.py
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid

from pydantic import BaseModel, Field


class SessionStatus(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class GameSession(BaseModel):
    """
    One live run of a quiz, bound to a single host

    current_question_index is a zero-based pointer into the quiz's ordered
    questions. revealed_question_index is set when the host reveals the
    current question and cleared on advance.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    quiz_id: str
    host_id: str
    game_code: str = Field(..., description="Join code, unique among existing sessions")
    status: SessionStatus = SessionStatus.WAITING
    current_question_index: int = 0
    revealed_question_index: Optional[int] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    results_recorded: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_current_revealed(self) -> bool:
        return self.revealed_question_index == self.current_question_index

    class Config:
        json_schema_extra = {
            "example": {
                "id": "8c1d0f8e-4f7b-4c39-9d55-2f0d3a1b6e21",
                "quiz_id": "f3b0c442-98fc-1c14-9afb-4c8996fb9242",
                "host_id": "teacher-1",
                "game_code": "K7QX2M",
                "status": "waiting",
                "current_question_index": 0,
                "revealed_question_index": None
            }
        }


class GamePlayer(BaseModel):
    """Per-session participant; user_id is null for anonymous play"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str
    user_id: Optional[str] = None
    nickname: str
    score: int = 0
    correct_answers: int = 0
    streak: int = 0
    best_streak: int = 0
    result_recorded: bool = False
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PlayerAnswer(BaseModel):
    """Write-once record of one player's response to one question"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str
    player_id: str
    question_id: str
    selected_answer: int
    is_correct: bool
    time_taken: int  # milliseconds
    points_earned: int = 0
    answered_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
