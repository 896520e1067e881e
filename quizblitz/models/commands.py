"""
Store Commands
Closed set of mutations the game engine may ask the store to apply.
Each command names one state-machine transition; the store applies it
atomically and only if its precondition still holds.
FILE: quizblitz/models/commands.py
"""
from datetime import datetime, timezone
from typing import Union

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==================== SESSION COMMANDS ====================

class StartSessionCommand(BaseModel):
    """waiting -> playing; pointer reset to 0"""
    started_at: datetime = Field(default_factory=_utcnow)


class RevealQuestionCommand(BaseModel):
    """Close answer intake for the question at question_index"""
    question_index: int = Field(..., ge=0)


class AdvanceQuestionCommand(BaseModel):
    """
    Move the pointer from from_index to from_index + 1

    Applied only if the stored pointer still equals from_index, so a
    replayed request cannot skip a question.
    """
    from_index: int = Field(..., ge=0)


class FinishSessionCommand(BaseModel):
    """playing -> finished at last_index"""
    last_index: int = Field(..., ge=0)
    ended_at: datetime = Field(default_factory=_utcnow)


class ResultsRecordedCommand(BaseModel):
    """Mark a finished session's results as propagated to users"""


SessionCommand = Union[
    StartSessionCommand,
    RevealQuestionCommand,
    AdvanceQuestionCommand,
    FinishSessionCommand,
    ResultsRecordedCommand,
]


# ==================== PLAYER / USER COMMANDS ====================

class PlayerAnswerApplied(BaseModel):
    """Score delta and new streak after one scored answer"""
    points_earned: int = Field(..., ge=0)
    is_correct: bool
    streak: int = Field(..., ge=0)


class PlayerResultRecorded(BaseModel):
    """
    This player's game result has been applied to their user

    Applied only once per player, so a retried propagation skips them.
    """


PlayerCommand = Union[PlayerAnswerApplied, PlayerResultRecorded]


class UserGameResult(BaseModel):
    """Cumulative statistics increment for one finished game"""
    score: int = Field(..., ge=0)
    won: bool = False
