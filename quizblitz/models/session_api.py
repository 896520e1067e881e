"""
Game Session Request/Response Models
Payloads for the live-game endpoints and the poll read model
FILE: quizblitz/models/session_api.py
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from quizblitz.models.game import GamePlayer, GameSession, SessionStatus
from quizblitz.models.quiz import OPTIONS_PER_QUESTION, QuestionPlayerView


# ==================== REQUESTS ====================

class CreateSessionRequest(BaseModel):
    """Request model for hosting a new game"""
    quiz_id: str = Field(..., description="Quiz to play")

    class Config:
        json_schema_extra = {
            "example": {
                "quiz_id": "f3b0c442-98fc-1c14-9afb-4c8996fb9242"
            }
        }


class JoinSessionRequest(BaseModel):
    """Request model for joining a waiting game by code"""
    game_code: str = Field(..., min_length=1, max_length=12, description="Join code, case-insensitive")
    nickname: str = Field(..., description="Display name, 2-20 characters")

    class Config:
        json_schema_extra = {
            "example": {
                "game_code": "k7qx2m",
                "nickname": "Alice"
            }
        }


class SubmitAnswerRequest(BaseModel):
    """Request model for a player's answer to the current question"""
    player_id: str
    question_id: str
    selected_answer: int = Field(..., description="Option index 0-3")
    time_taken: int = Field(..., description="Client-measured answer time in milliseconds")

    class Config:
        json_schema_extra = {
            "example": {
                "player_id": "0d9e5b8a-2b0c-4a0e-8f1b-9a2f5e6c7d11",
                "question_id": "a8b9c0d1-e2f3-4a5b-8c6d-7e8f9a0b1c2d",
                "selected_answer": 2,
                "time_taken": 5000
            }
        }


# ==================== RESPONSES ====================

class JoinSessionResponse(BaseModel):
    player: GamePlayer
    session: GameSession


class AnswerResult(BaseModel):
    """Outcome of one submitted answer"""
    is_correct: bool
    points_earned: int
    streak: int
    score: int = Field(..., description="Player's total score after this answer")


class RevealResult(BaseModel):
    """Per-option answer counts for the current question"""
    question_id: str
    question_index: int
    correct_answer: int
    answer_counts: List[int] = Field(
        ...,
        min_length=OPTIONS_PER_QUESTION,
        max_length=OPTIONS_PER_QUESTION
    )
    total_answers: int

    class Config:
        json_schema_extra = {
            "example": {
                "question_id": "a8b9c0d1-e2f3-4a5b-8c6d-7e8f9a0b1c2d",
                "question_index": 0,
                "correct_answer": 2,
                "answer_counts": [1, 0, 1, 0],
                "total_answers": 2
            }
        }


class PlayerStanding(BaseModel):
    rank: int
    player_id: str
    user_id: Optional[str] = None
    nickname: str
    score: int
    correct_answers: int
    best_streak: int


class AdvanceResult(BaseModel):
    """Session after Next; standings only once the game has finished"""
    session: GameSession
    finished: bool
    standings: List[PlayerStanding] = []


class SessionSnapshot(BaseModel):
    """What a polling device needs to render the current phase"""
    id: str
    quiz_id: str
    quiz_title: str
    game_code: str
    status: SessionStatus
    current_question_index: int
    question_count: int
    time_per_question: int
    revealed: bool
    player_count: int
    poll_interval_ms: int
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None


class CurrentQuestionView(BaseModel):
    """Current question in player view plus its position"""
    question_index: int
    question_count: int
    time_per_question: int
    revealed: bool
    question: QuestionPlayerView


class FinalResults(BaseModel):
    session_id: str
    status: SessionStatus
    question_count: int
    winner: Optional[PlayerStanding] = None
    standings: List[PlayerStanding]
