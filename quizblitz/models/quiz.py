"""
Quiz Models
Quizzes, their questions, and the two question projections
(author view with the correct index, player view without it)
FILE: quizblitz/models/quiz.py
"""
from datetime import datetime, timezone
from typing import List, Optional
import uuid

from pydantic import BaseModel, Field, field_validator


OPTIONS_PER_QUESTION = 4


class Quiz(BaseModel):
    """Quiz header; questions are stored separately and ordered by order_index"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    lesson_id: Optional[str] = None
    teacher_id: str
    title: str
    description: Optional[str] = None
    time_per_question: int = 30  # seconds
    is_published: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Question(BaseModel):
    """
    Multiple-choice question with exactly four options
    SECURITY: correct_answer is only served through the author view
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    quiz_id: str
    question_text: str
    options: List[str]
    correct_answer: int = Field(..., ge=0, le=OPTIONS_PER_QUESTION - 1)
    points: int = 1000
    order_index: int = 0

    def to_player_view(self, reveal: bool = False) -> "QuestionPlayerView":
        return QuestionPlayerView(
            id=self.id,
            quiz_id=self.quiz_id,
            question_text=self.question_text,
            options=list(self.options),
            points=self.points,
            order_index=self.order_index,
            correct_answer=self.correct_answer if reveal else None,
        )


class QuestionPlayerView(BaseModel):
    """Question as shown on player devices; correct_answer stays null until reveal"""
    id: str
    quiz_id: str
    question_text: str
    options: List[str]
    points: int
    order_index: int
    correct_answer: Optional[int] = None


class QuestionDraft(BaseModel):
    """A question as submitted by an author or produced by the generator"""
    question_text: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=OPTIONS_PER_QUESTION, max_length=OPTIONS_PER_QUESTION)
    correct_answer: int = Field(..., ge=0, le=OPTIONS_PER_QUESTION - 1)
    points: Optional[int] = Field(default=None, gt=0)

    @field_validator("options")
    @classmethod
    def validate_options(cls, v):
        """Every option must be a non-empty string"""
        cleaned = [opt.strip() for opt in v]
        if any(not opt for opt in cleaned):
            raise ValueError("options must be non-empty strings")
        return cleaned


class QuizCreateRequest(BaseModel):
    """Request model for creating a quiz with explicit questions"""
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    lesson_id: Optional[str] = None
    time_per_question: int = Field(default=30, ge=5, le=300)
    is_published: bool = False
    questions: List[QuestionDraft] = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Photosynthesis basics",
                "time_per_question": 30,
                "is_published": True,
                "questions": [
                    {
                        "question_text": "Where does photosynthesis happen?",
                        "options": ["Mitochondria", "Nucleus", "Chloroplast", "Ribosome"],
                        "correct_answer": 2
                    }
                ]
            }
        }


class GenerateQuizRequest(BaseModel):
    """Request model for AI quiz generation"""
    lesson_id: Optional[str] = None
    lesson_text: str = Field(..., min_length=50, description="Lesson content to generate from")
    title: str = Field(..., min_length=3)
    number_of_questions: int = Field(default=10, ge=5, le=20)
    llm_provider: Optional[str] = Field(default=None, description="gemini, openai or anthropic")


class QuizDetailResponse(BaseModel):
    """Quiz header plus question count"""
    quiz: Quiz
    question_count: int
