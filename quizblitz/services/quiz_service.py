"""
Quiz Service
Business logic for quiz authoring, AI generation, and retrieval
FILE: quizblitz/services/quiz_service.py
"""
import logging
from typing import List, Optional, Union

from quizblitz.core.config import settings
from quizblitz.core.errors import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    UpstreamGenerationError,
)
from quizblitz.db.gateway import PersistenceGateway
from quizblitz.models.quiz import (
    GenerateQuizRequest,
    Question,
    QuestionDraft,
    QuestionPlayerView,
    Quiz,
    QuizCreateRequest,
    QuizDetailResponse,
)
from quizblitz.services import llm_client
from quizblitz.services.llm_client import LLMAPIError, LLMClientError, LLMTimeoutError
from quizblitz.utils.quiz_parser import QuizParseError, parse_quiz_json
from quizblitz.utils.quiz_prompt import build_quiz_prompt

logger = logging.getLogger(__name__)


class QuizService:
    """Service for creating, generating, and reading quizzes"""

    def __init__(self, storage: PersistenceGateway):
        self.storage = storage

    # ==================== HELPERS ====================

    async def _save_quiz(self, quiz: Quiz, drafts: List[QuestionDraft]) -> Quiz:
        """Persist a quiz header and its ordered questions"""
        quiz = await self.storage.create_quiz(quiz)
        for order_index, draft in enumerate(drafts):
            await self.storage.create_question(Question(
                quiz_id=quiz.id,
                question_text=draft.question_text,
                options=draft.options,
                correct_answer=draft.correct_answer,
                points=draft.points or settings.default_question_points,
                order_index=order_index,
            ))
        return quiz

    async def _require_quiz(self, quiz_id: str) -> Quiz:
        quiz = await self.storage.get_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz not found: {quiz_id}")
        return quiz

    async def _check_lesson(self, lesson_id: Optional[str], teacher_id: str) -> None:
        if not lesson_id:
            return
        lesson = await self.storage.get_lesson(lesson_id)
        if lesson is None:
            raise NotFoundError(f"Lesson not found: {lesson_id}")
        if lesson.teacher_id != teacher_id:
            raise ForbiddenError("Lesson belongs to another teacher")

    # ==================== AUTHORING ====================

    async def create_quiz(self, request: QuizCreateRequest, teacher_id: str) -> QuizDetailResponse:
        """Create a quiz from explicitly authored questions"""
        await self._check_lesson(request.lesson_id, teacher_id)

        quiz = await self._save_quiz(
            Quiz(
                lesson_id=request.lesson_id,
                teacher_id=teacher_id,
                title=request.title.strip(),
                description=request.description,
                time_per_question=request.time_per_question,
                is_published=request.is_published,
            ),
            request.questions,
        )

        logger.info(f"✅ Created quiz {quiz.id} with {len(request.questions)} questions")
        return QuizDetailResponse(quiz=quiz, question_count=len(request.questions))

    # ==================== AI GENERATION ====================

    async def generate_quiz(self, request: GenerateQuizRequest, teacher_id: str) -> QuizDetailResponse:
        """
        Generate a published quiz from lesson text via the configured LLM

        Workflow:
        1. Build prompt from lesson text
        2. Call LLM (with its own retry/backoff)
        3. Parse and validate the JSON question list
        4. Save quiz and questions

        Args:
            request: Lesson text, title, question count, optional provider
            teacher_id: Owner of the new quiz

        Returns:
            QuizDetailResponse for the saved quiz

        Raises:
            NotFoundError: If lesson_id is given but missing
            UpstreamGenerationError: If the LLM fails or returns unusable output
        """
        await self._check_lesson(request.lesson_id, teacher_id)

        num_questions = request.number_of_questions
        logger.info(f"🎯 Generating {num_questions} questions for '{request.title}'")

        prompt = build_quiz_prompt(request.lesson_text, num_questions)

        try:
            raw_response = await llm_client.generate_quiz(prompt, provider=request.llm_provider)
        except LLMTimeoutError as e:
            raise UpstreamGenerationError(f"LLM request timed out: {e}") from e
        except LLMAPIError as e:
            raise UpstreamGenerationError(f"LLM API error: {e}") from e
        except LLMClientError as e:
            raise UpstreamGenerationError(f"LLM client error: {e}") from e

        logger.info("📋 Parsing LLM response...")
        try:
            drafts = parse_quiz_json(raw_response)
        except QuizParseError as e:
            logger.error(f"❌ Failed to parse quiz: {e}")
            logger.debug(f"Raw response: {raw_response[:500]}...")
            raise UpstreamGenerationError(f"Failed to parse quiz response: {e}") from e

        drafts = drafts[:num_questions]

        quiz = await self._save_quiz(
            Quiz(
                lesson_id=request.lesson_id,
                teacher_id=teacher_id,
                title=request.title.strip(),
                description=f"AI-generated quiz with {len(drafts)} questions",
                time_per_question=settings.default_time_per_question,
                is_published=True,
            ),
            drafts,
        )

        logger.info(f"💾 Generated quiz saved with ID: {quiz.id}")
        return QuizDetailResponse(quiz=quiz, question_count=len(drafts))

    # ==================== RETRIEVAL ====================

    async def get_quiz(self, quiz_id: str, user_id: Optional[str]) -> QuizDetailResponse:
        quiz = await self._require_quiz(quiz_id)
        if not quiz.is_published and quiz.teacher_id != user_id:
            raise ForbiddenError("Quiz is not published")
        questions = await self.storage.get_questions_by_quiz(quiz_id)
        return QuizDetailResponse(quiz=quiz, question_count=len(questions))

    async def get_questions(
        self,
        quiz_id: str,
        user_id: Optional[str]
    ) -> Union[List[Question], List[QuestionPlayerView]]:
        """
        Questions of a quiz

        The owner gets the author view with correct answers; everyone
        else gets the player view of a published quiz.
        """
        quiz = await self._require_quiz(quiz_id)
        questions = await self.storage.get_questions_by_quiz(quiz_id)

        if quiz.teacher_id == user_id:
            return questions
        if not quiz.is_published:
            raise ForbiddenError("Quiz is not published")
        return [q.to_player_view() for q in questions]

    async def list_quizzes(self, teacher_id: str, lesson_id: Optional[str] = None) -> List[Quiz]:
        if lesson_id:
            return [q for q in await self.storage.get_quizzes_by_lesson(lesson_id)
                    if q.teacher_id == teacher_id]
        return await self.storage.get_quizzes_by_teacher(teacher_id)

    async def list_published(self) -> List[Quiz]:
        return await self.storage.get_published_quizzes()

    async def delete_quiz(self, quiz_id: str, teacher_id: str) -> None:
        """
        Delete a quiz and its questions (owner only)

        Raises:
            ForbiddenError: If the caller does not own the quiz
            InvalidStateError: If a session of the quiz is waiting or playing
        """
        quiz = await self._require_quiz(quiz_id)
        if quiz.teacher_id != teacher_id:
            raise ForbiddenError("Only the owner can delete this quiz")

        active = await self.storage.get_active_sessions_by_quiz(quiz_id)
        if active:
            raise InvalidStateError(
                "Quiz is in use by a game that has not finished",
                detail={"session_ids": [s.id for s in active]}
            )

        await self.storage.delete_quiz(quiz_id)
        logger.info(f"🗑️ Deleted quiz {quiz_id}")
