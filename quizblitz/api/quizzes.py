"""
Quiz API Routes
FastAPI endpoints for quiz authoring, AI generation, and retrieval
"""
import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Path, Query, status

from quizblitz.api.dependencies import (
    get_optional_user_id,
    get_quiz_service,
    get_teacher_id,
)
from quizblitz.models.quiz import (
    GenerateQuizRequest,
    Question,
    QuestionPlayerView,
    Quiz,
    QuizCreateRequest,
    QuizDetailResponse,
)
from quizblitz.services.quiz_service import QuizService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quizzes", tags=["Quizzes"])


@router.get("", response_model=List[Quiz], summary="List my quizzes")
async def list_quizzes(
    lesson_id: Optional[str] = Query(None, description="Only quizzes for this lesson"),
    teacher_id: str = Depends(get_teacher_id),
    service: QuizService = Depends(get_quiz_service)
) -> List[Quiz]:
    return await service.list_quizzes(teacher_id, lesson_id)


@router.get("/available", response_model=List[Quiz], summary="List published quizzes")
async def list_available(service: QuizService = Depends(get_quiz_service)) -> List[Quiz]:
    return await service.list_published()


@router.post(
    "",
    response_model=QuizDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a quiz with explicit questions"
)
async def create_quiz(
    request: QuizCreateRequest,
    teacher_id: str = Depends(get_teacher_id),
    service: QuizService = Depends(get_quiz_service)
) -> QuizDetailResponse:
    return await service.create_quiz(request, teacher_id)


@router.post(
    "/generate",
    response_model=QuizDetailResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        502: {"description": "LLM failed or returned unusable output (retryable)"}
    },
    summary="Generate a quiz from lesson text",
    description="""
    Generate a published multiple-choice quiz from lesson content.

    **Workflow:**
    1. Builds the generation prompt from `lesson_text`
    2. Calls the configured LLM provider (gemini, openai or anthropic)
    3. Parses and validates the JSON question list
    4. Saves the quiz (30 s per question, 1000 points per question)
    """
)
async def generate_quiz(
    request: GenerateQuizRequest,
    teacher_id: str = Depends(get_teacher_id),
    service: QuizService = Depends(get_quiz_service)
) -> QuizDetailResponse:
    logger.info(f"📥 Quiz generation request: {request.number_of_questions} questions")
    return await service.generate_quiz(request, teacher_id)


@router.get("/{quiz_id}", response_model=QuizDetailResponse, summary="Get a quiz")
async def get_quiz(
    quiz_id: str = Path(..., description="Quiz ID"),
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: QuizService = Depends(get_quiz_service)
) -> QuizDetailResponse:
    return await service.get_quiz(quiz_id, user_id)


@router.get(
    "/{quiz_id}/questions",
    response_model=Union[List[Question], List[QuestionPlayerView]],
    summary="Get quiz questions (answers only for the owner)"
)
async def get_questions(
    quiz_id: str = Path(..., description="Quiz ID"),
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: QuizService = Depends(get_quiz_service)
):
    return await service.get_questions(quiz_id, user_id)


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a quiz")
async def delete_quiz(
    quiz_id: str = Path(..., description="Quiz ID"),
    teacher_id: str = Depends(get_teacher_id),
    service: QuizService = Depends(get_quiz_service)
):
    await service.delete_quiz(quiz_id, teacher_id)
