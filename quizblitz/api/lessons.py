"""
Lesson API Routes
"""
from typing import List

from fastapi import APIRouter, Depends, Path, status

from quizblitz.api.dependencies import get_lesson_service, get_teacher_id
from quizblitz.models.lesson import Lesson, LessonCreateRequest
from quizblitz.services.lesson_service import LessonService

router = APIRouter(prefix="/api/lessons", tags=["Lessons"])


@router.get("", response_model=List[Lesson], summary="List my lessons")
async def list_lessons(
    teacher_id: str = Depends(get_teacher_id),
    service: LessonService = Depends(get_lesson_service)
) -> List[Lesson]:
    return await service.list_lessons(teacher_id)


@router.post("", response_model=Lesson, status_code=status.HTTP_201_CREATED, summary="Create a lesson")
async def create_lesson(
    request: LessonCreateRequest,
    teacher_id: str = Depends(get_teacher_id),
    service: LessonService = Depends(get_lesson_service)
) -> Lesson:
    return await service.create_lesson(request, teacher_id)


@router.get("/{lesson_id}", response_model=Lesson, summary="Get one of my lessons")
async def get_lesson(
    lesson_id: str = Path(..., description="Lesson ID"),
    teacher_id: str = Depends(get_teacher_id),
    service: LessonService = Depends(get_lesson_service)
) -> Lesson:
    return await service.get_lesson(lesson_id, teacher_id)


@router.delete("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a lesson")
async def delete_lesson(
    lesson_id: str = Path(..., description="Lesson ID"),
    teacher_id: str = Depends(get_teacher_id),
    service: LessonService = Depends(get_lesson_service)
):
    await service.delete_lesson(lesson_id, teacher_id)
