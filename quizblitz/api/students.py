"""
Student API Routes
Teacher-only roster management
"""
from typing import List

from fastapi import APIRouter, Depends, Path, status

from quizblitz.api.dependencies import get_student_service, get_teacher_id
from quizblitz.models.user import PublicUser
from quizblitz.services.student_service import StudentService

router = APIRouter(prefix="/api/students", tags=["Students"])


@router.get("", response_model=List[PublicUser], summary="List all students")
async def list_students(
    teacher_id: str = Depends(get_teacher_id),
    service: StudentService = Depends(get_student_service)
) -> List[PublicUser]:
    return await service.list_students()


@router.delete(
    "/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Unknown id or not a student"}},
    summary="Delete a student account"
)
async def delete_student(
    student_id: str = Path(..., description="Student user ID"),
    teacher_id: str = Depends(get_teacher_id),
    service: StudentService = Depends(get_student_service)
):
    await service.delete_student(student_id, teacher_id)
