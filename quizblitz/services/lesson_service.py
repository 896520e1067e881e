"""
Lesson Service
FILE: quizblitz/services/lesson_service.py
"""
import logging
from typing import List

from quizblitz.core.errors import ForbiddenError, NotFoundError
from quizblitz.db.gateway import PersistenceGateway
from quizblitz.models.lesson import Lesson, LessonCreateRequest

logger = logging.getLogger(__name__)


class LessonService:
    """Lesson CRUD; every lesson is private to the teacher who wrote it"""

    def __init__(self, storage: PersistenceGateway):
        self.storage = storage

    async def create_lesson(self, request: LessonCreateRequest, teacher_id: str) -> Lesson:
        lesson = await self.storage.create_lesson(Lesson(
            teacher_id=teacher_id,
            title=request.title,
            content=request.content,
            subject=request.subject,
        ))
        logger.info(f"✅ Created lesson {lesson.id}: {lesson.title}")
        return lesson

    async def list_lessons(self, teacher_id: str) -> List[Lesson]:
        return await self.storage.get_lessons_by_teacher(teacher_id)

    async def get_lesson(self, lesson_id: str, teacher_id: str) -> Lesson:
        """
        Raises:
            NotFoundError: If the lesson does not exist
            ForbiddenError: If it belongs to another teacher
        """
        lesson = await self.storage.get_lesson(lesson_id)
        if lesson is None:
            raise NotFoundError(f"Lesson not found: {lesson_id}")
        if lesson.teacher_id != teacher_id:
            raise ForbiddenError("Lesson belongs to another teacher")
        return lesson

    async def delete_lesson(self, lesson_id: str, teacher_id: str) -> None:
        await self.get_lesson(lesson_id, teacher_id)
        await self.storage.delete_lesson(lesson_id)
        logger.info(f"🗑️ Deleted lesson {lesson_id}")
