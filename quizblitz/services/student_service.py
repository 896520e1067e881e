"""
Student Service
Teacher-facing student roster: list and remove student accounts
FILE: quizblitz/services/student_service.py
"""
import logging
from typing import List

from quizblitz.core.errors import NotFoundError
from quizblitz.db.gateway import PersistenceGateway
from quizblitz.models.user import PublicUser

logger = logging.getLogger(__name__)


class StudentService:
    """Student accounts as seen by teachers; callers are checked upstream"""

    def __init__(self, storage: PersistenceGateway):
        self.storage = storage

    async def list_students(self) -> List[PublicUser]:
        return [s.to_public() for s in await self.storage.get_all_students()]

    async def delete_student(self, student_id: str, teacher_id: str) -> None:
        """
        Delete a student account and its badges

        Past game players keep their user_id; results for a deleted user
        are skipped when a game finishes.

        Raises:
            NotFoundError: If the id is unknown or not a student
        """
        user = await self.storage.get_user(student_id)
        if user is None or user.role != "student":
            raise NotFoundError(f"Student not found: {student_id}")

        await self.storage.delete_user(student_id)
        logger.info(f"🗑️ Teacher {teacher_id} deleted student {student_id}")
