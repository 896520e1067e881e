from typing import List, Optional

import pytest

from quizblitz.db.memory import MemoryStorage
from quizblitz.models.quiz import Question, Quiz
from quizblitz.models.user import User
from quizblitz.services.game_session_service import GameSessionService
from quizblitz.services.session_locks import SessionLockRegistry


TEACHER_ID = "teacher-1"


@pytest.fixture
async def storage():
    store = MemoryStorage()
    await store.initialize()
    return store


@pytest.fixture
def locks():
    return SessionLockRegistry()


@pytest.fixture
def engine(storage, locks):
    return GameSessionService(storage, locks)


async def make_quiz(
    storage: MemoryStorage,
    correct_answers: List[int],
    teacher_id: str = TEACHER_ID,
    published: bool = True,
    time_per_question: int = 30,
    points: int = 1000,
):
    """Store a quiz with one question per entry in correct_answers"""
    quiz = await storage.create_quiz(Quiz(
        teacher_id=teacher_id,
        title="Photosynthesis",
        time_per_question=time_per_question,
        is_published=published,
    ))
    questions = []
    for index, correct in enumerate(correct_answers):
        questions.append(await storage.create_question(Question(
            quiz_id=quiz.id,
            question_text=f"Question {index + 1}",
            options=["Mitochondria", "Nucleus", "Chloroplast", "Ribosome"],
            correct_answer=correct,
            points=points,
            order_index=index,
        )))
    return quiz, questions


async def make_student(storage: MemoryStorage, name: str, email: Optional[str] = None) -> User:
    return await storage.create_user(User(
        email=email or f"{name.lower()}@school.edu",
        password_hash="x",
        name=name,
        role="student",
    ))
