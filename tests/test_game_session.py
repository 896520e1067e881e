import asyncio

import pytest

from quizblitz.core.errors import (
    DuplicateAnswerError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from quizblitz.db.memory import MemoryStorage
from quizblitz.models.game import SessionStatus
from quizblitz.services.game_session_service import GameSessionService
from quizblitz.services.poll_service import PollService
from quizblitz.services.quiz_service import QuizService
from quizblitz.services.scoring import calculate_points
from quizblitz.services.session_locks import SessionLockRegistry
from tests.conftest import TEACHER_ID, make_quiz, make_student


async def start_game(engine, storage, correct_answers, players=("Alice", "Bob")):
    quiz, questions = await make_quiz(storage, correct_answers)
    session = await engine.create_session(quiz.id, TEACHER_ID)
    joined = []
    for nickname in players:
        player, _ = await engine.join_session(session.game_code, nickname)
        joined.append(player)
    session = await engine.start_session(session.id, TEACHER_ID)
    return session, questions, joined


# ==================== CREATE / JOIN ====================

async def test_create_session_starts_waiting_at_question_zero(engine, storage):
    quiz, _ = await make_quiz(storage, [2])
    session = await engine.create_session(quiz.id, TEACHER_ID)

    assert session.status == SessionStatus.WAITING
    assert session.current_question_index == 0
    assert session.host_id == TEACHER_ID
    assert len(session.game_code) == 6


async def test_create_session_requires_existing_quiz(engine):
    with pytest.raises(NotFoundError):
        await engine.create_session("missing", TEACHER_ID)


async def test_unpublished_quiz_can_only_be_hosted_by_owner(engine, storage):
    quiz, _ = await make_quiz(storage, [0], published=False)

    with pytest.raises(ForbiddenError):
        await engine.create_session(quiz.id, "someone-else")

    assert (await engine.create_session(quiz.id, TEACHER_ID)).quiz_id == quiz.id


async def test_join_is_case_insensitive(engine, storage):
    quiz, _ = await make_quiz(storage, [0])
    session = await engine.create_session(quiz.id, TEACHER_ID)

    player, joined = await engine.join_session(f"  {session.game_code.lower()} ", "Alice")

    assert joined.id == session.id
    assert player.session_id == session.id
    assert player.score == 0 and player.streak == 0


async def test_duplicate_nicknames_get_distinct_players(engine, storage):
    quiz, _ = await make_quiz(storage, [0])
    session = await engine.create_session(quiz.id, TEACHER_ID)

    first, _ = await engine.join_session(session.game_code, "Sam")
    second, _ = await engine.join_session(session.game_code, "Sam")

    assert first.id != second.id
    assert len(await storage.get_players_by_session(session.id)) == 2


@pytest.mark.parametrize("nickname", ["A", " B ", "x" * 21, ""])
async def test_nickname_length_is_enforced(engine, storage, nickname):
    quiz, _ = await make_quiz(storage, [0])
    session = await engine.create_session(quiz.id, TEACHER_ID)

    with pytest.raises(ValidationError):
        await engine.join_session(session.game_code, nickname)


async def test_unknown_code_cannot_be_joined(engine):
    with pytest.raises(NotFoundError, match="Game not found or already started"):
        await engine.join_session("ZZZZZZ", "Alice")


async def test_no_late_joins_after_start_or_finish(engine, storage):
    session, _, _ = await start_game(engine, storage, [0])

    with pytest.raises(InvalidStateError, match="Game not found or already started"):
        await engine.join_session(session.game_code, "Late")

    await engine.advance_question(session.id, TEACHER_ID)
    with pytest.raises(InvalidStateError):
        await engine.join_session(session.game_code, "Later")


# ==================== START ====================

async def test_only_host_can_start(engine, storage):
    quiz, _ = await make_quiz(storage, [0])
    session = await engine.create_session(quiz.id, TEACHER_ID)

    with pytest.raises(ForbiddenError):
        await engine.start_session(session.id, "intruder")


async def test_second_start_is_rejected_without_side_effects(engine, storage):
    session, _, _ = await start_game(engine, storage, [0, 1])
    started_at = session.started_at

    with pytest.raises(InvalidStateError):
        await engine.start_session(session.id, TEACHER_ID)

    stored = await storage.get_session(session.id)
    assert stored.status == SessionStatus.PLAYING
    assert stored.started_at == started_at


async def test_start_requires_questions(engine, storage):
    quiz, _ = await make_quiz(storage, [])
    session = await engine.create_session(quiz.id, TEACHER_ID)

    with pytest.raises(InvalidStateError):
        await engine.start_session(session.id, TEACHER_ID)


async def test_start_with_zero_players_is_allowed(engine, storage):
    session, _, _ = await start_game(engine, storage, [0], players=())
    assert session.status == SessionStatus.PLAYING


# ==================== ANSWERS ====================

async def test_end_to_end_alice_beats_bob(engine, storage):
    alice_user = await make_student(storage, "Alice")
    quiz, questions = await make_quiz(storage, [2])
    session = await engine.create_session(quiz.id, TEACHER_ID)
    alice, _ = await engine.join_session(session.game_code, "Alice", user_id=alice_user.id)
    bob, _ = await engine.join_session(session.game_code, "Bob")
    await engine.start_session(session.id, TEACHER_ID)

    alice_result = await engine.submit_answer(session.id, alice.id, questions[0].id, 2, 5000)
    bob_result = await engine.submit_answer(session.id, bob.id, questions[0].id, 0, 3000)

    assert alice_result.is_correct and alice_result.points_earned == 917
    assert alice_result.streak == 1
    assert not bob_result.is_correct and bob_result.points_earned == 0
    assert bob_result.streak == 0

    tally = await engine.reveal_answer(session.id, TEACHER_ID)
    assert tally.answer_counts == [1, 0, 1, 0]
    assert tally.correct_answer == 2

    result = await engine.advance_question(session.id, TEACHER_ID)
    assert result.finished
    assert result.session.status == SessionStatus.FINISHED
    assert result.session.current_question_index == 0
    assert [s.nickname for s in result.standings] == ["Alice", "Bob"]
    assert result.standings[0].rank == 1

    user = await storage.get_user(alice_user.id)
    assert user.total_score == 917
    assert user.games_played == 1
    assert user.games_won == 1


async def test_second_answer_to_same_question_is_rejected(engine, storage):
    session, questions, (alice, _) = await start_game(engine, storage, [1])

    await engine.submit_answer(session.id, alice.id, questions[0].id, 1, 1000)
    with pytest.raises(DuplicateAnswerError):
        await engine.submit_answer(session.id, alice.id, questions[0].id, 0, 2000)

    player = await storage.get_player(alice.id)
    assert player.correct_answers == 1


async def test_concurrent_duplicate_answers_apply_once(engine, storage):
    session, questions, (alice, _) = await start_game(engine, storage, [1])

    results = await asyncio.gather(
        engine.submit_answer(session.id, alice.id, questions[0].id, 1, 1000),
        engine.submit_answer(session.id, alice.id, questions[0].id, 1, 1000),
        return_exceptions=True,
    )

    assert sum(1 for r in results if isinstance(r, DuplicateAnswerError)) == 1
    player = await storage.get_player(alice.id)
    assert player.correct_answers == 1
    assert player.score == calculate_points(1000, True, 1000, 30000)


async def test_answer_before_start_is_rejected(engine, storage):
    quiz, questions = await make_quiz(storage, [0])
    session = await engine.create_session(quiz.id, TEACHER_ID)
    player, _ = await engine.join_session(session.game_code, "Alice")

    with pytest.raises(InvalidStateError):
        await engine.submit_answer(session.id, player.id, questions[0].id, 0, 100)


async def test_answer_to_non_current_question_is_rejected(engine, storage):
    session, questions, (alice, _) = await start_game(engine, storage, [0, 1])

    with pytest.raises(InvalidStateError, match="Wrong question"):
        await engine.submit_answer(session.id, alice.id, questions[1].id, 1, 100)


async def test_answer_after_reveal_is_rejected(engine, storage):
    session, questions, (alice, bob) = await start_game(engine, storage, [0])
    await engine.submit_answer(session.id, alice.id, questions[0].id, 0, 100)
    await engine.reveal_answer(session.id, TEACHER_ID)

    with pytest.raises(InvalidStateError):
        await engine.submit_answer(session.id, bob.id, questions[0].id, 0, 100)


async def test_answer_validation(engine, storage):
    session, questions, (alice, _) = await start_game(engine, storage, [0])

    with pytest.raises(ValidationError):
        await engine.submit_answer(session.id, alice.id, questions[0].id, 4, 100)
    with pytest.raises(ValidationError):
        await engine.submit_answer(session.id, alice.id, questions[0].id, 0, -1)


async def test_player_from_other_session_is_not_found(engine, storage):
    session, questions, _ = await start_game(engine, storage, [0])
    _, _, (stranger, _) = await start_game(engine, storage, [0])

    with pytest.raises(NotFoundError):
        await engine.submit_answer(session.id, stranger.id, questions[0].id, 0, 100)


async def test_streak_and_best_streak_track_consecutive_correct_answers(engine, storage):
    session, questions, (alice, _) = await start_game(engine, storage, [0, 1, 2])

    await engine.submit_answer(session.id, alice.id, questions[0].id, 0, 100)
    await engine.advance_question(session.id, TEACHER_ID)
    await engine.submit_answer(session.id, alice.id, questions[1].id, 1, 100)
    await engine.advance_question(session.id, TEACHER_ID)
    result = await engine.submit_answer(session.id, alice.id, questions[2].id, 0, 100)

    player = await storage.get_player(alice.id)
    assert result.streak == 0
    assert player.best_streak == 2
    assert player.correct_answers == 2


# ==================== REVEAL / ADVANCE ====================

async def test_reveal_is_idempotent_and_sums_to_answer_count(engine, storage):
    session, questions, (alice, bob) = await start_game(engine, storage, [3])
    await engine.submit_answer(session.id, alice.id, questions[0].id, 3, 100)
    await engine.submit_answer(session.id, bob.id, questions[0].id, 3, 200)

    first = await engine.reveal_answer(session.id, TEACHER_ID)
    second = await engine.reveal_answer(session.id, TEACHER_ID)

    assert first.answer_counts == second.answer_counts == [0, 0, 0, 2]
    assert sum(first.answer_counts) == first.total_answers == 2


async def test_reveal_with_no_answers_reports_zero_counts(engine, storage):
    session, _, _ = await start_game(engine, storage, [0])
    tally = await engine.reveal_answer(session.id, TEACHER_ID)
    assert tally.answer_counts == [0, 0, 0, 0]


async def test_only_host_can_reveal_or_advance(engine, storage):
    session, _, _ = await start_game(engine, storage, [0])

    with pytest.raises(ForbiddenError):
        await engine.reveal_answer(session.id, "intruder")
    with pytest.raises(ForbiddenError):
        await engine.advance_question(session.id, "intruder")


async def test_advance_walks_questions_then_finishes(engine, storage):
    session, _, _ = await start_game(engine, storage, [0, 1, 2])

    first = await engine.advance_question(session.id, TEACHER_ID)
    assert not first.finished
    assert first.session.current_question_index == 1
    second = await engine.advance_question(session.id, TEACHER_ID)
    assert second.session.current_question_index == 2
    final = await engine.advance_question(session.id, TEACHER_ID)

    assert final.finished
    assert final.session.current_question_index == 2
    assert final.session.ended_at is not None

    with pytest.raises(InvalidStateError):
        await engine.advance_question(session.id, TEACHER_ID)
    assert (await storage.get_session(session.id)).current_question_index == 2


async def test_advance_clears_reveal_mark(engine, storage):
    session, questions, (alice, _) = await start_game(engine, storage, [0, 1])
    await engine.reveal_answer(session.id, TEACHER_ID)
    await engine.advance_question(session.id, TEACHER_ID)

    stored = await storage.get_session(session.id)
    assert stored.revealed_question_index is None
    result = await engine.submit_answer(session.id, alice.id, questions[1].id, 1, 100)
    assert result.is_correct


async def test_host_controls_before_start_are_rejected(engine, storage):
    quiz, _ = await make_quiz(storage, [0])
    session = await engine.create_session(quiz.id, TEACHER_ID)

    with pytest.raises(InvalidStateError):
        await engine.reveal_answer(session.id, TEACHER_ID)
    with pytest.raises(InvalidStateError):
        await engine.advance_question(session.id, TEACHER_ID)


# ==================== DELETE / RECENT ====================

async def test_delete_removes_session_and_players_but_keeps_answers(engine, storage, locks):
    session, questions, (alice, _) = await start_game(engine, storage, [0])
    await engine.submit_answer(session.id, alice.id, questions[0].id, 0, 100)

    with pytest.raises(ForbiddenError):
        await engine.delete_session(session.id, "intruder")

    await engine.delete_session(session.id, TEACHER_ID)

    assert await storage.get_session(session.id) is None
    assert await storage.get_players_by_session(session.id) == []
    assert await storage.get_player_answer(alice.id, questions[0].id) is not None
    assert len(locks) == 0


async def test_recent_sessions_are_newest_first_and_per_host(engine, storage):
    quiz, _ = await make_quiz(storage, [0])
    created = [await engine.create_session(quiz.id, TEACHER_ID) for _ in range(3)]
    await engine.create_session(quiz.id, "teacher-2")

    recent = await engine.list_recent_sessions(TEACHER_ID)

    assert [s.id for s in recent] == [s.id for s in reversed(created)]


# ==================== QUIZ CHANGES DURING A GAME ====================

async def test_quiz_cannot_be_deleted_while_its_game_is_live(engine, storage):
    session, questions, (alice, _) = await start_game(engine, storage, [2])
    quizzes = QuizService(storage)

    with pytest.raises(InvalidStateError):
        await quizzes.delete_quiz(session.quiz_id, TEACHER_ID)

    await engine.submit_answer(session.id, alice.id, questions[0].id, 2, 1000)
    reveal = await engine.reveal_answer(session.id, TEACHER_ID)
    assert reveal.answer_counts == [0, 0, 1, 0]

    await engine.advance_question(session.id, TEACHER_ID)
    await quizzes.delete_quiz(session.quiz_id, TEACHER_ID)
    assert await storage.get_quiz(session.quiz_id) is None


async def test_waiting_game_also_blocks_quiz_deletion(engine, storage):
    quiz, _ = await make_quiz(storage, [0])
    await engine.create_session(quiz.id, TEACHER_ID)

    with pytest.raises(InvalidStateError):
        await QuizService(storage).delete_quiz(quiz.id, TEACHER_ID)


async def test_missing_current_question_is_not_found(engine, storage):
    session, questions, _ = await start_game(engine, storage, [0])
    for question in questions:
        del storage.questions[question.id]

    with pytest.raises(NotFoundError):
        await engine.reveal_answer(session.id, TEACHER_ID)
    with pytest.raises(NotFoundError):
        await PollService(storage).get_current_question(session.id)


# ==================== RESULT RECORDING ====================

class UserWriteFailsOnce(MemoryStorage):
    """Raises on the first stats update for one user"""

    def __init__(self, failing_user_id=None):
        super().__init__()
        self.failing_user_id = failing_user_id

    async def update_user(self, user_id, result):
        if user_id == self.failing_user_id:
            self.failing_user_id = None
            raise PersistenceError("users collection unavailable")
        return await super().update_user(user_id, result)


async def test_interrupted_result_recording_resumes_without_double_credit():
    storage = UserWriteFailsOnce()
    await storage.initialize()
    engine = GameSessionService(storage, SessionLockRegistry())
    alice = await make_student(storage, "Alice")
    bob = await make_student(storage, "Bob")
    storage.failing_user_id = bob.id

    quiz, questions = await make_quiz(storage, [1])
    session = await engine.create_session(quiz.id, TEACHER_ID)
    alice_player, _ = await engine.join_session(session.game_code, "Alice", user_id=alice.id)
    bob_player, _ = await engine.join_session(session.game_code, "Bob", user_id=bob.id)
    await engine.start_session(session.id, TEACHER_ID)
    await engine.submit_answer(session.id, alice_player.id, questions[0].id, 1, 1000)
    await engine.submit_answer(session.id, bob_player.id, questions[0].id, 0, 1000)

    with pytest.raises(PersistenceError):
        await engine.advance_question(session.id, TEACHER_ID)

    stored = await storage.get_session(session.id)
    assert stored.status == SessionStatus.FINISHED
    assert not stored.results_recorded
    assert (await storage.get_user(bob.id)).games_played == 0

    resumed = await engine.advance_question(session.id, TEACHER_ID)

    assert resumed.finished
    assert resumed.session.results_recorded
    assert [s.nickname for s in resumed.standings] == ["Alice", "Bob"]
    alice_after = await storage.get_user(alice.id)
    bob_after = await storage.get_user(bob.id)
    assert (alice_after.games_played, alice_after.games_won) == (1, 1)
    assert (bob_after.games_played, bob_after.games_won) == (1, 0)

    with pytest.raises(InvalidStateError):
        await engine.advance_question(session.id, TEACHER_ID)


async def test_finished_game_is_marked_recorded(engine, storage):
    session, _, _ = await start_game(engine, storage, [0])

    result = await engine.advance_question(session.id, TEACHER_ID)

    assert result.session.results_recorded
    assert (await storage.get_session(session.id)).results_recorded
