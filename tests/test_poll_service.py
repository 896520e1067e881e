import pytest

from quizblitz.core.errors import InvalidStateError, NotFoundError
from quizblitz.models.game import SessionStatus
from quizblitz.services.poll_service import PollService
from tests.conftest import TEACHER_ID, make_quiz


@pytest.fixture
def poll(storage):
    return PollService(storage)


async def hosted(engine, storage, correct_answers=(1, 3)):
    quiz, questions = await make_quiz(storage, list(correct_answers))
    session = await engine.create_session(quiz.id, TEACHER_ID)
    alice, _ = await engine.join_session(session.game_code, "Alice")
    bob, _ = await engine.join_session(session.game_code, "Bob")
    return session, questions, alice, bob


async def test_snapshot_while_waiting(engine, storage, poll):
    session, _, _, _ = await hosted(engine, storage)

    snapshot = await poll.get_snapshot(session.id)

    assert snapshot.status == SessionStatus.WAITING
    assert snapshot.player_count == 2
    assert snapshot.question_count == 2
    assert snapshot.poll_interval_ms == 2000
    assert snapshot.quiz_title == "Photosynthesis"
    assert not snapshot.revealed


async def test_current_question_hides_answer_until_reveal(engine, storage, poll):
    session, questions, alice, _ = await hosted(engine, storage)

    with pytest.raises(InvalidStateError):
        await poll.get_current_question(session.id)

    await engine.start_session(session.id, TEACHER_ID)
    before = await poll.get_current_question(session.id)
    assert before.question.id == questions[0].id
    assert before.question.correct_answer is None
    assert not before.revealed

    with pytest.raises(InvalidStateError):
        await poll.get_tally(session.id)

    await engine.submit_answer(session.id, alice.id, questions[0].id, 1, 2000)
    await engine.reveal_answer(session.id, TEACHER_ID)

    after = await poll.get_current_question(session.id)
    assert after.revealed
    assert after.question.correct_answer == 1
    tally = await poll.get_tally(session.id)
    assert tally.answer_counts == [0, 1, 0, 0]

    await engine.advance_question(session.id, TEACHER_ID)
    next_question = await poll.get_current_question(session.id)
    assert next_question.question.id == questions[1].id
    assert next_question.question.correct_answer is None


async def test_players_are_listed_by_standing(engine, storage, poll):
    session, questions, alice, bob = await hosted(engine, storage)
    await engine.start_session(session.id, TEACHER_ID)
    await engine.submit_answer(session.id, bob.id, questions[0].id, 1, 1000)
    await engine.submit_answer(session.id, alice.id, questions[0].id, 0, 1000)

    players = await poll.get_players(session.id)

    assert [p.nickname for p in players] == ["Bob", "Alice"]


async def test_results_only_after_finish(engine, storage, poll):
    session, questions, alice, bob = await hosted(engine, storage, correct_answers=(2,))
    await engine.start_session(session.id, TEACHER_ID)
    await engine.submit_answer(session.id, alice.id, questions[0].id, 2, 5000)
    await engine.submit_answer(session.id, bob.id, questions[0].id, 0, 3000)

    with pytest.raises(InvalidStateError):
        await poll.get_results(session.id)

    await engine.advance_question(session.id, TEACHER_ID)
    results = await poll.get_results(session.id)

    assert results.winner.nickname == "Alice"
    assert results.winner.score == 917
    assert [s.nickname for s in results.standings] == ["Alice", "Bob"]

    final_question = await poll.get_current_question(session.id)
    assert final_question.question.correct_answer == 2


async def test_finished_game_with_no_players_has_no_winner(engine, storage, poll):
    quiz, _ = await make_quiz(storage, [0])
    session = await engine.create_session(quiz.id, TEACHER_ID)
    await engine.start_session(session.id, TEACHER_ID)
    await engine.advance_question(session.id, TEACHER_ID)

    results = await poll.get_results(session.id)
    assert results.winner is None
    assert results.standings == []


async def test_unknown_ids_are_not_found(poll):
    with pytest.raises(NotFoundError):
        await poll.get_snapshot("missing")
    with pytest.raises(NotFoundError):
        await poll.get_player("missing")
