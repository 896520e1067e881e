from datetime import datetime, timedelta, timezone

import pytest

from quizblitz.core.errors import ValidationError
from quizblitz.models.badge import Badge
from quizblitz.models.commands import UserGameResult
from quizblitz.models.game import GamePlayer
from quizblitz.services.badge_service import BadgeService, parse_requirement
from quizblitz.services.leaderboard_service import LeaderboardService, build_standings, rank_players
from tests.conftest import TEACHER_ID, make_quiz, make_student


def player(nickname, score=0, correct=0, joined_offset=0, best_streak=0, **kwargs):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return GamePlayer(
        session_id="s1",
        nickname=nickname,
        score=score,
        correct_answers=correct,
        best_streak=best_streak,
        joined_at=base + timedelta(seconds=joined_offset),
        **kwargs,
    )


# ==================== STANDINGS ====================

def test_standings_sort_by_score_descending():
    players = [player("Low", 100), player("High", 900), player("Mid", 500)]
    assert [p.nickname for p in rank_players(players)] == ["High", "Mid", "Low"]


def test_ties_break_on_correct_answers_then_join_time():
    players = [
        player("LateJoiner", 1000, correct=2, joined_offset=10),
        player("FewerCorrect", 1000, correct=1, joined_offset=0),
        player("EarlyJoiner", 1000, correct=2, joined_offset=5),
    ]
    ranked = build_standings(players)
    assert [s.nickname for s in ranked] == ["EarlyJoiner", "LateJoiner", "FewerCorrect"]
    assert [s.rank for s in ranked] == [1, 2, 3]


def test_full_tie_breaks_on_player_id():
    a = player("A", 10, id="b-id")
    b = player("B", 10, id="a-id")
    assert [p.id for p in rank_players([a, b])] == ["a-id", "b-id"]


def test_no_players_means_no_standings():
    assert build_standings([]) == []


# ==================== RESULT PROPAGATION ====================

async def test_record_results_updates_linked_users_and_one_winner(storage):
    alice = await make_student(storage, "Alice")
    bob = await make_student(storage, "Bob")
    await storage.create_player(player("Alice", 1500, correct=2, user_id=alice.id))
    await storage.create_player(player("Bob", 1500, correct=2, joined_offset=3, user_id=bob.id))
    await storage.create_player(player("Guest", 2000, correct=2))

    standings = await LeaderboardService(storage).record_results("s1", question_count=2)

    assert [s.nickname for s in standings] == ["Guest", "Alice", "Bob"]
    alice_after = await storage.get_user(alice.id)
    bob_after = await storage.get_user(bob.id)
    assert alice_after.games_played == bob_after.games_played == 1
    assert alice_after.games_won == bob_after.games_won == 0
    assert alice_after.total_score == 1500


async def test_missing_user_is_skipped(storage):
    await storage.create_player(player("Ghost", 300, user_id="deleted-user"))
    standings = await LeaderboardService(storage).record_results("s1", question_count=1)
    assert standings[0].nickname == "Ghost"


async def test_global_leaderboards_rank_students_only(storage):
    for name, score in [("Ann", 300), ("Ben", 900), ("Cy", 600)]:
        user = await make_student(storage, name)
        await storage.update_user(user.id, UserGameResult(score=score, won=(name == "Cy")))

    service = LeaderboardService(storage)
    assert [u.name for u in await service.get_leaderboard("score")] == ["Ben", "Cy", "Ann"]
    assert (await service.get_leaderboard("wins"))[0].name == "Cy"

    with pytest.raises(ValidationError):
        await service.get_leaderboard("streaks")


# ==================== BADGES ====================

def test_parse_requirement():
    assert parse_requirement("score:1000") == ("score", 1000.0)
    assert parse_requirement("nonsense") is None
    assert parse_requirement("games:lots") is None


async def test_default_badges_are_seeded_once(storage):
    assert len(await storage.get_all_badges()) == 12
    assert await storage.seed_badges() == 0


async def test_first_win_with_perfect_game_awards_expected_badges(storage):
    alice = await make_student(storage, "Alice")
    await storage.create_player(player("Alice", 1834, correct=2, best_streak=2, user_id=alice.id))

    await LeaderboardService(storage).record_results("s1", question_count=2)

    names = {b.id: b.name for b in await storage.get_all_badges()}
    earned = {names[ub.badge_id] for ub in await storage.get_user_badges(alice.id)}
    assert earned == {"First Steps", "Quick Learner", "First Win", "Sharp Shooter", "Perfect Game"}


async def test_badges_are_awarded_once(storage):
    alice = await make_student(storage, "Alice")
    service = BadgeService(storage)
    user = await storage.update_user(alice.id, UserGameResult(score=10, won=False))
    game_player = player("Alice", 10, user_id=alice.id)

    first = await service.evaluate(user, game_player, question_count=5)
    second = await service.evaluate(user, game_player, question_count=5)

    assert [ub.badge_id for ub in first]
    assert second == []


async def test_unknown_requirement_is_skipped(storage):
    service = BadgeService(storage)
    odd = Badge(name="Odd", description="", icon="?", requirement="moonphase:3", category="misc")
    user = await make_student(storage, "Alice")
    assert not service.is_earned(odd, user, player("Alice"), question_count=3)


async def test_engine_awards_streak_badge(engine, storage):
    alice = await make_student(storage, "Alice")
    quiz, questions = await make_quiz(storage, [0, 0, 0, 0, 0])
    session = await engine.create_session(quiz.id, TEACHER_ID)
    p, _ = await engine.join_session(session.game_code, "Alice", user_id=alice.id)
    await engine.start_session(session.id, TEACHER_ID)

    for question in questions:
        await engine.submit_answer(session.id, p.id, question.id, 0, 1000)
        await engine.advance_question(session.id, TEACHER_ID)

    names = {b.id: b.name for b in await storage.get_all_badges()}
    earned = {names[ub.badge_id] for ub in await storage.get_user_badges(alice.id)}
    assert "On Fire" in earned
    assert "Unstoppable" not in earned
