"""
Tests for the pure progression rules: streaks, unlocking, badges, results.
"""
from datetime import datetime, timedelta

import pytest

from ulingo.schemas.progress import UserProgress
from ulingo.services import progression


def make_progress(**overrides) -> UserProgress:
    values = dict(
        streak=0,
        last_access_date=datetime(2024, 3, 10, 12, 0),
        current_level=1,
        completed_levels=set(),
        achievements=set(),
    )
    values.update(overrides)
    return UserProgress(**values)


class TestStreak:

    def test_same_day_keeps_streak(self):
        last = datetime(2024, 3, 10, 8, 0)
        streak, date = progression.evaluate_streak(4, last, datetime(2024, 3, 10, 23, 59))
        assert streak == 4
        assert date == datetime(2024, 3, 10, 23, 59)

    def test_next_day_extends_streak(self):
        last = datetime(2024, 3, 10, 23, 50)
        streak, _ = progression.evaluate_streak(4, last, datetime(2024, 3, 11, 0, 5))
        assert streak == 5

    def test_next_day_counts_calendar_days_not_hours(self):
        # 47 hours apart but two calendar days: a missed day
        last = datetime(2024, 3, 10, 0, 30)
        streak, _ = progression.evaluate_streak(4, last, datetime(2024, 3, 12, 23, 30))
        assert streak == 1

    def test_gap_resets_to_one(self):
        last = datetime(2024, 3, 1)
        streak, _ = progression.evaluate_streak(30, last, datetime(2024, 3, 10))
        assert streak == 1

    def test_fresh_account_first_visit_next_day(self):
        progress = progression.initial_progress(datetime(2024, 3, 10, 9, 0))
        updated = progression.apply_streak(progress, datetime(2024, 3, 11, 9, 0))
        assert updated.streak == 1

    def test_clock_moved_back_leaves_streak_but_moves_date(self):
        last = datetime(2024, 3, 10)
        now = datetime(2024, 3, 8)
        streak, date = progression.evaluate_streak(3, last, now)
        assert streak == 3
        assert date == now

    @pytest.mark.parametrize("days", [0, 1, 2, 5, 40])
    def test_streak_is_never_zero_after_a_visit_to_a_running_streak(self, days):
        last = datetime(2024, 1, 1, 10, 0)
        streak, _ = progression.evaluate_streak(1, last, last + timedelta(days=days))
        assert streak >= 1

    def test_apply_streak_does_not_touch_other_fields(self):
        progress = make_progress(streak=2, current_level=3, completed_levels={1, 2}, achievements={"first_step"})
        updated = progression.apply_streak(progress, datetime(2024, 3, 11, 7, 0))
        assert updated.streak == 3
        assert updated.current_level == 3
        assert updated.completed_levels == {1, 2}
        assert updated.achievements == {"first_step"}
        assert progress.streak == 2


class TestLevelCompletion:

    def test_completing_current_level_unlocks_next(self):
        updated = progression.apply_level_completion(make_progress(current_level=1), 1)
        assert updated.completed_levels == {1}
        assert updated.current_level == 2

    def test_replaying_old_level_does_not_move_gate(self):
        progress = make_progress(current_level=3, completed_levels={1, 2})
        updated = progression.apply_level_completion(progress, 1)
        assert updated.completed_levels == {1, 2}
        assert updated.current_level == 3

    def test_completion_is_idempotent(self):
        once = progression.apply_level_completion(make_progress(), 1)
        twice = progression.apply_level_completion(once, 1)
        assert twice == once

    def test_completing_ahead_of_gate_records_but_does_not_unlock(self):
        updated = progression.apply_level_completion(make_progress(current_level=2), 4)
        assert 4 in updated.completed_levels
        assert updated.current_level == 2

    def test_is_unlocked(self):
        progress = make_progress(current_level=3)
        assert progression.is_unlocked(progress, 1)
        assert progression.is_unlocked(progress, 3)
        assert not progression.is_unlocked(progress, 4)


class TestAchievements:

    def test_no_badges_for_fresh_account(self):
        assert progression.evaluate_achievements(make_progress()) == set()

    def test_first_step(self):
        progress = make_progress(completed_levels={1})
        assert progression.evaluate_achievements(progress) == {progression.FIRST_STEP}

    def test_streak_badge(self):
        assert progression.STREAK_BADGE in progression.evaluate_achievements(make_progress(streak=7))
        assert progression.STREAK_BADGE not in progression.evaluate_achievements(make_progress(streak=6))

    def test_level_count_badges(self):
        badges = progression.evaluate_achievements(make_progress(completed_levels=set(range(1, 11))))
        assert {progression.FIRST_STEP, progression.LEVELS_BADGE, progression.GRADUATE_BADGE} <= badges

    def test_award_only_reports_new_badges(self):
        progress = make_progress(completed_levels={1, 2, 3, 4, 5}, achievements={progression.FIRST_STEP})
        updated, new = progression.award_achievements(progress)
        assert new == {progression.LEVELS_BADGE}
        assert updated.achievements == {progression.FIRST_STEP, progression.LEVELS_BADGE}

    def test_badges_are_kept_when_no_longer_earned(self):
        progress = make_progress(streak=1, achievements={progression.STREAK_BADGE})
        updated, new = progression.award_achievements(progress)
        assert new == set()
        assert updated.achievements == {progression.STREAK_BADGE}


class TestResults:

    @pytest.mark.parametrize("score,total,outcome", [
        (3, 3, progression.PASS),
        (7, 10, progression.PASS),
        (2, 3, progression.EFFORT),
        (0, 3, progression.EFFORT),
        (0, 0, progression.EFFORT),
    ])
    def test_classify_score(self, score, total, outcome):
        assert progression.classify_score(score, total) == outcome

    def test_custom_threshold(self):
        assert progression.classify_score(1, 2, threshold=0.5) == progression.PASS

    def test_messages(self):
        assert progression.result_message(progression.PASS) == "Great Job!"
        assert progression.result_message(progression.EFFORT) == "Good Effort!"


class TestScenarios:

    def test_yesterday_visit(self):
        now = datetime(2024, 3, 10, 9, 0)
        progress = make_progress(streak=5, last_access_date=now - timedelta(days=1))
        assert progression.apply_streak(progress, now).streak == 6

    def test_four_day_gap(self):
        now = datetime(2024, 3, 10, 9, 0)
        progress = make_progress(streak=5, last_access_date=now - timedelta(days=4))
        assert progression.apply_streak(progress, now).streak == 1

    def test_finishing_the_current_level_with_seven_of_ten(self):
        progress = make_progress(current_level=3, completed_levels={1, 2})
        updated = progression.apply_level_completion(progress, 3)

        assert updated.completed_levels == {1, 2, 3}
        assert updated.current_level == 4
        assert progression.classify_score(7, 10) == progression.PASS

    def test_replaying_level_two_at_level_five(self):
        progress = make_progress(current_level=5, completed_levels={1, 2, 3, 4, 5})
        assert progression.apply_level_completion(progress, 2) == progress
