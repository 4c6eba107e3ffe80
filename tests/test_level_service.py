"""
Tests for level content, the roadmap, admin authoring and platform statistics.
"""
from datetime import date, datetime, timedelta

import pytest
from pydantic import ValidationError

from ulingo.exceptions import InvalidContentError, NotFoundError
from ulingo.models.level import Level
from ulingo.schemas.level import LevelContent, LevelUpdate, QuizIn
from ulingo.services import level_service, progress_service, stats_service


class TestLevelContent:

    def test_malformed_document_reads_as_empty_fields(self):
        content = LevelContent.from_document({
            "level_id": "x",
            "title": None,
            "quizzes": [{"question": "Q", "options": "not a list"}, "junk"],
            "pronunciations": None,
        })
        assert content.level_id == 0
        assert content.title == ""
        assert len(content.quizzes) == 1
        assert content.quizzes[0].options == []
        assert content.quizzes[0].correct == ""
        assert content.pronunciations == []

    def test_authored_quiz_needs_correct_option(self):
        with pytest.raises(ValidationError):
            QuizIn(question="Q", options=["a", "b"], correct="c")
        with pytest.raises(ValidationError):
            QuizIn(question="Q", options=[], correct="")

    def test_get_level_content(self, run, add_level):
        run(lambda db: add_level(db, 1, quizzes=3))
        content = run(lambda db: level_service.get_level_content(db, 1))
        assert content.level_id == 1
        assert len(content.quizzes) == 3
        assert content.quizzes[0].correct == "right"

    def test_missing_level(self, run):
        with pytest.raises(NotFoundError):
            run(lambda db: level_service.get_level_content(db, 42))


class TestRoadmap:

    def test_marks_completed_current_and_locked(self, run, add_user, add_level):
        for level_id in (1, 2, 3):
            run(lambda db, level_id=level_id: add_level(db, level_id))
        user = run(lambda db: add_user(db))
        run(lambda db: progress_service.complete_level(db, user.id, 1, 2, 2))

        async def roadmap(db):
            progress = await progress_service.get_user_progress(db, user.id)
            return await level_service.get_roadmap(db, progress)

        entries = {entry.level_id: entry for entry in run(roadmap)}
        assert entries[1].completed and not entries[1].locked
        assert entries[2].current and not entries[2].locked and not entries[2].completed
        assert entries[3].locked
        assert entries[1].quiz_count == 2


class TestAuthoring:

    def test_duplicate_level_id_is_rejected(self, run, add_level):
        run(lambda db: add_level(db, 1))
        with pytest.raises(InvalidContentError):
            run(lambda db: add_level(db, 1))

    def test_duplicate_insert_race_is_rejected_as_content(self, run, add_level, monkeypatch):
        run(lambda db: add_level(db, 1))

        async def not_found_yet(db, level_id):
            return None

        # the existence check misses a level another admin just saved; the unique index catches it
        monkeypatch.setattr(level_service, "_find_level", not_found_yet)
        with pytest.raises(InvalidContentError, match="Level 1 already exists"):
            run(lambda db: add_level(db, 1))

        monkeypatch.undo()
        assert len(run(level_service.list_levels)) == 1

    def test_update_replaces_only_given_fields(self, run, add_level):
        run(lambda db: add_level(db, 1, quizzes=2))
        update = LevelUpdate(
            title="  Greetings  ",
            quizzes=[QuizIn(question="New", options=["x", "y"], correct="y")],
        )
        level = run(lambda db: level_service.update_level(db, 1, update))

        assert level.title == "Greetings"
        assert level.description == "Test level"
        assert len(level.quizzes) == 1
        assert len(level.pronunciations) == 2

    def test_update_missing_level(self, run):
        with pytest.raises(NotFoundError):
            run(lambda db: level_service.update_level(db, 9, LevelUpdate(title="x")))

    def test_delete_repairs_learner_progress(self, run, add_user, add_level):
        for level_id in (1, 2, 3):
            run(lambda db, level_id=level_id: add_level(db, level_id))
        ahead = run(lambda db: add_user(db, "ahead", current_level=4, completed_levels=[1, 2, 3]))
        behind = run(lambda db: add_user(db, "behind", current_level=2, completed_levels=[1]))

        updated = run(lambda db: level_service.delete_level(db, 2))

        assert updated == 1
        ahead_after = run(lambda db: progress_service.get_user(db, ahead.id))
        behind_after = run(lambda db: progress_service.get_user(db, behind.id))
        assert ahead_after.completed_levels == [1, 3]
        assert ahead_after.current_level == 3
        assert ahead_after.version == ahead.version + 1
        assert behind_after.current_level == 2
        assert behind_after.version == behind.version

        async def remaining(db):
            return [level.level_id for level in await level_service.list_levels(db)]

        assert run(remaining) == [1, 3]

    def test_delete_missing_level(self, run):
        with pytest.raises(NotFoundError):
            run(lambda db: level_service.delete_level(db, 5))


class TestPlatformStats:

    def test_empty_platform(self, run):
        stats = run(stats_service.get_platform_stats)
        assert stats.total_students == 0
        assert stats.average_completion_rate == 0.0
        assert stats.leaderboard == []

    def test_counts_students_only(self, run, add_user, add_level):
        for level_id in (1, 2):
            run(lambda db, level_id=level_id: add_level(db, level_id))
        run(lambda db: add_user(db, "admin", is_admin=True, completed_levels=[1, 2]))
        run(lambda db: add_user(db, "bob", streak=2, completed_levels=[1, 2]))
        run(lambda db: add_user(db, "ali", completed_levels=[1]))
        run(lambda db: add_user(db, "cyd"))

        stats = run(stats_service.get_platform_stats)

        assert stats.total_students == 3
        assert stats.total_levels == 2
        assert stats.active_learners == 1
        # 3 completed of 3 students x 2 levels
        assert stats.average_completion_rate == 50.0
        assert [entry.username for entry in stats.leaderboard] == ["bob", "ali", "cyd"]
        assert stats.leaderboard[0].completed == 2

    def test_leaderboard_is_capped(self, run, add_user):
        for i in range(8):
            run(lambda db, i=i: add_user(db, f"student{i}"))
        stats = run(stats_service.get_platform_stats)
        assert len(stats.leaderboard) == stats_service.settings.LEADERBOARD_SIZE


def test_level_model_is_registered(run, add_level):
    level = run(lambda db: add_level(db, 7))
    assert isinstance(level, Level)
    assert level.created_at is not None


NOW = datetime(2024, 5, 10, 12, 0)


class TestRegistrationReport:

    def add_signups(self, run, add_user):
        for username, created_at in [
            ("today", datetime(2024, 5, 10, 9, 0)),
            ("sixdays", datetime(2024, 5, 4, 23, 0)),
            ("week", datetime(2024, 5, 3, 8, 0)),
            ("april", datetime(2024, 4, 1, 8, 0)),
        ]:
            run(lambda db, u=username, c=created_at: add_user(db, u, created_at=c))
        run(lambda db: add_user(db, "laoshi", is_admin=True, created_at=NOW))

    def test_week_window(self, run, add_user):
        self.add_signups(run, add_user)
        stats = run(lambda db: stats_service.get_platform_stats(db, period_days=7, now=NOW))
        report = stats.registrations

        assert report.period_days == 7
        assert report.total_registrations == 4
        assert report.recent_registrations == 2
        assert report.average_per_day == 0.29
        assert [entry.day for entry in report.per_day] == [date(2024, 5, 4) + timedelta(days=i) for i in range(7)]
        assert [entry.count for entry in report.per_day] == [1, 0, 0, 0, 0, 0, 1]

    def test_longer_window_includes_older_signups(self, run, add_user):
        self.add_signups(run, add_user)
        report = run(lambda db: stats_service.get_platform_stats(db, period_days=90, now=NOW)).registrations

        assert len(report.per_day) == 90
        assert report.recent_registrations == 4
        assert report.average_per_day == 0.04

    def test_unknown_period(self):
        with pytest.raises(InvalidContentError):
            stats_service.registration_report([], 5, now=NOW)


class TestStudents:

    def test_newest_first_with_progress(self, run, add_user):
        run(lambda db: add_user(db, "meiling", created_at=datetime(2024, 5, 1)))
        run(lambda db: add_user(
            db, "bob", created_at=datetime(2024, 5, 2), streak=3, current_level=3,
            completed_levels=[2, 1], achievements=["first_step"],
        ))
        run(lambda db: add_user(db, "laoshi", is_admin=True, created_at=datetime(2024, 5, 3)))

        students = run(stats_service.list_students)

        assert [s.username for s in students] == ["bob", "meiling"]
        assert students[0].name == "Bob"
        assert students[0].streak == 3
        assert students[0].current_level == 3
        assert students[0].completed_levels == [1, 2]
        assert students[0].achievements == ["first_step"]
        assert students[1].current_level == 1
        assert students[1].completed_levels == []

    def test_search_by_name_or_username(self, run, add_user):
        run(lambda db: add_user(db, "meiling"))
        run(lambda db: add_user(db, "bob", name="Wang Mei"))
        run(lambda db: add_user(db, "cyd"))

        found = run(lambda db: stats_service.list_students(db, search="  MEI "))
        assert sorted(s.username for s in found) == ["bob", "meiling"]
        assert run(lambda db: stats_service.list_students(db, search="zzz")) == []
        assert len(run(lambda db: stats_service.list_students(db, search=""))) == 3


class TestLevelReach:

    def test_students_reached_counts_gates_at_or_past_level(self, run, add_user, add_level):
        for level_id in (1, 2, 3):
            run(lambda db, level_id=level_id: add_level(db, level_id))
        for username, gate in [("ali", 1), ("bob", 2), ("cyd", 3), ("dan", 4)]:
            run(lambda db, u=username, g=gate: add_user(db, u, current_level=g))
        run(lambda db: add_user(db, "laoshi", is_admin=True, current_level=4))

        summaries = run(level_service.list_admin_summaries)

        assert [(s.level_id, s.students_reached) for s in summaries] == [(1, 4), (2, 3), (3, 2)]
        assert summaries[0].quiz_count == 2

    def test_reach_from_gate_counts(self):
        gates = {1: 2, 3: 1, 5: 4}
        assert stats_service.students_reached(gates, 1) == 7
        assert stats_service.students_reached(gates, 4) == 4
        assert stats_service.students_reached(gates, 6) == 0
