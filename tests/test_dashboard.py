"""Tests for the user dashboard."""

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from learnsync.services.dashboard_service import DashboardService, course_progress
from tests.factories import (
    make_activity,
    make_milestone,
    make_outcome,
    make_program,
    make_provider,
    make_user,
)

pytestmark = pytest.mark.integration

NOW = datetime(2026, 10, 19, 12, 0)


@pytest.mark.unit
def test_course_progress():
    assert course_progress(2, 4) == 50.0
    assert course_progress(1, 3) == 33.33
    assert course_progress(3, 0) == 0.0


class TestCurrentEnrollments:

    async def test_sums_recent_time_per_program_and_skips_completed(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        algebra = await make_program(db, provider, "101")
        biology = await make_program(db, provider, "102")
        finished = await make_program(db, provider, "103")
        await make_activity(db, user, algebra, 30, NOW - timedelta(days=2))
        await make_activity(db, user, biology, 10, NOW - timedelta(days=1))
        await make_activity(db, user, algebra, 15, NOW - timedelta(hours=3))
        await make_activity(db, user, algebra, 999, NOW - timedelta(days=9))
        await make_activity(db, user, finished, 40, NOW - timedelta(days=1))
        await make_outcome(db, user, finished)

        enrollments = await DashboardService(db).current_enrollments(user.id, NOW)

        assert [(e.name, e.total_time) for e in enrollments] == [("Program 101", 45), ("Program 102", 10)]
        assert enrollments[0].provider_platform_name == "County Canvas"

    async def test_falls_back_to_programs_with_milestones(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        for i in range(5):
            program = await make_program(db, provider, f"p{i}")
            await make_milestone(db, user, program, f"m{i}a", created_at=NOW - timedelta(days=30, minutes=i))
            await make_milestone(db, user, program, f"m{i}b", created_at=NOW - timedelta(days=20, minutes=i))

        enrollments = await DashboardService(db).current_enrollments(user.id, NOW)

        assert len(enrollments) == 5
        assert all(e.total_time == 0 for e in enrollments)
        assert len({e.program_id for e in enrollments}) == 5

    async def test_fallback_is_capped_at_seven(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        for i in range(9):
            program = await make_program(db, provider, f"p{i}")
            await make_milestone(db, user, program, f"m{i}", created_at=NOW - timedelta(days=30))

        enrollments = await DashboardService(db).current_enrollments(user.id, NOW)

        assert len(enrollments) == 7

    async def test_no_activity_and_no_milestones_is_empty(self, db):
        user = await make_user(db)
        assert await DashboardService(db).current_enrollments(user.id, NOW) == []


class TestRecentPrograms:

    async def test_progress_and_limit(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        programs = []
        for i in range(4):
            program = await make_program(db, provider, f"p{i}", total_progress_milestones=4)
            await make_activity(db, user, program, 10, NOW - timedelta(days=40))
            programs.append(program)
        # p3 most recently progressed, then p1, p0; p2 has no completed submissions
        await make_milestone(db, user, programs[0], "a", created_at=NOW - timedelta(days=10))
        await make_milestone(db, user, programs[1], "a", created_at=NOW - timedelta(days=5))
        await make_milestone(db, user, programs[1], "b", type="quiz_submission", created_at=NOW - timedelta(days=6))
        await make_milestone(db, user, programs[1], "c", type="enrollment", created_at=NOW - timedelta(days=1))
        await make_milestone(db, user, programs[2], "a", is_completed=False, created_at=NOW - timedelta(days=1))
        await make_milestone(db, user, programs[3], "a", created_at=NOW - timedelta(days=2))

        recent = await DashboardService(db).recent_programs(user.id)

        assert [r.program_name for r in recent] == ["Program p3", "Program p1", "Program p0"]
        assert [r.course_progress for r in recent] == [25.0, 50.0, 25.0]

    async def test_programs_with_outcome_are_excluded(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        program = await make_program(db, provider)
        await make_activity(db, user, program, 10, NOW - timedelta(days=1))
        await make_outcome(db, user, program)

        assert await DashboardService(db).recent_programs(user.id) == []


class TestDashboard:

    async def test_week_activity_totals_per_day(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        a = await make_program(db, provider, "101")
        b = await make_program(db, provider, "102")
        await make_activity(db, user, a, 20, datetime(2026, 10, 17, 9))
        await make_activity(db, user, b, 5, datetime(2026, 10, 17, 15))
        await make_activity(db, user, a, 7, datetime(2026, 10, 18, 9))
        await make_activity(db, user, a, 100, datetime(2026, 10, 1, 9))

        dashboard = await DashboardService(db).get_dashboard(user.id, now=NOW)

        assert [(d.date, d.delta) for d in dashboard.week_activity] == [
            (date(2026, 10, 17), 25),
            (date(2026, 10, 18), 7),
        ]
        assert {e.name for e in dashboard.enrollments} == {"Program 101", "Program 102"}

    async def test_recent_program_failure_degrades_to_empty_list(self, db, monkeypatch):
        provider = await make_provider(db)
        user = await make_user(db)
        program = await make_program(db, provider)
        await make_activity(db, user, program, 10, NOW - timedelta(days=1))
        user_id = user.id
        service = DashboardService(db)

        async def broken(user_id):
            raise OperationalError("SELECT ...", {}, Exception("connection lost"))

        monkeypatch.setattr(service, "recent_programs", broken)

        dashboard = await service.get_dashboard(user_id, now=NOW)

        assert dashboard.recent_programs == []
        assert [e.total_time for e in dashboard.enrollments] == [10]

    async def test_enrollment_failure_propagates(self, db, monkeypatch):
        user = await make_user(db)
        service = DashboardService(db)

        async def broken(user_id, now):
            raise OperationalError("SELECT ...", {}, Exception("connection lost"))

        monkeypatch.setattr(service, "current_enrollments", broken)

        with pytest.raises(OperationalError):
            await service.get_dashboard(user.id, now=NOW)


class TestUserPrograms:

    async def test_rolls_up_time_progress_and_completion(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        other = await make_user(db, "student2")
        algebra = await make_program(db, provider, "101", name="Algebra", total_progress_milestones=4)
        biology = await make_program(db, provider, "102", name="Biology")
        await make_program(db, provider, "103", name="Chemistry")
        await make_activity(db, user, algebra, 30, NOW - timedelta(days=40))
        await make_activity(db, user, algebra, 15, NOW - timedelta(days=1))
        await make_activity(db, user, biology, 20, NOW - timedelta(days=3))
        await make_activity(db, other, biology, 500, NOW - timedelta(days=3))
        await make_milestone(db, user, algebra, "m1")
        await make_milestone(db, user, algebra, "m2", is_completed=False)
        await make_outcome(db, user, biology)
        await make_outcome(db, user, biology, type="grade")

        rollup = await DashboardService(db).user_programs(user.id)

        assert [(p.program_name, p.total_time, p.is_completed) for p in rollup.programs] == [
            ("Algebra", 45, False),
            ("Biology", 20, True),
        ]
        assert rollup.programs[0].course_progress == 25.0
        assert rollup.programs[0].provider_platform_name == "County Canvas"
        assert rollup.num_completed == 1
        assert rollup.total_time == 65

    async def test_user_without_activity_has_empty_rollup(self, db):
        user = await make_user(db)

        rollup = await DashboardService(db).user_programs(user.id)

        assert rollup.programs == []
        assert (rollup.num_completed, rollup.total_time) == (0, 0)
