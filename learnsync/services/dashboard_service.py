"""
Dashboard Service
Assembles a user's dashboard: recent programs, current enrollments and the
last 7 days of activity, plus the per-user program rollup.

Recent programs are supplementary: if that query fails the dashboard is
served with an empty list. Enrollment and weekly-activity failures
propagate and fail the request.
"""

from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from learnsync.core.logger import LogContext, log_context
from learnsync.enums import PROGRESS_MILESTONE_TYPES
from learnsync.models.activity import Activity
from learnsync.models.milestone import Milestone
from learnsync.models.outcome import Outcome
from learnsync.models.program import Program
from learnsync.models.provider_platform import ProviderPlatform
from learnsync.schemas.dashboard_schemas import (
    CurrentEnrollment,
    RecentActivity,
    RecentProgram,
    UserDashboard,
    UserProgram,
    UserPrograms,
)

RECENT_PROGRAM_LIMIT = 3
FALLBACK_ENROLLMENT_LIMIT = 7
WEEK_DAYS = 7


def _completed_program_ids(user_id: str):
    return select(Outcome.program_id).where(Outcome.user_id == user_id)


def course_progress(completed_milestones: int, total_progress_milestones: int) -> float:
    if not total_progress_milestones:
        return 0.0
    return round(completed_milestones * 100.0 / total_progress_milestones, 2)


class DashboardService:
    """Builds UserDashboard for one user; nothing is cached between calls."""

    def __init__(self, db: AsyncSession, log: Optional[LogContext] = None):
        self.db = db
        self.log = log or log_context("dashboard_service")

    async def get_dashboard(self, user_id: str, now: Optional[datetime] = None) -> UserDashboard:
        now = now or datetime.utcnow()
        log = self.log.bind(user_id=user_id)

        try:
            recent_programs = await self.recent_programs(user_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.bind(database_method="recent_programs").error(f"Failed to get recent programs for user: {e}")
            recent_programs = []

        enrollments = await self.current_enrollments(user_id, now)
        week_activity = await self.week_activity(user_id, now)

        return UserDashboard(
            recent_programs=recent_programs,
            enrollments=enrollments,
            week_activity=week_activity,
        )

    async def recent_programs(self, user_id: str) -> List[RecentProgram]:
        """
        Up to 3 programs with any activity by the user and no outcome, most recently
        progressed first; progress counts completed assignment/quiz submissions
        against the program's total progress milestones.
        """
        active_program_ids = select(Activity.program_id).where(Activity.user_id == user_id).distinct()
        rows = (await self.db.execute(
            select(Program, ProviderPlatform.name.label("provider_platform_name"))
            .outerjoin(ProviderPlatform, Program.provider_platform_id == ProviderPlatform.id)
            .where(Program.id.in_(active_program_ids))
            .where(~Program.id.in_(_completed_program_ids(user_id)))
        )).all()
        if not rows:
            return []
        program_ids = [row.Program.id for row in rows]

        milestone_rows = (await self.db.execute(
            select(Milestone.program_id, Milestone.created_at)
            .where(Milestone.user_id == user_id)
            .where(Milestone.program_id.in_(program_ids))
            .where(Milestone.type.in_(PROGRESS_MILESTONE_TYPES))
            .where(Milestone.is_completed.is_(True))
            .order_by(desc(Milestone.created_at))
        )).all()
        completed: Dict[str, int] = {}
        last_completed: Dict[str, datetime] = {}
        for row in milestone_rows:
            completed[row.program_id] = completed.get(row.program_id, 0) + 1
            last_completed.setdefault(row.program_id, row.created_at)

        last_activity = {
            row.program_id: row.last_seen
            for row in (await self.db.execute(
                select(Activity.program_id, func.max(Activity.created_at).label("last_seen"))
                .where(Activity.user_id == user_id)
                .where(Activity.program_id.in_(program_ids))
                .group_by(Activity.program_id)
            )).all()
        }

        def rank(row):
            pid = row.Program.id
            return (last_completed.get(pid) or datetime.min, last_activity.get(pid) or datetime.min)

        ranked = sorted(rows, key=rank, reverse=True)[:RECENT_PROGRAM_LIMIT]
        return [
            RecentProgram(
                program_id=row.Program.id,
                program_name=row.Program.name,
                alt_name=row.Program.alt_name,
                thumbnail_url=row.Program.thumbnail_url,
                external_url=row.Program.external_url,
                provider_platform_name=row.provider_platform_name,
                course_progress=course_progress(
                    completed.get(row.Program.id, 0), row.Program.total_progress_milestones
                ),
            )
            for row in ranked
        ]

    async def user_programs(self, user_id: str) -> UserPrograms:
        """
        Every program the user has activity in, with the summed time deltas and
        whether an outcome closed it. Totals cover all of those programs.
        """
        rows = (await self.db.execute(
            select(
                Program.id,
                Program.name,
                Program.alt_name,
                Program.external_url,
                Program.total_progress_milestones,
                ProviderPlatform.name.label("provider_platform_name"),
                func.coalesce(func.sum(Activity.time_delta), 0).label("total_time"),
            )
            .join(Activity, Activity.program_id == Program.id)
            .outerjoin(ProviderPlatform, Program.provider_platform_id == ProviderPlatform.id)
            .where(Activity.user_id == user_id)
            .group_by(
                Program.id,
                Program.name,
                Program.alt_name,
                Program.external_url,
                Program.total_progress_milestones,
                ProviderPlatform.name,
            )
            .order_by(Program.name, Program.id)
        )).all()
        if not rows:
            return UserPrograms(programs=[], num_completed=0, total_time=0)
        program_ids = [row.id for row in rows]

        completed_ids = set((await self.db.execute(
            select(Outcome.program_id)
            .where(Outcome.user_id == user_id)
            .where(Outcome.program_id.in_(program_ids))
            .distinct()
        )).scalars().all())

        milestone_counts = {
            row.program_id: row.completed
            for row in (await self.db.execute(
                select(Milestone.program_id, func.count(Milestone.id).label("completed"))
                .where(Milestone.user_id == user_id)
                .where(Milestone.program_id.in_(program_ids))
                .where(Milestone.type.in_(PROGRESS_MILESTONE_TYPES))
                .where(Milestone.is_completed.is_(True))
                .group_by(Milestone.program_id)
            )).all()
        }

        programs = [
            UserProgram(
                program_id=row.id,
                program_name=row.name,
                alt_name=row.alt_name,
                provider_platform_name=row.provider_platform_name,
                external_url=row.external_url,
                total_time=int(row.total_time),
                course_progress=course_progress(milestone_counts.get(row.id, 0), row.total_progress_milestones),
                is_completed=row.id in completed_ids,
            )
            for row in rows
        ]
        return UserPrograms(
            programs=programs,
            num_completed=sum(1 for p in programs if p.is_completed),
            total_time=sum(p.total_time for p in programs),
        )

    async def current_enrollments(self, user_id: str, now: datetime) -> List[CurrentEnrollment]:
        """
        Programs with activity in the last 7 days and no outcome, with summed time.
        Falls back to up to 7 programs the user has milestones in, at zero time.
        """
        cutoff = now - timedelta(days=WEEK_DAYS)
        rows = (await self.db.execute(
            select(
                Program.id,
                Program.name,
                Program.alt_name,
                Program.external_url,
                ProviderPlatform.name.label("provider_platform_name"),
                Activity.time_delta,
            )
            .join(Activity, Activity.program_id == Program.id)
            .join(ProviderPlatform, Program.provider_platform_id == ProviderPlatform.id)
            .where(Activity.user_id == user_id)
            .where(Activity.created_at >= cutoff)
            .where(~Program.id.in_(_completed_program_ids(user_id)))
            .order_by(Activity.created_at, Activity.id)
        )).all()

        enrollments: Dict[str, CurrentEnrollment] = {}
        for row in rows:
            enrollment = enrollments.get(row.id)
            if enrollment is None:
                enrollment = enrollments[row.id] = CurrentEnrollment(
                    program_id=row.id,
                    name=row.name,
                    alt_name=row.alt_name,
                    provider_platform_name=row.provider_platform_name,
                    external_url=row.external_url,
                    total_time=0,
                )
            enrollment.total_time += row.time_delta or 0

        if enrollments:
            return list(enrollments.values())

        self.log.bind(user_id=user_id).info("No enrollments found, falling back to programs with milestones")
        return await self._milestone_enrollments(user_id)

    async def _milestone_enrollments(self, user_id: str) -> List[CurrentEnrollment]:
        rows = (await self.db.execute(
            select(
                Program.id,
                Program.name,
                Program.alt_name,
                Program.external_url,
                ProviderPlatform.name.label("provider_platform_name"),
            )
            .join(Milestone, Milestone.program_id == Program.id)
            .join(ProviderPlatform, Program.provider_platform_id == ProviderPlatform.id)
            .where(Milestone.user_id == user_id)
            .order_by(Milestone.created_at, Milestone.id)
        )).all()

        enrollments: Dict[str, CurrentEnrollment] = {}
        for row in rows:
            if row.id in enrollments:
                continue
            if len(enrollments) == FALLBACK_ENROLLMENT_LIMIT:
                break
            enrollments[row.id] = CurrentEnrollment(
                program_id=row.id,
                name=row.name,
                alt_name=row.alt_name,
                provider_platform_name=row.provider_platform_name,
                external_url=row.external_url,
                total_time=0,
            )
        return list(enrollments.values())

    async def week_activity(self, user_id: str, now: datetime) -> List[RecentActivity]:
        """Total time per calendar day over the last 7 days, across all programs."""
        cutoff = now - timedelta(days=WEEK_DAYS)
        rows = (await self.db.execute(
            select(Activity.created_at, Activity.time_delta)
            .where(Activity.user_id == user_id)
            .where(Activity.created_at >= cutoff)
            .order_by(Activity.created_at)
        )).all()

        totals: Dict[date, int] = {}
        for row in rows:
            day = row.created_at.date()
            totals[day] = totals.get(day, 0) + (row.time_delta or 0)
        return [RecentActivity(date=day, delta=delta) for day, delta in totals.items()]
