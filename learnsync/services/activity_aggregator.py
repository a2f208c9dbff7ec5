"""
Activity Aggregation Service
Daily activity buckets with quartile ranking, plus paged activity listings.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from learnsync.core.logger import LogContext, log_context
from learnsync.models.activity import Activity


@dataclass
class DailyBucket:
    date: date
    total_time: int = 0
    activities: List[Activity] = field(default_factory=list)
    quartile: int = 0


def daily_range(year: Optional[int], now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    [start, end) for a daily-activity query: the calendar year when given,
    otherwise the trailing 365 days up to now.
    """
    if year:
        return datetime(year, 1, 1), datetime(year + 1, 1, 1)
    now = now or datetime.utcnow()
    start = datetime.combine((now - timedelta(days=365)).date(), datetime.min.time())
    return start, now


def bucket_by_day(activities: Iterable[Activity]) -> List[DailyBucket]:
    """Group rows by created_at date, keeping first-seen order of the days."""
    buckets: Dict[date, DailyBucket] = {}
    for activity in activities:
        day = activity.created_at.date()
        bucket = buckets.get(day)
        if bucket is None:
            bucket = buckets[day] = DailyBucket(date=day)
        bucket.total_time += activity.time_delta or 0
        bucket.activities.append(activity)
    return list(buckets.values())


def assign_quartiles(buckets: List[DailyBucket]) -> List[DailyBucket]:
    """
    Rank days by total time (stable, so ties keep grouping order) and assign
    quartile 1..4 by rank against n/4, n/2 and 3n/4. Returns the days sorted by date.
    """
    ranked = sorted(buckets, key=lambda b: b.total_time)
    n = len(ranked)
    for i, bucket in enumerate(ranked):
        if i < n // 4:
            bucket.quartile = 1
        elif i < n // 2:
            bucket.quartile = 2
        elif i < 3 * n // 4:
            bucket.quartile = 3
        else:
            bucket.quartile = 4
    return sorted(ranked, key=lambda b: b.date)


class ActivityAggregator:
    """Read side of the activity table."""

    def __init__(self, db: AsyncSession, log: Optional[LogContext] = None):
        self.db = db
        self.log = log or log_context("activity_aggregator")

    async def daily_activity(
        self, user_id: str, year: Optional[int] = None, now: Optional[datetime] = None
    ) -> List[DailyBucket]:
        start, end = daily_range(year, now)
        result = await self.db.execute(
            select(Activity)
            .where(Activity.user_id == user_id)
            .where(Activity.created_at >= start)
            .where(Activity.created_at < end)
            .order_by(Activity.created_at, Activity.id)
        )
        activities = result.scalars().all()
        buckets = assign_quartiles(bucket_by_day(activities))
        self.log.bind(user_id=user_id).debug(f"{len(activities)} activities in {len(buckets)} active days")
        return buckets

    async def activity_for_user(self, user_id: str, page: int = 1, per_page: int = 365) -> Tuple[int, List[Activity]]:
        count = (await self.db.execute(
            select(func.count(Activity.id)).where(Activity.user_id == user_id)
        )).scalar() or 0
        result = await self.db.execute(
            select(Activity)
            .where(Activity.user_id == user_id)
            .order_by(desc(Activity.created_at), Activity.id)
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return count, list(result.scalars().all())

    async def activity_for_program(self, program_id: str, page: int = 1, per_page: int = 10) -> Tuple[int, List[Activity]]:
        count = (await self.db.execute(
            select(func.count(Activity.id)).where(Activity.program_id == program_id)
        )).scalar() or 0
        result = await self.db.execute(
            select(Activity)
            .where(Activity.program_id == program_id)
            .order_by(desc(Activity.created_at), Activity.id)
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return count, list(result.scalars().all())
