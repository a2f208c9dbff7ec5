"""
Activity Delta Ingestion
Turns cumulative "total time" reports into non-negative activity deltas.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from learnsync.core.logger import LogContext, log_context
from learnsync.exceptions.errors import ActivityIngestionError
from learnsync.models.activity import Activity, ActivityCounter
from learnsync.utils.locks import KeyedLocks, activity_counter_locks


def compute_time_delta(last_known_total: Optional[int], reported_total: int) -> int:
    """
    Increase of a cumulative counter since the last observation.
    First observation counts in full; a drop (provider reset) yields 0.
    """
    if last_known_total is None:
        return max(0, reported_total)
    return max(0, reported_total - last_known_total)


class ActivityIngestionService:
    """
    Persists one Activity per report and advances the per-key counter.

    The counter read, the delta computation, the counter update and the Activity
    insert happen in one transaction. Concurrent reports for the same
    (user, program, external id) are serialized by an in-process keyed lock and,
    on databases that support it, a row lock on the counter.
    """

    def __init__(self, db: AsyncSession, locks: KeyedLocks = activity_counter_locks, log: Optional[LogContext] = None):
        self.db = db
        self.locks = locks
        self.log = log or log_context("activity_ingestion")

    async def ingest(
        self,
        user_id: str,
        program_id: str,
        reported_total: int,
        activity_type: str,
        external_id: Optional[str] = None,
        observed_at: Optional[datetime] = None,
    ) -> Activity:
        if reported_total < 0:
            raise ActivityIngestionError(f"Reported total time must be >= 0, got {reported_total}")

        counter_key = external_id or ""
        log = self.log.bind(user_id=user_id, program_id=program_id, external_id=external_id)

        async with self.locks.hold(("activity", user_id, program_id, counter_key)):
            # A brand-new key can race another process inserting the same counter row;
            # the unique constraint rejects the loser, which then sees the winner's row.
            for attempt in range(2):
                try:
                    return await self._ingest_once(
                        user_id, program_id, reported_total, activity_type,
                        external_id, counter_key, observed_at, log,
                    )
                except IntegrityError as e:
                    await self.db.rollback()
                    if attempt == 0:
                        log.warning("Counter row appeared concurrently, retrying")
                        continue
                    log.bind(database_method="ingest").error(f"Failed to create activity: {e.orig}")
                    raise ActivityIngestionError("Failed to create activity.") from e
                except SQLAlchemyError as e:
                    await self.db.rollback()
                    log.bind(database_method="ingest").error(f"Failed to create activity: {e}")
                    raise ActivityIngestionError("Failed to create activity.") from e
        raise ActivityIngestionError("Failed to create activity.")

    async def _ingest_once(
        self,
        user_id: str,
        program_id: str,
        reported_total: int,
        activity_type: str,
        external_id: Optional[str],
        counter_key: str,
        observed_at: Optional[datetime],
        log: LogContext,
    ) -> Activity:
        result = await self.db.execute(
            select(ActivityCounter)
            .where(
                ActivityCounter.user_id == user_id,
                ActivityCounter.program_id == program_id,
                ActivityCounter.external_id == counter_key,
            )
            .with_for_update()
        )
        counter = result.scalar_one_or_none()

        if counter is None:
            delta = compute_time_delta(None, reported_total)
            counter = ActivityCounter(
                user_id=user_id,
                program_id=program_id,
                external_id=counter_key,
                last_total_time=reported_total,
            )
            self.db.add(counter)
        else:
            delta = compute_time_delta(counter.last_total_time, reported_total)
            if reported_total < counter.last_total_time:
                log.info(f"Reported total dropped from {counter.last_total_time} to {reported_total}, delta clamped to 0")
            counter.last_total_time = reported_total

        activity = Activity(
            user_id=user_id,
            program_id=program_id,
            type=activity_type,
            total_time=reported_total,
            time_delta=delta,
            external_id=external_id or None,
            created_at=observed_at or datetime.utcnow(),
        )
        self.db.add(activity)
        await self.db.commit()
        log.debug(f"Ingested activity {activity.id}: total={reported_total} delta={delta}")
        return activity
