"""Tests for cumulative-total to delta ingestion."""

import asyncio
import itertools
from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.future import select

from learnsync.database.base import Base
from learnsync.exceptions.errors import ActivityIngestionError
from learnsync.models import Activity, ActivityCounter
from learnsync.services.activity_aggregator import ActivityAggregator
from learnsync.services.activity_ingestion import ActivityIngestionService, compute_time_delta
from learnsync.utils.locks import KeyedLocks
from tests.factories import make_program, make_provider, make_user


@pytest.mark.unit
class TestComputeTimeDelta:

    def test_first_observation_counts_in_full(self):
        assert compute_time_delta(None, 120) == 120

    def test_increase_is_difference(self):
        assert compute_time_delta(100, 150) == 50

    def test_decrease_is_clamped_to_zero(self):
        assert compute_time_delta(150, 20) == 0

    def test_unchanged_total_is_zero(self):
        assert compute_time_delta(75, 75) == 0


@pytest.mark.integration
class TestActivityIngestionService:

    @pytest.fixture
    async def records(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        program = await make_program(db, provider)
        return user, program

    async def test_monotonic_totals_produce_deltas_summing_to_last_total(self, db, records):
        user, program = records
        service = ActivityIngestionService(db, locks=KeyedLocks())
        totals = [10, 25, 25, 40, 100]

        deltas = []
        for total in totals:
            activity = await service.ingest(user.id, program.id, total, "course_interaction")
            deltas.append(activity.time_delta)

        assert deltas == [10, 15, 0, 15, 60]
        assert sum(deltas) == totals[-1]

    async def test_reset_yields_zero_then_counts_from_new_total(self, db, records):
        user, program = records
        service = ActivityIngestionService(db, locks=KeyedLocks())

        await service.ingest(user.id, program.id, 100, "course_interaction")
        reset = await service.ingest(user.id, program.id, 60, "course_interaction")
        after = await service.ingest(user.id, program.id, 80, "course_interaction")

        assert reset.time_delta == 0
        assert reset.total_time == 60
        assert after.time_delta == 20

    async def test_external_ids_keep_separate_counters(self, db, records):
        user, program = records
        service = ActivityIngestionService(db, locks=KeyedLocks())

        await service.ingest(user.id, program.id, 50, "content_interaction", external_id="video-1")
        other = await service.ingest(user.id, program.id, 30, "content_interaction", external_id="video-2")
        again = await service.ingest(user.id, program.id, 70, "content_interaction", external_id="video-1")

        assert other.time_delta == 30
        assert again.time_delta == 20

        counters = (await db.execute(select(func.count(ActivityCounter.id)))).scalar()
        assert counters == 2

    async def test_negative_total_is_rejected_without_writing(self, db, records):
        user, program = records
        service = ActivityIngestionService(db, locks=KeyedLocks())

        with pytest.raises(ActivityIngestionError):
            await service.ingest(user.id, program.id, -5, "course_interaction")

        count = (await db.execute(select(func.count(Activity.id)))).scalar()
        assert count == 0

    async def test_two_day_scenario_feeds_daily_aggregation(self, db, records):
        user, program = records
        service = ActivityIngestionService(db, locks=KeyedLocks())

        day1 = await service.ingest(
            user.id, program.id, 100, "course_interaction", observed_at=datetime(2025, 3, 1, 9, 0)
        )
        day2 = await service.ingest(
            user.id, program.id, 150, "course_interaction", observed_at=datetime(2025, 3, 2, 9, 0)
        )
        assert (day1.time_delta, day2.time_delta) == (100, 50)

        buckets = await ActivityAggregator(db).daily_activity(user.id, year=2025)

        assert [b.date.isoformat() for b in buckets] == ["2025-03-01", "2025-03-02"]
        assert [b.total_time for b in buckets] == [100, 50]
        # Two days: rank 0 (50) falls below n/2, rank 1 (100) is in the top quartile
        assert [b.quartile for b in buckets] == [4, 2]


@pytest.mark.integration
class TestConcurrentIngestion:
    """Reports for one counter key arriving together, each on its own session."""

    @pytest_asyncio.fixture
    async def file_engine(self, tmp_path):
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ingest.db'}")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield engine
        await engine.dispose()

    async def test_same_key_reports_are_serialized(self, file_engine):
        factory = async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
        async with factory() as setup:
            provider = await make_provider(setup)
            user = await make_user(setup)
            program = await make_program(setup, provider)
            user_id, program_id = user.id, program.id

        locks = KeyedLocks()
        totals = [100, 150, 120]

        async def report(total):
            async with factory() as session:
                activity = await ActivityIngestionService(session, locks=locks).ingest(
                    user_id, program_id, total, "content_interaction", external_id="video-1"
                )
                return activity.total_time, activity.time_delta

        observed = dict(await asyncio.gather(*(report(t) for t in totals)))

        assert all(delta >= 0 for delta in observed.values())

        # Some serial order of the reports must reproduce every delta, each
        # measured from the total committed just before it.
        def chained(order):
            last, deltas = None, {}
            for total in order:
                deltas[total] = compute_time_delta(last, total)
                last = total
            return deltas

        orders = [order for order in itertools.permutations(totals) if chained(order) == observed]
        assert orders

        async with factory() as check:
            counter = (await check.execute(select(ActivityCounter))).scalar_one()
            rows = (await check.execute(select(func.count(Activity.id)))).scalar()
        assert counter.last_total_time in {order[-1] for order in orders}
        assert rows == 3
        assert not locks.is_locked(("activity", user_id, program_id, "video-1"))
