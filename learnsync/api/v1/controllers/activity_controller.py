from fastapi import HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from learnsync.core.logger import get_logger, log_context
from learnsync.exceptions.errors import ApplicationException
from learnsync.schemas.activity_schemas import (
    ActivityCreate,
    ActivityOut,
    ActivityPage,
    DailyActivity,
    DailyActivityResponse,
)
from learnsync.services.activity_aggregator import ActivityAggregator
from learnsync.services.activity_ingestion import ActivityIngestionService
from learnsync.services.record_service import RecordService

logger = get_logger("activity_controller")


class ActivityController:
    """Controller for activity history, manual reports and daily aggregation."""

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: str, page: int, per_page: int) -> ActivityPage:
        try:
            count, activities = await ActivityAggregator(db).activity_for_user(user_id, page, per_page)
            return ActivityPage(count=count, activities=[ActivityOut.model_validate(a) for a in activities])
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error listing activity for user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def list_for_program(db: AsyncSession, program_id: str, page: int, per_page: int) -> ActivityPage:
        try:
            count, activities = await ActivityAggregator(db).activity_for_program(program_id, page, per_page)
            return ActivityPage(count=count, activities=[ActivityOut.model_validate(a) for a in activities])
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error listing activity for program {program_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def record(request: Request, db: AsyncSession, user_id: str, payload: ActivityCreate) -> ActivityOut:
        """Manual report of a cumulative total; stored as the delta against the last known total."""
        try:
            await RecordService.get_user(db, user_id)
            await RecordService.get_program(db, payload.program_id)

            log = log_context("activity_controller", user_id=user_id, path=request.url.path)
            activity = await ActivityIngestionService(db, log=log).ingest(
                user_id=user_id,
                program_id=payload.program_id,
                reported_total=payload.total_time,
                activity_type=payload.type.value,
                external_id=payload.external_id,
            )
            return ActivityOut.model_validate(activity)
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error recording activity for user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def daily(db: AsyncSession, user_id: str, year: Optional[int]) -> DailyActivityResponse:
        try:
            buckets = await ActivityAggregator(db).daily_activity(user_id, year)
            return DailyActivityResponse(activities=[
                DailyActivity(
                    date=b.date,
                    total_time=b.total_time,
                    quartile=b.quartile,
                    activities=[ActivityOut.model_validate(a) for a in b.activities],
                )
                for b in buckets
            ])
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error building daily activity for user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )
