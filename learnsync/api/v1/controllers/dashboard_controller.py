from fastapi import HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.core.logger import get_logger, log_context
from learnsync.exceptions.errors import ApplicationException
from learnsync.schemas.dashboard_schemas import UserDashboard, UserPrograms
from learnsync.services.dashboard_service import DashboardService
from learnsync.services.record_service import RecordService

logger = get_logger("dashboard_controller")


class DashboardController:

    @staticmethod
    async def get_dashboard(request: Request, db: AsyncSession, user_id: str) -> UserDashboard:
        try:
            await RecordService.get_user(db, user_id)
            log = log_context("dashboard_controller", path=request.url.path)
            return await DashboardService(db, log=log).get_dashboard(user_id)
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error building dashboard for user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def get_user_programs(request: Request, db: AsyncSession, user_id: str) -> UserPrograms:
        try:
            await RecordService.get_user(db, user_id)
            log = log_context("dashboard_controller", path=request.url.path)
            return await DashboardService(db, log=log).user_programs(user_id)
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error getting programs for user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )
