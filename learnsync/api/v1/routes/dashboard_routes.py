from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.database.connection import get_db
from learnsync.api.v1.controllers.dashboard_controller import DashboardController
from learnsync.schemas.dashboard_schemas import UserDashboard, UserPrograms

router = APIRouter(prefix="/users", tags=["Dashboard"])


@router.get(
    "/{user_id}/dashboard",
    summary="User dashboard",
    description="Recent programs, current enrollments and the last 7 days of activity.",
    response_model=UserDashboard
)
async def get_dashboard(user_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await DashboardController.get_dashboard(request, db, user_id)


@router.get(
    "/{user_id}/programs",
    summary="User programs",
    description="Programs the user has activity in, with time spent, progress and completion, plus totals.",
    response_model=UserPrograms
)
async def get_user_programs(user_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await DashboardController.get_user_programs(request, db, user_id)
