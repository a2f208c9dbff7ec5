from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from learnsync.database.connection import get_db
from learnsync.api.v1.controllers.activity_controller import ActivityController
from learnsync.schemas.activity_schemas import (
    ActivityCreate,
    ActivityOut,
    ActivityPage,
    DailyActivityResponse,
)

router = APIRouter(tags=["Activity"])


@router.get(
    "/users/{user_id}/activity",
    summary="List user activity",
    description="Activity events of one user, newest first, with the total count.",
    response_model=ActivityPage
)
async def list_user_activity(
    user_id: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(365, ge=1, le=1000),
    db: AsyncSession = Depends(get_db)
):
    return await ActivityController.list_for_user(db, user_id, page, per_page)


@router.post(
    "/users/{user_id}/activity",
    summary="Record activity",
    description="Report a cumulative total time for a program; the stored event carries the delta.",
    response_model=ActivityOut,
    status_code=201
)
async def record_activity(
    user_id: str,
    payload: ActivityCreate,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    return await ActivityController.record(request, db, user_id, payload)


@router.get(
    "/users/{user_id}/daily-activity",
    summary="Daily activity",
    description="Per-day totals with quartile ranks. With `year`, covers that calendar year; "
                "otherwise the trailing 365 days.",
    response_model=DailyActivityResponse
)
async def daily_activity(
    user_id: str,
    year: Optional[int] = Query(None, ge=1970, le=9999),
    db: AsyncSession = Depends(get_db)
):
    return await ActivityController.daily(db, user_id, year)


@router.get(
    "/programs/{program_id}/activity",
    summary="List program activity",
    response_model=ActivityPage
)
async def list_program_activity(
    program_id: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=1000),
    db: AsyncSession = Depends(get_db)
):
    return await ActivityController.list_for_program(db, program_id, page, per_page)
