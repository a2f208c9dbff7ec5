from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from learnsync.database.connection import get_db
from learnsync.api.v1.controllers.record_controller import RecordController
from learnsync.enums import OutcomeType
from learnsync.schemas.record_schemas import (
    MilestoneOut,
    MilestonePatch,
    OutcomeCreate,
    OutcomeOut,
    OutcomePatch,
    ProgramOut,
    ProgramPatch,
    UserOut,
    UserPatch,
)

router = APIRouter(tags=["Records"])


@router.get("/users/{user_id}", summary="Get user", response_model=UserOut)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    return await RecordController.get_user(db, user_id)


@router.patch("/users/{user_id}", summary="Update user", response_model=UserOut)
async def update_user(user_id: str, patch: UserPatch, db: AsyncSession = Depends(get_db)):
    return await RecordController.update_user(db, user_id, patch)


@router.get("/programs", summary="List programs", response_model=List[ProgramOut])
async def list_programs(
    provider_platform_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    return await RecordController.list_programs(db, provider_platform_id)


@router.get("/programs/{program_id}", summary="Get program", response_model=ProgramOut)
async def get_program(program_id: str, db: AsyncSession = Depends(get_db)):
    return await RecordController.get_program(db, program_id)


@router.patch("/programs/{program_id}", summary="Update program", response_model=ProgramOut)
async def update_program(program_id: str, patch: ProgramPatch, db: AsyncSession = Depends(get_db)):
    return await RecordController.update_program(db, program_id, patch)


@router.get("/users/{user_id}/milestones", summary="List user milestones", response_model=List[MilestoneOut])
async def list_milestones(
    user_id: str,
    program_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    return await RecordController.list_milestones(db, user_id, program_id)


@router.patch("/milestones/{milestone_id}", summary="Update milestone", response_model=MilestoneOut)
async def update_milestone(milestone_id: str, patch: MilestonePatch, db: AsyncSession = Depends(get_db)):
    return await RecordController.update_milestone(db, milestone_id, patch)


@router.get("/users/{user_id}/outcomes", summary="List user outcomes", response_model=List[OutcomeOut])
async def list_outcomes(
    user_id: str,
    type: Optional[OutcomeType] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    return await RecordController.list_outcomes(db, user_id, type.value if type else None)


@router.post("/users/{user_id}/outcomes", summary="Record outcome", response_model=OutcomeOut, status_code=201)
async def create_outcome(user_id: str, payload: OutcomeCreate, db: AsyncSession = Depends(get_db)):
    return await RecordController.create_outcome(db, user_id, payload)


@router.patch("/outcomes/{outcome_id}", summary="Update outcome", response_model=OutcomeOut)
async def update_outcome(outcome_id: str, patch: OutcomePatch, db: AsyncSession = Depends(get_db)):
    return await RecordController.update_outcome(db, outcome_id, patch)


@router.delete("/outcomes/{outcome_id}", summary="Delete outcome")
async def delete_outcome(outcome_id: str, db: AsyncSession = Depends(get_db)):
    return await RecordController.delete_outcome(db, outcome_id)
