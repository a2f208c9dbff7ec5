"""
Record Service
Lookups and partial updates for users, programs, milestones and outcomes.

Patches are applied field by field from model_dump(exclude_unset=True):
a field sent as null is written as null, an absent field is left alone.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from learnsync.core.logger import get_logger
from learnsync.database.base import Base
from learnsync.exceptions.errors import ConflictError, NotFoundError
from learnsync.models.milestone import Milestone
from learnsync.models.outcome import Outcome
from learnsync.models.program import Program
from learnsync.models.user import User
from learnsync.schemas.record_schemas import (
    MilestonePatch,
    OutcomeCreate,
    OutcomePatch,
    ProgramPatch,
    UserPatch,
)

logger = get_logger("record_service")

ModelT = TypeVar("ModelT", bound=Base)


def patch_values(patch: BaseModel) -> Dict[str, Any]:
    return patch.model_dump(exclude_unset=True, mode="json")


async def _get_or_404(db: AsyncSession, model: Type[ModelT], record_id: str, label: str) -> ModelT:
    result = await db.execute(select(model).where(model.id == record_id))
    record = result.scalar_one_or_none()
    if not record:
        raise NotFoundError(f"{label} not found", {"id": record_id})
    return record


async def _apply_patch(db: AsyncSession, record: ModelT, patch: BaseModel, label: str) -> ModelT:
    values = patch_values(patch)
    for field, value in values.items():
        setattr(record, field, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"{label} update violates a uniqueness constraint", {"fields": sorted(values)})

    await db.refresh(record)
    logger.info(f"Patched {label.lower()} {record.id}: {sorted(values)}")
    return record


class RecordService:

    @staticmethod
    async def get_user(db: AsyncSession, user_id: str) -> User:
        return await _get_or_404(db, User, user_id, "User")

    @staticmethod
    async def update_user(db: AsyncSession, user_id: str, patch: UserPatch) -> User:
        user = await _get_or_404(db, User, user_id, "User")
        return await _apply_patch(db, user, patch, "User")

    @staticmethod
    async def get_program(db: AsyncSession, program_id: str) -> Program:
        return await _get_or_404(db, Program, program_id, "Program")

    @staticmethod
    async def list_programs(db: AsyncSession, provider_platform_id: Optional[str] = None) -> List[Program]:
        query = select(Program).order_by(Program.name)
        if provider_platform_id:
            query = query.where(Program.provider_platform_id == provider_platform_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def update_program(db: AsyncSession, program_id: str, patch: ProgramPatch) -> Program:
        program = await _get_or_404(db, Program, program_id, "Program")
        return await _apply_patch(db, program, patch, "Program")

    @staticmethod
    async def list_milestones(db: AsyncSession, user_id: str, program_id: Optional[str] = None) -> List[Milestone]:
        query = (
            select(Milestone)
            .where(Milestone.user_id == user_id)
            .order_by(Milestone.created_at.desc())
        )
        if program_id:
            query = query.where(Milestone.program_id == program_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def update_milestone(db: AsyncSession, milestone_id: str, patch: MilestonePatch) -> Milestone:
        milestone = await _get_or_404(db, Milestone, milestone_id, "Milestone")
        return await _apply_patch(db, milestone, patch, "Milestone")

    @staticmethod
    async def create_outcome(db: AsyncSession, user_id: str, payload: OutcomeCreate) -> Outcome:
        await _get_or_404(db, User, user_id, "User")
        await _get_or_404(db, Program, payload.program_id, "Program")

        outcome = Outcome(user_id=user_id, **payload.model_dump(mode="json"))
        db.add(outcome)
        await db.commit()
        await db.refresh(outcome)
        logger.info(f"Recorded {outcome.type} outcome for user {user_id} in program {payload.program_id}")
        return outcome

    @staticmethod
    async def list_outcomes(db: AsyncSession, user_id: str, outcome_type: Optional[str] = None) -> List[Outcome]:
        query = (
            select(Outcome)
            .where(Outcome.user_id == user_id)
            .order_by(Outcome.created_at.desc())
        )
        if outcome_type:
            query = query.where(Outcome.type == outcome_type)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def update_outcome(db: AsyncSession, outcome_id: str, patch: OutcomePatch) -> Outcome:
        outcome = await _get_or_404(db, Outcome, outcome_id, "Outcome")
        return await _apply_patch(db, outcome, patch, "Outcome")

    @staticmethod
    async def delete_outcome(db: AsyncSession, outcome_id: str) -> None:
        await _get_or_404(db, Outcome, outcome_id, "Outcome")
        await db.execute(delete(Outcome).where(Outcome.id == outcome_id))
        await db.commit()
