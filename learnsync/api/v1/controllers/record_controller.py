from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List, Optional

from learnsync.core.logger import get_logger
from learnsync.exceptions.errors import ApplicationException
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
from learnsync.services.record_service import RecordService

logger = get_logger("record_controller")


class RecordController:
    """Controller for users, programs, milestones and outcomes."""

    @staticmethod
    async def get_user(db: AsyncSession, user_id: str) -> UserOut:
        return UserOut.model_validate(await RecordService.get_user(db, user_id))

    @staticmethod
    async def update_user(db: AsyncSession, user_id: str, patch: UserPatch) -> UserOut:
        try:
            return UserOut.model_validate(await RecordService.update_user(db, user_id, patch))
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error updating user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def list_programs(db: AsyncSession, provider_platform_id: Optional[str]) -> List[ProgramOut]:
        programs = await RecordService.list_programs(db, provider_platform_id)
        return [ProgramOut.model_validate(p) for p in programs]

    @staticmethod
    async def get_program(db: AsyncSession, program_id: str) -> ProgramOut:
        return ProgramOut.model_validate(await RecordService.get_program(db, program_id))

    @staticmethod
    async def update_program(db: AsyncSession, program_id: str, patch: ProgramPatch) -> ProgramOut:
        try:
            return ProgramOut.model_validate(await RecordService.update_program(db, program_id, patch))
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error updating program {program_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def list_milestones(db: AsyncSession, user_id: str, program_id: Optional[str]) -> List[MilestoneOut]:
        milestones = await RecordService.list_milestones(db, user_id, program_id)
        return [MilestoneOut.model_validate(m) for m in milestones]

    @staticmethod
    async def update_milestone(db: AsyncSession, milestone_id: str, patch: MilestonePatch) -> MilestoneOut:
        try:
            return MilestoneOut.model_validate(await RecordService.update_milestone(db, milestone_id, patch))
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error updating milestone {milestone_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def create_outcome(db: AsyncSession, user_id: str, payload: OutcomeCreate) -> OutcomeOut:
        try:
            return OutcomeOut.model_validate(await RecordService.create_outcome(db, user_id, payload))
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error creating outcome for user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def list_outcomes(db: AsyncSession, user_id: str, outcome_type: Optional[str]) -> List[OutcomeOut]:
        outcomes = await RecordService.list_outcomes(db, user_id, outcome_type)
        return [OutcomeOut.model_validate(o) for o in outcomes]

    @staticmethod
    async def update_outcome(db: AsyncSession, outcome_id: str, patch: OutcomePatch) -> OutcomeOut:
        try:
            return OutcomeOut.model_validate(await RecordService.update_outcome(db, outcome_id, patch))
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error updating outcome {outcome_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def delete_outcome(db: AsyncSession, outcome_id: str) -> Dict:
        await RecordService.delete_outcome(db, outcome_id)
        return {"success": True, "message": "Outcome deleted"}
