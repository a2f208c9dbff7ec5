from fastapi import HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List

from learnsync.core.logger import get_logger, log_context
from learnsync.exceptions.errors import ApplicationException
from learnsync.schemas.provider_schemas import MappingCreate, MappingOut, MappingPatch
from learnsync.services.identity_mapper import IdentityMapper
from learnsync.services.provider_platform_service import ProviderPlatformService
from learnsync.services.record_service import RecordService

logger = get_logger("provider_mapping_controller")


class ProviderMappingController:
    """Controller for a user's provider logins (external identity mappings)."""

    @staticmethod
    def _mapper(request: Request, db: AsyncSession) -> IdentityMapper:
        return IdentityMapper(db, log=log_context("provider_mapping_controller", path=request.url.path))

    @staticmethod
    async def list_for_user(request: Request, db: AsyncSession, user_id: str) -> List[MappingOut]:
        await RecordService.get_user(db, user_id)
        mappings = await ProviderMappingController._mapper(request, db).mappings_for_user(user_id)
        return [MappingOut.model_validate(m) for m in mappings]

    @staticmethod
    async def create(request: Request, db: AsyncSession, user_id: str, payload: MappingCreate) -> MappingOut:
        try:
            await RecordService.get_user(db, user_id)
            await ProviderPlatformService.get(db, payload.provider_platform_id)
            mapping = await ProviderMappingController._mapper(request, db).create_mapping(user_id, payload)
            logger.info(f"Mapped user {user_id} to {payload.external_user_id} on {payload.provider_platform_id}")
            return MappingOut.model_validate(mapping)
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error creating mapping for user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def update(
        request: Request, db: AsyncSession, user_id: str, provider_platform_id: str, patch: MappingPatch
    ) -> MappingOut:
        try:
            mapping = await ProviderMappingController._mapper(request, db).update_mapping(
                user_id, provider_platform_id, patch
            )
            return MappingOut.model_validate(mapping)
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error updating mapping for user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def delete(request: Request, db: AsyncSession, user_id: str, provider_platform_id: str) -> Dict:
        await ProviderMappingController._mapper(request, db).delete_mapping(user_id, provider_platform_id)
        return {"success": True, "message": "Provider login removed"}
