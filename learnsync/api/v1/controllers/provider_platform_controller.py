from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List

from learnsync.core.logger import get_logger
from learnsync.exceptions.errors import ApplicationException
from learnsync.schemas.provider_schemas import (
    ProviderPlatformCreate,
    ProviderPlatformOut,
    ProviderPlatformPatch,
)
from learnsync.services.provider_platform_service import ProviderPlatformService

logger = get_logger("provider_platform_controller")


class ProviderPlatformController:
    """Controller for registering and maintaining provider platforms."""

    @staticmethod
    async def register(db: AsyncSession, payload: ProviderPlatformCreate) -> ProviderPlatformOut:
        try:
            platform = await ProviderPlatformService.register(db, payload)
            return ProviderPlatformOut.model_validate(platform)
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error registering provider platform: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def list_platforms(db: AsyncSession) -> List[ProviderPlatformOut]:
        try:
            platforms = await ProviderPlatformService.list_platforms(db)
            return [ProviderPlatformOut.model_validate(p) for p in platforms]
        except Exception as e:
            logger.error(f"❌ Error listing provider platforms: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def get(db: AsyncSession, provider_platform_id: str) -> ProviderPlatformOut:
        platform = await ProviderPlatformService.get(db, provider_platform_id)
        return ProviderPlatformOut.model_validate(platform)

    @staticmethod
    async def update(db: AsyncSession, provider_platform_id: str, patch: ProviderPlatformPatch) -> ProviderPlatformOut:
        try:
            platform = await ProviderPlatformService.update(db, provider_platform_id, patch)
            return ProviderPlatformOut.model_validate(platform)
        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Error updating provider platform {provider_platform_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def delete(db: AsyncSession, provider_platform_id: str) -> Dict:
        await ProviderPlatformService.delete(db, provider_platform_id)
        return {"success": True, "message": "Provider platform deleted"}
