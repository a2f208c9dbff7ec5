from typing import List

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from learnsync.core.logger import get_logger
from learnsync.exceptions.errors import ConflictError, NotFoundError
from learnsync.models.provider_platform import ProviderPlatform
from learnsync.schemas.provider_schemas import ProviderPlatformCreate, ProviderPlatformPatch

logger = get_logger("provider_platform_service")


class ProviderPlatformService:
    """Registry of external learning platforms."""

    @staticmethod
    async def register(db: AsyncSession, payload: ProviderPlatformCreate) -> ProviderPlatform:
        platform = ProviderPlatform(**payload.model_dump(mode="json"))
        db.add(platform)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(f"Provider platform '{payload.name}' already exists")

        logger.info(f"Registered provider platform {platform.id} ({platform.type})")
        return platform

    @staticmethod
    async def list_platforms(db: AsyncSession) -> List[ProviderPlatform]:
        result = await db.execute(select(ProviderPlatform).order_by(ProviderPlatform.created_at))
        return list(result.scalars().all())

    @staticmethod
    async def get(db: AsyncSession, provider_platform_id: str) -> ProviderPlatform:
        result = await db.execute(
            select(ProviderPlatform).where(ProviderPlatform.id == provider_platform_id)
        )
        platform = result.scalar_one_or_none()
        if not platform:
            raise NotFoundError(
                "Provider platform not found",
                {"provider_platform_id": provider_platform_id},
            )
        return platform

    @staticmethod
    async def update(db: AsyncSession, provider_platform_id: str, patch: ProviderPlatformPatch) -> ProviderPlatform:
        platform = await ProviderPlatformService.get(db, provider_platform_id)

        for field, value in patch.model_dump(exclude_unset=True, mode="json").items():
            setattr(platform, field, value)

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Provider platform name already in use")
        await db.refresh(platform)
        return platform

    @staticmethod
    async def delete(db: AsyncSession, provider_platform_id: str) -> None:
        await ProviderPlatformService.get(db, provider_platform_id)
        await db.execute(delete(ProviderPlatform).where(ProviderPlatform.id == provider_platform_id))
        await db.commit()
        logger.info(f"Deleted provider platform {provider_platform_id}")
