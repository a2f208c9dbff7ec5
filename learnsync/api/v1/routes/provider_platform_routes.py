from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from learnsync.database.connection import get_db
from learnsync.api.v1.controllers.provider_platform_controller import ProviderPlatformController
from learnsync.schemas.provider_schemas import (
    ProviderPlatformCreate,
    ProviderPlatformOut,
    ProviderPlatformPatch,
)

router = APIRouter(prefix="/provider-platforms", tags=["Provider Platforms"])


@router.post("", summary="Register provider platform", response_model=ProviderPlatformOut, status_code=201)
async def register_provider_platform(payload: ProviderPlatformCreate, db: AsyncSession = Depends(get_db)):
    return await ProviderPlatformController.register(db, payload)


@router.get("", summary="List provider platforms", response_model=List[ProviderPlatformOut])
async def list_provider_platforms(db: AsyncSession = Depends(get_db)):
    return await ProviderPlatformController.list_platforms(db)


@router.get("/{provider_platform_id}", summary="Get provider platform", response_model=ProviderPlatformOut)
async def get_provider_platform(provider_platform_id: str, db: AsyncSession = Depends(get_db)):
    return await ProviderPlatformController.get(db, provider_platform_id)


@router.patch(
    "/{provider_platform_id}",
    summary="Update provider platform",
    description="Only fields present in the body are changed.",
    response_model=ProviderPlatformOut
)
async def update_provider_platform(
    provider_platform_id: str,
    patch: ProviderPlatformPatch,
    db: AsyncSession = Depends(get_db)
):
    return await ProviderPlatformController.update(db, provider_platform_id, patch)


@router.delete("/{provider_platform_id}", summary="Delete provider platform")
async def delete_provider_platform(provider_platform_id: str, db: AsyncSession = Depends(get_db)):
    return await ProviderPlatformController.delete(db, provider_platform_id)
