from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from learnsync.database.connection import get_db
from learnsync.api.v1.controllers.provider_mapping_controller import ProviderMappingController
from learnsync.schemas.provider_schemas import MappingCreate, MappingOut, MappingPatch

router = APIRouter(prefix="/users", tags=["Provider Logins"])


@router.get("/{user_id}/logins", summary="List provider logins", response_model=List[MappingOut])
async def list_logins(user_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await ProviderMappingController.list_for_user(request, db, user_id)


@router.post("/{user_id}/logins", summary="Create provider login", response_model=MappingOut, status_code=201)
async def create_login(user_id: str, payload: MappingCreate, request: Request, db: AsyncSession = Depends(get_db)):
    return await ProviderMappingController.create(request, db, user_id, payload)


@router.patch(
    "/{user_id}/logins/{provider_platform_id}",
    summary="Update provider login",
    response_model=MappingOut
)
async def update_login(
    user_id: str,
    provider_platform_id: str,
    patch: MappingPatch,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    return await ProviderMappingController.update(request, db, user_id, provider_platform_id, patch)


@router.delete("/{user_id}/logins/{provider_platform_id}", summary="Remove provider login")
async def delete_login(user_id: str, provider_platform_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await ProviderMappingController.delete(request, db, user_id, provider_platform_id)
