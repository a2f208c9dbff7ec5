from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.database.connection import get_db
from learnsync.api.v1.controllers.import_controller import ImportController
from learnsync.enums import ImportPhase
from learnsync.schemas.sync_schemas import SyncResponse

router = APIRouter(prefix="/actions/provider-platforms", tags=["Provider Imports"])


@router.post(
    "/{provider_platform_id}/import-users",
    summary="Import users",
    description="Reconcile the provider's users with internal users, creating users and mappings as needed.",
    response_model=SyncResponse
)
async def import_users(provider_platform_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await ImportController.run_phase(request, db, provider_platform_id, ImportPhase.USERS)


@router.post(
    "/{provider_platform_id}/import-programs",
    summary="Import programs",
    description="Upsert the provider's course catalog.",
    response_model=SyncResponse
)
async def import_programs(provider_platform_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await ImportController.run_phase(request, db, provider_platform_id, ImportPhase.PROGRAMS)


@router.post(
    "/{provider_platform_id}/import-milestones",
    summary="Import milestones",
    description="Import milestones for every (program, mapped user) pair of the provider.",
    response_model=SyncResponse
)
async def import_milestones(provider_platform_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await ImportController.run_phase(request, db, provider_platform_id, ImportPhase.MILESTONES)


@router.post(
    "/{provider_platform_id}/import-activity",
    summary="Import activity",
    description="Ingest cumulative activity totals for every program of the provider as time deltas.",
    response_model=SyncResponse
)
async def import_activity(provider_platform_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await ImportController.run_phase(request, db, provider_platform_id, ImportPhase.ACTIVITY)


@router.post(
    "/{provider_platform_id}/sync",
    summary="Full sync",
    description="Run users, programs, milestones and activity imports in order. "
                "Stops at the first phase whose gateway call fails and returns 502 with the completed phases."
)
async def sync(provider_platform_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await ImportController.full_sync(request, db, provider_platform_id)
