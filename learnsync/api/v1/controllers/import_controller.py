from fastapi import HTTPException, status, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.core.logger import get_logger, log_context
from learnsync.enums import ImportPhase, ProviderPlatformState
from learnsync.exceptions.errors import ApplicationException, ImportPhaseError, ProviderGatewayError
from learnsync.schemas.sync_schemas import SyncResponse
from learnsync.services.import_orchestrator import ImportOrchestrator
from learnsync.services.provider_gateway import ProviderGatewayClient
from learnsync.services.provider_platform_service import ProviderPlatformService

logger = get_logger("import_controller")


class ImportController:
    """Controller for provider imports. One call runs one phase, or the full ordered sync."""

    @staticmethod
    async def _open_gateway(request: Request, db: AsyncSession, provider_platform_id: str, phase: str):
        platform = await ProviderPlatformService.get(db, provider_platform_id)
        if platform.state != ProviderPlatformState.ENABLED.value:
            raise ApplicationException(
                f"Provider platform is {platform.state}; only enabled platforms can be imported",
                status.HTTP_409_CONFLICT,
                {"provider_platform_id": provider_platform_id},
            )

        log = log_context("import_controller", provider_id=provider_platform_id, path=request.url.path)
        try:
            gateway = await ProviderGatewayClient.for_platform(platform, log=log)
        except ProviderGatewayError as e:
            log.error(f"Provider gateway unavailable: {e.message}")
            raise ImportPhaseError(phase, provider_platform_id, e.message)
        return gateway, log

    @staticmethod
    async def run_phase(request: Request, db: AsyncSession, provider_platform_id: str, phase: ImportPhase) -> SyncResponse:
        """Run a single import phase. Partial record failures still report success."""

        try:
            gateway, log = await ImportController._open_gateway(request, db, provider_platform_id, phase.value)
            async with gateway:
                orchestrator = ImportOrchestrator(
                    db, gateway, should_cancel=request.is_disconnected, log=log
                )
                runner = {
                    ImportPhase.USERS: orchestrator.import_users,
                    ImportPhase.PROGRAMS: orchestrator.import_programs,
                    ImportPhase.MILESTONES: orchestrator.import_milestones,
                    ImportPhase.ACTIVITY: orchestrator.import_activity,
                }[phase]
                result = await runner()

            logger.info(
                f"Import {phase.value} for provider {provider_platform_id}: "
                f"{result.created} created, {result.updated} updated, {result.failed} failed"
            )
            return SyncResponse(success=True, data=result.as_dict())

        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Import {phase.value} error for provider {provider_platform_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )

    @staticmethod
    async def full_sync(request: Request, db: AsyncSession, provider_platform_id: str):
        """Run users, programs, milestones and activity in order; stop at the first aborted phase."""

        try:
            gateway, log = await ImportController._open_gateway(
                request, db, provider_platform_id, ImportPhase.USERS.value
            )
            async with gateway:
                orchestrator = ImportOrchestrator(
                    db, gateway, should_cancel=request.is_disconnected, log=log
                )
                report = await orchestrator.run_full_sync()

            if not report.success:
                logger.error(f"Sync for provider {provider_platform_id} stopped at {report.failed_phase}: {report.error}")
                return JSONResponse(
                    status_code=status.HTTP_502_BAD_GATEWAY,
                    content={"success": False, "data": report.as_dict()}
                )

            logger.info(f"Sync for provider {provider_platform_id} finished {len(report.phases)} phases")
            return SyncResponse(success=True, data=report.as_dict())

        except (HTTPException, ApplicationException):
            raise
        except Exception as e:
            logger.error(f"❌ Sync error for provider {provider_platform_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e)
            )
