"""
Import Orchestrator
Synchronizes one provider platform in four phases:
users -> programs -> milestones -> activity.

Every phase is idempotent and can run on its own. Failures of a single
record are logged, counted in the PhaseResult and skipped; only a failed
gateway call for the phase's primary listing aborts the phase.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from learnsync.core.logger import LogContext, log_context
from learnsync.enums import ImportPhase, IMPORT_PHASE_ORDER
from learnsync.exceptions.errors import (
    ActivityIngestionError,
    ImportPhaseError,
    ProviderGatewayError,
    ReconciliationError,
)
from learnsync.models.milestone import Milestone
from learnsync.models.program import Program
from learnsync.schemas.import_schemas import ImportMilestone, ImportProgram
from learnsync.services.activity_ingestion import ActivityIngestionService
from learnsync.services.identity_mapper import IdentityMapper
from learnsync.services.import_results import PhaseResult, SyncReport
from learnsync.services.provider_gateway import ProviderGatewayClient
from learnsync.utils.locks import KeyedLocks, provider_import_locks

CancelCheck = Callable[[], Awaitable[bool]]


@dataclass(frozen=True)
class _ProgramRef:
    id: str
    external_id: str


@dataclass(frozen=True)
class _UserRef:
    user_id: str
    external_user_id: str


class ImportOrchestrator:
    """Runs import phases for the provider platform the gateway client is bound to."""

    def __init__(
        self,
        db: AsyncSession,
        gateway: ProviderGatewayClient,
        locks: KeyedLocks = provider_import_locks,
        should_cancel: Optional[CancelCheck] = None,
        log: Optional[LogContext] = None,
    ):
        self.db = db
        self.gateway = gateway
        self.provider_platform_id = gateway.provider_platform_id
        self.locks = locks
        self.should_cancel = should_cancel
        self.log = (log or log_context("import_orchestrator")).bind(provider_id=self.provider_platform_id)
        self.identities = IdentityMapper(db, log=self.log)
        self.ingestion = ActivityIngestionService(db, log=self.log)

    # ------------------------------------------------------------------
    # Public entry points; each holds the provider's import lock
    # ------------------------------------------------------------------

    async def import_users(self) -> PhaseResult:
        async with self._provider_lock():
            return await self._import_users()

    async def import_programs(self) -> PhaseResult:
        async with self._provider_lock():
            return await self._import_programs()

    async def import_milestones(self) -> PhaseResult:
        async with self._provider_lock():
            return await self._import_milestones()

    async def import_activity(self) -> PhaseResult:
        async with self._provider_lock():
            return await self._import_activity()

    async def run_full_sync(self) -> SyncReport:
        """Run every phase in dependency order, stopping at the first aborted phase."""
        runners = {
            ImportPhase.USERS: self._import_users,
            ImportPhase.PROGRAMS: self._import_programs,
            ImportPhase.MILESTONES: self._import_milestones,
            ImportPhase.ACTIVITY: self._import_activity,
        }
        report = SyncReport(provider_platform_id=self.provider_platform_id)
        async with self._provider_lock():
            for phase in IMPORT_PHASE_ORDER:
                try:
                    result = await runners[phase]()
                except ImportPhaseError as e:
                    report.failed_phase = e.phase
                    report.error = e.message
                    break
                report.phases.append(result)
                if result.cancelled:
                    break
        return report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _provider_lock(self):
        if self.locks.is_locked(self.provider_platform_id):
            self.log.info("Another import is running for this provider, waiting")
        return self.locks.hold(self.provider_platform_id)

    async def _cancelled(self, result: PhaseResult) -> bool:
        if self.should_cancel is not None and await self.should_cancel():
            result.cancelled = True
            self.log.bind(phase=result.phase).warning("Import cancelled by caller, keeping committed records")
            return True
        return False

    def _phase_error(self, phase: ImportPhase, error: ProviderGatewayError) -> ImportPhaseError:
        self.log.bind(phase=phase.value).error(f"Gateway call failed, aborting phase: {error.message}")
        return ImportPhaseError(phase.value, self.provider_platform_id, error.message)

    async def _program_refs(self) -> List[_ProgramRef]:
        result = await self.db.execute(
            select(Program.id, Program.external_id)
            .where(Program.provider_platform_id == self.provider_platform_id)
            .order_by(Program.created_at, Program.id)
        )
        return [_ProgramRef(id=row.id, external_id=row.external_id) for row in result.all()]

    async def _user_refs(self) -> List[_UserRef]:
        mappings = await self.identities.mappings_for_provider(self.provider_platform_id)
        return [_UserRef(user_id=m.user_id, external_user_id=m.external_user_id) for m in mappings]

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _import_users(self) -> PhaseResult:
        phase = ImportPhase.USERS
        result = PhaseResult(phase=phase.value, provider_platform_id=self.provider_platform_id)
        try:
            users, rejected = await self.gateway.get_users()
        except ProviderGatewayError as e:
            raise self._phase_error(phase, e) from e

        result.received = len(users) + len(rejected)
        for failure in rejected:
            result.record_failure(failure.external_id, failure.reason)

        for import_user in users:
            if await self._cancelled(result):
                break
            if import_user.is_empty():
                result.skipped += 1
                continue
            try:
                reconciled = await self.identities.resolve_or_create_user(self.provider_platform_id, import_user)
            except ReconciliationError as e:
                result.record_failure(import_user.external_user_id, e.message)
                continue
            if reconciled.created:
                result.created += 1
            else:
                result.skipped += 1

        self.log.info(f"User import complete: {result.created} created, {result.skipped} skipped, {result.failed} failed")
        return result

    async def _import_programs(self) -> PhaseResult:
        phase = ImportPhase.PROGRAMS
        result = PhaseResult(phase=phase.value, provider_platform_id=self.provider_platform_id)
        try:
            programs, rejected = await self.gateway.get_programs()
        except ProviderGatewayError as e:
            raise self._phase_error(phase, e) from e

        result.received = len(programs) + len(rejected)
        for failure in rejected:
            result.record_failure(failure.external_id, failure.reason)

        for item in programs:
            if await self._cancelled(result):
                break
            log = self.log.bind(program=item.name, external_program_id=item.external_id)
            try:
                created = await self._upsert_program(item)
            except SQLAlchemyError as e:
                await self.db.rollback()
                log.bind(database_method="upsert_program").error(f"Error creating program: {e}")
                result.record_failure(item.external_id, "Failed to create program.")
                continue
            if created:
                result.created += 1
            else:
                result.updated += 1

        self.log.info(f"Program import complete: {result.created} created, {result.updated} updated, {result.failed} failed")
        return result

    async def _upsert_program(self, item: ImportProgram) -> bool:
        existing = (await self.db.execute(
            select(Program).where(
                Program.provider_platform_id == self.provider_platform_id,
                Program.external_id == item.external_id,
            )
        )).scalar_one_or_none()

        fields = dict(
            name=item.name,
            description=item.description or None,
            thumbnail_url=item.thumbnail_url or None,
            external_url=item.external_url or None,
            type=item.type or None,
            outcome_types=item.joined_outcome_types(),
            total_progress_milestones=item.total_progress_milestones,
        )
        if existing is None:
            self.db.add(Program(
                provider_platform_id=self.provider_platform_id,
                external_id=item.external_id,
                **fields,
            ))
        else:
            for key, value in fields.items():
                setattr(existing, key, value)
        await self.db.commit()
        return existing is None

    async def _import_milestones(self) -> PhaseResult:
        phase = ImportPhase.MILESTONES
        result = PhaseResult(phase=phase.value, provider_platform_id=self.provider_platform_id)
        programs = await self._program_refs()
        users = await self._user_refs()
        self.log.info(f"Importing milestones for {len(programs)} programs x {len(users)} users")

        for program in programs:
            for user in users:
                if await self._cancelled(result):
                    return result
                log = self.log.bind(program_id=program.id, user_id=user.user_id)
                try:
                    milestones, rejected = await self.gateway.get_milestones_for_program_user(
                        program.external_id, user.external_user_id
                    )
                except ProviderGatewayError as e:
                    log.error(f"Error getting provider service milestones: {e.message}")
                    result.record_failure(f"{program.external_id}/{user.external_user_id}", e.message)
                    continue

                result.received += len(milestones) + len(rejected)
                for failure in rejected:
                    result.record_failure(failure.external_id, failure.reason)

                for milestone in milestones:
                    if await self._cancelled(result):
                        return result
                    try:
                        outcome = await self._upsert_milestone(program, user, milestone)
                    except SQLAlchemyError as e:
                        await self.db.rollback()
                        log.bind(milestone_id=milestone.external_id, database_method="upsert_milestone").error(
                            f"Error creating milestone: {e}"
                        )
                        result.record_failure(milestone.external_id, "Failed to create milestone.")
                        continue
                    if outcome == "created":
                        result.created += 1
                    elif outcome == "updated":
                        result.updated += 1
                    else:
                        result.skipped += 1

        self.log.info(
            f"Milestone import complete: {result.created} created, {result.updated} updated, "
            f"{result.skipped} unchanged, {result.failed} failed"
        )
        return result

    async def _upsert_milestone(self, program: _ProgramRef, user: _UserRef, item: ImportMilestone) -> str:
        existing = (await self.db.execute(
            select(Milestone).where(
                Milestone.program_id == program.id,
                Milestone.user_id == user.user_id,
                Milestone.external_id == item.external_id,
            )
        )).scalar_one_or_none()

        if existing is None:
            self.db.add(Milestone(
                external_id=item.external_id,
                type=item.type,
                is_completed=item.is_completed,
                user_id=user.user_id,
                program_id=program.id,
            ))
            await self.db.commit()
            return "created"

        if existing.type == item.type and existing.is_completed == item.is_completed:
            return "unchanged"
        existing.type = item.type
        existing.is_completed = item.is_completed
        await self.db.commit()
        return "updated"

    async def _import_activity(self) -> PhaseResult:
        phase = ImportPhase.ACTIVITY
        result = PhaseResult(phase=phase.value, provider_platform_id=self.provider_platform_id)
        programs = await self._program_refs()
        user_lookup = await self.identities.external_user_lookup(self.provider_platform_id)

        for program in programs:
            if await self._cancelled(result):
                return result
            log = self.log.bind(program_id=program.id)
            try:
                activities, rejected = await self.gateway.get_activity_for_program(program.external_id)
            except ProviderGatewayError as e:
                log.error(f"Error getting provider service activity: {e.message}")
                result.record_failure(program.external_id, e.message)
                continue

            result.received += len(activities) + len(rejected)
            for failure in rejected:
                result.record_failure(failure.external_id, failure.reason)

            for act in activities:
                if await self._cancelled(result):
                    return result
                user_id = user_lookup.get(act.external_user_id)
                if user_id is None:
                    # Rejected rather than stored under a sentinel user
                    log.warning(f"No user mapping for external user {act.external_user_id!r}, activity not ingested")
                    result.unmapped += 1
                    continue
                try:
                    await self.ingestion.ingest(
                        user_id=user_id,
                        program_id=program.id,
                        reported_total=act.total_time,
                        activity_type=act.type,
                        external_id=act.external_id or None,
                    )
                except ActivityIngestionError as e:
                    result.record_failure(act.external_user_id, e.message)
                    continue
                result.created += 1

        self.log.info(
            f"Activity import complete: {result.created} ingested, {result.unmapped} unmapped, {result.failed} failed"
        )
        return result
