"""
Identity Reconciliation Service
Binds a provider's external user identifiers to internal users.
"""

from typing import Dict, List, NamedTuple, Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from learnsync.core.config import settings
from learnsync.core.logger import LogContext, log_context
from learnsync.enums import UserRole
from learnsync.exceptions.errors import ConflictError, NotFoundError, ReconciliationError
from learnsync.models.provider_user_mapping import ProviderUserMapping
from learnsync.models.user import User
from learnsync.schemas.import_schemas import ImportUser
from learnsync.schemas.provider_schemas import MappingCreate, MappingPatch


class ReconciledUser(NamedTuple):
    user_id: str
    created: bool


class IdentityMapper:
    """Maintains ProviderUserMapping rows; never overwrites a mapping implicitly."""

    def __init__(self, db: AsyncSession, log: Optional[LogContext] = None):
        self.db = db
        self.log = log or log_context("identity_mapper")

    async def find_by_external_user(self, provider_platform_id: str, external_user_id: str) -> Optional[ProviderUserMapping]:
        result = await self.db.execute(
            select(ProviderUserMapping).where(
                ProviderUserMapping.provider_platform_id == provider_platform_id,
                ProviderUserMapping.external_user_id == external_user_id,
            )
        )
        return result.scalar_one_or_none()

    async def resolve_or_create_user(self, provider_platform_id: str, import_user: ImportUser) -> ReconciledUser:
        """
        Return the internal user bound to (provider, external user id), creating the
        user and its mapping in one transaction when no mapping exists yet.
        Raises ReconciliationError when the record cannot be reconciled.
        """
        external_user_id = import_user.external_user_id
        log = self.log.bind(provider_id=provider_platform_id, external_user_id=external_user_id)

        existing = await self.find_by_external_user(provider_platform_id, external_user_id)
        if existing is not None:
            return ReconciledUser(user_id=existing.user_id, created=False)

        if import_user.is_empty():
            raise ReconciliationError("Import record has no username, email or surname", external_user_id)

        username = (import_user.username or import_user.external_username).strip()
        if not username:
            raise ReconciliationError("Import record has no usable username", external_user_id)
        email = import_user.email.strip() or f"{username}@{settings.PLACEHOLDER_EMAIL_DOMAIN}"

        try:
            user = User(
                username=username,
                email=email,
                name_first=import_user.name_first or None,
                name_last=import_user.name_last or None,
                role=UserRole.STUDENT.value,
            )
            self.db.add(user)
            await self.db.flush()
            self.db.add(ProviderUserMapping(
                user_id=user.id,
                provider_platform_id=provider_platform_id,
                external_user_id=external_user_id,
                external_username=import_user.username or None,
                external_login_id=import_user.external_username or None,
            ))
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            log.bind(database_method="resolve_or_create_user").error(f"Error creating user {username!r}: {e.orig}")
            raise ReconciliationError(f"Failed to create user {username!r}: duplicate username, email or mapping", external_user_id) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.bind(database_method="resolve_or_create_user").error(f"Error creating user {username!r}: {e}")
            raise ReconciliationError(f"Failed to create user {username!r}", external_user_id) from e

        log.info(f"Created user {user.id} ({username})")
        return ReconciledUser(user_id=user.id, created=True)

    async def mappings_for_provider(self, provider_platform_id: str) -> List[ProviderUserMapping]:
        result = await self.db.execute(
            select(ProviderUserMapping)
            .where(ProviderUserMapping.provider_platform_id == provider_platform_id)
            .order_by(ProviderUserMapping.created_at, ProviderUserMapping.id)
        )
        return list(result.scalars().all())

    async def external_user_lookup(self, provider_platform_id: str) -> Dict[str, str]:
        """external user id -> internal user id for one provider"""
        return {m.external_user_id: m.user_id for m in await self.mappings_for_provider(provider_platform_id)}

    async def mappings_for_user(self, user_id: str) -> List[ProviderUserMapping]:
        result = await self.db.execute(
            select(ProviderUserMapping)
            .where(ProviderUserMapping.user_id == user_id)
            .order_by(ProviderUserMapping.created_at)
        )
        return list(result.scalars().all())

    async def get_mapping(self, user_id: str, provider_platform_id: str) -> ProviderUserMapping:
        result = await self.db.execute(
            select(ProviderUserMapping).where(
                ProviderUserMapping.user_id == user_id,
                ProviderUserMapping.provider_platform_id == provider_platform_id,
            )
        )
        mapping = result.scalar_one_or_none()
        if mapping is None:
            raise NotFoundError(
                "Provider-user mapping not found",
                {"user_id": user_id, "provider_platform_id": provider_platform_id},
            )
        return mapping

    async def create_mapping(self, user_id: str, payload: MappingCreate) -> ProviderUserMapping:
        mapping = ProviderUserMapping(user_id=user_id, **payload.model_dump())
        self.db.add(mapping)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            self.log.bind(user_id=user_id, database_method="create_mapping").error(f"Error creating mapping: {e.orig}")
            raise ConflictError("User or external user is already mapped for this provider") from e
        await self.db.refresh(mapping)
        return mapping

    async def update_mapping(self, user_id: str, provider_platform_id: str, patch: MappingPatch) -> ProviderUserMapping:
        """Explicit update; fails with NotFoundError if (user, provider) has no mapping."""
        mapping = await self.get_mapping(user_id, provider_platform_id)
        for field, value in patch.model_dump(exclude_unset=True).items():
            if field == "external_user_id" and not value:
                continue
            setattr(mapping, field, value)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError("External user is already mapped to another user") from e
        await self.db.refresh(mapping)
        return mapping

    async def delete_mapping(self, user_id: str, provider_platform_id: str) -> None:
        """Unlink a user from a provider."""
        result = await self.db.execute(
            delete(ProviderUserMapping).where(
                ProviderUserMapping.user_id == user_id,
                ProviderUserMapping.provider_platform_id == provider_platform_id,
            )
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError(
                "Provider-user mapping not found",
                {"user_id": user_id, "provider_platform_id": provider_platform_id},
            )
        await self.db.commit()
        self.log.bind(user_id=user_id, provider_id=provider_platform_id).info("Deleted provider-user mapping")
