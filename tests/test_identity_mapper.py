"""Tests for external identity reconciliation."""

import pytest
from sqlalchemy import func
from sqlalchemy.future import select

from learnsync.exceptions.errors import ConflictError, NotFoundError, ReconciliationError
from learnsync.models import ProviderUserMapping, User
from learnsync.schemas.import_schemas import ImportUser
from learnsync.schemas.provider_schemas import MappingCreate, MappingPatch
from learnsync.services.identity_mapper import IdentityMapper
from tests.factories import make_mapping, make_provider, make_user

pytestmark = pytest.mark.integration


async def _count(db, model):
    return (await db.execute(select(func.count(model.id)))).scalar()


class TestResolveOrCreateUser:

    async def test_importing_same_user_twice_is_idempotent(self, db):
        provider = await make_provider(db)
        mapper = IdentityMapper(db)
        record = ImportUser(username="jdoe", email="jdoe@example.edu", name_last="Doe", external_user_id="42")

        first = await mapper.resolve_or_create_user(provider.id, record)
        second = await mapper.resolve_or_create_user(provider.id, record)

        assert first.created is True
        assert second.created is False
        assert second.user_id == first.user_id
        assert await _count(db, User) == 1
        assert await _count(db, ProviderUserMapping) == 1

    async def test_same_external_id_on_another_provider_is_a_new_user(self, db):
        canvas = await make_provider(db)
        kolibri = await make_provider(db, name="Kolibri", type="kolibri", access_key="admin:secret")
        mapper = IdentityMapper(db)

        a = await mapper.resolve_or_create_user(canvas.id, ImportUser(username="amy", external_user_id="7"))
        b = await mapper.resolve_or_create_user(kolibri.id, ImportUser(username="amy.k", external_user_id="7"))

        assert a.user_id != b.user_id

    async def test_missing_email_gets_placeholder_address(self, db):
        provider = await make_provider(db)

        reconciled = await IdentityMapper(db).resolve_or_create_user(
            provider.id, ImportUser(username="nomail", name_last="Smith", external_user_id="9")
        )

        user = (await db.execute(select(User).where(User.id == reconciled.user_id))).scalar_one()
        assert user.email == "nomail@unlocked.v2"
        assert user.role == "student"

    async def test_username_falls_back_to_external_username(self, db):
        provider = await make_provider(db)

        reconciled = await IdentityMapper(db).resolve_or_create_user(
            provider.id,
            ImportUser(email="x@example.edu", name_last="X", external_user_id="11", external_username="login11"),
        )

        user = (await db.execute(select(User).where(User.id == reconciled.user_id))).scalar_one()
        assert user.username == "login11"

    async def test_empty_record_is_rejected(self, db):
        provider = await make_provider(db)

        with pytest.raises(ReconciliationError):
            await IdentityMapper(db).resolve_or_create_user(provider.id, ImportUser(external_user_id="5"))

        assert await _count(db, User) == 0

    async def test_duplicate_username_fails_without_breaking_the_session(self, db):
        provider = await make_provider(db)
        provider_id = provider.id  # rollback expires loaded instances
        await make_user(db, "taken")
        mapper = IdentityMapper(db)

        with pytest.raises(ReconciliationError) as exc_info:
            await mapper.resolve_or_create_user(provider_id, ImportUser(username="taken", external_user_id="1"))
        assert exc_info.value.external_user_id == "1"

        ok = await mapper.resolve_or_create_user(provider_id, ImportUser(username="fresh", external_user_id="2"))
        assert ok.created is True
        assert await _count(db, ProviderUserMapping) == 1


class TestExplicitMappings:

    async def test_create_and_list_for_user(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        mapper = IdentityMapper(db)

        await mapper.create_mapping(user.id, MappingCreate(provider_platform_id=provider.id, external_user_id="55"))

        mappings = await mapper.mappings_for_user(user.id)
        assert [m.external_user_id for m in mappings] == ["55"]
        assert await mapper.external_user_lookup(provider.id) == {"55": user.id}

    async def test_second_login_for_same_provider_conflicts(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        await make_mapping(db, user, provider, "55")

        with pytest.raises(ConflictError):
            await IdentityMapper(db).create_mapping(
                user.id, MappingCreate(provider_platform_id=provider.id, external_user_id="56")
            )

    async def test_update_existing_mapping(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        await make_mapping(db, user, provider, "55")

        mapping = await IdentityMapper(db).update_mapping(
            user.id, provider.id, MappingPatch(external_username="jdoe55")
        )

        assert mapping.external_username == "jdoe55"
        assert mapping.external_user_id == "55"

    async def test_update_without_mapping_is_not_found(self, db):
        provider = await make_provider(db)
        user = await make_user(db)

        with pytest.raises(NotFoundError):
            await IdentityMapper(db).update_mapping(user.id, provider.id, MappingPatch(external_user_id="1"))

    async def test_delete_mapping(self, db):
        provider = await make_provider(db)
        user = await make_user(db)
        await make_mapping(db, user, provider, "55")
        mapper = IdentityMapper(db)

        await mapper.delete_mapping(user.id, provider.id)

        assert await mapper.find_by_external_user(provider.id, "55") is None
        with pytest.raises(NotFoundError):
            await mapper.delete_mapping(user.id, provider.id)
