"""Tests for the provider gateway client."""

import json

import httpx
import pytest

from learnsync.exceptions.errors import ProviderGatewayError
from learnsync.models import ProviderPlatform
from learnsync.services.provider_gateway import ProviderGatewayClient, ProviderServiceDescriptor
from tests.factories import gateway_handler

pytestmark = pytest.mark.unit


def _platform(**overrides):
    values = dict(
        id="prov1",
        name="Canvas",
        type="canvas_cloud",
        base_url="https://canvas.example.edu",
        account_id="1",
        access_key="token",
    )
    values.update(overrides)
    return ProviderPlatform(**values)


def _client(routes, calls=None, platform=None):
    return ProviderGatewayClient(
        ProviderServiceDescriptor.from_platform(platform or _platform()),
        service_url="http://gateway.test",
        api_prefix="/api",
        service_key="service-key",
        transport=httpx.MockTransport(gateway_handler(routes, calls)),
    )


class TestDescriptor:

    def test_kolibri_access_key_is_split(self):
        descriptor = ProviderServiceDescriptor.from_platform(
            _platform(type="kolibri", access_key="admin:pa:ss")
        )
        assert (descriptor.username, descriptor.password) == ("admin", "pa:ss")

    def test_kolibri_without_separator_is_rejected(self):
        with pytest.raises(ProviderGatewayError) as exc_info:
            ProviderServiceDescriptor.from_platform(_platform(type="kolibri", access_key="adminsecret"))
        assert exc_info.value.provider_platform_id == "prov1"

    def test_canvas_keeps_credentials_empty(self):
        payload = ProviderServiceDescriptor.from_platform(_platform()).to_payload()
        assert payload["api_key"] == "token"
        assert payload["username"] == ""
        assert payload["id"] == "prov1"


class TestRegistration:

    async def test_healthy_self_check_does_not_register(self):
        calls = []
        client = _client({("GET", "/"): {"status": "ok"}}, calls)

        await client.ensure_registered()

        assert [(r.method, r.url.path) for r in calls] == [("GET", "/")]
        assert calls[0].url.params["id"] == "prov1"

    async def test_failed_self_check_registers_provider(self):
        calls = []
        routes = {("POST", "/api/add-provider"): httpx.Response(201)}
        client = _client(routes, calls, _platform(type="kolibri", access_key="admin:secret"))

        await client.ensure_registered()

        post = calls[-1]
        assert (post.method, post.url.path) == ("POST", "/api/add-provider")
        body = json.loads(post.content)
        assert body["username"] == "admin"
        assert body["password"] == "secret"
        assert post.headers["Authorization"] == "service-key"

    async def test_refused_registration_raises(self):
        client = _client({("POST", "/api/add-provider"): httpx.Response(500)})

        with pytest.raises(ProviderGatewayError) as exc_info:
            await client.ensure_registered()
        assert exc_info.value.gateway_status == 500

    async def test_for_platform_registers_and_returns_client(self):
        calls = []
        routes = {("GET", "/"): {"status": "ok"}}

        client = await ProviderGatewayClient.for_platform(
            _platform(),
            transport=httpx.MockTransport(gateway_handler(routes, calls)),
            service_url="http://gateway.test",
        )

        assert client.provider_platform_id == "prov1"
        assert len(calls) == 1
        await client.close()


class TestListings:

    async def test_users_are_validated_per_element(self):
        users = [
            {"username": "ann", "external_user_id": 17, "email": None},
            {"username": "nobody"},
        ]
        client = _client({("GET", "/api/users"): users})

        records, rejected = await client.get_users()

        assert [r.external_user_id for r in records] == ["17"]
        assert records[0].email == ""
        assert len(rejected) == 1
        assert "external_user_id" in rejected[0].reason

    async def test_requests_carry_provider_id_and_service_key(self):
        calls = []
        client = _client({("GET", "/api/programs/55/activity"): []}, calls)

        records, rejected = await client.get_activity_for_program("55")

        assert (records, rejected) == ([], [])
        assert calls[0].url.params["id"] == "prov1"
        assert calls[0].headers["Authorization"] == "service-key"

    async def test_milestone_path(self):
        calls = []
        routes = {("GET", "/api/users/u9/programs/p3/milestones"): [
            {"external_id": "a1", "type": "grade_received", "is_completed": True},
        ]}
        client = _client(routes, calls)

        records, _ = await client.get_milestones_for_program_user("p3", "u9")

        assert records[0].type == "grade_received"

    async def test_null_body_is_empty_list(self):
        client = _client({("GET", "/api/programs"): httpx.Response(200, content=b"null")})
        assert await client.get_programs() == ([], [])

    async def test_non_success_status_raises(self):
        client = _client({("GET", "/api/users"): httpx.Response(401)})

        with pytest.raises(ProviderGatewayError) as exc_info:
            await client.get_users()
        assert exc_info.value.gateway_status == 401
        assert exc_info.value.status_code == 502

    async def test_undecodable_body_raises(self):
        client = _client({("GET", "/api/users"): httpx.Response(200, text="<html>")})

        with pytest.raises(ProviderGatewayError):
            await client.get_users()

    async def test_non_list_body_raises(self):
        client = _client({("GET", "/api/programs"): {"programs": []}})

        with pytest.raises(ProviderGatewayError):
            await client.get_programs()

    async def test_transport_error_raises(self):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client({("GET", "/api/users"): unreachable})

        with pytest.raises(ProviderGatewayError):
            await client.get_users()
