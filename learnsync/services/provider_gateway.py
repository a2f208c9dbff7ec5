"""
Provider Gateway Client
Reads normalized users, programs, milestones and activity for one provider
platform from the provider gateway service.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from learnsync.core.config import settings
from learnsync.core.logger import LogContext, log_context
from learnsync.enums import ProviderPlatformType
from learnsync.exceptions.errors import ProviderGatewayError
from learnsync.models.provider_platform import ProviderPlatform
from learnsync.schemas.import_schemas import ImportActivity, ImportMilestone, ImportProgram, ImportUser
from learnsync.services.import_results import RecordFailure

RecordT = TypeVar("RecordT", bound=BaseModel)


@dataclass
class ProviderServiceDescriptor:
    """Everything the gateway needs to talk to the provider on our behalf."""
    provider_platform_id: str
    type: str
    base_url: str
    account_id: str
    api_key: str
    username: str = ""
    password: str = ""

    @classmethod
    def from_platform(cls, platform: ProviderPlatform) -> "ProviderServiceDescriptor":
        username, password = "", ""
        # Kolibri authenticates with a combined "username:password" access key
        if platform.type == ProviderPlatformType.KOLIBRI.value:
            if ":" not in (platform.access_key or ""):
                raise ProviderGatewayError(
                    "Invalid access key for Kolibri, must be in the format username:password",
                    provider_platform_id=platform.id,
                )
            username, password = platform.access_key.split(":", 1)
        return cls(
            provider_platform_id=platform.id,
            type=platform.type,
            base_url=platform.base_url,
            account_id=platform.account_id or "",
            api_key=platform.access_key,
            username=username,
            password=password,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.provider_platform_id,
            "type": self.type,
            "account_id": self.account_id,
            "base_url": self.base_url,
            "api_key": self.api_key,
            "username": self.username,
            "password": self.password,
        }


class ProviderGatewayClient:
    """Async client bound to one provider platform; every call is time-bounded."""

    def __init__(
        self,
        descriptor: ProviderServiceDescriptor,
        service_url: Optional[str] = None,
        api_prefix: Optional[str] = None,
        service_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        log: Optional[LogContext] = None,
    ):
        self.descriptor = descriptor
        self.api_prefix = (settings.PROVIDER_SERVICE_API_PREFIX if api_prefix is None else api_prefix).rstrip("/")
        self.log = (log or log_context("provider_gateway")).bind(provider_id=descriptor.provider_platform_id)
        self._client = httpx.AsyncClient(
            base_url=(service_url or settings.PROVIDER_SERVICE_URL).rstrip("/"),
            headers={"Authorization": settings.PROVIDER_SERVICE_KEY if service_key is None else service_key},
            timeout=settings.PROVIDER_REQUEST_TIMEOUT if timeout is None else timeout,
            transport=transport,
        )

    @classmethod
    async def for_platform(
        cls,
        platform: ProviderPlatform,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        log: Optional[LogContext] = None,
        **kwargs,
    ) -> "ProviderGatewayClient":
        """Build a client for the platform and make sure the gateway knows about it."""
        client = cls(ProviderServiceDescriptor.from_platform(platform), transport=transport, log=log, **kwargs)
        try:
            await client.ensure_registered()
        except Exception:
            await client.close()
            raise
        return client

    @property
    def provider_platform_id(self) -> str:
        return self.descriptor.provider_platform_id

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _params(self) -> Dict[str, str]:
        return {"id": self.provider_platform_id}

    async def ensure_registered(self) -> None:
        """Connectivity self-check; registers the provider when the gateway does not answer 200."""
        try:
            response = await self._client.get("/", params=self._params())
            if response.status_code == httpx.codes.OK:
                return
            self.log.info(f"Provider self-check returned {response.status_code}, registering provider")
        except httpx.HTTPError as e:
            self.log.info(f"Provider self-check failed ({e!r}), registering provider")
        await self.register()

    async def register(self) -> None:
        self.log.info("Creating provider service")
        try:
            response = await self._client.post(
                f"{self.api_prefix}/add-provider",
                json=self.descriptor.to_payload(),
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            self.log.error(f"Error sending request for provider service: {e!r}")
            raise ProviderGatewayError(
                f"Provider gateway unreachable: {e!r}", provider_platform_id=self.provider_platform_id
            ) from e
        if response.status_code not in (httpx.codes.OK, httpx.codes.CREATED):
            self.log.error(f"Bad response when creating provider service: {response.status_code}")
            raise ProviderGatewayError(
                "Provider gateway refused provider registration",
                provider_platform_id=self.provider_platform_id,
                status_code=response.status_code,
            )
        self.log.info("Provider service created")

    async def _get_records(
        self, path: str, model: Type[RecordT], what: str
    ) -> Tuple[List[RecordT], List[RecordFailure]]:
        """
        GET a list endpoint and validate each element on its own.
        Returns (valid records, rejected elements); transport, status and
        body-shape problems raise ProviderGatewayError.
        """
        url = f"{self.api_prefix}{path}"
        self.log.debug(f"Requesting {what}: {url}")
        try:
            response = await self._client.get(url, params=self._params())
        except httpx.HTTPError as e:
            self.log.error(f"Error requesting {what}: {e!r}")
            raise ProviderGatewayError(
                f"Error requesting {what}: {e!r}", provider_platform_id=self.provider_platform_id
            ) from e

        if not response.is_success:
            self.log.error(f"Gateway returned {response.status_code} for {what}")
            raise ProviderGatewayError(
                f"Gateway returned {response.status_code} for {what}",
                provider_platform_id=self.provider_platform_id,
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            self.log.error(f"Error decoding JSON for {what}: {e}")
            raise ProviderGatewayError(
                f"Error decoding JSON for {what}", provider_platform_id=self.provider_platform_id
            ) from e

        if body is None:
            return [], []
        if not isinstance(body, list):
            raise ProviderGatewayError(
                f"Expected a list of {what}, got {type(body).__name__}",
                provider_platform_id=self.provider_platform_id,
            )

        records: List[RecordT] = []
        rejected: List[RecordFailure] = []
        for item in body:
            try:
                records.append(model.model_validate(item))
            except ValidationError as e:
                external_id = ""
                if isinstance(item, dict):
                    external_id = str(item.get("external_id") or item.get("external_user_id") or "")
                reason = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
                self.log.warning(f"Malformed {what} record {external_id!r}: {reason}")
                rejected.append(RecordFailure(external_id=external_id, reason=f"Malformed record: {reason}"))
        return records, rejected

    async def get_users(self) -> Tuple[List[ImportUser], List[RecordFailure]]:
        return await self._get_records("/users", ImportUser, "users")

    async def get_programs(self) -> Tuple[List[ImportProgram], List[RecordFailure]]:
        return await self._get_records("/programs", ImportProgram, "programs")

    async def get_milestones_for_program_user(
        self, external_program_id: str, external_user_id: str
    ) -> Tuple[List[ImportMilestone], List[RecordFailure]]:
        path = f"/users/{external_user_id}/programs/{external_program_id}/milestones"
        return await self._get_records(path, ImportMilestone, "milestones")

    async def get_activity_for_program(
        self, external_program_id: str
    ) -> Tuple[List[ImportActivity], List[RecordFailure]]:
        return await self._get_records(f"/programs/{external_program_id}/activity", ImportActivity, "activity")
