"""Record factories and provider gateway helpers shared by the tests."""

from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.models import (
    Activity,
    Milestone,
    Outcome,
    Program,
    ProviderPlatform,
    ProviderUserMapping,
    User,
)
from learnsync.services.provider_gateway import ProviderGatewayClient, ProviderServiceDescriptor


# =============================================================================
# Record Factories
# =============================================================================


async def make_provider(db: AsyncSession, **overrides: Any) -> ProviderPlatform:
    values = dict(
        name="County Canvas",
        type="canvas_cloud",
        base_url="https://canvas.example.edu",
        account_id="1",
        access_key="canvas-token",
        state="enabled",
    )
    values.update(overrides)
    provider = ProviderPlatform(**values)
    db.add(provider)
    await db.commit()
    return provider


async def make_user(db: AsyncSession, username: str = "student1", **overrides: Any) -> User:
    values = dict(username=username, email=f"{username}@example.edu", name_last="Doe")
    values.update(overrides)
    user = User(**values)
    db.add(user)
    await db.commit()
    return user


async def make_program(db: AsyncSession, provider: ProviderPlatform, external_id: str = "101", **overrides: Any) -> Program:
    values = dict(
        provider_platform_id=provider.id,
        name=f"Program {external_id}",
        external_id=external_id,
        total_progress_milestones=0,
    )
    values.update(overrides)
    program = Program(**values)
    db.add(program)
    await db.commit()
    return program


async def make_mapping(db: AsyncSession, user: User, provider: ProviderPlatform, external_user_id: str) -> ProviderUserMapping:
    mapping = ProviderUserMapping(
        user_id=user.id,
        provider_platform_id=provider.id,
        external_user_id=external_user_id,
    )
    db.add(mapping)
    await db.commit()
    return mapping


async def make_activity(
    db: AsyncSession,
    user: User,
    program: Program,
    time_delta: int,
    created_at: datetime,
    total_time: Optional[int] = None,
) -> Activity:
    activity = Activity(
        user_id=user.id,
        program_id=program.id,
        type="course_interaction",
        total_time=time_delta if total_time is None else total_time,
        time_delta=time_delta,
        created_at=created_at,
    )
    db.add(activity)
    await db.commit()
    return activity


async def make_milestone(
    db: AsyncSession,
    user: User,
    program: Program,
    external_id: str,
    type: str = "assignment_submission",
    is_completed: bool = True,
    created_at: Optional[datetime] = None,
) -> Milestone:
    milestone = Milestone(
        user_id=user.id,
        program_id=program.id,
        external_id=external_id,
        type=type,
        is_completed=is_completed,
        created_at=created_at or datetime.utcnow(),
    )
    db.add(milestone)
    await db.commit()
    return milestone


async def make_outcome(db: AsyncSession, user: User, program: Program, type: str = "certificate") -> Outcome:
    outcome = Outcome(user_id=user.id, program_id=program.id, type=type)
    db.add(outcome)
    await db.commit()
    return outcome


# =============================================================================
# Gateway Helpers
# =============================================================================





def gateway_handler(routes: Dict[Tuple[str, str], Any], calls: Optional[list] = None) -> Callable[[httpx.Request], httpx.Response]:
    """
    MockTransport handler keyed by (method, path). A value is either a
    JSON-able body (served with 200), an httpx.Response, or a callable.
    Unknown paths answer 404.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        key = (request.method, request.url.path)
        if key not in routes:
            return httpx.Response(404, json={"error": "not found"})
        route = routes[key]
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    return handler


def make_gateway(provider: ProviderPlatform, routes: Dict[Tuple[str, str], Any], calls: Optional[list] = None) -> ProviderGatewayClient:
    return ProviderGatewayClient(
        ProviderServiceDescriptor.from_platform(provider),
        service_url="http://gateway.test",
        api_prefix="/api",
        service_key="service-key",
        transport=httpx.MockTransport(gateway_handler(routes, calls)),
    )
