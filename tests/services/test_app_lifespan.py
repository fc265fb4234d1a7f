"""Application Lifespan — create_app() wiring through the real startup/shutdown cycle.

Invariants:
    - Components registered before startup are served by /components/registered
    - The registry is frozen once the app has started
    - Caller-supplied hooks become the runtime's hooks
    - Readiness reports database and cache checks
"""

import pytest
from httpx import ASGITransport, AsyncClient

from invitations.core.component_registry import ComponentRegistry
from invitations.core.invitation_hooks import InvitationHooks
from invitations.main import create_app


@pytest.fixture
def registry():
    registry = ComponentRegistry()
    registry.register_callback("groups", lambda *args: None)
    registry.activate("friends")
    return registry


@pytest.fixture
async def started_app(registry):
    app = create_app(registry=registry, hooks=InvitationHooks())
    async with app.router.lifespan_context(app):
        yield app


@pytest.fixture
async def live_client(started_app):
    async with AsyncClient(
        transport=ASGITransport(app=started_app), base_url="http://test",
    ) as c:
        yield c


async def test_registered_components_served_after_startup(live_client):
    res = await live_client.get("/api/v1/invitations/components/registered")
    assert res.status_code == 200
    assert res.json() == {"components": ["groups"]}


async def test_registry_frozen_after_startup(started_app, registry):
    assert started_app.state.runtime.registry is registry
    with pytest.raises(RuntimeError):
        registry.activate("late")


async def test_caller_hooks_used_by_runtime(started_app):
    assert started_app.state.runtime.hooks is started_app.state.invitation_hooks


async def test_readiness_reports_database_and_cache(live_client):
    res = await live_client.get("/api/v1/health/ready")
    assert res.status_code == 200
    body = res.json()
    assert body["checks"] == {"database": "healthy", "cache": "healthy"}
    assert body["components"] == ["groups"]
