"""Test the application factory: lifespan wiring, health and the error envelope."""

from __future__ import annotations

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from openflow_backend.app import create_app
from openflow_backend.config import Settings
from openflow_backend.core.enums import AccessLevel
from openflow_backend.core.exceptions import NotFoundError
from openflow_backend.mail.gateway import LoggingMailGateway
from openflow_backend.repositories.deps import get_user_repo
from openflow_backend.services import CoreServices
from openflow_backend.services.deps import (
    get_access_grant_manager,
    get_access_resolver,
    get_change_audit_log,
    get_core,
    get_notification_dispatcher,
    get_subscription_registry,
)


@pytest.fixture
def app(tmp_path):
    settings = Settings(env="dev", database_url=f"sqlite+aiosqlite:///{tmp_path / 'app.db'}")
    application = create_app(settings)

    @application.get("/missing")
    async def missing():
        raise NotFoundError("Board not found", details={"board_id": "nope"})

    @application.get("/boards/{board_id}/check")
    async def check(board_id: str, resolver=Depends(get_access_resolver)):
        await resolver.require_access(board_id, None, AccessLevel.READ)
        return {"ok": True}

    @application.get("/users/{username}")
    async def user(username: str, users=Depends(get_user_repo)):
        found = await users.get_by_username(username)
        if found is None:
            raise NotFoundError("User not found")
        return {"username": found.username}

    @application.get("/limited")
    async def limited(limit: int):
        return {"limit": limit}

    @application.get("/wiring")
    async def wiring(
        core: CoreServices = Depends(get_core),
        grants=Depends(get_access_grant_manager),
        audit=Depends(get_change_audit_log),
        subscriptions=Depends(get_subscription_registry),
        notifications=Depends(get_notification_dispatcher),
    ):
        shared = (
            grants is core.grants
            and audit is core.audit
            and subscriptions is core.subscriptions
            and notifications is core.notifications
        )
        return {"services": sorted(type(s).__name__ for s in vars(core).values()), "shared": shared}

    return application


def test_health(app):
    with TestClient(app) as client:
        resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "db_ok": True}
    assert resp.headers["X-Request-ID"]


def test_lifespan_state(app):
    with TestClient(app):
        assert isinstance(app.state.mail_gateway, LoggingMailGateway)
        assert app.state.session_factory is not None


def test_error_envelope(app):
    with TestClient(app) as client:
        resp = client.get("/missing", headers={"X-Request-ID": "req-123"})
    assert resp.status_code == 404
    body = resp.json()
    assert body["detail"] == "Board not found"
    assert body["error"] == {"code": "E4040", "message": "Board not found", "request_id": "req-123"}
    assert body["board_id"] == "nope"


def test_service_dependency_maps_not_found(app):
    with TestClient(app) as client:
        resp = client.get("/boards/00000000-0000-0000-0000-000000000000/check")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "E4040"


def test_core_wiring(app):
    with TestClient(app) as client:
        resp = client.get("/wiring")
    assert resp.status_code == 200
    assert resp.json()["services"] == [
        "AccessGrantManager",
        "AccessResolver",
        "ChangeAuditLog",
        "NotificationDispatcher",
        "SubscriptionRegistry",
    ]
    assert resp.json()["shared"] is True


def test_main_runs_uvicorn_with_settings(monkeypatch):
    from openflow_backend import main

    calls = []
    monkeypatch.setenv("OPENFLOW_PORT", "9123")
    monkeypatch.delenv("OPENFLOW_HOST", raising=False)
    monkeypatch.setattr(main.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))

    main.main()

    assert main.app.title == "OpenFlow Backend"
    assert calls == [("openflow_backend.main:app", {"host": "127.0.0.1", "port": 9123, "reload": False})]


def test_request_validation_envelope(app):
    with TestClient(app) as client:
        resp = client.get("/limited", params={"limit": "many"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"]["code"] == "E4220"
    assert body["errors"][0]["loc"] == ["query", "limit"]


def test_unknown_route_uses_envelope(app):
    with TestClient(app) as client:
        resp = client.get("/nowhere")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "E4040"


def test_repository_dependency(app):
    with TestClient(app) as client:
        resp = client.get("/users/ghost")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "User not found"
