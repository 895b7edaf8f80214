from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from catalog_client.api.errors import (
    ApiFailure,
    ClientErrorCode,
    NetworkFailure,
    ValidationFailure,
)
from catalog_client.auth.models import SessionStatus
from catalog_client.auth.session import SessionManager
from catalog_client.auth.token_store import TokenStore
from tests.fakes import GatedApiClient, ScriptedApiClient, settle

ADMIN = {
    "id": "u1",
    "name": "Admin",
    "email": "admin@example.com",
    "role": "admin",
    "created_at": "2025-01-01T00:00:00Z",
}


def _store(tmp_path: Path, token: str | None = None) -> TokenStore:
    store = TokenStore(tmp_path / "client_state.json")
    if token:
        store.save(token)
    return store


def test_restore_with_valid_token_authenticates(tmp_path: Path) -> None:
    async def scenario() -> None:
        client = ScriptedApiClient().on("GET", "/me", {"data": ADMIN})
        session = SessionManager(client, _store(tmp_path, "tok-1"))

        await session.restore()

        assert session.status is SessionStatus.AUTHENTICATED
        assert session.token == "tok-1"
        assert session.user is not None and session.user.email == "admin@example.com"
        assert session.is_admin is True
        assert client.calls[0].token == "tok-1"

    asyncio.run(scenario())


def test_restore_with_invalid_token_purges_silently(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = _store(tmp_path, "stale")
        client = ScriptedApiClient().on("GET", "/me", ApiFailure(401, "invalid token"))
        session = SessionManager(client, store)

        result = await session.restore()

        assert result.status is SessionStatus.ANONYMOUS
        assert session.token is None
        assert session.user is None
        assert store.load() is None

    asyncio.run(scenario())


def test_restore_without_token_makes_no_call(tmp_path: Path) -> None:
    async def scenario() -> None:
        client = ScriptedApiClient()
        session = SessionManager(client, _store(tmp_path))

        assert session.is_loading is True
        await session.restore()

        assert session.status is SessionStatus.ANONYMOUS
        assert session.is_loading is False
        assert client.calls == []

    asyncio.run(scenario())


def test_login_persists_token_and_fetches_identity(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = _store(tmp_path)
        client = (
            ScriptedApiClient()
            .on("POST", "/auth/login", {"data": {"access_token": "tok-new"}})
            .on("GET", "/me", {"data": ADMIN})
        )
        session = SessionManager(client, store)

        await session.login(" admin@example.com ", "secret")

        assert store.load() == "tok-new"
        assert session.status is SessionStatus.AUTHENTICATED
        assert session.user is not None and session.user.id == "u1"
        assert client.calls[0].body == {"email": "admin@example.com", "password": "secret"}
        assert client.calls_to("GET", "/me")[0].token == "tok-new"

    asyncio.run(scenario())


def test_login_invalid_credentials_leaves_session_untouched(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = _store(tmp_path)
        client = ScriptedApiClient().on(
            "POST", "/auth/login", ApiFailure(401, "invalid credentials")
        )
        session = SessionManager(client, store)
        await session.restore()

        with pytest.raises(ApiFailure) as exc:
            await session.login("admin@example.com", "bad")

        assert exc.value.message == "invalid credentials"
        assert store.load() is None
        assert session.status is SessionStatus.ANONYMOUS
        assert client.calls_to("GET", "/me") == []

    asyncio.run(scenario())


def test_login_identity_failure_does_not_persist_token(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = _store(tmp_path)
        client = (
            ScriptedApiClient()
            .on("POST", "/auth/login", {"data": {"access_token": "tok-new"}})
            .on("GET", "/me", NetworkFailure("Connection reset"))
        )
        session = SessionManager(client, store)

        with pytest.raises(NetworkFailure):
            await session.login("admin@example.com", "secret")

        assert store.load() is None
        assert session.user is None

    asyncio.run(scenario())


def test_register_then_implicit_login(tmp_path: Path) -> None:
    async def scenario() -> None:
        user = dict(ADMIN, role="user", email="new@example.com")
        client = (
            ScriptedApiClient()
            .on("POST", "/auth/register", {"data": user})
            .on("POST", "/auth/login", {"data": {"access_token": "tok-reg"}})
            .on("GET", "/me", {"data": user})
        )
        session = SessionManager(client, _store(tmp_path))

        await session.register("New User", "new@example.com", "password123")

        assert [c.path for c in client.calls] == ["/auth/register", "/auth/login", "/me"]
        assert session.status is SessionStatus.AUTHENTICATED
        assert session.is_admin is False

    asyncio.run(scenario())


def test_register_success_but_login_failure_surfaces_login_error(tmp_path: Path) -> None:
    async def scenario() -> None:
        client = (
            ScriptedApiClient()
            .on("POST", "/auth/register", {"data": {}})
            .on("POST", "/auth/login", ApiFailure(500, "failed to sign token"))
        )
        session = SessionManager(client, _store(tmp_path))

        with pytest.raises(ApiFailure) as exc:
            await session.register("New", "new@example.com", "pw")

        assert exc.value.message == "failed to sign token"
        assert session.token is None

    asyncio.run(scenario())


def test_logout_is_idempotent(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = _store(tmp_path, "tok-1")
        client = ScriptedApiClient().on("GET", "/me", {"data": ADMIN})
        session = SessionManager(client, store)
        await session.restore()

        session.logout()
        session.logout()

        assert session.token is None
        assert session.user is None
        assert session.status is SessionStatus.ANONYMOUS
        assert store.load() is None

    asyncio.run(scenario())


def test_logout_during_login_wins(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = _store(tmp_path)
        client = GatedApiClient()
        session = SessionManager(client, store)

        login = asyncio.create_task(session.login("admin@example.com", "secret"))
        await settle()
        client.resolve(0, {"data": {"access_token": "tok-late"}})
        await settle()
        session.logout()
        client.resolve(1, {"data": ADMIN})
        with pytest.raises(ValidationFailure) as exc:
            await login

        assert exc.value.error_code == ClientErrorCode.SESSION_SUPERSEDED
        assert store.load() is None
        assert session.token is None
        assert session.status is SessionStatus.ANONYMOUS

    asyncio.run(scenario())


def test_logout_during_register_cancels_implicit_login(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = _store(tmp_path)
        client = GatedApiClient()
        session = SessionManager(client, store)

        register = asyncio.create_task(
            session.register("Admin", "admin@example.com", "secret")
        )
        await settle()
        assert client.calls[0].path == "/auth/register"
        session.logout()
        client.resolve(0, {"data": ADMIN})
        await settle()
        client.resolve(1, {"data": {"access_token": "tok-new"}})
        await settle()
        client.resolve(2, {"data": ADMIN})
        with pytest.raises(ValidationFailure):
            await register

        assert store.load() is None
        assert session.token is None
        assert session.status is SessionStatus.ANONYMOUS

    asyncio.run(scenario())


def test_logout_during_restore_is_not_overwritten(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = _store(tmp_path, "tok-1")
        client = GatedApiClient()
        session = SessionManager(client, store)

        restore = asyncio.create_task(session.restore())
        await settle()
        assert session.status is SessionStatus.RESTORING
        session.logout()
        client.resolve(0, {"data": ADMIN})
        await restore

        assert session.status is SessionStatus.ANONYMOUS
        assert session.user is None

    asyncio.run(scenario())


def test_refresh_identity_without_token_clears_user(tmp_path: Path) -> None:
    async def scenario() -> None:
        client = ScriptedApiClient()
        session = SessionManager(client, _store(tmp_path))

        await session.refresh_identity()

        assert session.user is None
        assert session.status is SessionStatus.ANONYMOUS
        assert client.calls == []

    asyncio.run(scenario())


def test_refresh_identity_failure_invalidates_session(tmp_path: Path) -> None:
    async def scenario() -> None:
        store = _store(tmp_path, "tok-1")
        client = ScriptedApiClient().on(
            "GET", "/me", {"data": ADMIN}, ApiFailure(401, "token expired")
        )
        session = SessionManager(client, store)
        await session.restore()

        with pytest.raises(ApiFailure):
            await session.refresh_identity()

        assert session.status is SessionStatus.ANONYMOUS
        assert store.load() is None

    asyncio.run(scenario())


def test_refresh_identity_picks_up_role_change(tmp_path: Path) -> None:
    async def scenario() -> None:
        client = ScriptedApiClient().on(
            "GET", "/me", {"data": dict(ADMIN, role="user")}, {"data": ADMIN}
        )
        session = SessionManager(client, _store(tmp_path, "tok-1"))
        await session.restore()
        assert session.is_admin is False

        await session.refresh_identity()

        assert session.is_admin is True

    asyncio.run(scenario())


def test_require_token_raises_validation_failure(tmp_path: Path) -> None:
    session = SessionManager(ScriptedApiClient(), _store(tmp_path))

    with pytest.raises(ValidationFailure) as exc:
        session.require_token()

    assert exc.value.message == "No token (please re-login)"
