"""Client session lifecycle: restore, login, register, logout, identity refresh."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from catalog_client.api.errors import (
    ClientErrorCode,
    ClientFailure,
    NetworkFailure,
    ValidationFailure,
)
from catalog_client.auth.models import (
    LoginRequest,
    RegisterRequest,
    Session,
    SessionStatus,
    TokenResponse,
    UserIdentity,
)
from catalog_client.core.http_client import ApiClientProtocol, unwrap_data

LOGGER = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "No token (please re-login)"


class TokenStoreProtocol(Protocol):
    """Protocol describing durable token storage used by the session."""

    def load(self) -> str | None:
        """Return persisted token, if any."""

    def save(self, token: str) -> None:
        """Persist token."""

    def clear(self) -> None:
        """Remove persisted token."""


def _parse(model: type[BaseModel], payload: Any, what: str) -> Any:
    try:
        return model.model_validate(unwrap_data(payload))
    except ValidationError as exc:
        raise NetworkFailure(f"Unexpected {what} payload from server") from exc


class SessionManager:
    """Sole owner and writer of the access token and user identity.

    Consumers read immutable ``Session`` snapshots. Every committed change to
    the credential bumps a generation counter; an async operation only commits
    its result when the generation it started with is still current, so a
    logout issued while a login or restore is in flight wins.
    """

    def __init__(self, client: ApiClientProtocol, store: TokenStoreProtocol) -> None:
        """Initialize session dependencies in idle state."""
        self._client = client
        self._store = store
        self._session = Session()
        self._generation = 0
        self._restore_started = False

    @property
    def session(self) -> Session:
        return self._session

    @property
    def token(self) -> str | None:
        return self._session.token

    @property
    def user(self) -> UserIdentity | None:
        return self._session.user

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def is_admin(self) -> bool:
        return self._session.is_admin

    @property
    def is_loading(self) -> bool:
        return self._session.is_loading

    def require_token(self) -> str:
        """Return current token or raise a local validation failure."""
        token = self._session.token
        if not token:
            raise ValidationFailure(
                MISSING_TOKEN_MESSAGE, error_code=ClientErrorCode.AUTH_MISSING_TOKEN
            )
        return token

    async def restore(self) -> Session:
        """Restore a persisted session once at startup.

        Any failure purges the stored token and leaves the session anonymous;
        nothing is raised to the caller.
        """
        if self._restore_started:
            return self._session
        self._restore_started = True
        generation = self._generation

        token = self._store.load()
        if not token:
            self._session = Session(status=SessionStatus.ANONYMOUS)
            return self._session

        self._session = Session(token=token, status=SessionStatus.RESTORING)
        try:
            user = await self._fetch_identity(token)
        except ClientFailure as exc:
            if self._generation == generation:
                LOGGER.info(
                    "session_restore_failed",
                    extra={"status": getattr(exc, "status", "")},
                )
                self._invalidate()
            return self._session

        if self._generation != generation:
            LOGGER.info("session_restore_superseded")
            return self._session
        self._session = Session(
            token=token, user=user, status=SessionStatus.AUTHENTICATED
        )
        return self._session

    async def login(self, email: str, password: str) -> Session:
        """Exchange credentials for a token and populate the user identity.

        The token is persisted only after the identity fetch succeeds. Raises
        ``ValidationFailure`` when a logout or another login committed while
        this one was in flight; the credentials are then not applied.
        """
        return await self._login(email, password, self._generation)

    async def _login(self, email: str, password: str, generation: int) -> Session:
        request = LoginRequest(email=email.strip(), password=password)
        payload = await self._client.request(
            "/auth/login", method="POST", body=request.model_dump()
        )
        token = _parse(TokenResponse, payload, "login").access_token
        user = await self._fetch_identity(token)

        if self._generation != generation:
            LOGGER.warning("session_login_superseded")
            raise ValidationFailure(
                "Session changed during login", error_code=ClientErrorCode.SESSION_SUPERSEDED
            )

        self._store.save(token)
        self._generation += 1
        self._session = Session(
            token=token, user=user, status=SessionStatus.AUTHENTICATED
        )
        LOGGER.info("session_authenticated", extra={"status": user.role})
        return self._session

    async def register(self, name: str, email: str, password: str) -> Session:
        """Create an account, then log in with the same credentials."""
        generation = self._generation
        request = RegisterRequest(name=name.strip(), email=email.strip(), password=password)
        await self._client.request(
            "/auth/register", method="POST", body=request.model_dump()
        )
        return await self._login(email, password, generation)

    def logout(self) -> Session:
        """Drop the credential; safe to call when already anonymous."""
        self._invalidate()
        LOGGER.info("session_logged_out")
        return self._session

    async def refresh_identity(self) -> Session:
        """Re-fetch the user identity for the current token."""
        token = self._session.token
        if not token:
            self._session = Session(status=SessionStatus.ANONYMOUS)
            return self._session

        generation = self._generation
        try:
            user = await self._fetch_identity(token)
        except ClientFailure:
            if self._generation == generation:
                self._invalidate()
            raise

        if self._generation == generation:
            self._session = Session(
                token=token, user=user, status=SessionStatus.AUTHENTICATED
            )
        return self._session

    async def _fetch_identity(self, token: str) -> UserIdentity:
        payload = await self._client.request("/me", token=token)
        return _parse(UserIdentity, payload, "identity")

    def _invalidate(self) -> None:
        self._store.clear()
        self._generation += 1
        self._session = Session(status=SessionStatus.ANONYMOUS)
