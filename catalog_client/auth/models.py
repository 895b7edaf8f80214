"""Pydantic models and session snapshot for the authentication domain."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UserIdentity(BaseModel):
    """Server-issued identity snapshot returned by ``GET /me``."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    role: Literal["admin", "user"]
    created_at: str = ""


class LoginRequest(BaseModel):
    """Login request payload."""

    email: str
    password: str


class RegisterRequest(BaseModel):
    """Registration request payload."""

    name: str
    email: str
    password: str


class TokenResponse(BaseModel):
    """Login response data."""

    access_token: str = Field(min_length=1)


class SessionStatus(StrEnum):
    """Lifecycle states of the client session."""

    IDLE = "idle"
    RESTORING = "restoring"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class Session:
    """Immutable view of the current session handed to consumers."""

    token: str | None = None
    user: UserIdentity | None = None
    status: SessionStatus = SessionStatus.IDLE

    def __post_init__(self) -> None:
        if self.user is not None and not self.token:
            raise ValueError("session user requires a token")

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == "admin"

    @property
    def is_loading(self) -> bool:
        return self.status in {SessionStatus.IDLE, SessionStatus.RESTORING}
