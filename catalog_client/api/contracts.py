"""Pydantic request/response models of the local client agent."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from catalog_client.auth.models import UserIdentity
from catalog_client.catalog.models import Category, Product


class ApiErrorResponse(BaseModel):
    """Stable error envelope for agent responses."""

    error_code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")


class HealthResponse(BaseModel):
    status: Literal["ok"]
    backend: dict[str, Any] = Field(default_factory=dict)


class SessionResponse(BaseModel):
    """Read-only session view; the token itself is never exposed."""

    status: str
    authenticated: bool
    is_admin: bool
    user: UserIdentity | None = None


class LoginBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str
    password: str


class RegisterBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    email: str
    password: str


class CatalogQueryBody(BaseModel):
    """Partial filter/sort update; omitted fields keep their value."""

    model_config = ConfigDict(extra="forbid")

    text_filter: str | None = None
    category_filter: str | None = None
    min_price: str | None = None
    max_price: str | None = None
    sort: Literal["created_at", "price"] | None = None
    order: Literal["asc", "desc"] | None = None


class PageBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    page: int = Field(ge=1)


class CatalogResponse(BaseModel):
    """Displayed catalog state."""

    query: dict[str, Any]
    items: list[Product]
    total: int
    page_count: int
    loading: bool
    error: str | None = None


class CategoryOptionsResponse(BaseModel):
    items: list[Category]


class DraftOpenBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: Literal["create", "edit"]
    target: str | None = None


class DraftFieldsBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fields: dict[str, str]


class DraftResponse(BaseModel):
    mode: str
    target: str | None = None
    fields: dict[str, str]


class AdminStateResponse(BaseModel):
    """Admin list, open draft and last action outcome for one entity type."""

    entity: str
    items: list[dict[str, Any]]
    total: int
    page: int = 1
    page_count: int = 1
    draft: DraftResponse | None = None
    message: str | None = None
    error: str | None = None
