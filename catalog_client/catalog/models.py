"""Catalog entities and list result models."""

from __future__ import annotations

import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from catalog_client.core.http_client import unwrap_data, unwrap_meta

ALL_CATEGORIES = "all"


class Category(BaseModel):
    """Product category."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    created_at: str = ""


class Product(BaseModel):
    """Catalog product; ``category_name`` is a server-side display copy."""

    model_config = ConfigDict(frozen=True)

    id: str
    category_id: str
    category_name: str = ""
    name: str
    description: str = ""
    price: float = Field(ge=0)
    created_at: str = ""
    updated_at: str = ""


T = TypeVar("T", bound=BaseModel)


def page_count(total: int, limit: int) -> int:
    """Return number of pages, never less than one."""
    if limit <= 0:
        return 1
    return max(1, math.ceil(max(0, total) / limit))


class ListResult(BaseModel, Generic[T]):
    """One page of items plus the authoritative total."""

    items: list[T] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    page: int = 1
    limit: int = 1

    @property
    def page_count(self) -> int:
        return page_count(self.total, self.limit)

    @classmethod
    def from_envelope(
        cls, payload: Any, item_model: type[T], *, page: int = 1, limit: int = 0
    ) -> "ListResult[T]":
        """Build a list result from a ``{data, meta}`` success envelope.

        Unpaginated endpoints omit ``meta``; the total then falls back to the
        number of returned items.
        """
        meta = unwrap_meta(payload)
        items = [item_model.model_validate(row) for row in (unwrap_data(payload) or [])]
        fallback_limit = limit or max(1, len(items))
        return cls(
            items=items,
            total=int(meta.get("total", len(items)) or 0),
            page=int(meta.get("page", page) or page),
            limit=int(meta.get("limit", fallback_limit) or fallback_limit),
        )
