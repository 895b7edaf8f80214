"""Catalog query value and its canonical request parameters."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Literal
from urllib.parse import urlencode

from catalog_client.api.errors import ValidationFailure
from catalog_client.catalog.models import ALL_CATEGORIES

SortField = Literal["created_at", "price"]
SortOrder = Literal["asc", "desc"]

SORT_FIELDS = ("created_at", "price")
SORT_ORDERS = ("asc", "desc")
FILTER_FIELDS = frozenset(
    {"text_filter", "category_filter", "min_price", "max_price", "sort", "order"}
)


@dataclass(frozen=True)
class CatalogQuery:
    """Filter, sort and page state of the catalog list."""

    text_filter: str = ""
    category_filter: str = ALL_CATEGORIES
    min_price: str | None = None
    max_price: str | None = None
    sort: SortField = "created_at"
    order: SortOrder = "desc"
    page: int = 1
    limit: int = 6

    def __post_init__(self) -> None:
        if self.sort not in SORT_FIELDS:
            raise ValueError(f"Unsupported sort field: {self.sort}")
        if self.order not in SORT_ORDERS:
            raise ValueError(f"Unsupported sort order: {self.order}")
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.limit < 1:
            raise ValueError("limit must be >= 1")

    def with_filters(self, **changes: Any) -> "CatalogQuery":
        """Return a copy with filter/sort changes applied and page reset to 1."""
        unknown = set(changes) - FILTER_FIELDS
        if unknown:
            raise ValueError(f"Unknown filter fields: {sorted(unknown)}")
        return replace(self, **changes, page=1)

    def with_page(self, page: int) -> "CatalogQuery":
        return replace(self, page=page)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def to_request_params(query: CatalogQuery) -> list[tuple[str, str]]:
    """Serialize a query into ordered ``(key, value)`` request parameters.

    Empty text and price filters and the ``all`` category are omitted; page,
    limit, sort and order are always present. Equal queries always produce
    equal parameter lists.
    """
    params = [("page", str(query.page)), ("limit", str(query.limit))]

    text = _clean(query.text_filter)
    if text:
        params.append(("q", text))
    category = _clean(query.category_filter)
    if category and category != ALL_CATEGORIES:
        params.append(("category_id", category))
    min_price = _clean(query.min_price)
    if min_price:
        params.append(("min_price", min_price))
    max_price = _clean(query.max_price)
    if max_price:
        params.append(("max_price", max_price))

    params.append(("sort", query.sort))
    params.append(("order", query.order))
    return params


def query_key(query: CatalogQuery) -> str:
    """Return the canonical query string identifying a request."""
    return urlencode(to_request_params(query))


def parse_number(value: str) -> float | None:
    """Parse a finite decimal number; digit separators and nan/inf are rejected."""
    if "_" in value:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def validate_price_filters(query: CatalogQuery) -> None:
    """Raise ``ValidationFailure`` when a price bound is not numeric."""
    min_price = _clean(query.min_price)
    if min_price and parse_number(min_price) is None:
        raise ValidationFailure("Min price must be a number")
    max_price = _clean(query.max_price)
    if max_price and parse_number(max_price) is None:
        raise ValidationFailure("Max price must be a number")
