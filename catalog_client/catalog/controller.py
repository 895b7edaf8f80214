"""Catalog list and product detail controllers with stale-response discard."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from catalog_client.api.errors import ClientFailure, NetworkFailure
from catalog_client.catalog.models import (
    ALL_CATEGORIES,
    Category,
    ListResult,
    Product,
    page_count,
)
from catalog_client.catalog.query import (
    CatalogQuery,
    query_key,
    to_request_params,
    validate_price_filters,
)
from catalog_client.core.http_client import ApiClientProtocol, unwrap_data

LOGGER = logging.getLogger(__name__)

ALL_CATEGORIES_OPTION = Category(id=ALL_CATEGORIES, name="All")


class CatalogListController:
    """Keeps the displayed product list in sync with the latest query.

    Every request is tagged with a sequence number. A response is applied
    only when its sequence is still the newest issued; older responses that
    arrive late are dropped. A failed fetch records the error and keeps the
    previously displayed items.
    """

    def __init__(self, client: ApiClientProtocol, *, limit: int = 6) -> None:
        """Initialize controller with an empty list and default query."""
        self._client = client
        self._query = CatalogQuery(limit=limit)
        self._seq = 0
        self._pending = 0
        self.items: list[Product] = []
        self.total = 0
        self.has_result = False
        self.error: str | None = None
        self.categories: list[Category] = []

    @property
    def query(self) -> CatalogQuery:
        return self._query

    @property
    def loading(self) -> bool:
        return self._pending > 0

    @property
    def page_count(self) -> int:
        return page_count(self.total, self._query.limit)

    @property
    def category_options(self) -> list[Category]:
        return [ALL_CATEGORIES_OPTION, *self.categories]

    async def set_query(self, query: CatalogQuery) -> None:
        self._query = query
        await self.refresh()

    async def update_filters(self, **changes: Any) -> None:
        """Apply filter/sort changes (page resets to 1) and reload."""
        await self.set_query(self._query.with_filters(**changes))

    async def go_to_page(self, page: int) -> None:
        await self.set_query(self._query.with_page(page))

    async def apply_filters(self) -> bool:
        """Validate price bounds locally; reload only when they are numeric."""
        try:
            validate_price_filters(self._query)
        except ClientFailure as exc:
            self.error = exc.message
            return False
        self.error = None
        await self.refresh()
        return True

    async def refresh(self) -> None:
        """Fetch the list for the current query, applying only the latest response."""
        self._seq += 1
        seq = self._seq
        query = self._query
        self._pending += 1
        self.error = None
        try:
            payload = await self._client.request(
                "/products", params=to_request_params(query)
            )
            result = ListResult[Product].from_envelope(
                payload, Product, page=query.page, limit=query.limit
            )
        except ValidationError as exc:
            self._apply_failure(seq, NetworkFailure("Unexpected product list payload"))
            LOGGER.debug("catalog_payload_invalid", exc_info=exc)
            return
        except ClientFailure as exc:
            self._apply_failure(seq, exc)
            return
        finally:
            self._pending -= 1

        if seq != self._seq:
            LOGGER.debug(
                "catalog_response_discarded",
                extra={"request_seq": seq, "path": query_key(query)},
            )
            return
        self.items = result.items
        self.total = result.total
        self.has_result = True

    def _apply_failure(self, seq: int, exc: ClientFailure) -> None:
        if seq != self._seq:
            LOGGER.debug("catalog_failure_discarded", extra={"request_seq": seq})
            return
        LOGGER.warning("catalog_fetch_failed", extra={"request_seq": seq})
        self.error = exc.message or "Failed to load products"

    async def load_categories(self) -> list[Category]:
        """Load category filter options; failures leave the options empty."""
        try:
            payload = await self._client.request("/categories")
            self.categories = [
                Category.model_validate(row) for row in unwrap_data(payload) or []
            ]
        except (ClientFailure, ValidationError):
            LOGGER.warning("catalog_categories_failed", exc_info=True)
            self.categories = []
        return self.categories


class ProductDetailController:
    """Loads a single product; only the most recently requested id is applied."""

    def __init__(self, client: ApiClientProtocol) -> None:
        self._client = client
        self._requested_id: str | None = None
        self.item: Product | None = None
        self.error: str | None = None

    async def load(self, product_id: str) -> Product | None:
        self._requested_id = product_id
        self.item = None
        self.error = None
        try:
            payload = await self._client.request(f"/products/{product_id}")
            product = Product.model_validate(unwrap_data(payload))
        except ValidationError:
            if self._requested_id == product_id:
                self.error = "Unexpected product payload"
            return None
        except ClientFailure as exc:
            if self._requested_id == product_id:
                self.error = exc.message or "Failed to load product"
            return None

        if self._requested_id != product_id:
            return None
        self.item = product
        return product
