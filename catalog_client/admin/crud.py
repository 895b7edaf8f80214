"""Admin create/edit/delete workflow for categories and products."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, Protocol, TypeVar

from pydantic import ValidationError

from catalog_client.admin.forms import (
    FormDraft,
    FormMode,
    category_body,
    product_body,
)
from catalog_client.api.errors import (
    ClientErrorCode,
    ClientFailure,
    NetworkFailure,
    ValidationFailure,
)
from catalog_client.catalog.models import (
    ALL_CATEGORIES,
    Category,
    ListResult,
    Product,
    page_count,
)
from catalog_client.core.http_client import ApiClientProtocol, unwrap_data

LOGGER = logging.getLogger(__name__)

E = TypeVar("E", Category, Product)
ConfirmFn = Callable[[str], "bool | Awaitable[bool]"]


class TokenSource(Protocol):
    """Read access to the session credential."""

    def require_token(self) -> str:
        """Return the current token or raise ``ValidationFailure``."""


def _deny(prompt: str) -> bool:
    _ = prompt
    return False


def _by_name(item: Category | Product) -> str:
    return item.name.casefold()


class AdminCrudController(Generic[E]):
    """List cache, form draft and mutations for one entity type.

    After every successful mutation the list is reloaded from the server
    instead of patched locally, so server-assigned fields stay authoritative.
    """

    label = ""
    resource = ""
    model: type[E]

    def __init__(
        self,
        client: ApiClientProtocol,
        session: TokenSource,
        *,
        confirm: ConfirmFn | None = None,
    ) -> None:
        """Initialize controller state; ``confirm`` defaults to declining deletes."""
        self._client = client
        self._session = session
        self._confirm = confirm or _deny
        self._seq = 0
        self._pending = 0
        self.items: list[E] = []
        self.total = 0
        self.draft: FormDraft | None = None
        self.failure: ClientFailure | None = None
        self.message: str | None = None

    @property
    def error(self) -> str | None:
        return self.failure.message if self.failure else None

    @property
    def loading(self) -> bool:
        return self._pending > 0

    def find(self, entity_id: str) -> E | None:
        for item in self.items:
            if item.id == entity_id:
                return item
        return None

    async def list(self) -> list[E]:
        """Reload the list from the server; failures keep the current items."""
        self._seq += 1
        seq = self._seq
        self._pending += 1
        self.failure = None
        try:
            payload = await self._client.request(
                self.resource, params=self._list_params()
            )
            result = ListResult[self.model].from_envelope(
                payload, self.model, **self._page_hint()
            )
        except ValidationError:
            if seq == self._seq:
                self.failure = NetworkFailure(f"Unexpected {self.label.lower()} list payload")
            return self.items
        except ClientFailure as exc:
            if seq == self._seq:
                LOGGER.warning("admin_list_failed", extra={"entity": self.label})
                self.failure = exc
            return self.items
        finally:
            self._pending -= 1

        if seq == self._seq:
            self.items = self._arrange(result.items)
            self.total = result.total
        return self.items

    def open_create(self) -> FormDraft:
        self.failure = None
        self.message = None
        self.draft = FormDraft(mode=FormMode.CREATE, fields=self._blank_fields())
        return self.draft

    def open_edit(self, entity: E) -> FormDraft:
        self.failure = None
        self.message = None
        self.draft = FormDraft(
            mode=FormMode.EDIT, fields=self._fields_from(entity), target=entity.id
        )
        return self.draft

    def update_field(self, name: str, value: Any) -> FormDraft:
        if self.draft is None:
            raise ValidationFailure(
                "No form is open", error_code=ClientErrorCode.DRAFT_NOT_OPEN
            )
        self.draft.set_field(name, value)
        return self.draft

    def close(self) -> None:
        self.draft = None

    async def submit(self, draft: FormDraft | None = None) -> bool:
        """Validate and send the draft; on success reload the list and close it.

        On failure the draft stays open with its values and ``error`` carries
        the message to show next to the form.
        """
        draft = draft or self.draft
        self.failure = None
        self.message = None
        if draft is None:
            self.failure = ValidationFailure(
                "No form is open", error_code=ClientErrorCode.DRAFT_NOT_OPEN
            )
            return False
        self.draft = draft

        try:
            token = self._session.require_token()
            body = self._build_body(draft)
        except ValidationFailure as exc:
            self.failure = exc
            return False

        try:
            if draft.mode is FormMode.CREATE:
                await self._client.request(
                    self.resource, method="POST", body=body, token=token
                )
                message = f"{self.label} created"
            else:
                await self._client.request(
                    f"{self.resource}/{draft.target}", method="PUT", body=body, token=token
                )
                message = f"{self.label} updated"
        except ClientFailure as exc:
            LOGGER.warning("admin_submit_failed", extra={"entity": self.label})
            self.failure = exc
            return False

        await self.list()
        self.draft = None
        self.message = message
        return True

    async def remove(self, entity: E, confirm: ConfirmFn | None = None) -> bool:
        """Delete after explicit confirmation, then reload the list."""
        self.failure = None
        self.message = None
        try:
            token = self._session.require_token()
        except ValidationFailure as exc:
            self.failure = exc
            return False

        prompt = f'Delete {self.label.lower()} "{entity.name}"?'
        approved = (confirm or self._confirm)(prompt)
        if inspect.isawaitable(approved):
            approved = await approved
        if not approved:
            return False

        try:
            await self._client.request(
                f"{self.resource}/{entity.id}", method="DELETE", token=token
            )
        except ClientFailure as exc:
            LOGGER.warning("admin_delete_failed", extra={"entity": self.label})
            self.failure = exc
            return False

        await self.list()
        self.message = f"{self.label} deleted"
        return True

    def _list_params(self) -> list[tuple[str, str]] | None:
        return None

    def _page_hint(self) -> dict[str, int]:
        return {}

    def _arrange(self, items: list[E]) -> list[E]:
        return items

    def _blank_fields(self) -> dict[str, str]:
        raise NotImplementedError

    def _fields_from(self, entity: E) -> dict[str, str]:
        raise NotImplementedError

    def _build_body(self, draft: FormDraft) -> dict[str, Any]:
        raise NotImplementedError


class CategoriesController(AdminCrudController[Category]):
    """Categories are few; fetched in full and sorted by name for display."""

    label = "Category"
    resource = "/categories"
    model = Category

    def _arrange(self, items: list[Category]) -> list[Category]:
        return sorted(items, key=_by_name)

    def _blank_fields(self) -> dict[str, str]:
        return {"name": ""}

    def _fields_from(self, entity: Category) -> dict[str, str]:
        return {"name": entity.name}

    def _build_body(self, draft: FormDraft) -> dict[str, Any]:
        return category_body(draft)


def _format_price(price: float) -> str:
    return str(int(price)) if float(price).is_integer() else repr(float(price))


class ProductsController(AdminCrudController[Product]):
    """Paginated product administration."""

    label = "Product"
    resource = "/products"
    model = Product

    def __init__(
        self,
        client: ApiClientProtocol,
        session: TokenSource,
        *,
        confirm: ConfirmFn | None = None,
        limit: int = 8,
    ) -> None:
        super().__init__(client, session, confirm=confirm)
        self.page = 1
        self.limit = limit
        self.category_options: list[Category] = []

    @property
    def page_count(self) -> int:
        return page_count(self.total, self.limit)

    async def go_to_page(self, page: int) -> list[Product]:
        self.page = max(1, int(page))
        return await self.list()

    async def load_category_options(self) -> list[Category]:
        """Load categories for the form select; failures leave it empty."""
        try:
            payload = await self._client.request("/categories")
            rows = [Category.model_validate(row) for row in unwrap_data(payload) or []]
        except (ClientFailure, ValidationError):
            LOGGER.warning("admin_category_options_failed", exc_info=True)
            rows = []
        self.category_options = sorted(rows, key=_by_name)
        return self.category_options

    def _list_params(self) -> list[tuple[str, str]]:
        return [("page", str(self.page)), ("limit", str(self.limit))]

    def _page_hint(self) -> dict[str, int]:
        return {"page": self.page, "limit": self.limit}

    def _blank_fields(self) -> dict[str, str]:
        first = self.category_options[0].id if self.category_options else ALL_CATEGORIES
        return {"category_id": first, "name": "", "description": "", "price": ""}

    def _fields_from(self, entity: Product) -> dict[str, str]:
        return {
            "category_id": entity.category_id,
            "name": entity.name,
            "description": entity.description,
            "price": _format_price(entity.price),
        }

    def _build_body(self, draft: FormDraft) -> dict[str, Any]:
        return product_body(draft)
