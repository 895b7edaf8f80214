"""Wiring of the client components around one API client and session."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from catalog_client.admin.crud import CategoriesController, ConfirmFn, ProductsController
from catalog_client.auth.session import SessionManager
from catalog_client.auth.token_store import TokenStore
from catalog_client.catalog.controller import (
    CatalogListController,
    ProductDetailController,
)
from catalog_client.core.config import AppConfig
from catalog_client.core.http_client import ApiClient


@dataclass(frozen=True)
class ClientRuntime:
    """All long-lived client components sharing one session."""

    api_client: ApiClient
    session: SessionManager
    catalog: CatalogListController
    product_detail: ProductDetailController
    categories: CategoriesController
    products: ProductsController

    def close(self) -> None:
        self.api_client.close()


def build_client_runtime(
    config: AppConfig,
    *,
    app_root: Path,
    confirm: ConfirmFn | None = None,
) -> ClientRuntime:
    """Build client components from configuration."""
    token_path = Path(config.storage.token_path)
    if not token_path.is_absolute():
        token_path = app_root / token_path

    api_client = ApiClient(config.api)
    session = SessionManager(
        api_client, TokenStore(token_path, key=config.storage.token_key)
    )
    return ClientRuntime(
        api_client=api_client,
        session=session,
        catalog=CatalogListController(api_client, limit=config.catalog.page_limit),
        product_detail=ProductDetailController(api_client),
        categories=CategoriesController(api_client, session, confirm=confirm),
        products=ProductsController(
            api_client,
            session,
            confirm=confirm,
            limit=config.catalog.admin_products_page_limit,
        ),
    )
