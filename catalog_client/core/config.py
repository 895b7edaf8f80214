"""Client configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

TOKEN_STORAGE_KEY = "access_token"


@dataclass(frozen=True)
class ApiConfig:
    """Backend API connection settings."""

    base_url: str
    timeout_seconds: float
    http_workers: int


@dataclass(frozen=True)
class StorageConfig:
    """Durable client state settings."""

    token_path: str
    token_key: str = TOKEN_STORAGE_KEY


@dataclass(frozen=True)
class CatalogConfig:
    """Page sizes for catalog and admin listings."""

    page_limit: int
    admin_products_page_limit: int


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: str


@dataclass(frozen=True)
class AgentConfig:
    """Local client agent settings."""

    cors_allowed_origins: list[str]


@dataclass(frozen=True)
class AppConfig:
    """Top-level client configuration."""

    api: ApiConfig
    storage: StorageConfig
    catalog: CatalogConfig
    logging: LoggingConfig
    agent: AgentConfig

    @staticmethod
    def from_env() -> "AppConfig":
        """Build client config from process environment."""
        base_url = (
            os.getenv("CATALOG_API_URL", "").strip() or "http://localhost:8080"
        ).rstrip("/")
        timeout_seconds = float(os.getenv("CATALOG_API_TIMEOUT_SECONDS", "15"))
        http_workers = max(1, int(os.getenv("CATALOG_HTTP_WORKERS", "4")))
        token_path = (
            os.getenv("CATALOG_TOKEN_PATH", "runtime/client_state.json").strip()
            or "runtime/client_state.json"
        )
        page_limit = max(1, int(os.getenv("CATALOG_PAGE_LIMIT", "6")))
        admin_products_page_limit = max(
            1, int(os.getenv("ADMIN_PRODUCTS_PAGE_LIMIT", "8"))
        )
        log_level = os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"
        cors_allowed_origins = [
            origin.strip()
            for origin in os.getenv(
                "CLIENT_AGENT_ALLOWED_ORIGINS",
                "http://localhost:5173,http://127.0.0.1:5173",
            ).split(",")
            if origin.strip()
        ]

        return AppConfig(
            api=ApiConfig(
                base_url=base_url,
                timeout_seconds=timeout_seconds,
                http_workers=http_workers,
            ),
            storage=StorageConfig(token_path=token_path),
            catalog=CatalogConfig(
                page_limit=page_limit,
                admin_products_page_limit=admin_products_page_limit,
            ),
            logging=LoggingConfig(level=log_level),
            agent=AgentConfig(cors_allowed_origins=cors_allowed_origins),
        )
