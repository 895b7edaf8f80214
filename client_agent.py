from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog_client.api.agent_routes import register_agent_routes
from catalog_client.api.http_setup import (
    register_exception_handlers,
    register_http_middleware,
)
from catalog_client.core.config import AppConfig
from catalog_client.core.logging import setup_logging
from catalog_client.core.runtime import build_client_runtime

load_dotenv()
APP_CONFIG = AppConfig.from_env()
setup_logging(APP_CONFIG.logging.level)
LOGGER = logging.getLogger(__name__)

APP_ROOT = Path(__file__).resolve().parent


def create_app(config: AppConfig = APP_CONFIG) -> FastAPI:
    runtime = build_client_runtime(config, app_root=APP_ROOT)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        await runtime.session.restore()
        LOGGER.info("client_agent_started", extra={"status": str(runtime.session.status)})
        yield
        runtime.close()

    app = FastAPI(title="Catalog Client Agent", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.agent.cors_allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_http_middleware(app, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)
    register_agent_routes(app, deps=runtime)
    return app


app = create_app()
