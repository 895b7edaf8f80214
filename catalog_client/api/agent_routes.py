"""Route registration for the local client agent."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import FastAPI

from catalog_client.admin.crud import AdminCrudController, ProductsController
from catalog_client.admin.forms import FormMode
from catalog_client.api.contracts import (
    AdminStateResponse,
    CatalogQueryBody,
    CatalogResponse,
    CategoryOptionsResponse,
    DraftFieldsBody,
    DraftOpenBody,
    DraftResponse,
    HealthResponse,
    LoginBody,
    PageBody,
    RegisterBody,
    SessionResponse,
)
from catalog_client.api.errors import ClientErrorCode, ValidationFailure
from catalog_client.auth.models import SessionStatus
from catalog_client.auth.session import SessionManager
from catalog_client.catalog.controller import CatalogListController
from catalog_client.catalog.models import Product
from catalog_client.core.runtime import ClientRuntime


def _session_response(session: SessionManager) -> SessionResponse:
    return SessionResponse(
        status=str(session.status),
        authenticated=session.status is SessionStatus.AUTHENTICATED,
        is_admin=session.is_admin,
        user=session.user,
    )


def _catalog_response(catalog: CatalogListController) -> CatalogResponse:
    return CatalogResponse(
        query=asdict(catalog.query),
        items=catalog.items,
        total=catalog.total,
        page_count=catalog.page_count,
        loading=catalog.loading,
        error=catalog.error,
    )


def _admin_response(entity: str, controller: AdminCrudController[Any]) -> AdminStateResponse:
    draft = controller.draft
    page = getattr(controller, "page", 1)
    pages = getattr(controller, "page_count", 1)
    return AdminStateResponse(
        entity=entity,
        items=[item.model_dump() for item in controller.items],
        total=controller.total,
        page=page,
        page_count=pages,
        draft=(
            DraftResponse(mode=str(draft.mode), target=draft.target, fields=dict(draft.fields))
            if draft is not None
            else None
        ),
        message=controller.message,
        error=controller.error,
    )


def register_agent_routes(app: FastAPI, *, deps: ClientRuntime) -> None:
    """Register session, catalog and admin routes on the app."""
    admin: dict[str, AdminCrudController[Any]] = {
        "categories": deps.categories,
        "products": deps.products,
    }

    def _admin_controller(entity: str) -> AdminCrudController[Any]:
        if not deps.session.is_admin:
            raise ValidationFailure(
                "Admin role required", error_code=ClientErrorCode.AUTH_FORBIDDEN
            )
        controller = admin.get(entity)
        if controller is None:
            raise ValidationFailure(
                f"Unknown admin entity: {entity}",
                error_code=ClientErrorCode.ENTITY_NOT_FOUND,
            )
        return controller

    def _entity(controller: AdminCrudController[Any], entity_id: str) -> Any:
        item = controller.find(entity_id)
        if item is None:
            raise ValidationFailure(
                f"{controller.label} not found: {entity_id}",
                error_code=ClientErrorCode.ENTITY_NOT_FOUND,
            )
        return item

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", backend=await deps.api_client.health())

    @app.get("/api/session", response_model=SessionResponse)
    def get_session() -> SessionResponse:
        return _session_response(deps.session)

    @app.post("/api/session/login", response_model=SessionResponse)
    async def login(req: LoginBody) -> SessionResponse:
        await deps.session.login(req.email, req.password)
        return _session_response(deps.session)

    @app.post("/api/session/register", response_model=SessionResponse)
    async def register(req: RegisterBody) -> SessionResponse:
        await deps.session.register(req.name, req.email, req.password)
        return _session_response(deps.session)

    @app.post("/api/session/logout", response_model=SessionResponse)
    def logout() -> SessionResponse:
        deps.session.logout()
        return _session_response(deps.session)

    @app.post("/api/session/refresh", response_model=SessionResponse)
    async def refresh_session() -> SessionResponse:
        await deps.session.refresh_identity()
        return _session_response(deps.session)

    @app.get("/api/catalog", response_model=CatalogResponse)
    async def get_catalog() -> CatalogResponse:
        if not deps.catalog.has_result and not deps.catalog.loading:
            await deps.catalog.refresh()
        return _catalog_response(deps.catalog)

    @app.post("/api/catalog/query", response_model=CatalogResponse)
    async def update_catalog_query(req: CatalogQueryBody) -> CatalogResponse:
        changes = req.model_dump(exclude_none=True)
        if changes:
            await deps.catalog.update_filters(**changes)
        return _catalog_response(deps.catalog)

    @app.post("/api/catalog/apply", response_model=CatalogResponse)
    async def apply_catalog_filters() -> CatalogResponse:
        await deps.catalog.apply_filters()
        return _catalog_response(deps.catalog)

    @app.post("/api/catalog/page", response_model=CatalogResponse)
    async def change_catalog_page(req: PageBody) -> CatalogResponse:
        await deps.catalog.go_to_page(req.page)
        return _catalog_response(deps.catalog)

    @app.get("/api/catalog/categories", response_model=CategoryOptionsResponse)
    async def catalog_categories() -> CategoryOptionsResponse:
        await deps.catalog.load_categories()
        return CategoryOptionsResponse(items=deps.catalog.category_options)

    @app.get("/api/products/{product_id}", response_model=Product)
    async def product_detail(product_id: str) -> Product:
        product = await deps.product_detail.load(product_id)
        if product is None:
            raise ValidationFailure(
                deps.product_detail.error or "Failed to load product",
                error_code=ClientErrorCode.ENTITY_NOT_FOUND,
            )
        return product

    @app.get("/api/admin/{entity}", response_model=AdminStateResponse)
    async def admin_list(entity: str, page: int | None = None) -> AdminStateResponse:
        controller = _admin_controller(entity)
        if isinstance(controller, ProductsController):
            if not controller.category_options:
                await controller.load_category_options()
            if page is not None:
                await controller.go_to_page(page)
                return _admin_response(entity, controller)
        await controller.list()
        return _admin_response(entity, controller)

    @app.post("/api/admin/{entity}/draft", response_model=AdminStateResponse)
    def admin_open_draft(entity: str, req: DraftOpenBody) -> AdminStateResponse:
        controller = _admin_controller(entity)
        if req.mode == FormMode.EDIT:
            controller.open_edit(_entity(controller, req.target or ""))
        else:
            controller.open_create()
        return _admin_response(entity, controller)

    @app.patch("/api/admin/{entity}/draft", response_model=AdminStateResponse)
    def admin_update_draft(entity: str, req: DraftFieldsBody) -> AdminStateResponse:
        controller = _admin_controller(entity)
        for name, value in req.fields.items():
            controller.update_field(name, value)
        return _admin_response(entity, controller)

    @app.post("/api/admin/{entity}/draft/close", response_model=AdminStateResponse)
    def admin_close_draft(entity: str) -> AdminStateResponse:
        controller = _admin_controller(entity)
        controller.close()
        return _admin_response(entity, controller)

    @app.post("/api/admin/{entity}/submit", response_model=AdminStateResponse)
    async def admin_submit(entity: str) -> AdminStateResponse:
        controller = _admin_controller(entity)
        if not await controller.submit() and controller.failure is not None:
            raise controller.failure
        return _admin_response(entity, controller)

    @app.delete("/api/admin/{entity}/{entity_id}", response_model=AdminStateResponse)
    async def admin_remove(
        entity: str, entity_id: str, confirm: bool = False
    ) -> AdminStateResponse:
        controller = _admin_controller(entity)
        target = _entity(controller, entity_id)
        removed = await controller.remove(target, confirm=lambda _prompt: confirm)
        if not removed and controller.failure is not None:
            raise controller.failure
        return _admin_response(entity, controller)
