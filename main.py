from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from catalog_client.admin.crud import AdminCrudController
from catalog_client.api.errors import ClientFailure
from catalog_client.core.config import AppConfig
from catalog_client.core.logging import setup_logging
from catalog_client.core.runtime import ClientRuntime, build_client_runtime

APP_ROOT = Path(__file__).resolve().parent


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Product catalog command-line client.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("health", help="Check backend health.")

    login = sub.add_parser("login", help="Log in and persist the access token.")
    login.add_argument("email")
    login.add_argument("--password", default="", help="Prompted when omitted.")

    register = sub.add_parser("register", help="Create an account and log in.")
    register.add_argument("name")
    register.add_argument("email")
    register.add_argument("--password", default="", help="Prompted when omitted.")

    sub.add_parser("logout", help="Forget the persisted access token.")
    sub.add_parser("whoami", help="Show the restored session identity.")

    products = sub.add_parser("products", help="List catalog products.")
    products.add_argument("--q", default="", help="Text search.")
    products.add_argument("--category", default="all", help="Category id or 'all'.")
    products.add_argument("--min-price", default="")
    products.add_argument("--max-price", default="")
    products.add_argument("--sort", choices=["created_at", "price"], default="created_at")
    products.add_argument("--order", choices=["asc", "desc"], default="desc")
    products.add_argument("--page", type=int, default=1)

    product = sub.add_parser("product", help="Show one product.")
    product.add_argument("product_id")

    sub.add_parser("categories", help="List categories sorted by name.")

    category_save = sub.add_parser("category-save", help="Create or rename a category.")
    category_save.add_argument("--id", default="", help="Existing category id to edit.")
    category_save.add_argument("--name", required=True)

    product_save = sub.add_parser("product-save", help="Create or edit a product.")
    product_save.add_argument("--id", default="", help="Existing product id to edit.")
    product_save.add_argument("--category", default=None)
    product_save.add_argument("--name", default=None)
    product_save.add_argument("--description", default=None)
    product_save.add_argument("--price", default=None)

    for entity in ("category", "product"):
        delete = sub.add_parser(f"{entity}-delete", help=f"Delete a {entity}.")
        delete.add_argument("entity_id")
        delete.add_argument("--yes", action="store_true", help="Skip confirmation prompt.")

    return parser


def _print(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _prompt_confirm(prompt: str) -> bool:
    return input(f"{prompt} [y/N] ").strip().lower() in {"y", "yes"}


def _session_summary(runtime: ClientRuntime) -> dict[str, Any]:
    user = runtime.session.user
    return {
        "status": str(runtime.session.status),
        "user": user.model_dump() if user else None,
    }


def _admin_outcome(controller: AdminCrudController[Any], ok: bool) -> dict[str, Any]:
    if not ok and controller.failure is not None:
        raise controller.failure
    return {"ok": ok, "message": controller.message or "cancelled"}


async def _save(
    runtime: ClientRuntime,
    controller: AdminCrudController[Any],
    entity_id: str,
    fields: dict[str, str | None],
) -> dict[str, Any]:
    if entity_id:
        if controller is runtime.products:
            target = await runtime.product_detail.load(entity_id)
        else:
            await controller.list()
            target = controller.find(entity_id)
        if target is None:
            raise SystemExit(f"Not found: {entity_id}")
        controller.open_edit(target)
    else:
        if controller is runtime.products:
            await runtime.products.load_category_options()
        controller.open_create()

    for name, value in fields.items():
        if value is not None:
            controller.update_field(name, value)
    return _admin_outcome(controller, await controller.submit())


async def _delete(
    runtime: ClientRuntime,
    controller: AdminCrudController[Any],
    entity_id: str,
    assume_yes: bool,
) -> dict[str, Any]:
    if controller is runtime.products:
        target = await runtime.product_detail.load(entity_id)
    else:
        await controller.list()
        target = controller.find(entity_id)
    if target is None:
        raise SystemExit(f"Not found: {entity_id}")
    confirm = (lambda _prompt: True) if assume_yes else _prompt_confirm
    return _admin_outcome(controller, await controller.remove(target, confirm=confirm))


async def run(args: argparse.Namespace, runtime: ClientRuntime) -> Any:
    session = runtime.session
    await session.restore()

    if args.command == "health":
        return await runtime.api_client.health()
    if args.command == "login":
        password = args.password or getpass.getpass("Password: ")
        await session.login(args.email, password)
        return _session_summary(runtime)
    if args.command == "register":
        password = args.password or getpass.getpass("Password: ")
        await session.register(args.name, args.email, password)
        return _session_summary(runtime)
    if args.command == "logout":
        session.logout()
        return _session_summary(runtime)
    if args.command == "whoami":
        return _session_summary(runtime)
    if args.command == "products":
        catalog = runtime.catalog
        query = catalog.query.with_filters(
            text_filter=args.q,
            category_filter=args.category,
            min_price=args.min_price,
            max_price=args.max_price,
            sort=args.sort,
            order=args.order,
        ).with_page(args.page)
        await catalog.set_query(query)
        if catalog.error:
            raise SystemExit(catalog.error)
        return {
            "items": [item.model_dump() for item in catalog.items],
            "total": catalog.total,
            "page": catalog.query.page,
            "page_count": catalog.page_count,
        }
    if args.command == "product":
        product = await runtime.product_detail.load(args.product_id)
        if product is None:
            raise SystemExit(runtime.product_detail.error or "Product not found")
        return product.model_dump()
    if args.command == "categories":
        items = await runtime.categories.list()
        if runtime.categories.error:
            raise SystemExit(runtime.categories.error)
        return [item.model_dump() for item in items]
    if args.command == "category-save":
        return await _save(runtime, runtime.categories, args.id, {"name": args.name})
    if args.command == "product-save":
        return await _save(
            runtime,
            runtime.products,
            args.id,
            {
                "category_id": args.category,
                "name": args.name,
                "description": args.description,
                "price": args.price,
            },
        )
    if args.command == "category-delete":
        return await _delete(runtime, runtime.categories, args.entity_id, args.yes)
    if args.command == "product-delete":
        return await _delete(runtime, runtime.products, args.entity_id, args.yes)
    raise SystemExit(f"Unknown command: {args.command}")


def main() -> None:
    load_dotenv()
    config = AppConfig.from_env()
    setup_logging(config.logging.level)
    logger = logging.getLogger("main")
    args = build_parser().parse_args()

    runtime = build_client_runtime(config, app_root=APP_ROOT)
    try:
        result = asyncio.run(run(args, runtime))
    except ClientFailure as exc:
        logger.info("command_failed", extra={"status": str(exc.error_code)})
        raise SystemExit(exc.message) from exc
    finally:
        runtime.close()
    _print(result)


if __name__ == "__main__":
    main()
