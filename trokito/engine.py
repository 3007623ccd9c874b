from __future__ import annotations

from importlib import import_module
from pathlib import Path
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException

from trokito.errors import install_error_handling
from trokito.logger import setup_logger
from trokito.registry import MODULES_PATH, load_modules
from trokito.settings import get_settings

logger = structlog.get_logger(__name__)


def _slugify(value: str) -> str:
    return value.strip().lower().replace(" ", "-")


def _public_summary(meta: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": meta["name"],
        "title": meta.get("title") or meta["name"],
        "description": meta.get("description") or "",
        "mount": meta["mount"],
    }


def build_categories(modules_path: Path = MODULES_PATH) -> list[dict[str, Any]]:
    modules = [
        module
        for module in load_modules(modules_path).values()
        if module.get("public", True)
    ]
    grouped: dict[str, list[dict[str, Any]]] = {}
    for module in modules:
        grouped.setdefault(str(module["category"]), []).append(module)

    categories: list[dict[str, Any]] = []
    for category, items in sorted(grouped.items(), key=lambda item: item[0].lower()):
        items.sort(key=lambda item: item.get("title") or item["name"])
        categories.append(
            {
                "name": category,
                "slug": _slugify(category),
                "modules": [_public_summary(item) for item in items],
            }
        )
    return categories


def import_attr(path: str) -> Any:
    if ":" not in path:
        raise ValueError(f"Invalid entrypoint '{path}'. Expected module:attr.")
    module_path, attr = path.split(":", 1)
    module = import_module(module_path)
    return getattr(module, attr)


def build_app(modules_path: Path = MODULES_PATH) -> FastAPI:
    settings = get_settings()
    setup_logger(settings.log_level, json=settings.log_json)

    app = FastAPI(title="Trokito")
    install_error_handling(app)

    @app.get("/")
    def index():
        return {"categories": build_categories(modules_path)}

    @app.get("/category/{slug}")
    def category_index(slug: str):
        categories = build_categories(modules_path)
        category = next((item for item in categories if item["slug"] == slug), None)
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")
        return category

    for meta in load_modules(modules_path).values():
        if not meta.get("public", True):
            continue
        api_entry = (meta.get("entrypoints") or {}).get("api")
        if not api_entry:
            continue

        try:
            subapp = import_attr(api_entry)
        except (ImportError, AttributeError, ValueError) as exc:
            logger.warning("module_mount_failed", module=meta["name"], error=str(exc))
            continue

        app.mount(meta["mount"], subapp)
        logger.debug("module_mounted", module=meta["name"], mount=meta["mount"])

    return app


__all__ = ["build_app", "build_categories", "import_attr"]
