from __future__ import annotations

from importlib import metadata
from pathlib import Path
from typing import Any, Dict

import structlog
import yaml

logger = structlog.get_logger(__name__)

MODULES_PATH = Path(__file__).parent.parent / "modules"
MANIFEST_NAME = "module.yaml"
ENTRYPOINT_GROUP = "trokito.modules"


def _normalize_module(
    data: Dict[str, Any],
    *,
    source: str,
    path: Path | None = None,
) -> Dict[str, Any] | None:
    name = str(data.get("name") or "").strip()
    if not name:
        return None

    slug = data.get("slug") or name.replace("_", "-")
    public = data.get("public")
    normalized = {
        **data,
        "name": name,
        "slug": slug,
        "mount": data.get("mount") or f"/{slug}",
        "public": True if public is None else bool(public),
        "category": data.get("category") or "Other",
        "source": source,
    }
    if path is not None:
        normalized["path"] = path
    return normalized


def read_manifest(module_dir: Path) -> Dict[str, Any] | None:
    manifest = module_dir / MANIFEST_NAME
    if not manifest.exists():
        return None
    with open(manifest, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        return None
    data.setdefault("name", module_dir.name)
    return _normalize_module(data, source="filesystem", path=module_dir)


def load_filesystem_modules(modules_path: Path = MODULES_PATH) -> Dict[str, Dict[str, Any]]:
    modules: Dict[str, Dict[str, Any]] = {}
    if not modules_path.exists():
        return modules

    for module_dir in sorted(modules_path.iterdir()):
        if not module_dir.is_dir():
            continue
        normalized = read_manifest(module_dir)
        if normalized:
            modules[normalized["name"]] = normalized
    return modules


def load_entrypoint_modules(group: str = ENTRYPOINT_GROUP) -> Dict[str, Dict[str, Any]]:
    """Manifests contributed by installed distributions through entry points."""
    modules: Dict[str, Dict[str, Any]] = {}
    for entry in metadata.entry_points(group=group):
        try:
            obj = entry.load()
        except (ImportError, AttributeError) as exc:
            logger.warning("module_entrypoint_failed", entry_point=entry.name, error=str(exc))
            continue

        data = obj() if callable(obj) else obj
        if not isinstance(data, dict):
            continue

        normalized = _normalize_module(data, source="entry_point")
        if normalized:
            modules[normalized["name"]] = normalized
    return modules


def load_modules(modules_path: Path = MODULES_PATH) -> Dict[str, Dict[str, Any]]:
    modules = load_filesystem_modules(modules_path)
    for name, data in load_entrypoint_modules().items():
        modules.setdefault(name, data)
    return modules


__all__ = [
    "ENTRYPOINT_GROUP",
    "MODULES_PATH",
    "load_entrypoint_modules",
    "load_filesystem_modules",
    "load_modules",
    "read_manifest",
]
