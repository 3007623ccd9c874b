from __future__ import annotations

from typing import Any, Dict, List

from trokito.registry import load_modules


def _normalize_key(value: str) -> str:
    return "".join(char for char in value.lower() if char.isalnum())


def _flow_entry(entry: Any) -> tuple[str | None, str | None]:
    if isinstance(entry, dict):
        return entry.get("target") or entry.get("module"), entry.get("label")
    return (str(entry) if entry else None), None


def resolve_flow_links(
    module_name: str,
    *,
    when: str = "after_success",
    base_url: str | None = None,
) -> List[Dict[str, str]]:
    """Links to the modules a cashier usually opens next."""
    modules = load_modules()
    name_map = {_normalize_key(name): name for name in modules}
    module_key = name_map.get(_normalize_key(module_name))
    if not module_key:
        return []

    links: List[Dict[str, str]] = []
    for entry in (modules[module_key].get("flows") or {}).get(when, []):
        target, label = _flow_entry(entry)
        target_key = name_map.get(_normalize_key(target)) if target else None
        if not target_key:
            continue

        target_meta = modules[target_key]
        href = target_meta["mount"]
        if base_url:
            href = base_url.rstrip("/") + href
        links.append(
            {
                "label": str(label or target_meta.get("title") or target_key),
                "href": str(href),
            }
        )
    return links
