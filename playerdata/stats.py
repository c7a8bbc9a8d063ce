"""Normalization of the two on-disk statistics schemas.

Servers on 1.13+ write ``{"stats": {"minecraft:mined": {"minecraft:stone": 12}}}``.
Older servers write a flat document keyed by dotted names such as
``"stat.mineBlock.minecraft.stone"`` and ``"achievement.openInventory"``.
Both are folded into ``{category: {key: value}}`` with namespaces stripped.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

# Legacy item/entity categories and their modern names.
LEGACY_CATEGORIES = {
    "stat.mineBlock": "mined",
    "stat.craftItem": "crafted",
    "stat.useItem": "used",
    "stat.breakItem": "broken",
    "stat.pickup": "picked_up",
    "stat.drop": "dropped",
    "stat.killEntity": "killed",
    "stat.entityKilledBy": "killed_by",
}
CUSTOM_CATEGORY = "custom"
ACHIEVEMENT_CATEGORY = "achievement"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def strip_namespace(key: str) -> str:
    """``minecraft:stone`` -> ``stone``; ``minecraft.stone`` -> ``stone``."""
    for separator in (":", "."):
        namespace, sep, rest = key.partition(separator)
        if sep and namespace == "minecraft" and rest:
            return rest
    return key


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _numeric(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


def is_modern_schema(document: Mapping[str, Any]) -> bool:
    return isinstance(document.get("stats"), Mapping)


def _merge_modern(document: Mapping[str, Any]) -> dict:
    merged: dict = {}
    for category, values in document["stats"].items():
        if not isinstance(values, Mapping):
            continue
        bucket = merged.setdefault(strip_namespace(str(category)), {})
        for key, value in values.items():
            number = _numeric(value)
            if number is not None:
                bucket[strip_namespace(str(key))] = number
    return merged


def _legacy_location(key: str) -> Optional[tuple[str, str]]:
    if key.startswith("achievement."):
        return ACHIEVEMENT_CATEGORY, key[len("achievement."):]
    if not key.startswith("stat."):
        return None
    for prefix, category in LEGACY_CATEGORIES.items():
        if key.startswith(prefix + "."):
            return category, strip_namespace(key[len(prefix) + 1:])
    return CUSTOM_CATEGORY, camel_to_snake(key[len("stat."):])


def _merge_legacy(document: Mapping[str, Any]) -> dict:
    merged: dict = {}
    for key, value in document.items():
        location = _legacy_location(str(key))
        if location is None:
            continue
        # Achievements with criteria are stored as {"value": n, "progress": [...]}
        if isinstance(value, Mapping):
            value = value.get("value")
        number = _numeric(value)
        if number is None:
            continue
        category, name = location
        merged.setdefault(category, {})[name] = number
    return merged


def merge_stats(document: Mapping[str, Any]) -> dict[str, dict[str, float]]:
    '''
    Folds a raw statistics document of either schema into {category: {key: value}}.
    The input is never modified. Categories and keys come back sorted so the
    result serializes identically for identical input.

    :param document: Parsed contents of world/stats/<uuid>.json.
    :return: Canonical mapping of category -> stat key -> numeric value.
    '''
    if not isinstance(document, Mapping):
        return {}
    merged = _merge_modern(document) if is_modern_schema(document) else _merge_legacy(document)
    return {
        category: dict(sorted(values.items()))
        for category, values in sorted(merged.items())
        if values
    }
