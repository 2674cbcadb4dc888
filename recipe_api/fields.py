"""Turn loosely typed request bodies into recipe document fields.

Form posts and JSON clients send the same recipe in different shapes: a
checkbox group arrives as one string or as a list, numbers arrive as text.
The helpers below normalize both into the document layout stored by the
repository (camelCase keys, list-valued ``categories``/``ingredients``,
numeric ``prepTime``/``likeCount``).
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional

from .models import Number

TEXT_FIELDS = ("title", "image", "instructions", "cuisine", "userId")
RECIPE_FIELDS = TEXT_FIELDS + ("ingredients", "categories", "prepTime", "likeCount")


def _parse_ingredients(ingredients_text: str) -> List[str]:
    return [line.strip() for line in ingredients_text.splitlines() if line.strip()]


def normalize_categories(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [str(item) for item in value if item is not None and item != ""]


def normalize_ingredients(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return _parse_ingredients(value)
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [str(item) for item in value if item is not None and item != ""]


def coerce_number(value: Any) -> Optional[Number]:
    """Return ``value`` as an ``int`` or ``float``, or ``None`` when it is not numeric."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    if number.is_integer():
        return int(number)
    return number


def coerce_like_count(value: Any) -> int:
    number = coerce_number(value)
    if not isinstance(number, int) or number < 0:
        return 0
    return number


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _normalize_field(name: str, value: Any) -> Any:
    if name == "categories":
        return normalize_categories(value)
    if name == "ingredients":
        return normalize_ingredients(value)
    if name == "prepTime":
        return coerce_number(value)
    if name == "likeCount":
        return coerce_like_count(value)
    return _text(value)


def build_new_recipe(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the document fields for a new recipe.

    Every known field is present in the result; missing text fields are
    ``None`` and unknown keys in ``payload`` are dropped.
    """

    return {name: _normalize_field(name, payload.get(name)) for name in RECIPE_FIELDS}


def build_recipe_update(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Return only the fields ``payload`` actually supplies, normalized."""

    return {
        name: _normalize_field(name, payload[name]) for name in RECIPE_FIELDS if name in payload
    }


__all__ = [
    "RECIPE_FIELDS",
    "build_new_recipe",
    "build_recipe_update",
    "coerce_like_count",
    "coerce_number",
    "normalize_categories",
    "normalize_ingredients",
]
