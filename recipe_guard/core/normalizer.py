"""
Request normalization.

Turns the untrusted JSON body sent by the mobile client into bounded values.
Normalization never raises: malformed fields fall back to defaults and
numeric fields are clamped into fixed ranges.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

MAX_INGREDIENTS = 20
MAX_INGREDIENT_NAME_LENGTH = 48

# (default, min, max)
PROTEIN_RANGE = (150, 20, 300)
CARBS_RANGE = (200, 20, 400)
FATS_RANGE = (60, 10, 150)
TIME_LIMIT_RANGE = (30, 10, 90)


@dataclass(frozen=True)
class MacroTargets:
    """Per-recipe macro targets in grams."""
    protein: int
    carbs: int
    fats: int

    def as_dict(self) -> Dict[str, int]:
        return {"protein": self.protein, "carbs": self.carbs, "fats": self.fats}


@dataclass(frozen=True)
class GenerationRequest:
    """A normalized, request-scoped generation request."""
    ingredient_names: Tuple[str, ...]
    macros: MacroTargets
    time_limit: int

    @property
    def ingredient_count(self) -> int:
        return len(self.ingredient_names)


def clamp(value: int, low: int, high: int) -> int:
    return min(high, max(low, value))


def as_positive_int(value: Any, fallback: int) -> int:
    """Coerce a JSON value to a positive integer.

    Numbers and numeric strings are accepted and rounded half up.
    Anything that does not parse to a finite value above zero yields
    ``fallback``.
    """
    if isinstance(value, bool):
        parsed = float(value)
    elif isinstance(value, (int, float)):
        try:
            parsed = float(value)
        except OverflowError:
            return fallback
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            # JSON clients send "" for cleared inputs; treat like zero
            return fallback
        try:
            parsed = float(text)
        except ValueError:
            return fallback
    else:
        return fallback

    if not math.isfinite(parsed) or parsed <= 0:
        return fallback
    return int(math.floor(parsed + 0.5))


def normalize_ingredients(value: Any) -> List[str]:
    """Trim, truncate and cap the ingredient list, preserving order."""
    if not isinstance(value, list):
        return []
    names = []
    for item in value:
        name = ("" if item is None else _to_text(item)).strip()[:MAX_INGREDIENT_NAME_LENGTH]
        if name:
            names.append(name)
    return names[:MAX_INGREDIENTS]


def normalize_macros(value: Any) -> MacroTargets:
    raw = value if isinstance(value, dict) else {}
    return MacroTargets(
        protein=_bounded(raw.get("protein"), PROTEIN_RANGE),
        carbs=_bounded(raw.get("carbs"), CARBS_RANGE),
        fats=_bounded(raw.get("fats"), FATS_RANGE),
    )


def normalize_time_limit(value: Any) -> int:
    return _bounded(value, TIME_LIMIT_RANGE)


def normalize_request(payload: Any) -> GenerationRequest:
    """Build a GenerationRequest from a decoded JSON body.

    Args:
        payload: Decoded request body; anything other than an object is
            treated as an empty object

    Returns:
        GenerationRequest with every field bounded
    """
    raw = payload if isinstance(payload, dict) else {}
    return GenerationRequest(
        ingredient_names=tuple(normalize_ingredients(raw.get("ingredientNames"))),
        macros=normalize_macros(raw.get("macros")),
        time_limit=normalize_time_limit(raw.get("timeLimit")),
    )


def _bounded(value: Any, bounds: Tuple[int, int, int]) -> int:
    default, low, high = bounds
    return clamp(as_positive_int(value, default), low, high)


def _to_text(item: Any) -> str:
    # JSON booleans come through as Python bools; keep their JSON spelling
    if isinstance(item, bool):
        return "true" if item else "false"
    return str(item)
