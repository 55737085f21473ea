"""
Field-level sanitization of remote recipes.

Runs on the consuming side, independently of the server's shape check: every
field of every candidate is re-validated, clamped or defaulted, and
candidates without ingredients or instructions are dropped.
"""

from typing import Any, Iterable, List, Optional

from .normalizer import GenerationRequest, as_positive_int, clamp
from .recipe import GeneratedRecipe, RecipeIngredient, RecipeMacros

MAX_RECIPES = 3
MAX_RECIPE_INGREDIENTS = 12
MAX_INSTRUCTIONS = 8

PREP_TIME_BOUNDS = (10, 90)
PROTEIN_BOUNDS = (1, 400)
CARBS_BOUNDS = (1, 500)
FATS_BOUNDS = (1, 250)
CALORIES_BOUNDS = (50, 5000)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _sanitize_ingredients(value: Any) -> List[RecipeIngredient]:
    if not isinstance(value, list):
        return []
    ingredients = []
    for item in value:
        if not isinstance(item, dict):
            continue
        name = _text(item.get("name"))
        if not name:
            continue
        ingredients.append(RecipeIngredient(
            name=name,
            amount=_text(item.get("amount")) or "1",
            unit=_text(item.get("unit")) or "serving",
        ))
    return ingredients[:MAX_RECIPE_INGREDIENTS]


def _sanitize_instructions(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    steps = [_text(step) for step in value]
    return [step for step in steps if step][:MAX_INSTRUCTIONS]


def sanitize_recipe(value: Any, index: int, request: GenerationRequest) -> Optional[GeneratedRecipe]:
    """Validate one candidate recipe.

    Args:
        value: Untrusted recipe object from the remote payload
        index: Position in the payload, used for the fallback name
        request: The request the recipe was generated for; its targets are
            the defaults for missing numeric fields

    Returns:
        A GeneratedRecipe, or None if the candidate is unusable
    """
    if not isinstance(value, dict):
        return None

    raw_macros = value.get("macros") if isinstance(value.get("macros"), dict) else {}
    prep = clamp(as_positive_int(value.get("preparation_time"), request.time_limit), *PREP_TIME_BOUNDS)

    protein = clamp(as_positive_int(raw_macros.get("protein"), request.macros.protein), *PROTEIN_BOUNDS)
    carbs = clamp(as_positive_int(raw_macros.get("carbs"), request.macros.carbs), *CARBS_BOUNDS)
    fats = clamp(as_positive_int(raw_macros.get("fats"), request.macros.fats), *FATS_BOUNDS)
    calories = clamp(
        as_positive_int(raw_macros.get("calories"), protein * 4 + carbs * 4 + fats * 9),
        *CALORIES_BOUNDS
    )

    ingredients = _sanitize_ingredients(value.get("ingredients"))
    instructions = _sanitize_instructions(value.get("instructions"))
    if not ingredients or not instructions:
        return None

    fallback_name = f"Recipe {index + 1}"
    name = value.get("name")
    name = fallback_name if name is None else _text(name)

    return GeneratedRecipe(
        name=name or fallback_name,
        description=(
            _text(value.get("description"))
            or f"Built using your ingredients in {prep} minutes or less."
        ),
        preparation_time=prep,
        macros=RecipeMacros(protein=protein, carbs=carbs, fats=fats, calories=calories),
        ingredients=tuple(ingredients),
        instructions=tuple(instructions),
    )


def sanitize_recipe_list(items: Iterable[Any], request: GenerationRequest) -> List[GeneratedRecipe]:
    """Sanitize every candidate, drop rejects, keep at most three."""
    recipes = []
    for index, item in enumerate(items):
        recipe = sanitize_recipe(item, index, request)
        if recipe is not None:
            recipes.append(recipe)
    return recipes[:MAX_RECIPES]
