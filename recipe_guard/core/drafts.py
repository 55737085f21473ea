"""
Deterministic local recipe drafts.

Used by the client when remote generation fails: three template recipes
built from the selected ingredients, with macros spread slightly around the
targets.
"""

import math
from typing import List

from .normalizer import GenerationRequest, clamp
from .recipe import GeneratedRecipe, RecipeIngredient, RecipeMacros

RECIPE_SUFFIXES = ("Power Bowl", "Skillet", "Stir-Fry")
MACRO_OFFSETS = (-0.08, 0.0, 0.08)
INGREDIENT_AMOUNTS = ("200", "150", "100")


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))


def macro_with_offset(base: int, offset: float) -> int:
    return max(0, _round(base * (1 + offset)))


def generate_recipe_drafts(request: GenerationRequest) -> List[GeneratedRecipe]:
    """Build three deterministic drafts, or none if there are no ingredients."""
    available = [name.strip() for name in request.ingredient_names if name.strip()]
    if not available:
        return []

    prep = clamp(_round(request.time_limit), 10, 90)
    drafts = []
    for index, offset in enumerate(MACRO_OFFSETS):
        lead = available[index % len(available)]
        second = available[(index + 1) % len(available)]
        third = available[(index + 2) % len(available)]

        protein = macro_with_offset(request.macros.protein, offset)
        carbs = macro_with_offset(request.macros.carbs, -offset / 2)
        fats = macro_with_offset(request.macros.fats, offset / 2)

        drafts.append(GeneratedRecipe(
            name=f"{lead} {RECIPE_SUFFIXES[index % len(RECIPE_SUFFIXES)]}",
            description=f"Built from your available ingredients: {lead}, {second}, {third}.",
            preparation_time=prep,
            macros=RecipeMacros(
                protein=protein,
                carbs=carbs,
                fats=fats,
                calories=protein * 4 + carbs * 4 + fats * 9,
            ),
            ingredients=tuple(
                RecipeIngredient(name=name, amount=amount, unit="g")
                for name, amount in zip((lead, second, third), INGREDIENT_AMOUNTS)
            ),
            instructions=(
                f"Prep the {lead}, {second}, and {third}.",
                "Cook protein ingredients first, then add remaining ingredients.",
                "Season to taste and plate once heated through.",
            ),
        ))
    return drafts
