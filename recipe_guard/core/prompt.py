"""
Prompt construction for recipe generation.
"""

from typing import Dict, List

from .normalizer import GenerationRequest

SYSTEM_PROMPT = "You generate practical recipes. Return only valid JSON."

RECIPE_SHAPE = """{
  "recipes": [
    {
      "name": "string",
      "description": "string",
      "preparation_time": 30,
      "macros": { "protein": 40, "carbs": 50, "fats": 20, "calories": 500 },
      "ingredients": [{ "name": "string", "amount": "string", "unit": "string" }],
      "instructions": ["string"]
    }
  ]
}"""


def build_prompt(request: GenerationRequest, recipe_count: int = 3) -> str:
    """Render the user prompt. Ingredient names are substituted as plain text."""
    macros = request.macros
    return (
        f"Generate {recipe_count} distinct meal recipes.\n"
        f"Use only these ingredients: {', '.join(request.ingredient_names)}.\n"
        f"Target macros per recipe near: protein {macros.protein}g, "
        f"carbs {macros.carbs}g, fats {macros.fats}g.\n"
        f"Keep preparation time at or under {request.time_limit} minutes.\n"
        "\n"
        "Return strict JSON:\n"
        f"{RECIPE_SHAPE}"
    )


def build_messages(request: GenerationRequest, recipe_count: int = 3) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_prompt(request, recipe_count)},
    ]
