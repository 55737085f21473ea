"""
Recipe data structures handed to the mobile client.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class RecipeMacros:
    protein: int
    carbs: int
    fats: int
    calories: int


@dataclass(frozen=True)
class RecipeIngredient:
    name: str
    amount: str
    unit: str


@dataclass(frozen=True)
class GeneratedRecipe:
    """A recipe that passed field-level sanitization.

    Always has at least one ingredient and one instruction step.
    """
    name: str
    description: str
    preparation_time: int
    macros: RecipeMacros
    ingredients: Tuple[RecipeIngredient, ...]
    instructions: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["ingredients"] = list(data["ingredients"])
        data["instructions"] = list(data["instructions"])
        return data
