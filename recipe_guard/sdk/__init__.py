"""
SDK for recipe_guard.

Provides the completion client used by the function and the client used
by callers of the function.
"""

from .openai_client import RecipeCompletionClient
from .recipe_client import RecipeBatch, RecipeClient

__all__ = ["RecipeCompletionClient", "RecipeBatch", "RecipeClient"]
