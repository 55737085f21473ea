"""
Shape validation of completion output.

The model's text is untrusted. It must parse as a JSON object holding a
``recipes`` array; anything else is rejected rather than passed upward.
Field-level checks are left to the consuming client (see ``sanitizer``).
"""

import json
from typing import Any, List

from .errors import UpstreamError

MAX_RECIPES = 3


def parse_recipe_payload(content: str, limit: int = MAX_RECIPES) -> List[Any]:
    """Parse completion text and return at most ``limit`` recipe entries.

    Args:
        content: Raw text returned by the completion provider
        limit: Maximum number of entries to return

    Returns:
        The first ``limit`` entries of the ``recipes`` array, in order

    Raises:
        json.JSONDecodeError: If the text is not JSON
        UpstreamError: If the JSON has no ``recipes`` array
    """
    parsed = json.loads(content)
    recipes = parsed.get("recipes") if isinstance(parsed, dict) else None
    if not isinstance(recipes, list):
        raise UpstreamError(
            "Invalid OpenAI payload shape", error_code="openai_invalid_payload_shape"
        )
    return recipes[:limit]
