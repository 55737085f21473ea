"""
Client for the remote recipe generation function.

Mirrors what the mobile app does: try the remote function once (plus one
retry after a session refresh when the token is rejected), sanitize whatever
comes back, and fall back to local drafts on any failure.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

import httpx

from ..core.drafts import generate_recipe_drafts
from ..core.normalizer import GenerationRequest
from ..core.recipe import GeneratedRecipe
from ..core.sanitizer import sanitize_recipe_list

logger = logging.getLogger(__name__)

MODE_REMOTE = "openai"
MODE_LOCAL = "local"

INVALID_JWT_MARKER = "invalid jwt"

TokenRefresher = Callable[[], Awaitable[Optional[str]]]


class RemoteGenerationError(Exception):
    """Remote generation failed; the message is shown as the batch warning."""


@dataclass(frozen=True)
class RecipeBatch:
    """Recipes to present, and where they came from."""
    recipes: List[GeneratedRecipe]
    mode: str
    warning: Optional[str] = None


class RecipeClient:
    """Calls the remote function and falls back to local drafts."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        function_url: str,
        api_key: str,
        refresh_token: Optional[TokenRefresher] = None,
    ):
        """
        Args:
            client: Shared async HTTP client
            function_url: URL of the remote generation function
            api_key: Public API key sent as ``apikey``
            refresh_token: Refreshes the session and returns the new access
                token; used once when the function rejects the token
        """
        if not function_url or not api_key:
            raise ValueError("function_url and api_key are required")
        self.client = client
        self.function_url = function_url
        self.api_key = api_key
        self.refresh_token = refresh_token

    async def invoke(self, request: GenerationRequest, access_token: str) -> Any:
        """POST the request and return the decoded JSON body.

        Raises:
            RemoteGenerationError: Non-success status; the message is the
                error body when there is one, else ``HTTP <status>``
        """
        response = await self.client.post(
            self.function_url,
            headers={"apikey": self.api_key, "Authorization": f"Bearer {access_token}"},
            json={
                "ingredientNames": list(request.ingredient_names),
                "macros": request.macros.as_dict(),
                "timeLimit": request.time_limit,
            },
        )
        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            if body:
                raise RemoteGenerationError(json.dumps(body))
            raise RemoteGenerationError(f"HTTP {response.status_code}")
        return body

    async def generate_remote(self, request: GenerationRequest, access_token: str) -> List[GeneratedRecipe]:
        if not access_token:
            raise RemoteGenerationError("Missing auth token. Please sign in again.")

        try:
            payload = await self.invoke(request, access_token)
        except RemoteGenerationError as first:
            if self.refresh_token is None or INVALID_JWT_MARKER not in str(first).lower():
                raise
            refreshed = await self._refreshed_token(first)
            payload = await self.invoke(request, refreshed)

        items = payload.get("recipes") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise RemoteGenerationError("edge_function_invalid_payload")

        recipes = sanitize_recipe_list(items, request)
        if not recipes:
            raise RemoteGenerationError("edge_function_invalid_recipe_items")
        return recipes

    async def _refreshed_token(self, first: RemoteGenerationError) -> str:
        """Refresh the session once; a failed refresh re-raises ``first``."""
        try:
            token = await self.refresh_token()
        except Exception as e:
            logger.warning("Session refresh failed: %s", e)
            raise first from e
        if not token:
            raise first
        return token

    async def generate_batch(self, request: GenerationRequest, access_token: str) -> RecipeBatch:
        """Remote recipes when possible, local drafts otherwise."""
        local = generate_recipe_drafts(request)
        if not local:
            return RecipeBatch(recipes=[], mode=MODE_LOCAL)

        try:
            recipes = await self.generate_remote(request, access_token)
        except Exception as e:
            detail = str(e) or "Remote generation failed"
            logger.info("Falling back to local drafts: %s", detail)
            return RecipeBatch(recipes=local, mode=MODE_LOCAL, warning=detail)
        return RecipeBatch(recipes=recipes, mode=MODE_REMOTE)
