"""
Recipe completion client.

One bounded call to the OpenAI chat completions API per request. Failures
are classified, never retried.
"""

import asyncio
import logging
from typing import Any, Optional

from openai import APIStatusError, APITimeoutError, AsyncOpenAI

from ..core.errors import UpstreamError, UpstreamTimeout
from ..core.normalizer import GenerationRequest
from ..core.prompt import build_messages

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0


class RecipeCompletionClient:
    """OpenAI client wrapper that returns the raw completion text.

    The call runs under a hard wall-clock timeout; the SDK's own retries are
    disabled so one request is at most one provider call.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        temperature: float = 0.7,
        recipe_count: int = 3,
        client: Optional[AsyncOpenAI] = None,
    ):
        """Initialize the completion client.

        Args:
            api_key: OpenAI API key (required)
            model: OpenAI model name (required)
            timeout: Wall-clock limit for one call, in seconds
            temperature: Sampling temperature
            recipe_count: Number of recipes the prompt asks for
            client: Preconfigured AsyncOpenAI instance (tests)

        Raises:
            ValueError: If model or api_key is missing/empty
        """
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")
        if client is None and (not api_key or not api_key.strip()):
            raise ValueError("api_key is required and cannot be empty")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")

        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.recipe_count = recipe_count
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def complete(self, request: GenerationRequest) -> str:
        """Request recipes for ``request`` and return the message text.

        Returns:
            The completion's message content

        Raises:
            UpstreamTimeout: The call did not finish within ``timeout``
            UpstreamError: Non-success status (``openai_http_<status>``) or
                empty content (``openai_empty_content``)
        """
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    temperature=self.temperature,
                    response_format={"type": "json_object"},
                    messages=build_messages(request, self.recipe_count),
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, APITimeoutError):
            logger.warning("OpenAI call exceeded %.1fs", self.timeout)
            raise UpstreamTimeout()
        except APIStatusError as e:
            raise UpstreamError(
                f"OpenAI request failed with status {e.status_code}",
                error_code=f"openai_http_{e.status_code}",
            )

        content = _message_content(response)
        if not content:
            raise UpstreamError("OpenAI returned empty content", error_code="openai_empty_content")
        return content

    async def close(self) -> None:
        await self.client.close()


def _message_content(response: Any) -> Optional[str]:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return content if isinstance(content, str) else None
