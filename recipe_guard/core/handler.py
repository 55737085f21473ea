"""
Recipe generation request handler.

Runs the pipeline for one request:

1. Identity - resolve the bearer credential to a user id (401)
2. Normalization - bound the request body, require enough ingredients (400)
3. Rate limit - count the caller's attempts in the trailing window (429)
4. Completion - one timed call to the provider (502/504)
5. Validation - shape-check the provider's JSON (502)

Any stage failure short-circuits to a terminal response. Once the caller is
known and the request passed normalization, exactly one ledger row is
written per request, best-effort.
"""

import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..config.loader import GenerationPolicy
from ..storage.models import GenerationStatus
from .errors import GenerationError, RateLimitExceeded, ValidationError
from .ledger import UsageLedger
from .normalizer import normalize_request
from .rate_limit import check_rate_limit
from .validator import parse_recipe_payload

logger = logging.getLogger(__name__)

UNHANDLED_ERROR_CODE = "unhandled_server_error"


@dataclass(frozen=True)
class HandlerResult:
    """HTTP status and JSON body of a terminal response."""
    status_code: int
    body: Dict[str, Any]

    @classmethod
    def error(cls, status_code: int, message: str) -> "HandlerResult":
        return cls(status_code, {"error": message})


class RecipeGenerationHandler:
    """Orchestrates one generation request.

    Args:
        identity: Object with an async ``resolve(authorization) -> user_id``
        ledger_factory: Builds the caller's UsageLedger from the raw
            ``Authorization`` header (the hosted store forwards it)
        completion: Object with an async ``complete(request) -> str``
        policy: Limits to apply
        clock: Monotonic clock in seconds, used for latency
    """

    def __init__(
        self,
        identity,
        ledger_factory: Callable[[str], UsageLedger],
        completion,
        policy: Optional[GenerationPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.identity = identity
        self.ledger_factory = ledger_factory
        self.completion = completion
        self.policy = policy or GenerationPolicy()
        self.rate_limit = self.policy.rate_limit_policy()
        self.clock = clock

    def _latency_ms(self, started: float) -> int:
        return math.ceil((self.clock() - started) * 1000)

    async def handle(self, authorization: Optional[str], body: bytes) -> HandlerResult:
        started = self.clock()

        try:
            user_id = await self.identity.resolve(authorization)
        except GenerationError as e:
            logger.info("Rejected unauthenticated request: %s", e.message)
            return HandlerResult.error(e.status_code, e.message)
        except Exception:
            logger.exception("Identity resolution failed")
            return HandlerResult.error(500, "Unexpected server error")

        ledger = self.ledger_factory(authorization)
        ingredient_count = 0

        try:
            request = normalize_request(json.loads(body))
            ingredient_count = request.ingredient_count
            if ingredient_count < self.policy.min_ingredients:
                raise ValidationError(
                    f"At least {self.policy.min_ingredients} ingredients are required."
                )

            recent = await ledger.recent_count(user_id)
            check_rate_limit(recent, self.rate_limit)

            content = await self.completion.complete(request)
            recipes = parse_recipe_payload(content, self.policy.max_recipes)
        except ValidationError as e:
            logger.info("Rejected request from %s: %s", user_id, e.message)
            return HandlerResult.error(e.status_code, e.message)
        except RateLimitExceeded as e:
            logger.warning("Rate limit hit for %s (%d/%d)", user_id, e.count, e.limit)
            await ledger.record_safely(
                user_id,
                GenerationStatus.RATE_LIMITED,
                ingredient_count,
                error_code=e.error_code,
            )
            return HandlerResult.error(e.status_code, e.message)
        except GenerationError as e:
            logger.warning("Generation failed for %s: %s", user_id, e.error_code)
            await ledger.record_safely(
                user_id,
                GenerationStatus.ERROR,
                ingredient_count,
                error_code=e.error_code,
                latency_ms=self._latency_ms(started),
            )
            return HandlerResult.error(e.status_code, e.message)
        except Exception:
            logger.exception("Unhandled error generating recipes for %s", user_id)
            await ledger.record_safely(
                user_id,
                GenerationStatus.ERROR,
                ingredient_count,
                error_code=UNHANDLED_ERROR_CODE,
                latency_ms=self._latency_ms(started),
            )
            return HandlerResult.error(500, "Unexpected server error")

        latency_ms = self._latency_ms(started)
        await ledger.record_safely(
            user_id,
            GenerationStatus.SUCCESS,
            ingredient_count,
            latency_ms=latency_ms,
        )
        logger.info("Generated %d recipes for %s in %dms", len(recipes), user_id, latency_ms)
        return HandlerResult(200, {"recipes": recipes})
