"""
HTTP surface of the recipe generation function.
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Dict, Optional, Tuple

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from ..config.loader import (
    GenerationPolicy,
    ServiceSecrets,
    load_generation_policy,
    load_service_secrets,
)
from ..core.errors import ConfigError
from ..core.handler import HandlerResult, RecipeGenerationHandler
from ..core.identity import IdentityResolver
from ..core.ledger import UsageLedger
from ..sdk.openai_client import RecipeCompletionClient
from ..storage.rest import RestLedgerStore

logger = logging.getLogger(__name__)

GENERATE_PATH = "/generate-recipes"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

CompletionFactory = Callable[[ServiceSecrets, GenerationPolicy], object]


def default_completion_factory(secrets: ServiceSecrets, policy: GenerationPolicy) -> RecipeCompletionClient:
    return RecipeCompletionClient(
        api_key=secrets.openai_api_key,
        model=secrets.openai_model,
        timeout=policy.completion_timeout_seconds,
        temperature=policy.temperature,
        recipe_count=policy.max_recipes,
    )


def json_response(result: HandlerResult) -> JSONResponse:
    return JSONResponse(result.body, status_code=result.status_code, headers=CORS_HEADERS)


def create_app(
    policy: Optional[GenerationPolicy] = None,
    secrets_loader: Callable[[], ServiceSecrets] = load_service_secrets,
    completion_factory: CompletionFactory = default_completion_factory,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        policy: Generation limits (defaults to ``load_generation_policy()``)
        secrets_loader: Reads secrets on every request so a missing secret
            is reported as a 500 rather than failing startup
        completion_factory: Builds the completion client for a set of secrets
        transport: httpx transport for backend calls (tests)
    """
    policy = policy or load_generation_policy()
    completion_clients: Dict[Tuple[str, str], RecipeCompletionClient] = {}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(
            timeout=policy.backend_timeout_seconds, transport=transport
        ) as client:
            app.state.http_client = client
            yield
        for completion in completion_clients.values():
            await completion.close()
        completion_clients.clear()

    app = FastAPI(title="recipe-guard", lifespan=lifespan)

    def completion_for(secrets: ServiceSecrets):
        key = (secrets.openai_api_key, secrets.openai_model)
        if key not in completion_clients:
            completion_clients[key] = completion_factory(secrets, policy)
        return completion_clients[key]

    @app.options(GENERATE_PATH)
    async def preflight() -> PlainTextResponse:
        return PlainTextResponse("ok", headers=CORS_HEADERS)

    @app.post(GENERATE_PATH)
    async def generate_recipes(request: Request) -> JSONResponse:
        try:
            secrets = secrets_loader()
        except ConfigError as e:
            logger.error("Configuration error: %s", e.message)
            return json_response(HandlerResult.error(e.status_code, e.message))

        client: httpx.AsyncClient = request.app.state.http_client
        rate_limit = policy.rate_limit_policy()

        def ledger_for(authorization: str) -> UsageLedger:
            store = RestLedgerStore(client, secrets.backend_url, secrets.backend_key, authorization)
            return UsageLedger(store, rate_limit)

        handler = RecipeGenerationHandler(
            identity=IdentityResolver(client, secrets.backend_url, secrets.backend_key),
            ledger_factory=ledger_for,
            completion=completion_for(secrets),
            policy=policy,
        )
        result = await handler.handle(request.headers.get("authorization"), await request.body())
        return json_response(result)

    @app.api_route(GENERATE_PATH, methods=["GET", "PUT", "PATCH", "DELETE"])
    async def method_not_allowed() -> JSONResponse:
        return json_response(HandlerResult.error(405, "Method not allowed"))

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    return app
