"""
Caller identity resolution.

Exchanges the bearer credential on an incoming request for the caller's user
id by asking the backend's auth endpoint who the token belongs to.
"""

from typing import Optional

import httpx

from .errors import AuthError

BEARER_PREFIX = "Bearer "


def bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthError: If the header is missing or not a bearer credential
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthError()
    return authorization[len(BEARER_PREFIX):]


class IdentityResolver:
    """Resolves bearer credentials through ``GET /auth/v1/user``."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, service_key: str):
        self.client = client
        self.url = f"{base_url.rstrip('/')}/auth/v1/user"
        self.service_key = service_key

    async def resolve(self, authorization: Optional[str]) -> str:
        """Resolve the caller's user id.

        Args:
            authorization: Raw ``Authorization`` header, forwarded unchanged

        Returns:
            The caller's user id

        Raises:
            AuthError: Missing credential, non-success response, or a body
                without an ``id``
            httpx.HTTPError: Transport failures, propagated without retry
        """
        bearer_token(authorization)
        response = await self.client.get(
            self.url,
            headers={"Authorization": authorization, "apikey": self.service_key},
        )
        if not response.is_success:
            raise AuthError()
        try:
            data = response.json()
        except ValueError:
            raise AuthError()
        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id or not isinstance(user_id, str):
            raise AuthError()
        return user_id
