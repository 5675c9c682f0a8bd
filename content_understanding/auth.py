"""
Authentication strategies for the Content Understanding client.

Both strategies are ``httpx.Auth`` flows, so httpx runs them for every request
the client sends, including each poll of an operation:

- ``SubscriptionKeyAuth`` sets the static ``Ocp-Apim-Subscription-Key`` header.
- ``TokenCredentialAuth`` asks the credential for a fresh bearer token for
  ``COGNITIVE_SERVICES_SCOPE`` and sets ``Authorization: Bearer <token>``.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncGenerator, Generator, Protocol

import httpx

logger = logging.getLogger("content_understanding.auth")

COGNITIVE_SERVICES_SCOPE = "https://cognitiveservices.azure.com/.default"
SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"


class AsyncTokenCredential(Protocol):
    """Anything with ``async get_token(*scopes)``, e.g. ``azure.identity.aio.DefaultAzureCredential``."""

    async def get_token(self, *scopes: str, **kwargs: Any) -> Any: ...


class SubscriptionKeyAuth(httpx.Auth):
    def __init__(self, api_key: str):
        if not api_key or not api_key.strip():
            raise ValueError("api_key must not be blank")
        self._headers = {SUBSCRIPTION_KEY_HEADER: api_key}

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers.update(self._headers)
        yield request


class TokenCredentialAuth(httpx.Auth):
    def __init__(self, credential: AsyncTokenCredential, scope: str = COGNITIVE_SERVICES_SCOPE):
        if credential is None:
            raise ValueError("credential must not be None")
        self.credential = credential
        self.scope = scope

    async def _bearer_token(self) -> str:
        # 每次请求都重新取 token，缓存交给 credential 自己处理
        access_token = await self.credential.get_token(self.scope)
        token = access_token if isinstance(access_token, str) else getattr(access_token, "token", None)
        if not token:
            raise ValueError("credential returned an empty token")
        return token

    def sync_auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("TokenCredentialAuth requires an httpx.AsyncClient")

    async def async_auth_flow(self, request: httpx.Request) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self._bearer_token()
        logger.debug({"event": "auth.token_acquired", "scope": self.scope})
        request.headers["Authorization"] = f"Bearer {token}"
        yield request


def select_auth(*, api_key: str | None = None, credential: AsyncTokenCredential | None = None) -> httpx.Auth:
    """Pick exactly one strategy; both or neither is a configuration error."""
    if (api_key is None) == (credential is None):
        raise ValueError("Provide exactly one of 'api_key' or 'credential'")
    if credential is not None:
        return TokenCredentialAuth(credential)
    return SubscriptionKeyAuth(api_key)
