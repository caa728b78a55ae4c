"""Async HTTP client for outbound calls to the email API."""

from typing import Any, Optional

import httpx

DEFAULT_USER_AGENT = "recipe-hub/1.0"


class HttpClient:
    """Owns one httpx.AsyncClient for the app's lifetime.

    Created in the lifespan only when an outbound provider is configured and
    closed on shutdown. Callers pass per-request headers; the User-Agent is
    set once here.
    """

    def __init__(self, timeout: float = 10.0, user_agent: Optional[str] = None) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent or DEFAULT_USER_AGENT},
        )

    @property
    def timeout(self) -> httpx.Timeout:
        return self._client.timeout

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.post(url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
