"""Asynchronous Mailchimp client.

Provides ``MailChimpAsyncClient``, an async transport for the Mailchimp
Marketing API v3 using :mod:`httpx` with ``AsyncClient``.
"""

from __future__ import annotations

from typing import Any

import httpx

from mailchimp_net.client import handle_response, resolve_base_url


class MailChimpAsyncClient:
    """Asynchronous client for the Mailchimp Marketing API.

    Usage::

        import asyncio
        from mailchimp_net import MailChimpAsyncClient

        async def main():
            async with MailChimpAsyncClient("0123abcd-us6") as client:
                print(await client.ping())

        asyncio.run(main())

    Args:
        api_key: Mailchimp API key, including its data centre suffix.
        timeout: HTTP request timeout in seconds. Defaults to 30.
        base_url: Override the API root derived from the key.
    """

    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = 30.0,
        base_url: str | None = None,
    ) -> None:
        self._base_url = resolve_base_url(api_key, base_url)
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            auth=httpx.BasicAuth("anystring", api_key),
            timeout=timeout,
        )

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> MailChimpAsyncClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying async HTTP connection pool."""
        await self._http.aclose()

    async def ping(self) -> Any:
        """Check that the API key is valid and the API is reachable."""
        return await self._get("/ping")

    # -- Internal HTTP helpers ----------------------------------------------

    async def _get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        """Send an async GET request."""
        return handle_response(await self._http.get(path, params=params))

    async def _post(self, path: str, *, json: Any | None = None) -> Any:
        """Send an async POST request."""
        return handle_response(await self._http.post(path, json=json))

    async def _put(self, path: str, *, json: Any) -> Any:
        """Send an async PUT request."""
        return handle_response(await self._http.put(path, json=json))

    async def _patch(self, path: str, *, json: Any) -> Any:
        """Send an async PATCH request."""
        return handle_response(await self._http.patch(path, json=json))

    async def _delete(self, path: str) -> Any:
        """Send an async DELETE request."""
        return handle_response(await self._http.delete(path))
