"""Synchronous Mailchimp client.

Provides ``MailChimpClient``, a thin synchronous transport for the
Mailchimp Marketing API v3 using :mod:`httpx`. Failed requests raise
:class:`~mailchimp_net.exceptions.MailChimpError` carrying the decoded
problem document.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from mailchimp_net.exceptions import MailChimpError

logger = logging.getLogger(__name__)


def resolve_base_url(api_key: str, base_url: str | None = None) -> str:
    """Return the API root for ``api_key``.

    Mailchimp API keys end in the data centre that hosts the account
    (``0123abcd-us6`` -> ``https://us6.api.mailchimp.com/3.0``). An explicit
    ``base_url`` takes precedence.

    Raises:
        ValueError: If no ``base_url`` is given and the key has no data
            centre suffix.
    """
    if base_url:
        return base_url.rstrip("/")
    _, sep, datacenter = api_key.rpartition("-")
    if not sep or not datacenter:
        raise ValueError("API key has no data centre suffix (expected '<key>-<dc>')")
    return f"https://{datacenter}.api.mailchimp.com/3.0"


def handle_response(response: httpx.Response) -> Any:
    """Process an HTTP response, raising on errors.

    Returns the parsed JSON body, or ``None`` for an empty body.

    Raises:
        MailChimpError: If the response is not a success.
    """
    if not response.is_success:
        error = MailChimpError.from_response(response)
        logger.warning(
            "%s %s failed: %s",
            response.request.method,
            response.request.url,
            error.problem.diagnostic(),
        )
        raise error

    if response.status_code == 204 or not response.content:
        return None
    return response.json()


class MailChimpClient:
    """Synchronous client for the Mailchimp Marketing API.

    Usage::

        from mailchimp_net import MailChimpClient

        with MailChimpClient("0123abcd-us6") as client:
            print(client.ping())

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
        self._http = httpx.Client(
            base_url=self._base_url,
            auth=httpx.BasicAuth("anystring", api_key),
            timeout=timeout,
        )

    # -- Context manager ----------------------------------------------------

    def __enter__(self) -> MailChimpClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def ping(self) -> Any:
        """Check that the API key is valid and the API is reachable."""
        return self._get("/ping")

    # -- Internal HTTP helpers ----------------------------------------------

    def _get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        """Send a GET request."""
        return handle_response(self._http.get(path, params=params))

    def _post(self, path: str, *, json: Any | None = None) -> Any:
        """Send a POST request."""
        return handle_response(self._http.post(path, json=json))

    def _put(self, path: str, *, json: Any) -> Any:
        """Send a PUT request."""
        return handle_response(self._http.put(path, json=json))

    def _patch(self, path: str, *, json: Any) -> Any:
        """Send a PATCH request."""
        return handle_response(self._http.patch(path, json=json))

    def _delete(self, path: str) -> Any:
        """Send a DELETE request."""
        return handle_response(self._http.delete(path))
