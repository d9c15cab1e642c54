"""Tests for the Mailchimp clients.

Uses ``respx`` to mock httpx requests without hitting a real server.
"""

from __future__ import annotations

import base64
import io
import json
import logging
import pickle

import httpx
import pytest
import respx

from mailchimp_net import (
    FieldError,
    MailChimpAsyncClient,
    MailChimpClient,
    MailChimpError,
    ProblemDetail,
)
from mailchimp_net.client import resolve_base_url


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

API_KEY = "0123abcd-us6"
BASE_URL = "https://us6.api.mailchimp.com/3.0"

INVALID_RESOURCE = {
    "type": "https://mailchimp.com/developer/marketing/docs/errors/",
    "title": "Invalid Resource",
    "status": 400,
    "detail": "The resource submitted could not be validated.",
    "instance": "c1234",
    "errors": [{"field": "email_address", "message": "is invalid"}],
}


@pytest.fixture()
def client() -> MailChimpClient:
    """Create a sync MailChimpClient for the us6 data centre."""
    return MailChimpClient(API_KEY)


@pytest.fixture()
def async_client() -> MailChimpAsyncClient:
    """Create an async MailChimpAsyncClient for the us6 data centre."""
    return MailChimpAsyncClient(API_KEY)


# ---------------------------------------------------------------------------
# Client construction
# ---------------------------------------------------------------------------


class TestClientConstruction:
    """Verify client initialization and configuration."""

    def test_base_url_from_api_key(self) -> None:
        c = MailChimpClient("abc-us21")
        assert c._base_url == "https://us21.api.mailchimp.com/3.0"

    def test_explicit_base_url_wins(self) -> None:
        c = MailChimpClient(API_KEY, base_url="http://mailchimp.test/3.0///")
        assert c._base_url == "http://mailchimp.test/3.0"

    @pytest.mark.parametrize("key", ["no-datacenter-", "nodatacenter", ""])
    def test_key_without_datacenter_rejected(self, key: str) -> None:
        with pytest.raises(ValueError):
            resolve_base_url(key)

    def test_context_manager(self) -> None:
        with MailChimpClient(API_KEY) as c:
            assert not c._http.is_closed
        assert c._http.is_closed


# ---------------------------------------------------------------------------
# Successful requests
# ---------------------------------------------------------------------------


class TestRequests:
    """Verify requests are sent with credentials and bodies are returned."""

    @respx.mock
    def test_ping(self, client: MailChimpClient) -> None:
        route = respx.get(f"{BASE_URL}/ping").mock(
            return_value=httpx.Response(
                200, json={"health_status": "Everything's Chimpy!"}
            )
        )

        result = client.ping()

        assert route.called
        assert result == {"health_status": "Everything's Chimpy!"}

    @respx.mock
    def test_basic_auth_uses_api_key(self, client: MailChimpClient) -> None:
        route = respx.get(f"{BASE_URL}/ping").mock(
            return_value=httpx.Response(200, json={})
        )

        client.ping()

        header = route.calls.last.request.headers["Authorization"]
        assert header.startswith("Basic ")
        decoded = base64.b64decode(header.split(" ", 1)[1]).decode()
        assert decoded == f"anystring:{API_KEY}"

    @respx.mock
    def test_post_sends_json(self, client: MailChimpClient) -> None:
        route = respx.post(f"{BASE_URL}/lists/abc/members").mock(
            return_value=httpx.Response(200, json={"id": "m1"})
        )

        result = client._post(
            "/lists/abc/members", json={"email_address": "a@example.com"}
        )

        assert json.loads(route.calls.last.request.content) == {
            "email_address": "a@example.com"
        }
        assert result == {"id": "m1"}

    @respx.mock
    def test_delete_no_content(self, client: MailChimpClient) -> None:
        respx.delete(f"{BASE_URL}/lists/abc").mock(return_value=httpx.Response(204))

        assert client._delete("/lists/abc") is None


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


class TestErrorHandling:
    """Verify that HTTP errors are raised as MailChimpError."""

    @pytest.fixture(autouse=True)
    def _quiet_stderr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stderr", io.StringIO())

    @respx.mock
    def test_problem_document_decoded(self, client: MailChimpClient) -> None:
        respx.post(f"{BASE_URL}/lists/abc/members").mock(
            return_value=httpx.Response(400, json=INVALID_RESOURCE)
        )

        with pytest.raises(MailChimpError) as exc_info:
            client._post("/lists/abc/members", json={"email_address": "nope"})

        err = exc_info.value
        assert err.status == 400
        assert err.title == "Invalid Resource"
        assert err.instance == "c1234"
        assert err.errors == [FieldError("email_address", "is invalid")]

    @respx.mock
    def test_error_str_representation(self, client: MailChimpClient) -> None:
        respx.get(f"{BASE_URL}/lists/missing").mock(
            return_value=httpx.Response(
                404,
                json={
                    "title": "Resource Not Found",
                    "status": 404,
                    "detail": "The requested resource could not be found.",
                },
            )
        )

        with pytest.raises(MailChimpError) as exc_info:
            client._get("/lists/missing")

        assert str(exc_info.value) == (
            "404 Resource Not Found: The requested resource could not be found."
        )

    @respx.mock
    def test_non_json_body(self, client: MailChimpClient) -> None:
        respx.get(f"{BASE_URL}/ping").mock(
            return_value=httpx.Response(500, text="Internal Server Error")
        )

        with pytest.raises(MailChimpError) as exc_info:
            client.ping()

        err = exc_info.value
        assert err.status == 500
        assert err.title == "Internal Server Error"
        assert err.errors == []

    @respx.mock
    def test_partial_problem_document(self, client: MailChimpClient) -> None:
        respx.get(f"{BASE_URL}/ping").mock(
            return_value=httpx.Response(
                401, json={"title": "API Key Invalid", "status": "401", "errors": 3}
            )
        )

        with pytest.raises(MailChimpError) as exc_info:
            client.ping()

        err = exc_info.value
        assert err.status == 401
        assert err.title == "API Key Invalid"
        assert err.errors == []

    @respx.mock
    def test_warning_logs_final_problem(
        self, client: MailChimpClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.WARNING, logger="mailchimp_net.client")
        respx.get(f"{BASE_URL}/ping").mock(
            return_value=httpx.Response(500, text="Internal Server Error")
        )

        with pytest.raises(MailChimpError):
            client.ping()

        records = [r for r in caplog.records if r.name == "mailchimp_net.client"]
        assert len(records) == 1
        message = records[0].getMessage()
        assert "Title: Internal Server Error" in message
        assert "Status: 500" in message

    @respx.mock
    def test_json_array_body(self, client: MailChimpClient) -> None:
        respx.get(f"{BASE_URL}/ping").mock(
            return_value=httpx.Response(503, json=["unavailable"])
        )

        with pytest.raises(MailChimpError) as exc_info:
            client.ping()

        assert exc_info.value.status == 503
        assert exc_info.value.title == "Service Unavailable"


# ---------------------------------------------------------------------------
# MailChimpError
# ---------------------------------------------------------------------------


class TestMailChimpError:
    """Verify the exception wrapper around a decoded problem."""

    def test_message_without_title(self) -> None:
        assert str(MailChimpError(ProblemDetail(status=502))) == "HTTP 502"

    def test_message_without_detail(self) -> None:
        err = MailChimpError(ProblemDetail(title="Forbidden", status=403))
        assert str(err) == "403 Forbidden"
        assert err.message == "403 Forbidden"

    def test_repr(self) -> None:
        err = MailChimpError(ProblemDetail(title="Forbidden", status=403, instance="i1"))
        assert repr(err) == (
            "MailChimpError(status=403, title='Forbidden', instance='i1')"
        )

    def test_pickle_round_trip(self, capsys: pytest.CaptureFixture[str]) -> None:
        problem = ProblemDetail(
            title="Invalid Resource",
            type="https://mailchimp.com/developer/marketing/docs/errors/",
            status=400,
            detail="The resource submitted could not be validated.",
            instance="c1234",
            errors=[FieldError("email_address", "is invalid")],
        )

        restored = pickle.loads(pickle.dumps(MailChimpError(problem)))

        assert isinstance(restored, MailChimpError)
        assert restored.problem == problem
        assert str(restored) == str(MailChimpError(problem))
        assert "email_address is invalid" in capsys.readouterr().err

    def test_pickle_round_trip_with_absent_errors(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        problem = ProblemDetail(title="Bad Request", status=400)
        problem.errors = None  # type: ignore[assignment]

        restored = pickle.loads(pickle.dumps(MailChimpError(problem)))

        assert restored.status == 400
        assert restored.title == "Bad Request"
        assert restored.errors == []


# ---------------------------------------------------------------------------
# Async client
# ---------------------------------------------------------------------------


class TestAsyncClient:
    """Verify async client mirrors sync behavior."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_async_ping(self, async_client: MailChimpAsyncClient) -> None:
        respx.get(f"{BASE_URL}/ping").mock(
            return_value=httpx.Response(
                200, json={"health_status": "Everything's Chimpy!"}
            )
        )

        result = await async_client.ping()
        assert result["health_status"] == "Everything's Chimpy!"

    @respx.mock
    @pytest.mark.asyncio
    async def test_async_error_handling(
        self,
        async_client: MailChimpAsyncClient,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        respx.patch(f"{BASE_URL}/lists/abc").mock(
            return_value=httpx.Response(400, json=INVALID_RESOURCE)
        )

        with pytest.raises(MailChimpError) as exc_info:
            await async_client._patch("/lists/abc", json={"name": ""})

        assert exc_info.value.status == 400
        assert exc_info.value.instance == "c1234"
        assert "Title: Invalid Resource" in capsys.readouterr().err

    @respx.mock
    @pytest.mark.asyncio
    async def test_async_context_manager(self) -> None:
        respx.get(f"{BASE_URL}/ping").mock(
            return_value=httpx.Response(200, json={"health_status": "ok"})
        )

        async with MailChimpAsyncClient(API_KEY) as c:
            result = await c.ping()
            assert result["health_status"] == "ok"

        assert c._http.is_closed
