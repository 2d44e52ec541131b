"""Tests for craft.platform.http module."""

from __future__ import annotations

from craft.core.result import Err, Ok
from craft.platform.http import HttpClient, HttpError, MockHttpClient, RealHttpClient


class TestHttpError:
    def test_str_with_status(self) -> None:
        error = HttpError(url="https://x", status=429, message="Too Many Requests")
        assert str(error) == "HTTP 429: Too Many Requests (https://x)"

    def test_str_network_error(self) -> None:
        error = HttpError(url="https://x", status=0, message="Connection refused")
        assert str(error) == "Connection refused (https://x)"


class TestMockHttpClient:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(MockHttpClient(), HttpClient)
        assert isinstance(RealHttpClient(), HttpClient)

    def test_canned_response(self) -> None:
        client = MockHttpClient()
        client.set_json("https://models.example/chat", {"ok": True})

        result = client.post_json("https://models.example/chat", {"q": 1})

        assert result == Ok({"ok": True})
        assert client.calls == [("https://models.example/chat", {"q": 1})]

    def test_canned_error(self) -> None:
        client = MockHttpClient()
        error = HttpError(url="https://models.example/chat", status=500, message="down")
        client.set_json("https://models.example/chat", error)

        assert client.post_json("https://models.example/chat", {}) == Err(error)

    def test_unknown_url_is_404(self) -> None:
        result = MockHttpClient().post_json("https://nowhere", {})
        assert isinstance(result, Err)
        assert result.error.status == 404
