"""Tests for the HTTP transport executors."""

import sys
import os
from unittest.mock import patch, MagicMock

import pytest
import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tgbot.exceptions import TransportError
from tgbot.executor import (
    POLL_TIMEOUT_MARGIN,
    DirectExecutor,
    Executor,
    ProxyExecutor,
    default_executor,
    proxy_executor,
)
from tgbot.request import FilePart, JsonBody, MultipartBody, NoBody, RequestDescriptor, TextPart

TOKEN = "123456:SECRET-token"


def _response(status: int = 200, content: bytes = b'{"ok": true, "result": true}') -> MagicMock:
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.content = content
    return resp


# ── Construction ─────────────────────────────────────────────────────────────


class TestConstruction:
    """Executor configuration and factories."""

    def test_factories(self) -> None:
        assert isinstance(default_executor(TOKEN), DirectExecutor)
        assert isinstance(proxy_executor(TOKEN, "http://proxy:3128"), ProxyExecutor)

    def test_satisfies_protocol(self) -> None:
        assert isinstance(DirectExecutor(TOKEN), Executor)

    def test_empty_token_rejected(self) -> None:
        with pytest.raises(ValueError):
            DirectExecutor("")

    def test_empty_proxy_rejected(self) -> None:
        with pytest.raises(ValueError):
            ProxyExecutor(TOKEN, "")

    def test_repr_hides_token(self) -> None:
        assert TOKEN not in repr(DirectExecutor(TOKEN))
        assert TOKEN not in repr(ProxyExecutor(TOKEN, "http://proxy:3128"))


# ── Request shape ────────────────────────────────────────────────────────────


class TestRequestShape:
    """Descriptors are translated into the right requests call."""

    @patch("tgbot.executor.requests.request")
    def test_get_without_body(self, mock_request: MagicMock) -> None:
        mock_request.return_value = _response()
        body = DirectExecutor(TOKEN, base_url="https://api.example.com/").execute(
            RequestDescriptor("GET", "getMe", NoBody())
        )
        assert body == b'{"ok": true, "result": true}'
        args, kwargs = mock_request.call_args
        assert args == ("GET", f"https://api.example.com/bot{TOKEN}/getMe")
        assert kwargs["proxies"] is None
        assert "json" not in kwargs and "data" not in kwargs and "files" not in kwargs

    @patch("tgbot.executor.requests.request")
    def test_json_body(self, mock_request: MagicMock) -> None:
        mock_request.return_value = _response()
        DirectExecutor(TOKEN).execute(RequestDescriptor("POST", "sendMessage", JsonBody({"chat_id": 1, "text": "hi"})))
        kwargs = mock_request.call_args.kwargs
        assert kwargs["json"] == {"chat_id": 1, "text": "hi"}
        assert "data" not in kwargs and "files" not in kwargs

    @patch("tgbot.executor.requests.request")
    def test_multipart_body_keeps_part_order(self, mock_request: MagicMock) -> None:
        mock_request.return_value = _response()
        body = MultipartBody((
            TextPart("chat_id", "1"),
            FilePart("document", "a.txt", b"abc", "text/plain"),
            FilePart("thumb", "t.jpg", b"jpg"),
        ))
        DirectExecutor(TOKEN).execute(RequestDescriptor("POST", "sendDocument", body))
        assert mock_request.call_args.kwargs["files"] == [
            ("chat_id", (None, "1")),
            ("document", ("a.txt", b"abc", "text/plain")),
            ("thumb", ("t.jpg", b"jpg")),
        ]

    @patch("tgbot.executor.requests.request")
    def test_proxy_mapping_passed(self, mock_request: MagicMock) -> None:
        mock_request.return_value = _response()
        ProxyExecutor(TOKEN, "socks5://127.0.0.1:1080").execute(RequestDescriptor("GET", "getMe"))
        assert mock_request.call_args.kwargs["proxies"] == {
            "http": "socks5://127.0.0.1:1080",
            "https": "socks5://127.0.0.1:1080",
        }


# ── Timeouts ─────────────────────────────────────────────────────────────────


class TestTimeouts:
    """The local timeout always exceeds the server-side long-poll wait."""

    @patch("tgbot.executor.requests.request")
    def test_default_timeout(self, mock_request: MagicMock) -> None:
        mock_request.return_value = _response()
        DirectExecutor(TOKEN, timeout=7).execute(RequestDescriptor("GET", "getMe"))
        assert mock_request.call_args.kwargs["timeout"] == 7

    @pytest.mark.parametrize("poll_timeout", [0, 5, 30, 50])
    def test_poll_timeout_is_exceeded(self, poll_timeout: int) -> None:
        executor = DirectExecutor(TOKEN, timeout=10)
        request = RequestDescriptor("POST", "getUpdates", JsonBody({"timeout": poll_timeout}), poll_timeout)
        assert executor.timeout_for(request) > poll_timeout
        assert executor.timeout_for(request) >= 10

    def test_margin_applied(self) -> None:
        request = RequestDescriptor("POST", "getUpdates", JsonBody({"timeout": 30}), 30)
        assert DirectExecutor(TOKEN, timeout=10).timeout_for(request) == 30 + POLL_TIMEOUT_MARGIN


# ── Failures ─────────────────────────────────────────────────────────────────


class TestFailures:
    """Every failure surfaces as TransportError without leaking the token."""

    @patch("tgbot.executor.requests.request")
    def test_non_2xx_keeps_status_and_body(self, mock_request: MagicMock) -> None:
        mock_request.return_value = _response(502, b"Bad Gateway")
        with pytest.raises(TransportError) as exc_info:
            DirectExecutor(TOKEN).execute(RequestDescriptor("GET", "getMe"))
        assert exc_info.value.status_code == 502
        assert exc_info.value.body == b"Bad Gateway"
        mock_request.assert_called_once()

    @pytest.mark.parametrize("error", [
        requests.ConnectionError(f"Max retries exceeded with url: /bot{TOKEN}/getMe"),
        requests.exceptions.SSLError(f"handshake failed for /bot{TOKEN}/getMe"),
        requests.Timeout(f"Read timed out: /bot{TOKEN}/getMe"),
        requests.RequestException(f"boom /bot{TOKEN}/getMe"),
    ])
    def test_request_errors_wrapped_and_redacted(self, error: Exception) -> None:
        with patch("tgbot.executor.requests.request", side_effect=error):
            with pytest.raises(TransportError) as exc_info:
                DirectExecutor(TOKEN).execute(RequestDescriptor("GET", "getMe"))
        assert exc_info.value.status_code is None
        assert TOKEN not in str(exc_info.value)
        assert "<token>" in str(exc_info.value)
        assert exc_info.value.__cause__ is None
