"""Tests for chat/transport.py -- CompletionClient against a fake HTTP session."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from chat.errors import ApiError, AuthError
from chat.transport import CompletionClient
from shelly_constants import OPENROUTER_CHAT_URL


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config():
    return {
        "api_key": "sk-or-test-key-1234567890",
        "model": "openai/gpt-4o-mini",
        "site_url": "https://shelly-ai.local",
        "site_name": "Shelly-AI CLI",
        "max_history_length": 10,
    }


def _response(status=200, payload=None, chunks=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    resp.iter_content.return_value = iter(chunks or [])
    return resp


def _client(config, response=None, side_effect=None):
    session = MagicMock()
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    return CompletionClient(config, session=session), session


MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------


class TestRequest:
    def test_headers_and_body(self, config):
        client, session = _client(config, _response(payload={"choices": [{"message": {"content": "ok"}}]}))
        client.complete(MESSAGES, 0.3)

        args, kwargs = session.post.call_args
        assert args[0] == OPENROUTER_CHAT_URL
        headers = kwargs["headers"]
        assert headers["Authorization"] == "Bearer sk-or-test-key-1234567890"
        assert headers["HTTP-Referer"] == "https://shelly-ai.local"
        assert headers["X-Title"] == "Shelly-AI CLI"
        body = json.loads(kwargs["data"])
        assert body == {
            "model": "openai/gpt-4o-mini",
            "messages": MESSAGES,
            "temperature": 0.3,
            "stream": False,
        }
        assert kwargs["stream"] is False

    def test_model_change_applies_to_next_call(self, config):
        client, session = _client(config, _response(payload={"choices": [{"message": {"content": "ok"}}]}))
        config["model"] = "deepseek/deepseek-r1:free"
        client.complete(MESSAGES, 0.7)
        assert json.loads(session.post.call_args.kwargs["data"])["model"] == "deepseek/deepseek-r1:free"

    def test_missing_key_raises_auth_error_without_network(self, config):
        config["api_key"] = ""
        client, session = _client(config, _response())
        with pytest.raises(AuthError):
            client.complete(MESSAGES, 0.7)
        with pytest.raises(AuthError):
            client.stream(MESSAGES, 0.7)
        session.post.assert_not_called()


# ---------------------------------------------------------------------------
# Buffered mode
# ---------------------------------------------------------------------------


class TestComplete:
    def test_returns_message_content(self, config):
        client, _ = _client(config, _response(payload={"choices": [{"message": {"content": "Hello!"}}]}))
        assert client.complete(MESSAGES, 0.7) == "Hello!"

    def test_null_content_becomes_empty_string(self, config):
        client, _ = _client(config, _response(payload={"choices": [{"message": {"content": None}}]}))
        assert client.complete(MESSAGES, 0.7) == ""

    def test_error_envelope_message(self, config):
        client, _ = _client(config, _response(401, {"error": {"message": "No auth credentials found"}}))
        with pytest.raises(ApiError) as exc_info:
            client.complete(MESSAGES, 0.7)
        assert exc_info.value.status == 401
        assert exc_info.value.message == "No auth credentials found"
        assert str(exc_info.value) == "API error (401): No auth credentials found"

    @pytest.mark.parametrize("payload", [ValueError("not json"), {}, {"error": "flat"}, ["x"]])
    def test_error_without_message_defaults(self, config, payload):
        client, _ = _client(config, _response(502, payload))
        with pytest.raises(ApiError) as exc_info:
            client.complete(MESSAGES, 0.7)
        assert exc_info.value.status == 502
        assert exc_info.value.message == "Unknown error"

    def test_malformed_success_body(self, config):
        client, _ = _client(config, _response(payload={"choices": []}))
        with pytest.raises(ApiError, match="Malformed response"):
            client.complete(MESSAGES, 0.7)

    def test_network_failure_becomes_api_error(self, config):
        client, _ = _client(config, side_effect=requests.ConnectionError("connection refused"))
        with pytest.raises(ApiError) as exc_info:
            client.complete(MESSAGES, 0.7)
        assert exc_info.value.status is None
        assert "connection refused" in str(exc_info.value)

    def test_no_retry_on_failure(self, config):
        client, session = _client(config, _response(500, {"error": {"message": "boom"}}))
        with pytest.raises(ApiError):
            client.complete(MESSAGES, 0.7)
        assert session.post.call_count == 1


# ---------------------------------------------------------------------------
# Streaming mode
# ---------------------------------------------------------------------------


class TestStream:
    def test_forwards_deltas_and_returns_text(self, config):
        chunks = [
            b'data: {"choices":[{"delta":{"content":"Hel"}}]}\n',
            b'data: {"choices":[{"delta":{"content":"lo"}}]}\ndata: [DONE]\n',
        ]
        resp = _response(chunks=chunks)
        client, session = _client(config, resp)

        seen = []
        assert client.stream(MESSAGES, 0.5, on_delta=seen.append) == "Hello"
        assert seen == ["Hel", "lo"]

        kwargs = session.post.call_args.kwargs
        assert kwargs["stream"] is True
        assert json.loads(kwargs["data"])["stream"] is True
        resp.close.assert_called_once()

    def test_status_error_before_streaming(self, config):
        client, _ = _client(config, _response(429, {"error": {"message": "Rate limited"}}))
        seen = []
        with pytest.raises(ApiError, match="Rate limited"):
            client.stream(MESSAGES, 0.5, on_delta=seen.append)
        assert seen == []

    def test_interrupted_stream(self, config):
        resp = _response()

        def _broken(chunk_size=None):
            yield b'data: {"choices":[{"delta":{"content":"par"}}]}\n'
            raise requests.ConnectionError("reset by peer")

        resp.iter_content.side_effect = _broken
        client, _ = _client(config, resp)
        seen = []
        with pytest.raises(ApiError, match="Stream interrupted"):
            client.stream(MESSAGES, 0.5, on_delta=seen.append)
        assert seen == ["par"]
        resp.close.assert_called_once()
