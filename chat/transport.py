"""HTTP transport for the OpenRouter chat-completions endpoint.

Two modes share one request builder:

- ``complete()`` -- buffered: one JSON response, content extracted.
- ``stream()`` -- incremental: the response body is pulled chunk by chunk
  and handed to the stream decoder, which forwards deltas as they arrive.

There is no retry policy. A missing credential raises ``AuthError`` before
any network I/O; any non-2xx status raises ``ApiError``.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from chat.errors import ApiError, AuthError
from chat.stream_decoder import decode_stream
from shelly_constants import (
    DEFAULT_SITE_NAME,
    DEFAULT_SITE_URL,
    OPENROUTER_CHAT_URL,
    REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)


def _error_message(response: requests.Response) -> str:
    """Best-effort extraction of ``error.message`` from an error envelope."""
    try:
        payload = response.json()
    except ValueError:
        return "Unknown error"
    if not isinstance(payload, dict):
        return "Unknown error"
    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return "Unknown error"


def _mask_key(key: str) -> str:
    if len(key) <= 12:
        return "***"
    return f"{key[:8]}...{key[-4:]}"


class CompletionClient:
    """Sends conversation messages to the completion endpoint.

    Args:
        config: Session configuration dict (``api_key``, ``model``,
            ``site_url``, ``site_name``). Read on every call, so in-session
            model changes take effect on the next request.
        session: Optional ``requests.Session`` (tests pass a fake).
        url: Endpoint URL.
        timeout: ``requests`` timeout for each call.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        session: Optional[requests.Session] = None,
        url: str = OPENROUTER_CHAT_URL,
        timeout=REQUEST_TIMEOUT,
    ):
        self.config = config
        self.session = session or requests.Session()
        self.url = url
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        api_key = self.config.get("api_key")
        if not api_key:
            raise AuthError()
        return {
            "Authorization": f"Bearer {api_key}",
            "HTTP-Referer": self.config.get("site_url") or DEFAULT_SITE_URL,
            "X-Title": self.config.get("site_name") or DEFAULT_SITE_NAME,
            "Content-Type": "application/json",
        }

    def _post(self, messages: List[Dict[str, str]], temperature: float, stream: bool) -> requests.Response:
        headers = self._headers()
        body = {
            "model": self.config.get("model"),
            "messages": messages,
            "temperature": temperature,
            "stream": stream,
        }
        logger.debug(
            "POST %s model=%s messages=%d temperature=%s stream=%s key=%s",
            self.url, body["model"], len(messages), temperature, stream,
            _mask_key(self.config["api_key"]),
        )

        try:
            response = self.session.post(
                self.url,
                headers=headers,
                data=json.dumps(body),
                stream=stream,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", self.url, e)
            raise ApiError(None, str(e)) from e

        if not response.ok:
            message = _error_message(response)
            logger.warning("API error (%s): %s", response.status_code, message)
            response.close()
            raise ApiError(response.status_code, message)
        return response

    def complete(self, messages: List[Dict[str, str]], temperature: float) -> str:
        """Send a buffered request and return the assistant's text."""
        response = self._post(messages, temperature, stream=False)
        try:
            payload = response.json()
            content = payload["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ApiError(response.status_code, f"Malformed response: {e}") from e
        return content or ""

    def stream(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        on_delta: Optional[Callable[[str], None]] = None,
    ) -> str:
        """Send a streaming request; forward deltas and return the full text."""
        response = self._post(messages, temperature, stream=True)
        try:
            return decode_stream(response.iter_content(chunk_size=None), on_delta)
        except requests.RequestException as e:
            logger.warning("Stream interrupted: %s", e)
            raise ApiError(None, f"Stream interrupted: {e}") from e
        finally:
            response.close()
