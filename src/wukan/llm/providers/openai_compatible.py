"""OpenAI-compatible streaming provider over raw HTTP server-sent events.

Covers Alibaba Bailian (DashScope compatible mode) and any user-supplied
``/chat/completions`` endpoint. The request is issued with httpx and the
event stream is decoded by hand, so that the ``reasoning_content`` channel
some providers add to the delta record is preserved.
"""

import json
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx

from ..base import StreamProvider
from ..cancellation import CancelToken
from ..errors import ProviderHTTPError
from ..models import OPENAI_COMPATIBLE_DEFAULT_MODEL, ChatMessage, StreamDelta
from ..sse import SSEDecoder

DEFAULT_TIMEOUT = httpx.Timeout(120.0, connect=15.0)


def _error_message(body: bytes, fallback: str) -> str:
    """Pull ``error.message`` out of an error body, if there is one."""
    try:
        data = json.loads(body)
    except ValueError:
        return fallback
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if data.get("message"):
            return str(data["message"])
    return fallback


class OpenAICompatibleProvider(StreamProvider):
    """Streaming provider for OpenAI-compatible chat completion endpoints.

    Hidden design decisions:
    - Request body shape, including the DashScope search/incremental flags
    - History replay drops assistant reasoning; only ``content`` is resent
    - Line buffering across chunk reads (see ``SSEDecoder``)
    - HTTP client ownership: an injected client is left open for its owner
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str = OPENAI_COMPATIBLE_DEFAULT_MODEL,
        client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout | float = DEFAULT_TIMEOUT,
    ):
        """Initialize the provider.

        Args:
            api_key: Bearer token for the endpoint
            base_url: Endpoint root; ``/chat/completions`` is appended
            model: Model to request
            client: Optional shared AsyncClient (not closed by this provider)
            timeout: Timeout used when this provider creates its own client
        """
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self._client = client
        self._timeout = timeout

    @property
    def model(self) -> str:
        """Get the model name requests are sent to."""
        return self._model

    @property
    def url(self) -> str:
        return f"{self._base_url.rstrip('/')}/chat/completions"

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "text/event-stream",
        }

    def build_body(self, history: list[ChatMessage]) -> dict[str, Any]:
        """Serialize the full history as the request body."""
        return {
            "model": self._model,
            "messages": [{"role": msg.role, "content": msg.content} for msg in history],
            "stream": True,
            "enable_search": True,
            "incremental_output": True,
        }

    async def stream(
        self,
        history: list[ChatMessage],
        cancel_token: CancelToken,
        on_open: Callable[[], None] | None = None,
    ) -> AsyncIterator[StreamDelta]:
        """Stream deltas from the endpoint.

        Args:
            history: Conversation so far, oldest first
            cancel_token: Raced against opening the response and every chunk
                read; firing it abandons the pending read and closes the
                response
            on_open: Called once a 2xx response is available

        Yields:
            StreamDelta values in the order their lines arrive
        """
        cancel_token.raise_if_cancelled()

        owns_client = self._client is None
        client = self._client or httpx.AsyncClient(timeout=self._timeout)
        try:
            request = client.build_request(
                "POST", self.url, headers=self.build_headers(), json=self.build_body(history)
            )
            response = await cancel_token.guard(client.send(request, stream=True))
            try:
                if not response.is_success:
                    body = await cancel_token.guard(response.aread())
                    raise ProviderHTTPError(
                        response.status_code,
                        _error_message(body, response.reason_phrase),
                    )

                if on_open is not None:
                    on_open()

                decoder = SSEDecoder()
                chunks = response.aiter_bytes()
                while (chunk := await cancel_token.guard(anext(chunks, None))) is not None:
                    for delta in decoder.feed(chunk):
                        yield delta
                    if decoder.done:
                        return

                for delta in decoder.close():
                    yield delta
            finally:
                await response.aclose()
        finally:
            if owns_client:
                await client.aclose()
