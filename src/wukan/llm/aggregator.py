"""Stream aggregation: provider stream in, ordered deltas out.

One ``StreamAggregator`` drives one invocation through
``IDLE → REQUESTING → STREAMING → {COMPLETED | ABORTED | FAILED}``.
There is no retry. A failed or aborted stream is restarted by the caller
as a new invocation with the full history, partial text included.
"""

import logging
from collections.abc import Callable
from contextlib import aclosing
from typing import Any

import httpx

from .cancellation import CancelToken
from .errors import AggregatorError, StreamCancelledError, TransportError
from .factory import create_stream_provider
from .models import AIConfig, ChatMessage, StreamDelta, StreamResult, StreamState

logger = logging.getLogger(__name__)

DeltaCallback = Callable[[StreamDelta], None]


class StreamAggregator:
    """Runs a single streaming invocation and tracks its state.

    Instances are single-use; create a new one per stream.
    """

    def __init__(
        self,
        config: AIConfig,
        http_client: httpx.AsyncClient | None = None,
        gemini_client: Any | None = None,
    ):
        self._config = config
        self._http_client = http_client
        self._gemini_client = gemini_client
        self._state = StreamState.IDLE
        self._content: list[str] = []
        self._reasoning: list[str] = []
        self._delta_count = 0

    @property
    def state(self) -> StreamState:
        return self._state

    def _mark_streaming(self) -> None:
        self._state = StreamState.STREAMING

    def _result(self, state: StreamState) -> StreamResult:
        return StreamResult(
            state=state,
            content="".join(self._content),
            reasoning="".join(self._reasoning),
            delta_count=self._delta_count,
        )

    def _emit(self, delta: StreamDelta, on_delta: DeltaCallback) -> None:
        if delta.content:
            self._content.append(delta.content)
        if delta.reasoning:
            self._reasoning.append(delta.reasoning)
        self._delta_count += 1
        on_delta(delta)

    async def run(
        self,
        history: list[ChatMessage],
        on_delta: DeltaCallback,
        cancel_token: CancelToken | None = None,
    ) -> StreamResult:
        """Stream the answer to the last message of ``history``.

        Args:
            history: Conversation so far, oldest first, ending with the newest
                user turn
            on_delta: Called synchronously with every delta, in arrival order
            cancel_token: Optional cooperative cancellation signal

        Returns:
            StreamResult with state COMPLETED and the concatenated channels

        Raises:
            ConfigurationError: Missing API key or base URL (no network call made)
            ProviderHTTPError: Non-2xx response from the provider
            StreamCancelledError: The token fired; ``partial`` holds what arrived
            TransportError: Any other failure while talking to the provider
        """
        if self._state is not StreamState.IDLE:
            raise RuntimeError("StreamAggregator instances are single-use")
        if not history:
            raise ValueError("history must contain at least one message")

        token = cancel_token or CancelToken()
        try:
            self._config.validate_for_request()
        except AggregatorError:
            self._state = StreamState.FAILED
            raise

        provider = create_stream_provider(
            self._config,
            http_client=self._http_client,
            gemini_client=self._gemini_client,
        )
        self._state = StreamState.REQUESTING
        logger.debug(
            "Starting %s stream (model=%s, %d messages)",
            self._config.provider.value, provider.model, len(history),
        )

        try:
            async with aclosing(provider.stream(history, token, on_open=self._mark_streaming)) as deltas:
                while True:
                    try:
                        delta = await anext(deltas)
                    except StopAsyncIteration:
                        break
                    except AggregatorError:
                        raise
                    except Exception as exc:
                        logger.error("Stream transport failed: %s", exc)
                        raise TransportError(str(exc) or type(exc).__name__) from exc

                    # A read that completes after cancellation is discarded
                    token.raise_if_cancelled()
                    self._emit(delta, on_delta)
        except StreamCancelledError as exc:
            self._state = StreamState.ABORTED
            exc.partial = self._result(StreamState.ABORTED)
            logger.info("Stream stopped by user after %d deltas", self._delta_count)
            raise
        except Exception:
            self._state = StreamState.FAILED
            raise

        self._state = StreamState.COMPLETED
        logger.debug("Stream completed with %d deltas", self._delta_count)
        return self._result(StreamState.COMPLETED)


async def stream_chat(
    history: list[ChatMessage],
    config: AIConfig,
    on_delta: DeltaCallback,
    cancel_token: CancelToken | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    gemini_client: Any | None = None,
) -> StreamResult:
    """Stream a chat completion, delivering deltas to ``on_delta``.

    Convenience wrapper around a fresh ``StreamAggregator``.

    Usage:
        token = CancelToken()
        result = await stream_chat(history, config, message.apply_delta, token)
    """
    aggregator = StreamAggregator(config, http_client=http_client, gemini_client=gemini_client)
    return await aggregator.run(history, on_delta, cancel_token)
