"""Conversation session: one transcript, at most one stream in flight.

Starting a new stream first stops the previous one (last writer wins). While
a stream runs, the session's last message belongs to it; callers render it
through ``on_update`` but never mutate it.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx

from ..llm.aggregator import stream_chat
from ..llm.cancellation import CancelToken
from ..llm.errors import AggregatorError, StreamCancelledError
from ..llm.models import AIConfig, ChatMessage, StreamDelta, StreamResult, StreamState
from .models import Conversation

logger = logging.getLogger(__name__)


class ConversationSession:
    """Drives streamed answers into a single in-memory conversation.

    Usage:
        session = ConversationSession(on_update=render)
        result = await session.start(prompt, config)
        result = await session.ask("What about pricing?", config)

    The config is passed on every call; the session keeps no settings of
    its own.
    """

    def __init__(
        self,
        on_update: Callable[[ChatMessage], None] | None = None,
        http_client: httpx.AsyncClient | None = None,
        gemini_client: Any | None = None,
    ):
        self.on_update = on_update
        self._http_client = http_client
        self._gemini_client = gemini_client
        self._conversation: Conversation | None = None
        self._task: asyncio.Task[StreamResult] | None = None
        self._cancel_token: CancelToken | None = None
        self.is_loading = False
        self.error: str | None = None

    @property
    def conversation(self) -> Conversation | None:
        return self._conversation

    @property
    def is_streaming(self) -> bool:
        return self._task is not None and not self._task.done()

    def request_stop(self) -> None:
        """Signal the in-flight stream to stop; a pending read is abandoned."""
        if self._cancel_token is not None:
            self._cancel_token.cancel()

    async def stop(self) -> None:
        """Stop the in-flight stream, if any, and wait for it to settle."""
        task = self._task
        if task is None or task.done():
            return
        self.request_stop()
        await asyncio.wait({task})

    async def start(self, prompt: str, config: AIConfig) -> StreamResult:
        """Begin a new conversation from the analysis prompt and stream the answer."""
        await self.stop()
        config.validate_for_request()
        self._conversation = Conversation.from_prompt(prompt)
        return await self._run(config)

    async def ask(self, question: str, config: AIConfig) -> StreamResult:
        """Append a follow-up question and stream its answer.

        Raises:
            RuntimeError: If no conversation has been started
        """
        if self._conversation is None:
            raise RuntimeError("No conversation started; call start() first")
        await self.stop()
        config.validate_for_request()
        self._conversation.add_user_message(question)
        return await self._run(config)

    async def reset(self) -> None:
        """Stop any stream and discard the conversation."""
        await self.stop()
        self._conversation = None
        self.error = None

    def _apply(self, delta: StreamDelta) -> None:
        assert self._conversation is not None
        self._conversation.apply_delta(delta)
        if self.on_update is not None:
            self.on_update(self._conversation.messages[-1])

    async def _run(self, config: AIConfig) -> StreamResult:
        """Stream into a fresh assistant message.

        Cancellation is reported as an ABORTED result rather than an error.
        Other failures are recorded in ``error`` and re-raised; partial text
        already appended is kept.
        """
        assert self._conversation is not None
        history = self._conversation.history()
        self._conversation.begin_assistant_message()

        token = CancelToken()
        self._cancel_token = token
        self.is_loading = True
        self.error = None
        task = asyncio.create_task(stream_chat(
            history,
            config,
            self._apply,
            token,
            http_client=self._http_client,
            gemini_client=self._gemini_client,
        ))
        self._task = task
        try:
            return await task
        except StreamCancelledError as exc:
            return exc.partial or StreamResult(state=StreamState.ABORTED)
        except AggregatorError as exc:
            self.error = str(exc)
            logger.warning("Stream failed: %s", exc)
            raise
        finally:
            if self._task is task:
                self.is_loading = False
