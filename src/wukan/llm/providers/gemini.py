"""Google Gemini streaming provider.

Uses the official Google GenAI SDK chat sessions.
Reference: https://github.com/googleapis/python-genai

Gemini has no separate reasoning channel here: every chunk's text is emitted
as answer content.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from typing import Any

from google import genai
from google.genai import errors, types

from ..base import StreamProvider
from ..cancellation import CancelToken
from ..errors import ProviderHTTPError
from ..models import GEMINI_DEFAULT_MODEL, ChatMessage, StreamDelta


class GeminiStreamProvider(StreamProvider):
    """Google Gemini streaming provider.

    Hidden design decisions:
    - Google GenAI client initialization
    - Chat session seeded with every turn but the last (assistant → model)
    - System messages become the session's system instruction
    - SDK API errors mapped to ProviderHTTPError
    """

    def __init__(
        self,
        api_key: str,
        model: str = GEMINI_DEFAULT_MODEL,
        client: Any | None = None,
        **client_kwargs: Any
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Google AI API key
            model: Model to use (gemini-2.5-flash, gemini-2.5-pro, ...)
            client: Optional pre-built ``genai.Client``
            **client_kwargs: Additional kwargs for Client
        """
        self._model = model
        self._client = client or genai.Client(api_key=api_key, **client_kwargs)

    @property
    def model(self) -> str:
        """Get the model name requests are sent to."""
        return self._model

    def _convert_messages(self, messages: list[ChatMessage]) -> tuple[str | None, list[types.Content]]:
        """Convert prior turns to Gemini chat history.

        Args:
            messages: Conversation turns preceding the newest user message

        Returns:
            Tuple of (system_instruction, history)
        """
        system_instruction = None
        history = []

        for msg in messages:
            if msg.role == "system":
                system_instruction = msg.content
            else:
                history.append(types.Content(
                    role="model" if msg.role == "assistant" else "user",
                    parts=[types.Part(text=msg.content)]
                ))

        return system_instruction, history

    async def stream(
        self,
        history: list[ChatMessage],
        cancel_token: CancelToken,
        on_open: Callable[[], None] | None = None,
    ) -> AsyncIterator[StreamDelta]:
        """Stream the newest user turn through a seeded chat session.

        Args:
            history: Conversation so far; the last entry is sent as the new turn
            cancel_token: Raced against sending and every chunk read
            on_open: Called once the SDK returns the chunk stream

        Yields:
            StreamDelta values carrying content only
        """
        *prior, latest = history
        system_instruction, seeded = self._convert_messages(prior)
        config = types.GenerateContentConfig(system_instruction=system_instruction)

        cancel_token.raise_if_cancelled()
        chat = self._client.aio.chats.create(model=self._model, config=config, history=seeded)

        try:
            chunks = await cancel_token.guard(chat.send_message_stream(latest.content))
            async with aclosing(chunks):
                if on_open is not None:
                    on_open()

                while (chunk := await cancel_token.guard(anext(chunks, None))) is not None:
                    text = chunk.text
                    if text:
                        yield StreamDelta(content=text)
        except errors.APIError as exc:
            raise ProviderHTTPError(exc.code, exc.message or str(exc)) from exc
