"""
WuKan: automotive product strategy analysis with streamed LLM reports.

A product form is rendered into a strategy prompt and sent to Gemini or an
OpenAI-compatible provider. The streamed answer and reasoning are merged into
an in-memory conversation that supports follow-up questions.
"""

__version__ = "0.1.0"

from .conversation import Conversation, ConversationSession
from .llm import (
    AIConfig,
    CancelToken,
    ChatMessage,
    ServiceProvider,
    StreamDelta,
    StreamResult,
    stream_chat,
)
from .prompts import FormData, render_strategy_prompt
from .settings import SettingsStore

__all__ = [
    "Conversation",
    "ConversationSession",
    "AIConfig",
    "CancelToken",
    "ChatMessage",
    "ServiceProvider",
    "StreamDelta",
    "StreamResult",
    "stream_chat",
    "FormData",
    "render_strategy_prompt",
    "SettingsStore",
]
