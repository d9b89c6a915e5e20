from .aggregator import StreamAggregator, stream_chat
from .base import StreamProvider
from .cancellation import CancelToken
from .errors import (
    AggregatorError,
    ConfigurationError,
    ProviderHTTPError,
    StreamCancelledError,
    TransportError,
)
from .factory import create_stream_provider
from .models import (
    DEFAULT_CONFIG,
    AIConfig,
    ChatMessage,
    ServiceProvider,
    StreamDelta,
    StreamResult,
    StreamState,
)
from .providers import GeminiStreamProvider, OpenAICompatibleProvider
from .sse import SSEDecoder, parse_event_line

__all__ = [
    "StreamAggregator",
    "stream_chat",
    "StreamProvider",
    "CancelToken",
    "AggregatorError",
    "ConfigurationError",
    "ProviderHTTPError",
    "StreamCancelledError",
    "TransportError",
    "create_stream_provider",
    "DEFAULT_CONFIG",
    "AIConfig",
    "ChatMessage",
    "ServiceProvider",
    "StreamDelta",
    "StreamResult",
    "StreamState",
    "GeminiStreamProvider",
    "OpenAICompatibleProvider",
    "SSEDecoder",
    "parse_event_line",
]
