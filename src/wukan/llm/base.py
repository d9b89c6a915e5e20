from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable

from .cancellation import CancelToken
from .models import ChatMessage, StreamDelta


class StreamProvider(ABC):
    """Abstract base class for streaming chat providers.

    This module hides the design decision of how a provider family is reached.
    Implementations must handle provider-specific details like:
    - Client setup and authentication
    - Converting the conversation history to the provider's wire format
    - Decoding the provider's streaming framing into StreamDelta values
    - Mapping non-2xx responses to ProviderHTTPError
    - Racing every network wait against the cancel token

    Transport exceptions other than HTTP status errors propagate unchanged;
    the aggregator wraps them in TransportError.
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Get the model name requests are sent to."""

    @abstractmethod
    def stream(
        self,
        history: list[ChatMessage],
        cancel_token: CancelToken,
        on_open: Callable[[], None] | None = None,
    ) -> AsyncIterator[StreamDelta]:
        """Stream the answer to the last message of ``history``.

        Args:
            history: Conversation so far, oldest first; the last entry is the
                newest user turn
            cancel_token: Checked before the request and after every chunk
            on_open: Called once the response is available and streaming begins

        Returns:
            Async iterator of deltas, in arrival order

        Raises:
            StreamCancelledError: If the token fired
            ProviderHTTPError: If the provider rejected the request
        """
