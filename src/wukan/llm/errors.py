"""Exception hierarchy for streaming chat completions.

Every failure of a single stream invocation surfaces as exactly one
``AggregatorError`` subclass. Malformed event lines are not errors: they are
skipped by the decoder and never propagate.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import StreamResult


class AggregatorError(Exception):
    """Base class for stream invocation failures."""


class ConfigurationError(AggregatorError):
    """The provider config is unusable (missing API key or base URL).

    Raised before any network call is attempted.
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ProviderHTTPError(AggregatorError):
    """The provider answered with a non-2xx status."""

    def __init__(self, status: int, message: str | None = None):
        self.status = status
        self.message = message or ""
        detail = f": {self.message}" if self.message else ""
        super().__init__(f"API Error {status}{detail}")


class StreamCancelledError(AggregatorError):
    """The stream was stopped by the user.

    Not a failure: callers clear their loading state and show nothing.
    ``partial`` carries whatever was received before the stop, when known.
    """

    def __init__(self, message: str = "Stopped by user", partial: "StreamResult | None" = None):
        super().__init__(message)
        self.partial = partial


class TransportError(AggregatorError):
    """Network failure, timeout, or any other transport-level exception."""

    def __init__(self, message: str):
        super().__init__(f"API Failed: {message}")
