from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import ConfigurationError

BAILIAN_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"

GEMINI_DEFAULT_MODEL = "gemini-2.5-flash"
OPENAI_COMPATIBLE_DEFAULT_MODEL = "qwen-plus"


class ServiceProvider(str, Enum):
    """LLM service families selectable in settings."""

    GEMINI = "GEMINI"
    BAILIAN = "BAILIAN"  # Alibaba Cloud DashScope, OpenAI-compatible
    CUSTOM = "CUSTOM"  # any user-supplied OpenAI-compatible endpoint

    @property
    def uses_sse(self) -> bool:
        """Whether this provider is reached through raw HTTP server-sent events."""
        return self is not ServiceProvider.GEMINI

    @property
    def default_model(self) -> str:
        if self is ServiceProvider.GEMINI:
            return GEMINI_DEFAULT_MODEL
        return OPENAI_COMPATIBLE_DEFAULT_MODEL


class AIConfig(BaseModel):
    """Provider configuration snapshot.

    Persisted as a flat JSON blob with camelCase keys (``apiKey``,
    ``modelName``, ``baseUrl``). Instances are immutable: edits produce a new
    config via ``model_copy`` or ``with_provider``.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    provider: ServiceProvider = Field(default=ServiceProvider.BAILIAN)
    api_key: str = Field(default="", description="Provider API key")
    model_name: str = Field(default="", description="Model identifier; empty uses the provider default")
    base_url: str | None = Field(default=None, description="Endpoint root for OpenAI-compatible providers")

    @property
    def resolved_model(self) -> str:
        """Model to request, falling back to the provider default."""
        return self.model_name or self.provider.default_model

    def validate_for_request(self) -> None:
        """Check the config is usable before any network call.

        Raises:
            ConfigurationError: If the API key is missing, or the base URL is
                missing for an OpenAI-compatible provider
        """
        if not self.api_key.strip():
            raise ConfigurationError("API Key is required.", field="api_key")
        if self.provider.uses_sse and not (self.base_url or "").strip():
            raise ConfigurationError(
                f"Base URL is required for {self.provider.value}.", field="base_url"
            )

    def with_provider(self, provider: ServiceProvider) -> "AIConfig":
        """Switch provider, applying that provider's preset fields."""
        if provider is ServiceProvider.BAILIAN:
            return self.model_copy(update={
                "provider": provider,
                "base_url": BAILIAN_BASE_URL,
                "model_name": OPENAI_COMPATIBLE_DEFAULT_MODEL,
            })
        if provider is ServiceProvider.GEMINI:
            return self.model_copy(update={
                "provider": provider,
                "model_name": GEMINI_DEFAULT_MODEL,
            })
        return self.model_copy(update={"provider": provider})


DEFAULT_CONFIG = AIConfig(
    provider=ServiceProvider.BAILIAN,
    api_key="",
    model_name="qwen3-max",
    base_url=BAILIAN_BASE_URL,
)


class StreamDelta(BaseModel):
    """An incremental fragment of the answer and/or reasoning channel."""

    model_config = ConfigDict(frozen=True)

    content: str | None = None
    reasoning: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.content and not self.reasoning


class ChatMessage(BaseModel):
    """A single turn in a conversation.

    Unlike most models here this one is mutable: while a stream is in flight
    the last assistant message grows in place as deltas arrive.
    """

    role: Literal["user", "assistant", "system"] = Field(
        description="Role of the message sender: 'user', 'assistant', or 'system'"
    )
    content: str = Field(default="", description="Accumulated visible text")
    reasoning: str | None = Field(default=None, description="Accumulated chain-of-thought text")

    def apply_delta(self, delta: StreamDelta) -> None:
        """Append a delta's content and reasoning independently."""
        if delta.content:
            self.content += delta.content
        if delta.reasoning:
            self.reasoning = (self.reasoning or "") + delta.reasoning


class StreamState(str, Enum):
    """Lifecycle of a single aggregator invocation."""

    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


class StreamResult(BaseModel):
    """Outcome of a stream: final state plus the concatenated channels."""

    model_config = ConfigDict(frozen=True)

    state: StreamState
    content: str = ""
    reasoning: str = ""
    delta_count: int = Field(default=0, ge=0)
