from typing import Any

import httpx

from .base import StreamProvider
from .models import AIConfig, ServiceProvider
from .providers import GeminiStreamProvider, OpenAICompatibleProvider


def create_stream_provider(
    config: AIConfig,
    http_client: httpx.AsyncClient | None = None,
    gemini_client: Any | None = None,
) -> StreamProvider:
    """Create the streaming provider for a config.

    This factory function hides the provider dispatch: it is the only place
    the provider tag is inspected.

    Args:
        config: Validated provider configuration
        http_client: Optional AsyncClient for OpenAI-compatible providers
        gemini_client: Optional pre-built ``genai.Client`` for Gemini

    Returns:
        Initialized streaming provider

    Raises:
        ValueError: If the provider type is not supported

    Examples:
        >>> provider = create_stream_provider(
        ...     AIConfig(
        ...         provider=ServiceProvider.CUSTOM,
        ...         api_key="sk-...",
        ...         base_url="https://api.example.com/v1",
        ...     )
        ... )
    """
    if config.provider is ServiceProvider.GEMINI:
        return GeminiStreamProvider(
            api_key=config.api_key,
            model=config.resolved_model,
            client=gemini_client,
        )

    if config.provider in (ServiceProvider.BAILIAN, ServiceProvider.CUSTOM):
        return OpenAICompatibleProvider(
            api_key=config.api_key,
            base_url=config.base_url or "",
            model=config.resolved_model,
            client=http_client,
        )

    raise ValueError(
        f"Unsupported provider: {config.provider}. "
        f"Supported providers: {', '.join(p.value for p in ServiceProvider)}"
    )
