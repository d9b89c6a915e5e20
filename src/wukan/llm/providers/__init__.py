from .gemini import GeminiStreamProvider
from .openai_compatible import OpenAICompatibleProvider

__all__ = ["GeminiStreamProvider", "OpenAICompatibleProvider"]
