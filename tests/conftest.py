"""Pytest configuration and shared fixtures."""
import json
import os
from types import SimpleNamespace

import httpx
import pytest

from wukan.llm import AIConfig, ServiceProvider


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "dashscope": os.getenv("DASHSCOPE_API_KEY"),
        "gemini": os.getenv("GEMINI_API_KEY"),
    }


@pytest.fixture
def sse_config():
    """Config for a user-supplied OpenAI-compatible endpoint."""
    return AIConfig(
        provider=ServiceProvider.CUSTOM,
        api_key="sk-test",
        model_name="qwen-plus",
        base_url="https://llm.example.com/v1/",
    )


@pytest.fixture
def gemini_config():
    """Config for the Gemini SDK provider."""
    return AIConfig(provider=ServiceProvider.GEMINI, api_key="gm-test", model_name="gemini-2.5-flash")


@pytest.fixture
def sse_line():
    """Build one ``data:`` event line for a delta record."""
    def _build(content=None, reasoning=None):
        delta = {}
        if content is not None:
            delta["content"] = content
        if reasoning is not None:
            delta["reasoning_content"] = reasoning
        payload = {"choices": [{"delta": delta}]}
        return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
    return _build


@pytest.fixture
def mock_http():
    """Create an AsyncClient whose responses are produced by ``handler``.

    Every request is recorded on ``client.requests``.
    """
    def _build(handler):
        requests = []

        def _record(request):
            requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        client.requests = requests
        return client
    return _build


def chunked(*chunks: bytes | str):
    """Async byte stream delivering each chunk as a separate read."""
    async def _gen():
        for chunk in chunks:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk
    return _gen()


@pytest.fixture
def stream_response():
    """Build a 200 event-stream response delivering the given chunks."""
    def _build(*chunks):
        return httpx.Response(
            200,
            headers={"Content-Type": "text/event-stream"},
            content=chunked(*chunks),
        )
    return _build


class FakeChat:
    """Stand-in for a google-genai AsyncChat."""

    def __init__(self, chunks=(), error=None, stream=None):
        self.chunks = list(chunks)
        self.error = error
        self.stream = stream
        self.sent = []

    async def send_message_stream(self, message):
        self.sent.append(message)
        if self.error is not None:
            raise self.error
        if self.stream is not None:
            return self.stream()

        async def _gen():
            for text in self.chunks:
                yield SimpleNamespace(text=text)
        return _gen()


class FakeChats:
    def __init__(self, chat):
        self.chat = chat
        self.create_calls = []

    def create(self, *, model, config=None, history=None):
        self.create_calls.append({"model": model, "config": config, "history": history})
        return self.chat


@pytest.fixture
def fake_gemini():
    """Build a fake ``genai.Client`` around a FakeChat."""
    def _build(chunks=(), error=None, stream=None):
        chats = FakeChats(FakeChat(chunks, error, stream))
        return SimpleNamespace(aio=SimpleNamespace(chats=chats))
    return _build
