"""Shared fixtures and fakes for relay, provider and consumer tests."""

from typing import AsyncIterator, Callable, List, Optional

import httpx
import orjson
import pytest

from workspace_chat.providers.base import BaseProvider, StreamDelta
from workspace_chat.providers.registry import ProviderRegistry
from workspace_chat.services.model_registry import ModelConfig, resolve_model


def sse_lines(*payloads) -> bytes:
    """Encode payloads as upstream `data:` lines. Strings are sent verbatim."""
    out = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else orjson.dumps(payload).decode()
        out.append(f"data: {data}\n\n")
    return "".join(out).encode()


def anthropic_text_event(text: str) -> dict:
    return {
        "type": "content_block_delta",
        "index": 0,
        "delta": {"type": "text_delta", "text": text},
    }


def openai_chunk(content: Optional[str]) -> dict:
    delta = {} if content is None else {"content": content}
    return {"id": "chatcmpl-1", "choices": [{"index": 0, "delta": delta}]}


def mock_client(
    handler: Callable[[httpx.Request], httpx.Response], base_url: str = "https://upstream.test/v1"
) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=base_url)


class ScriptedProvider(BaseProvider):
    """Provider that replays a fixed delta sequence and records its calls."""

    name = "anthropic"

    def __init__(self, deltas: List[StreamDelta], model: Optional[ModelConfig] = None):
        super().__init__(client=None, model=model or resolve_model(None))
        self.deltas = deltas
        self.calls: List[dict] = []
        self.closed = False

    @classmethod
    def auth_headers(cls, api_key: str) -> dict[str, str]:
        return {}

    async def stream_chat(
        self, messages: list[dict], system_prompt: str, max_tokens: int
    ) -> AsyncIterator[StreamDelta]:
        self.calls.append(
            {"messages": messages, "system_prompt": system_prompt, "max_tokens": max_tokens}
        )
        try:
            for delta in self.deltas:
                yield delta
        finally:
            self.closed = True


class ScriptedRegistry(ProviderRegistry):
    """Registry that hands out one prepared provider instance."""

    def __init__(self, provider: BaseProvider):
        super().__init__()
        self.provider = provider
        self.created: List[ModelConfig] = []

    def create_provider(self, model: ModelConfig) -> BaseProvider:
        self.created.append(model)
        return self.provider


def text(content: str, provider: str = "anthropic") -> StreamDelta:
    return StreamDelta(provider=provider, content=content)


def done(provider: str = "anthropic") -> StreamDelta:
    return StreamDelta(provider=provider, content="", is_done=True)


def failed(message: str, provider: str = "anthropic") -> StreamDelta:
    return StreamDelta(provider=provider, content="", is_done=True, error=message)


@pytest.fixture
def hello_world_provider() -> ScriptedProvider:
    return ScriptedProvider([text("Hello"), text(" world"), done()])
