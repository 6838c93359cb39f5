from typing import AsyncIterator

from workspace_chat.config import settings
from workspace_chat.providers.base import BaseProvider, StreamDelta


class AnthropicProvider(BaseProvider):
    """Anthropic Messages API, streamed as typed SSE events."""

    name = "anthropic"

    @classmethod
    def auth_headers(cls, api_key: str) -> dict[str, str]:
        return {
            "x-api-key": api_key,
            "anthropic-version": settings.anthropic_version,
        }

    def _prepare_messages(self, messages: list[dict]) -> list[dict]:
        """Drop system turns; the system prompt has its own request field."""
        return [
            {"role": msg["role"], "content": msg["content"]}
            for msg in messages
            if msg.get("role") != "system"
        ]

    def _extract_content(self, data: dict) -> str | None:
        """Extract text content from Anthropic SSE data."""
        if data.get("type") != "content_block_delta":
            return None
        delta = data.get("delta") or {}
        if delta.get("type") != "text_delta":
            return None
        return delta.get("text")

    def _is_done(self, data: dict) -> bool:
        """Check if Anthropic stream is done."""
        return data.get("type") == "message_stop"

    def _extract_error(self, data: dict) -> str | None:
        if data.get("type") != "error":
            return None
        error = data.get("error") or {}
        return error.get("message") or error.get("type") or "upstream error"

    def build_payload(self, messages: list[dict], system_prompt: str, max_tokens: int) -> dict:
        payload = {
            "model": self.model.api_model_id,
            "max_tokens": max_tokens,
            "messages": self._prepare_messages(messages),
            "stream": True,
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    async def stream_chat(
        self, messages: list[dict], system_prompt: str, max_tokens: int
    ) -> AsyncIterator[StreamDelta]:
        """Stream chat responses from the Anthropic Messages API."""
        try:
            payload = self.build_payload(messages, system_prompt, max_tokens)

            async with self._client.stream(
                "POST", "/messages", json=payload
            ) as response:
                await self._raise_for_status(response)
                async for delta in self._stream_sse_lines(
                    response, self._extract_content, self._is_done, self._extract_error
                ):
                    yield delta

        except Exception as e:
            yield self._error_delta(e)
