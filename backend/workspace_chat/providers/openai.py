from typing import AsyncIterator

from workspace_chat.providers.base import BaseProvider, StreamDelta


class OpenAIProvider(BaseProvider):
    """OpenAI Chat Completions provider.

    Standard models stream token chunks. Reasoning-restricted models (the o1
    family) reject both streaming and the system role, so they get a single
    blocking completion that is replayed as one text delta.
    """

    name = "openai"

    @classmethod
    def auth_headers(cls, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    def _extract_content(self, data: dict) -> str | None:
        choices = data.get("choices") or []
        if not choices:
            return None
        delta = choices[0].get("delta") or {}
        return delta.get("content")

    def _extract_error(self, data: dict) -> str | None:
        """Mid-stream failures arrive as a chunk carrying an `error` object."""
        error = data.get("error")
        if not error:
            return None
        if isinstance(error, dict):
            return error.get("message") or error.get("type") or "upstream error"
        return str(error)

    def build_streaming_payload(
        self, messages: list[dict], system_prompt: str, max_tokens: int
    ) -> dict:
        formatted_messages = [{"role": "system", "content": system_prompt}]
        for msg in messages:
            formatted_messages.append({"role": msg["role"], "content": msg["content"]})

        return {
            "model": self.model.api_model_id,
            "messages": formatted_messages,
            "max_tokens": max_tokens,
            "stream": True,
        }

    def build_reasoning_payload(
        self, messages: list[dict], system_prompt: str, max_tokens: int
    ) -> dict:
        """Fold the system prompt into the first user turn.

        Reasoning models only accept max_completion_tokens.
        """
        formatted_messages = [
            {"role": msg["role"], "content": msg["content"]}
            for msg in messages
            if msg.get("role") != "system"
        ]
        if formatted_messages and formatted_messages[0]["role"] == "user":
            first = formatted_messages[0]
            first["content"] = f"{system_prompt}\n\n{first['content']}"

        return {
            "model": self.model.api_model_id,
            "messages": formatted_messages,
            "max_completion_tokens": max_tokens,
        }

    async def stream_chat(
        self, messages: list[dict], system_prompt: str, max_tokens: int
    ) -> AsyncIterator[StreamDelta]:
        if self.model.is_reasoning_restricted:
            stream = self._complete_once(messages, system_prompt, max_tokens)
        else:
            stream = self._stream_completion(messages, system_prompt, max_tokens)
        async for delta in stream:
            yield delta

    async def _stream_completion(
        self, messages: list[dict], system_prompt: str, max_tokens: int
    ) -> AsyncIterator[StreamDelta]:
        """Stream chat completion chunks."""
        try:
            payload = self.build_streaming_payload(messages, system_prompt, max_tokens)

            async with self._client.stream(
                "POST", "/chat/completions", json=payload
            ) as response:
                await self._raise_for_status(response)
                async for delta in self._stream_sse_lines(
                    response, self._extract_content, error_check=self._extract_error
                ):
                    yield delta

        except Exception as e:
            yield self._error_delta(e)

    async def _complete_once(
        self, messages: list[dict], system_prompt: str, max_tokens: int
    ) -> AsyncIterator[StreamDelta]:
        """Non-streaming completion presented as a one-chunk stream."""
        try:
            payload = self.build_reasoning_payload(messages, system_prompt, max_tokens)

            response = await self._client.post("/chat/completions", json=payload)
            await self._raise_for_status(response)
            data = response.json()

            choices = data.get("choices") or [{}]
            content = (choices[0].get("message") or {}).get("content") or ""
        except Exception as e:
            yield self._error_delta(e)
            return

        yield self._text_delta(content)
        yield self._done_delta()
