"""
Per-request chat relay.

Resolves the model, starts the provider stream and re-emits its deltas as
SSE frames:

    data: {"type":"text","content":"..."}\\n\\n   for each text delta
    data: [DONE]\\n\\n                            once, on success

Failures before the first frame surface from open() so the route can answer
with a JSON 500. Failures after that raise StreamAbortedError out of
frames(); the server then drops the connection and the client never sees
[DONE].
"""

import logging
from typing import AsyncIterator, List, Optional

from workspace_chat.providers.base import StreamDelta
from workspace_chat.providers.registry import ProviderRegistry, provider_registry
from workspace_chat.services.model_registry import resolve_model
from workspace_chat.services.prompts import build_system_prompt
from workspace_chat.utils.exceptions import StreamAbortedError
from workspace_chat.utils.sse import SSE_DONE_FRAME, format_text_delta

logger = logging.getLogger(__name__)


class ChatRelay:
    """Bridges one chat request to one provider stream. Not reusable."""

    def __init__(
        self,
        messages: List[dict],
        model_id: Optional[str] = None,
        context: Optional[str] = None,
        registry: ProviderRegistry = provider_registry,
    ):
        self.messages = messages
        self.model = resolve_model(model_id)
        self.system_prompt = build_system_prompt(context)
        self._registry = registry
        self._deltas: Optional[AsyncIterator[StreamDelta]] = None
        self._first: Optional[StreamDelta] = None
        self._closed = False

    async def open(self) -> None:
        """Start the upstream request and wait for its first delta.

        Raises:
            ProviderNotConfiguredError: no client for the model's provider
            StreamAbortedError: the provider failed before producing output
        """
        provider = self._registry.create_provider(self.model)
        logger.info(
            f"Relaying {len(self.messages)} messages to {provider.name}/{self.model.api_model_id}"
        )
        self._deltas = provider.stream_chat(
            self.messages, self.system_prompt, self.model.max_tokens
        )
        self._registry.stream_started()
        try:
            self._first = await self._next_delta()
        except BaseException:
            await self.aclose()
            raise
        if self._first.is_error:
            await self.aclose()
            raise StreamAbortedError(self._first.provider, self._first.error)

    async def _next_delta(self) -> StreamDelta:
        try:
            return await anext(self._deltas)
        except StopAsyncIteration:
            # Providers always end with a terminal delta; treat silence as failure
            return StreamDelta(
                provider=self.model.provider,
                content="",
                is_done=True,
                error="stream ended without a terminal event",
            )

    async def frames(self) -> AsyncIterator[str]:
        """Yield SSE frames in upstream order, ending with the sentinel."""
        if self._first is None:
            raise RuntimeError("ChatRelay.open() must be awaited before frames()")

        delta = self._first
        try:
            while True:
                if delta.is_error:
                    logger.error(f"Aborting stream from {delta.provider}: {delta.error}")
                    raise StreamAbortedError(delta.provider, delta.error)
                if delta.is_done:
                    yield SSE_DONE_FRAME
                    return
                yield format_text_delta(delta.content)
                delta = await self._next_delta()
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Release the upstream stream. Safe to call more than once.

        Runs after the body finishes, and as the response's background task
        so a body that is never iterated still gets closed.
        """
        if self._closed or self._deltas is None:
            return
        self._closed = True
        self._registry.stream_ended()
        await self._deltas.aclose()
