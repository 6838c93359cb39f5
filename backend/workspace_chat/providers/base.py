import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

import httpx
import orjson

from workspace_chat.services.model_registry import ModelConfig
from workspace_chat.utils.sse import SSE_DATA_PREFIX, SSE_DONE_PAYLOAD

logger = logging.getLogger(__name__)

SSE_DONE_SIGNAL = f"{SSE_DATA_PREFIX}{SSE_DONE_PAYLOAD}"


@dataclass
class StreamDelta:
    """Normalized unit of provider output.

    A turn is zero or more text deltas followed by exactly one terminal
    delta: done (is_done, no error) or error (is_done, error set).
    """

    provider: str
    content: str
    is_done: bool = False
    error: Optional[str] = None

    @property
    def is_text(self) -> bool:
        return not self.is_done

    @property
    def is_error(self) -> bool:
        return self.is_done and self.error is not None


class BaseProvider(ABC):
    """Abstract base class for upstream chat providers.

    One instance serves a single request. The httpx client is shared and
    owned by the provider registry.
    """

    name: str  # Provider identifier: "anthropic", "openai"

    def __init__(self, client: httpx.AsyncClient, model: ModelConfig):
        self._client = client
        self.model = model

    @classmethod
    @abstractmethod
    def auth_headers(cls, api_key: str) -> dict[str, str]:
        """Provider-specific authentication headers"""
        pass

    @classmethod
    def build_client(
        cls, api_key: str, base_url: str, timeout: Optional[float] = None
    ) -> httpx.AsyncClient:
        """Create the shared HTTP client for this provider."""
        return httpx.AsyncClient(
            base_url=base_url,
            headers={**cls.auth_headers(api_key), "Content-Type": "application/json"},
            timeout=timeout,
        )

    @abstractmethod
    async def stream_chat(
        self, messages: list[dict], system_prompt: str, max_tokens: int
    ) -> AsyncIterator[StreamDelta]:
        """Stream normalized deltas for one conversation turn.

        Never raises: failures end the sequence with an error delta.
        """
        pass

    def _text_delta(self, content: str) -> StreamDelta:
        return StreamDelta(provider=self.name, content=content)

    def _done_delta(self) -> StreamDelta:
        return StreamDelta(provider=self.name, content="", is_done=True)

    def _error_delta(self, error: Exception) -> StreamDelta:
        """Create a terminal error StreamDelta."""
        logger.warning(f"{self.name} stream failed for {self.model.api_model_id}: {error!r}")
        return StreamDelta(
            provider=self.name, content="", is_done=True, error=str(error) or type(error).__name__
        )

    def _log_json_error(self, error: Exception) -> None:
        """Log JSON parse error at debug level."""
        logger.debug(f"JSON parse error in {self.name}: {error}")

    async def _raise_for_status(self, response: httpx.Response) -> None:
        """Log the upstream error body before raising on non-2xx."""
        if response.is_error:
            await response.aread()
            logger.error(
                f"{self.name} returned {response.status_code}: {response.text[:500]}"
            )
        response.raise_for_status()

    async def _stream_sse_lines(
        self,
        response: httpx.Response,
        extract_content: Callable[[dict], str | None],
        done_check: Callable[[dict], bool] | None = None,
        error_check: Callable[[dict], str | None] | None = None,
    ) -> AsyncIterator[StreamDelta]:
        """
        Process SSE lines from a streaming response.

        Args:
            response: The httpx streaming response
            extract_content: Function to extract text content from parsed JSON data
            done_check: Optional function to check if stream is done from data
            error_check: Optional function returning an error message from data

        Yields:
            Text deltas, then one terminal delta
        """
        async for line in response.aiter_lines():
            if not line.startswith(SSE_DATA_PREFIX):
                continue
            if line == SSE_DONE_SIGNAL:
                yield self._done_delta()
                return

            try:
                data = orjson.loads(line[len(SSE_DATA_PREFIX):])
            except orjson.JSONDecodeError as e:
                self._log_json_error(e)
                continue

            if error_check:
                message = error_check(data)
                if message:
                    yield self._error_delta(RuntimeError(message))
                    return

            # Check if done via data content
            if done_check and done_check(data):
                yield self._done_delta()
                return

            content = extract_content(data)
            if content:
                yield self._text_delta(content)

        # Upstream closed cleanly without an explicit end marker
        yield self._done_delta()
