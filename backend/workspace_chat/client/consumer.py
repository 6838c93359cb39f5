"""
Client side of the chat stream.

`StreamConsumer` turns the raw text chunks of a /api/chat response into
text deltas. Chunks arrive on arbitrary boundaries, so an incomplete trailing
line is carried over to the next read instead of being parsed early.

`ChatSession` is the conversation view: it posts the history, grows the
pending assistant message in place as deltas arrive and reports every change
through `on_update(message_id, content)`.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Literal, Optional
from uuid import uuid4

import httpx
import orjson
from pydantic import ValidationError

from workspace_chat.models.response import TextDeltaPayload
from workspace_chat.services.model_registry import DEFAULT_MODEL_ID
from workspace_chat.utils.sse import SSE_DATA_PREFIX, SSE_DONE_PAYLOAD
from workspace_chat.utils.time import utcnow

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Sorry, I couldn't get a response. Please try again."
INCOMPLETE_STREAM_ERROR = "Response stream ended before completion"

UpdateCallback = Callable[[str, str], None]


class StreamState(str, Enum):
    READING = "reading"
    ACCUMULATING = "frame-accumulating"  # a partial line is buffered
    DONE = "done"
    FAILED = "failed"


class SSELineBuffer:
    """Splits a chunked text stream into complete lines."""

    def __init__(self):
        self._tail = ""

    @property
    def has_partial(self) -> bool:
        return bool(self._tail)

    def feed(self, text: str) -> List[str]:
        lines = (self._tail + text).split("\n")
        self._tail = lines.pop()
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> List[str]:
        """Return the unterminated last line, if any."""
        tail, self._tail = self._tail, ""
        return [tail.rstrip("\r")] if tail else []


def extract_data(line: str) -> Optional[str]:
    """Payload of a `data: ` line, or None for any other line."""
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    return line[len(SSE_DATA_PREFIX):]


def decode_payload(data: str) -> Optional[TextDeltaPayload]:
    """Decode one frame payload. Malformed or non-text payloads give None."""
    try:
        return TextDeltaPayload.model_validate(orjson.loads(data))
    except (orjson.JSONDecodeError, ValidationError) as e:
        logger.debug(f"Skipping undecodable SSE payload {data[:80]!r}: {e}")
        return None


class StreamConsumer:
    """Incremental parser for one relay response body."""

    def __init__(self, on_text: Optional[Callable[[str], None]] = None):
        self.state = StreamState.READING
        self.content = ""
        self.skipped_lines = 0
        self._buffer = SSELineBuffer()
        self._on_text = on_text

    @property
    def is_terminal(self) -> bool:
        return self.state in (StreamState.DONE, StreamState.FAILED)

    def feed(self, chunk: str) -> StreamState:
        if self.is_terminal:
            return self.state

        for line in self._buffer.feed(chunk):
            self._handle_line(line)
            if self.is_terminal:
                return self.state

        self.state = StreamState.ACCUMULATING if self._buffer.has_partial else StreamState.READING
        return self.state

    def finish(self) -> StreamState:
        """Call at end of body. No sentinel seen means the stream failed."""
        if not self.is_terminal:
            for line in self._buffer.flush():
                self._handle_line(line)
        if self.state != StreamState.DONE:
            self.state = StreamState.FAILED
        return self.state

    def _handle_line(self, line: str) -> None:
        data = extract_data(line)
        if data is None:
            return
        if data == SSE_DONE_PAYLOAD:
            self.state = StreamState.DONE
            return

        payload = decode_payload(data)
        if payload is None:
            self.skipped_lines += 1
            return
        if payload.content:
            self.content += payload.content
            if self._on_text:
                self._on_text(payload.content)


@dataclass
class ChatMessage:
    role: Literal["user", "assistant", "system"]
    content: str
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=utcnow)
    # Shown in the view but never sent back upstream
    failed: bool = False

    def to_wire(self) -> dict:
        return {"role": self.role, "content": self.content}

    @property
    def is_replayable(self) -> bool:
        """Whether this turn belongs in the history sent with the next request."""
        if self.failed:
            return False
        return self.role != "assistant" or bool(self.content)


class ChatSession:
    """One conversation view talking to the chat endpoint.

    Only one send may be in flight; further sends are ignored until it
    finishes. There is no timeout or cancellation of the underlying request.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        model: str = DEFAULT_MODEL_ID,
        context: Optional[str] = None,
        on_update: Optional[UpdateCallback] = None,
        messages: Optional[List[ChatMessage]] = None,
        endpoint: str = "/api/chat",
    ):
        self._client = client
        self.model = model
        self.context = context
        self.endpoint = endpoint
        self.messages: List[ChatMessage] = list(messages or [])
        self.is_loading = False
        self.error: Optional[str] = None
        self.last_state: Optional[StreamState] = None
        self._on_update = on_update

    def set_model(self, model: str) -> None:
        self.model = model

    def clear_messages(self) -> None:
        self.messages = []
        self.error = None

    def _set_content(self, message: ChatMessage, content: str) -> None:
        message.content = content
        if self._on_update:
            self._on_update(message.id, content)

    async def send_message(self, content: str) -> Optional[ChatMessage]:
        """Send a user turn and stream the reply into a new assistant message.

        Returns the assistant message, or None if nothing was sent.
        """
        content = content.strip()
        if not content or self.is_loading:
            return None

        user_message = ChatMessage(role="user", content=content)
        assistant_message = ChatMessage(role="assistant", content="")
        history = [m.to_wire() for m in self.messages if m.is_replayable]
        history.append(user_message.to_wire())

        self.messages.extend([user_message, assistant_message])
        self.is_loading = True
        self.error = None

        try:
            self.last_state = await self._stream_reply(history, assistant_message)
            if self.last_state == StreamState.FAILED:
                logger.warning(f"Reply {assistant_message.id} ended without [DONE]")
                self.error = INCOMPLETE_STREAM_ERROR
                assistant_message.failed = True
                if not assistant_message.content:
                    self._set_content(assistant_message, FAILURE_MESSAGE)
        except httpx.HTTPError as e:
            logger.error(f"Chat request failed: {e!r}")
            self.last_state = StreamState.FAILED
            self.error = str(e) or type(e).__name__
            assistant_message.failed = True
            self._set_content(assistant_message, FAILURE_MESSAGE)
        finally:
            self.is_loading = False

        return assistant_message

    async def _stream_reply(self, history: List[dict], message: ChatMessage) -> StreamState:
        consumer = StreamConsumer(
            on_text=lambda _fragment: self._set_content(message, consumer.content)
        )
        body = {"messages": history, "model": self.model}
        if self.context:
            body["context"] = self.context

        async with self._client.stream("POST", self.endpoint, json=body) as response:
            response.raise_for_status()
            async for chunk in response.aiter_text():
                if consumer.feed(chunk) == StreamState.DONE:
                    return consumer.state
        return consumer.finish()
