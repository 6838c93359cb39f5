"""Tests for the client-side stream consumer and chat session."""

import httpx
import orjson
import pytest

from conftest import ScriptedProvider, ScriptedRegistry, done, text
from workspace_chat.client.consumer import (
    FAILURE_MESSAGE,
    INCOMPLETE_STREAM_ERROR,
    ChatMessage,
    ChatSession,
    SSELineBuffer,
    StreamConsumer,
    StreamState,
)
from workspace_chat.dependencies import get_provider_registry
from workspace_chat.main import app

HELLO_WORLD_BODY = (
    'data: {"type":"text","content":"Hello"}\n\n'
    'data: {"type":"text","content":" world"}\n\n'
    "data: [DONE]\n\n"
)


def test_line_buffer_carries_partial_line():
    buffer = SSELineBuffer()

    assert buffer.feed('data: {"type":"te') == []
    assert buffer.has_partial
    assert buffer.feed('xt","content":"x"}\n\nda') == ['data: {"type":"text","content":"x"}', ""]
    assert buffer.flush() == ["da"]
    assert buffer.flush() == []


def test_line_buffer_strips_carriage_returns():
    buffer = SSELineBuffer()
    assert buffer.feed("data: [DONE]\r\n") == ["data: [DONE]"]


@pytest.mark.parametrize("chunk_size", [1, 2, 3, 7, 16, 1000])
def test_consumer_reassembles_frames_split_across_chunks(chunk_size):
    consumer = StreamConsumer()
    for i in range(0, len(HELLO_WORLD_BODY), chunk_size):
        consumer.feed(HELLO_WORLD_BODY[i:i + chunk_size])

    assert consumer.content == "Hello world"
    assert consumer.state == StreamState.DONE
    assert consumer.finish() == StreamState.DONE


def test_consumer_reports_accumulating_state():
    consumer = StreamConsumer()

    assert consumer.feed('data: {"type":"text"') == StreamState.ACCUMULATING
    assert consumer.feed(',"content":"a"}\n\n') == StreamState.READING
    assert consumer.content == "a"


def test_malformed_line_does_not_stop_consumption():
    consumer = StreamConsumer()
    consumer.feed(
        'data: {"type":"text","content":"A"}\n\n'
        "data: {broken\n\n"
        'data: {"type":"text","content":"B"}\n\n'
        "data: [DONE]\n\n"
    )

    assert consumer.content == "AB"
    assert consumer.skipped_lines == 1
    assert consumer.state == StreamState.DONE


def test_non_text_payloads_and_other_lines_are_ignored():
    consumer = StreamConsumer()
    consumer.feed(
        ": keep-alive comment\n"
        "event: ping\n"
        'data: {"type":"usage","tokens":3}\n\n'
        'data: {"type":"text","content":"ok"}\n\n'
    )

    assert consumer.content == "ok"
    assert consumer.state == StreamState.READING


def test_missing_sentinel_is_failure():
    consumer = StreamConsumer()
    consumer.feed('data: {"type":"text","content":"partial"}\n\n')

    assert consumer.finish() == StreamState.FAILED
    assert consumer.content == "partial"


def test_empty_stream_is_failure():
    assert StreamConsumer().finish() == StreamState.FAILED


def test_unterminated_sentinel_line_still_completes():
    consumer = StreamConsumer()
    consumer.feed('data: {"type":"text","content":"x"}\n\ndata: [DONE]')

    assert consumer.finish() == StreamState.DONE


def test_consumer_stops_after_sentinel():
    fragments = []
    consumer = StreamConsumer(on_text=fragments.append)
    consumer.feed('data: [DONE]\n\ndata: {"type":"text","content":"late"}\n\n')

    assert consumer.state == StreamState.DONE
    assert consumer.content == ""
    assert fragments == []


# ---------------------------------------------------------------------------
# ChatSession
# ---------------------------------------------------------------------------


def chunked_body(body: str, size: int):
    async def stream():
        data = body.encode()
        for i in range(0, len(data), size):
            yield data[i:i + size]

    return stream()


def session_with(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://relay.test")
    return ChatSession(client, **kwargs)


@pytest.mark.asyncio
async def test_send_message_grows_assistant_message_in_place():
    requests = []

    def handler(request):
        requests.append(orjson.loads(request.content))
        return httpx.Response(200, content=chunked_body(HELLO_WORLD_BODY, 5))

    updates = []
    session = session_with(handler, model="gpt-4o", context="ctx", on_update=lambda mid, c: updates.append((mid, c)))

    reply = await session.send_message("  Hi  ")

    assert reply.content == "Hello world"
    assert session.last_state == StreamState.DONE
    assert session.error is None
    assert session.is_loading is False
    assert [m.role for m in session.messages] == ["user", "assistant"]
    assert session.messages[0].content == "Hi"
    assert [c for _, c in updates] == ["Hello", "Hello world"]
    assert {mid for mid, _ in updates} == {reply.id}
    assert requests[0] == {
        "messages": [{"role": "user", "content": "Hi"}],
        "model": "gpt-4o",
        "context": "ctx",
    }


@pytest.mark.asyncio
async def test_send_message_sends_history_in_order():
    bodies = []

    def handler(request):
        bodies.append(orjson.loads(request.content))
        return httpx.Response(200, content=HELLO_WORLD_BODY.encode())

    session = session_with(handler)
    await session.send_message("first")
    await session.send_message("second")

    assert bodies[1]["messages"] == [
        {"role": "user", "content": "first"},
        {"role": "assistant", "content": "Hello world"},
        {"role": "user", "content": "second"},
    ]
    assert "context" not in bodies[1]


@pytest.mark.asyncio
async def test_blank_input_is_ignored():
    session = session_with(lambda r: pytest.fail("no request expected"))

    assert await session.send_message("   ") is None
    assert session.messages == []


@pytest.mark.asyncio
async def test_send_ignored_while_loading():
    session = session_with(lambda r: pytest.fail("no request expected"))
    session.is_loading = True

    assert await session.send_message("hello") is None
    assert session.messages == []


@pytest.mark.asyncio
async def test_http_error_replaces_content_with_failure_message():
    session = session_with(lambda r: httpx.Response(500, json={"error": "Internal server error"}))

    reply = await session.send_message("Hi")

    assert reply.content == FAILURE_MESSAGE
    assert session.last_state == StreamState.FAILED
    assert "500" in session.error
    assert session.is_loading is False


@pytest.mark.asyncio
async def test_network_error_replaces_content_with_failure_message():
    def handler(request):
        raise httpx.ConnectError("refused")

    session = session_with(handler)
    reply = await session.send_message("Hi")

    assert reply.content == FAILURE_MESSAGE
    assert session.is_loading is False


@pytest.mark.asyncio
async def test_connection_drop_mid_stream_is_failure():
    async def body():
        yield b'data: {"type":"text","content":"Hel"}\n\n'
        raise httpx.RemoteProtocolError("peer closed connection")

    session = session_with(lambda r: httpx.Response(200, content=body()))
    reply = await session.send_message("Hi")

    assert reply.content == FAILURE_MESSAGE
    assert session.last_state == StreamState.FAILED
    assert session.is_loading is False


@pytest.mark.asyncio
async def test_stream_without_sentinel_keeps_partial_content():
    body = 'data: {"type":"text","content":"Hel"}\n\n'
    session = session_with(lambda r: httpx.Response(200, content=body.encode()))

    reply = await session.send_message("Hi")

    assert reply.content == "Hel"
    assert session.last_state == StreamState.FAILED
    assert session.error == INCOMPLETE_STREAM_ERROR


@pytest.mark.asyncio
async def test_empty_body_shows_failure_message():
    session = session_with(lambda r: httpx.Response(200, content=b""))

    reply = await session.send_message("Hi")

    assert reply.content == FAILURE_MESSAGE
    assert session.last_state == StreamState.FAILED


def test_clear_messages():
    session = ChatSession(httpx.AsyncClient(), messages=[ChatMessage(role="user", content="x")])
    session.error = "boom"
    session.clear_messages()

    assert session.messages == []
    assert session.error is None


@pytest.mark.asyncio
async def test_round_trip_through_relay():
    provider = ScriptedProvider([text("Hello"), text(" world"), done()])
    app.dependency_overrides[get_provider_registry] = lambda: ScriptedRegistry(provider)
    try:
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://testserver"
        ) as client:
            session = ChatSession(client, model="claude-4-sonnet")
            reply = await session.send_message("Hi")
    finally:
        app.dependency_overrides.clear()

    assert reply.content == "Hello world"
    assert session.last_state == StreamState.DONE
    assert provider.calls[0]["messages"] == [{"role": "user", "content": "Hi"}]


@pytest.mark.asyncio
async def test_failed_reply_is_not_sent_back_upstream():
    bodies = []
    responses = iter([
        httpx.Response(500, json={"error": "Internal server error"}),
        httpx.Response(200, content=HELLO_WORLD_BODY.encode()),
    ])

    def handler(request):
        bodies.append(orjson.loads(request.content))
        return next(responses)

    session = session_with(handler)
    failed_reply = await session.send_message("first")
    await session.send_message("second")

    assert failed_reply.failed
    assert session.messages[1].content == FAILURE_MESSAGE
    assert bodies[1]["messages"] == [
        {"role": "user", "content": "first"},
        {"role": "user", "content": "second"},
    ]


@pytest.mark.asyncio
async def test_partial_reply_without_sentinel_is_not_sent_back_upstream():
    bodies = []
    responses = iter([
        httpx.Response(200, content=b'data: {"type":"text","content":"Hel"}\n\n'),
        httpx.Response(200, content=HELLO_WORLD_BODY.encode()),
    ])

    def handler(request):
        bodies.append(orjson.loads(request.content))
        return next(responses)

    session = session_with(handler)
    await session.send_message("first")
    await session.send_message("second")

    assert session.messages[1].content == "Hel"
    assert [m["role"] for m in bodies[1]["messages"]] == ["user", "user"]


def test_empty_assistant_turn_is_not_replayable():
    assert not ChatMessage(role="assistant", content="").is_replayable
    assert ChatMessage(role="assistant", content="A1").is_replayable
    assert ChatMessage(role="user", content="Q1").is_replayable
