import orjson

SSE_DATA_PREFIX = "data: "
SSE_DONE_PAYLOAD = "[DONE]"
SSE_DONE_FRAME = f"{SSE_DATA_PREFIX}{SSE_DONE_PAYLOAD}\n\n"


def format_sse_data(payload: dict) -> str:
    """Format a JSON payload as a single `data:` SSE frame"""
    return f"{SSE_DATA_PREFIX}{orjson.dumps(payload).decode()}\n\n"


def format_text_delta(content: str) -> str:
    """Frame one text fragment in the relay wire shape"""
    return format_sse_data({"type": "text", "content": content})
