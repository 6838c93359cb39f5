from workspace_chat.utils.sse import SSE_DONE_FRAME, format_sse_data, format_text_delta

__all__ = ["SSE_DONE_FRAME", "format_sse_data", "format_text_delta"]
