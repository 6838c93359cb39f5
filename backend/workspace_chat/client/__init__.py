from workspace_chat.client.consumer import (
    FAILURE_MESSAGE,
    ChatMessage,
    ChatSession,
    StreamConsumer,
    StreamState,
)

__all__ = ["FAILURE_MESSAGE", "ChatMessage", "ChatSession", "StreamConsumer", "StreamState"]
