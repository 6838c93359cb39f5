from workspace_chat.providers.base import BaseProvider, StreamDelta
from workspace_chat.providers.registry import provider_registry

__all__ = ["BaseProvider", "StreamDelta", "provider_registry"]
