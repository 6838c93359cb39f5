import asyncio
import logging
from typing import Dict, List, Type

import httpx

from workspace_chat.config import settings
from workspace_chat.providers.anthropic import AnthropicProvider
from workspace_chat.providers.base import BaseProvider
from workspace_chat.providers.openai import OpenAIProvider
from workspace_chat.services.model_registry import ModelConfig
from workspace_chat.utils.exceptions import ProviderNotConfiguredError

logger = logging.getLogger(__name__)


# Mapping of provider types to their classes
PROVIDER_CLASSES: Dict[str, Type[BaseProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
}


class ProviderRegistry:
    """Holds one shared HTTP client per configured provider and hands out
    per-request provider instances bound to it."""

    # Maximum time to wait for active streams during cleanup (seconds)
    CLEANUP_TIMEOUT = 10.0

    def __init__(self):
        self._clients: Dict[str, httpx.AsyncClient] = {}
        self._active_streams: int = 0

    def stream_started(self) -> None:
        """Call when a provider stream starts."""
        self._active_streams += 1

    def stream_ended(self) -> None:
        """Call when a provider stream ends."""
        self._active_streams = max(0, self._active_streams - 1)

    @property
    def active_streams(self) -> int:
        return self._active_streams

    def initialize(self) -> None:
        """Create clients for every provider that has an API key"""
        credentials = {
            "anthropic": (settings.anthropic_api_key, settings.anthropic_base_url),
            "openai": (settings.openai_api_key, settings.openai_base_url),
        }
        for name, (api_key, base_url) in credentials.items():
            if not api_key:
                logger.warning(f"No API key for provider '{name}', skipping")
                continue
            self.register_client(
                name,
                PROVIDER_CLASSES[name].build_client(
                    api_key, base_url, timeout=settings.provider_timeout
                ),
            )

    def register_client(self, name: str, client: httpx.AsyncClient) -> None:
        if name not in PROVIDER_CLASSES:
            raise ValueError(f"Unknown provider type '{name}'")
        self._clients[name] = client
        logger.info(f"Provider '{name}' ready")

    def create_provider(self, model: ModelConfig) -> BaseProvider:
        """Build the provider instance serving one request for `model`."""
        client = self._clients.get(model.provider)
        if client is None:
            raise ProviderNotConfiguredError(model.provider)
        return PROVIDER_CLASSES[model.provider](client, model)

    def get_provider_names(self) -> List[str]:
        """Return names of all configured providers"""
        return list(self._clients.keys())

    async def cleanup(self):
        """Close all clients, waiting for active streams to complete."""
        # Wait for active streams to complete (with timeout)
        wait_time = 0.0
        while self._active_streams > 0 and wait_time < self.CLEANUP_TIMEOUT:
            logger.debug(f"Waiting for {self._active_streams} active streams to complete...")
            await asyncio.sleep(0.1)
            wait_time += 0.1

        if self._active_streams > 0:
            logger.warning(
                f"Cleanup timeout: {self._active_streams} streams still active after "
                f"{self.CLEANUP_TIMEOUT}s. Proceeding with cleanup."
            )

        for name, client in self._clients.items():
            try:
                await client.aclose()
            except Exception as e:
                logger.warning(f"Error closing client for provider {name}: {e}")
        self._clients.clear()


# Singleton instance
provider_registry = ProviderRegistry()
