from typing import Annotated

from fastapi import Depends

from workspace_chat.database import async_session
from workspace_chat.providers.registry import ProviderRegistry, provider_registry
from workspace_chat.services.workspace_store import SqlWorkspaceStore, WorkspaceStore


def get_provider_registry() -> ProviderRegistry:
    """Provide the process-wide provider registry."""
    return provider_registry


def get_workspace_store() -> WorkspaceStore:
    """Provide the workspace store backed by the application database."""
    return SqlWorkspaceStore(async_session)


# Type aliases for cleaner route signatures
Providers = Annotated[ProviderRegistry, Depends(get_provider_registry)]
Workspace = Annotated[WorkspaceStore, Depends(get_workspace_store)]
