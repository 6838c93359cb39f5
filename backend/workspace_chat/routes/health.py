from fastapi import APIRouter

from workspace_chat.dependencies import Providers

router = APIRouter()


@router.get("/health")
async def health(registry: Providers):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "providers": registry.get_provider_names(),
    }
