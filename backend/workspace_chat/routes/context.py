from fastapi import APIRouter

from workspace_chat.dependencies import Workspace
from workspace_chat.models.request import ContextRequest
from workspace_chat.models.response import ContextResponse
from workspace_chat.services.context import ContextAssembler

router = APIRouter()


@router.post("/context", response_model=ContextResponse)
async def render_context(request: ContextRequest, store: Workspace):
    """Render selected pages/tables into the `context` string for /api/chat"""
    context = await ContextAssembler(store).render(request.items)
    return ContextResponse(context=context)
