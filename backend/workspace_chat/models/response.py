from pydantic import BaseModel
from typing import List, Literal


class TextDeltaPayload(BaseModel):
    """Body of every non-sentinel `data:` frame on the chat stream"""

    type: Literal["text"] = "text"
    content: str


class ErrorResponse(BaseModel):
    error: str


class ModelInfo(BaseModel):
    id: str
    name: str
    provider: str
    description: str = ""
    streaming: bool = True


class ModelListResponse(BaseModel):
    models: List[ModelInfo]
    default: str


class ContextResponse(BaseModel):
    context: str
