from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal, Optional


class Message(BaseModel):
    """One conversation turn as sent by the frontend"""
    role: str = Field(..., pattern="^(user|assistant|system)$")
    content: str

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"role": "user", "content": "Summarize my meeting notes"},
            ]
        }
    )


class ChatRequest(BaseModel):
    # Optional so an absent list reaches the route and gets the 400 body
    messages: Optional[List[Message]] = None
    model: Optional[str] = None  # Unknown ids fall back to the default model
    context: Optional[str] = None  # Pre-rendered workspace context


class ContextItem(BaseModel):
    """Reference to a workspace item to inject into the chat"""
    type: Literal["page", "table"]
    id: str


class ContextRequest(BaseModel):
    items: List[ContextItem] = Field(default_factory=list)
