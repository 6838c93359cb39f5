"""
Workspace content models (pages and tables) exposed by the workspace store.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from workspace_chat.utils.time import utcnow

ColumnType = Literal["text", "number", "date", "select", "multiselect", "checkbox", "url", "email"]


def _new_id() -> str:
    return str(uuid4())


class WorkspacePage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=_new_id)
    title: str
    content: str = ""
    icon: Optional[str] = None
    parent_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TableColumn(BaseModel):
    id: str
    name: str
    type: ColumnType = "text"
    options: Optional[List[str]] = None  # For select / multiselect


class TableRow(BaseModel):
    id: str = Field(default_factory=_new_id)
    cells: Dict[str, Any] = Field(default_factory=dict)  # column id -> value


class WorkspaceTable(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=_new_id)
    name: str
    icon: Optional[str] = None
    columns: List[TableColumn] = Field(default_factory=list)
    rows: List[TableRow] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
