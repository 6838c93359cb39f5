"""
Renders selected workspace items into the context string attached to a chat.

The chat relay treats the result as opaque text; all formatting of pages and
tables happens here.
"""

import logging
from typing import Any, Iterable, List

from workspace_chat.models.request import ContextItem
from workspace_chat.models.workspace import WorkspacePage, WorkspaceTable
from workspace_chat.services.workspace_store import WorkspaceStore

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "\n\n"
CELL_SEPARATOR = " | "


def render_page(page: WorkspacePage) -> str:
    return f"## Page: {page.title}\n{page.content}".rstrip()


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def render_table(table: WorkspaceTable) -> str:
    lines = [f"## Table: {table.name}"]
    if table.columns:
        lines.append(CELL_SEPARATOR.join(col.name for col in table.columns))
        for row in table.rows:
            lines.append(
                CELL_SEPARATOR.join(_format_cell(row.cells.get(col.id)) for col in table.columns)
            )
    return "\n".join(lines)


class ContextAssembler:
    def __init__(self, store: WorkspaceStore):
        self.store = store

    async def render(self, items: Iterable[ContextItem]) -> str:
        """Render items in the given order; missing ones are skipped."""
        sections: List[str] = []
        for item in items:
            if item.type == "page":
                page = await self.store.get_page(item.id)
                if page is None:
                    logger.warning(f"Context page {item.id} not found, skipping")
                    continue
                sections.append(render_page(page))
            else:
                table = await self.store.get_table(item.id)
                if table is None:
                    logger.warning(f"Context table {item.id} not found, skipping")
                    continue
                sections.append(render_table(table))
        return SECTION_SEPARATOR.join(sections)
