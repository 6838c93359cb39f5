"""
Demo workspace content, loaded into an empty store at startup so the
context picker has something to offer.
"""

import logging

from workspace_chat.models.workspace import (
    TableColumn,
    TableRow,
    WorkspacePage,
    WorkspaceTable,
)
from workspace_chat.services.workspace_store import WorkspaceStore

logger = logging.getLogger(__name__)

DEMO_PAGES = [
    WorkspacePage(
        title="Welcome",
        content="This is your first page in the workspace.",
        icon="👋",
    ),
    WorkspacePage(
        title="Notes",
        content="A place to jot down notes.",
        icon="📝",
    ),
]

DEMO_TABLES = [
    WorkspaceTable(
        name="Projects",
        icon="📊",
        columns=[
            TableColumn(id="col1", name="Name", type="text"),
            TableColumn(id="col2", name="Status", type="select", options=["Planned", "In progress", "Done"]),
            TableColumn(id="col3", name="Date", type="date"),
        ],
        rows=[
            TableRow(id="row1", cells={"col1": "Website redesign", "col2": "In progress", "col3": "2024-01-15"}),
            TableRow(id="row2", cells={"col1": "Mobile app", "col2": "Planned", "col3": "2024-02-01"}),
        ],
    ),
]


async def seed_demo_workspace(store: WorkspaceStore) -> dict:
    """Insert demo pages/tables if the store has no pages yet."""
    if await store.list_pages():
        return {"status": "skipped", "pages_created": 0, "tables_created": 0}

    for page in DEMO_PAGES:
        await store.add_page(page.model_copy())
    for table in DEMO_TABLES:
        await store.add_table(table.model_copy(deep=True))

    logger.info(f"Workspace seeded: {len(DEMO_PAGES)} pages, {len(DEMO_TABLES)} tables")
    return {
        "status": "success",
        "pages_created": len(DEMO_PAGES),
        "tables_created": len(DEMO_TABLES),
    }
