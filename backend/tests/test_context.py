"""Tests for workspace storage, context rendering and the context route."""

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workspace_chat.database import init_db, make_engine
from workspace_chat.dependencies import get_workspace_store
from workspace_chat.main import app
from workspace_chat.models.request import ContextItem
from workspace_chat.models.workspace import TableColumn, TableRow, WorkspacePage, WorkspaceTable
from workspace_chat.services.context import ContextAssembler, render_page, render_table
from workspace_chat.services.workspace_store import SqlWorkspaceStore
from workspace_chat.utils.seed import seed_demo_workspace


@pytest_asyncio.fixture
async def store():
    engine = make_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield SqlWorkspaceStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
    await engine.dispose()


def tasks_table() -> WorkspaceTable:
    return WorkspaceTable(
        id="t1",
        name="Tasks",
        columns=[
            TableColumn(id="c1", name="Title"),
            TableColumn(id="c2", name="Done", type="checkbox"),
            TableColumn(id="c3", name="Tags", type="multiselect"),
        ],
        rows=[
            TableRow(id="r1", cells={"c1": "Write spec", "c2": True, "c3": ["docs", "q1"]}),
            TableRow(id="r2", cells={"c1": "Ship", "c2": False}),
        ],
    )


def test_render_page():
    page = WorkspacePage(title="Notes", content="buy milk\n")
    assert render_page(page) == "## Page: Notes\nbuy milk"


def test_render_table():
    assert render_table(tasks_table()) == (
        "## Table: Tasks\n"
        "Title | Done | Tags\n"
        "Write spec | yes | docs, q1\n"
        "Ship | no | "
    )


def test_render_table_without_columns():
    assert render_table(WorkspaceTable(name="Empty")) == "## Table: Empty"


@pytest.mark.asyncio
async def test_store_round_trips_pages_and_tables(store):
    page = await store.add_page(WorkspacePage(id="p1", title="Spec", content="text", icon="📝"))
    await store.add_table(tasks_table())

    loaded_page = await store.get_page("p1")
    loaded_table = await store.get_table("t1")

    assert loaded_page.title == page.title
    assert loaded_page.icon == "📝"
    assert loaded_table.columns[1].type == "checkbox"
    assert loaded_table.rows[0].cells["c3"] == ["docs", "q1"]
    assert await store.get_page("missing") is None
    assert await store.get_table("missing") is None


@pytest.mark.asyncio
async def test_assembler_renders_items_in_order_and_skips_missing(store):
    await store.add_page(WorkspacePage(id="p1", title="Spec", content="text"))
    await store.add_table(tasks_table())

    context = await ContextAssembler(store).render(
        [
            ContextItem(type="table", id="t1"),
            ContextItem(type="page", id="gone"),
            ContextItem(type="page", id="p1"),
        ]
    )

    sections = context.split("\n\n")
    assert sections[0].startswith("## Table: Tasks")
    assert sections[1] == "## Page: Spec\ntext"
    assert len(sections) == 2


@pytest.mark.asyncio
async def test_assembler_with_no_items(store):
    assert await ContextAssembler(store).render([]) == ""


@pytest.mark.asyncio
async def test_seed_only_runs_on_empty_store(store):
    first = await seed_demo_workspace(store)
    second = await seed_demo_workspace(store)

    assert first["status"] == "success"
    assert second["status"] == "skipped"
    assert len(await store.list_pages()) == first["pages_created"]
    assert len(await store.list_tables()) == first["tables_created"]


@pytest.mark.asyncio
async def test_context_route(store):
    await store.add_page(WorkspacePage(id="p1", title="Spec", content="text"))
    app.dependency_overrides[get_workspace_store] = lambda: store
    try:
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://testserver"
        ) as client:
            response = await client.post("/api/context", json={"items": [{"type": "page", "id": "p1"}]})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json() == {"context": "## Page: Spec\ntext"}
