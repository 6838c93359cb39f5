"""
Workspace storage interface and its SQLAlchemy implementation.

Routes and the context assembler depend on the abstract WorkspaceStore so
they can be exercised without the process-wide database.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workspace_chat.database import PageRecord, TableRecord
from workspace_chat.models.workspace import WorkspacePage, WorkspaceTable

logger = logging.getLogger(__name__)


class WorkspaceStore(ABC):
    """Read/append access to workspace pages and tables."""

    @abstractmethod
    async def get_page(self, page_id: str) -> Optional[WorkspacePage]:
        pass

    @abstractmethod
    async def get_table(self, table_id: str) -> Optional[WorkspaceTable]:
        pass

    @abstractmethod
    async def list_pages(self) -> List[WorkspacePage]:
        pass

    @abstractmethod
    async def list_tables(self) -> List[WorkspaceTable]:
        pass

    @abstractmethod
    async def add_page(self, page: WorkspacePage) -> WorkspacePage:
        pass

    @abstractmethod
    async def add_table(self, table: WorkspaceTable) -> WorkspaceTable:
        pass


class SqlWorkspaceStore(WorkspaceStore):
    """WorkspaceStore backed by an async SQLAlchemy session factory.

    There is no locking beyond what the database provides; concurrent
    writers to the same row race.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_page(self, page_id: str) -> Optional[WorkspacePage]:
        async with self._session_factory() as session:
            record = await session.get(PageRecord, page_id)
            return WorkspacePage.model_validate(record) if record else None

    async def get_table(self, table_id: str) -> Optional[WorkspaceTable]:
        async with self._session_factory() as session:
            record = await session.get(TableRecord, table_id)
            return WorkspaceTable.model_validate(record) if record else None

    async def list_pages(self) -> List[WorkspacePage]:
        """Pages ordered by most recently updated first"""
        async with self._session_factory() as session:
            result = await session.execute(
                select(PageRecord).order_by(PageRecord.updated_at.desc())
            )
            return [WorkspacePage.model_validate(r) for r in result.scalars().all()]

    async def list_tables(self) -> List[WorkspaceTable]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TableRecord).order_by(TableRecord.updated_at.desc())
            )
            return [WorkspaceTable.model_validate(r) for r in result.scalars().all()]

    async def add_page(self, page: WorkspacePage) -> WorkspacePage:
        async with self._session_factory() as session:
            session.add(PageRecord(**page.model_dump()))
            await session.commit()
        logger.debug(f"Stored page {page.id} ({page.title})")
        return page

    async def add_table(self, table: WorkspaceTable) -> WorkspaceTable:
        data = table.model_dump()
        async with self._session_factory() as session:
            session.add(TableRecord(**data))
            await session.commit()
        logger.debug(f"Stored table {table.id} ({table.name})")
        return table
