from uuid import uuid4

from workspace_chat.config import settings
from workspace_chat.utils.time import utcnow

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool


def make_engine(url: str) -> AsyncEngine:
    """Create an async engine. In-memory SQLite shares one connection."""
    if url.startswith("sqlite") and ":memory:" in url:
        return create_async_engine(
            url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(url, echo=False)


# Create async engine
engine = make_engine(settings.database_url)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def _new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class PageRecord(Base):
    """A workspace document page."""

    __tablename__ = "pages"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(200), nullable=False)
    content = Column(Text, default="", nullable=False)
    icon = Column(String(16), nullable=True)  # Emoji shown in the sidebar
    parent_id = Column(
        String(36), ForeignKey("pages.id", ondelete="CASCADE"), nullable=True, index=True
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<PageRecord(id='{self.id}', title='{self.title}')>"


class TableRecord(Base):
    """A workspace table. Columns and rows are stored as JSON documents."""

    __tablename__ = "workspace_tables"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    icon = Column(String(16), nullable=True)
    columns = Column(JSON, default=list, nullable=False)  # [{id, name, type, options?}]
    rows = Column(JSON, default=list, nullable=False)  # [{id, cells: {column_id: value}}]
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<TableRecord(id='{self.id}', name='{self.name}', rows={len(self.rows or [])})>"


async def init_db(db_engine: AsyncEngine = engine):
    """Initialize the database, creating all tables if they don't exist."""
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
