"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
"""

from functools import lru_cache
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from taskroom.core.config import get_settings
from taskroom.utils.datetime_utils import now_utc


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class TaskORM(Base):
    """Task ORM model."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    room_id = Column(String(64), nullable=False, index=True)
    content = Column(Text, nullable=False)
    scheduled_time = Column(String(100), nullable=True)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


class ScheduleEntryORM(Base):
    """Schedule entry ORM model. One row per (room, task, date)."""

    __tablename__ = "schedule_entries"
    __table_args__ = (
        UniqueConstraint("room_id", "task_id", "date", name="uq_schedule_room_task_date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    room_id = Column(String(64), nullable=False, index=True)
    task_id = Column(
        String(36),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Plain calendar date "YYYY-MM-DD", not a timestamp
    date = Column(String(10), nullable=False, index=True)
    start_minute = Column(Integer, nullable=True)
    end_minute = Column(Integer, nullable=True)
    bucket = Column(String(20), nullable=False, default="UNSCHEDULED")
    confidence = Column(Float, nullable=False, default=0.0)
    source = Column(String(10), nullable=False, default="AI")
    created_at = Column(DateTime, default=now_utc)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


# ===========================================
# Database Session Management
# ===========================================


@lru_cache()
def get_engine():
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

