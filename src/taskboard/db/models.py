"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Relationships, constraints, and indexes defined here.

Key concepts:
- String primary keys holding UUID4 text, so the same schema runs on
  PostgreSQL (production) and SQLite (tests)
- Enums stored as short strings (native_enum=False), no DB-level type
- Python-side defaults for timestamps so every backend gets UTC values
- task_history is append-only; nothing in the codebase updates a row
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


# ══════════════════════════════════════════════════════════════
# Enumerations
# ══════════════════════════════════════════════════════════════


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def _enum(cls) -> SAEnum:
    return SAEnum(cls, native_enum=False, length=20, validate_strings=True)


# ══════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A person who can log in. Role decides how much they can see."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(_enum(Role), nullable=False, default=Role.USER)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


# ══════════════════════════════════════════════════════════════
# Projects
# ══════════════════════════════════════════════════════════════


class Project(Base):
    """A project. Visible to its creator and every assigned user.

    Learn: Assignments live in project_users. The relationship is loaded
    eagerly (selectin) because the scoping policy needs the assigned set
    for every single-record access check, and async sessions can't
    lazy-load.
    """

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    created_by: Mapped["User"] = relationship(lazy="selectin")
    members: Mapped[list["ProjectUser"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tasks: Mapped[list["Task"]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )

    @property
    def assigned_user_ids(self) -> set[str]:
        return {m.user_id for m in self.members}

    @property
    def assigned_users(self) -> list["User"]:
        return [m.user for m in self.members]


class ProjectUser(Base):
    """Project assignment — links users to projects."""

    __tablename__ = "project_users"

    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    project: Mapped["Project"] = relationship(back_populates="members")
    user: Mapped["User"] = relationship(lazy="selectin")


# ══════════════════════════════════════════════════════════════
# Tasks + audit history
# ══════════════════════════════════════════════════════════════


class Task(Base):
    """A unit of work inside a project, assigned to exactly one user."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_assignee_status", "assignee_id", "status"),
        Index("ix_tasks_project", "project_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        _enum(TaskStatus), nullable=False, default=TaskStatus.TODO
    )
    priority: Mapped[TaskPriority] = mapped_column(
        _enum(TaskPriority), nullable=False, default=TaskPriority.MEDIUM
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    assignee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    project: Mapped["Project"] = relationship(back_populates="tasks", lazy="selectin")
    assignee: Mapped["User"] = relationship(lazy="selectin")
    history: Mapped[list["TaskHistory"]] = relationship(
        back_populates="task", cascade="all, delete-orphan"
    )


class TaskHistory(Base):
    """Immutable record of one status and/or priority change.

    Learn: old_* is NULL for the dimension that did not change (and for
    both on creation); new_* always carries the value after the change.
    """

    __tablename__ = "task_history"
    __table_args__ = (
        Index("ix_task_history_task_ts", "task_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    updated_by_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False
    )
    old_status: Mapped[Optional[TaskStatus]] = mapped_column(
        _enum(TaskStatus), nullable=True
    )
    new_status: Mapped[TaskStatus] = mapped_column(_enum(TaskStatus), nullable=False)
    old_priority: Mapped[Optional[TaskPriority]] = mapped_column(
        _enum(TaskPriority), nullable=True
    )
    new_priority: Mapped[TaskPriority] = mapped_column(
        _enum(TaskPriority), nullable=False
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    task: Mapped["Task"] = relationship(back_populates="history")
    updated_by: Mapped["User"] = relationship(lazy="selectin")
