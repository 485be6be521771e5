"""SQLAlchemy Core table definitions for the blog / messaging store.

Table and column names mirror the application schema exactly (``"Blog"``,
``"createdAt"`` ...) so whitelist field names can be looked up directly in
``table.c``.
"""
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

users = Table(
    "User",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(100), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("createdAt", DateTime, nullable=False, server_default=func.now()),
    Column("updatedAt", DateTime, nullable=False, server_default=func.now()),
)

blogs = Table(
    "Blog",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("userId", Integer, ForeignKey("User.id"), nullable=False),
    Column("likeCount", Integer, nullable=False, server_default="0"),
    Column("createdAt", DateTime, nullable=False, server_default=func.now()),
    Column("updatedAt", DateTime, nullable=False, server_default=func.now()),
)

comments = Table(
    "Comment",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("content", Text, nullable=False),
    Column("userId", Integer, ForeignKey("User.id"), nullable=False),
    Column("blogId", Integer, ForeignKey("Blog.id"), nullable=False),
    Column("createdAt", DateTime, nullable=False, server_default=func.now()),
)

tags = Table(
    "Tag",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("blogId", Integer, ForeignKey("Blog.id"), nullable=False),
    Column("createdAt", DateTime, nullable=False, server_default=func.now()),
)

likes = Table(
    "Like",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("userId", Integer, ForeignKey("User.id"), nullable=False),
    Column("blogId", Integer, ForeignKey("Blog.id"), nullable=False),
    Column("createdAt", DateTime, nullable=False, server_default=func.now()),
)

conversations = Table(
    "Conversation",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255)),
    Column("isGroup", Boolean, nullable=False, server_default="0"),
    Column("createdAt", DateTime, nullable=False, server_default=func.now()),
)

messages = Table(
    "Message",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("content", Text, nullable=False),
    Column("senderId", Integer, ForeignKey("User.id"), nullable=False),
    Column("conversationId", Integer, ForeignKey("Conversation.id"), nullable=False),
    Column("createdAt", DateTime, nullable=False, server_default=func.now()),
)


def create_schema(engine: Engine) -> None:
    """Create all tables (idempotent)."""
    metadata.create_all(engine)
