"""
Shared fixtures: an in-memory SQLite store seeded with a handful of users
and blogs, plus the default whitelist.  No Postgres or LLM needed.
"""
from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from src.db import models
from src.governance.whitelist import WhitelistSchema, load_whitelist

BASE_TS = datetime(2025, 1, 1, 12, 0, 0)

USERS = [
    {"id": 1, "username": "X", "email": "x@example.com"},
    {"id": 2, "username": "alice", "email": "alice@example.com"},
    {"id": 3, "username": "bob", "email": "bob@example.com"},
]

# (id, title, author id, likeCount); createdAt grows with id
BLOGS = [
    (1, "Intro to SQL", 1, 3),
    (2, "Advanced SQL joins", 1, 10),
    (3, "Gardening basics", 1, 0),
    (4, "Python tips", 1, 7),
    (5, "100% pure fun_stuff", 1, 1),
    (6, "Travel diary", 2, 4),
    (7, "Cooking with sql-ish recipes", 2, 2),
    (8, "Music theory", 3, 12),
]


def _seed(engine) -> None:
    with engine.begin() as conn:
        conn.execute(models.users.insert(), [
            {**u, "createdAt": BASE_TS, "updatedAt": BASE_TS} for u in USERS
        ])
        conn.execute(models.blogs.insert(), [
            {
                "id": bid,
                "title": title,
                "content": f"Body of {title}",
                "userId": uid,
                "likeCount": likes,
                "createdAt": BASE_TS + timedelta(days=bid),
                "updatedAt": BASE_TS + timedelta(days=bid),
            }
            for bid, title, uid, likes in BLOGS
        ])


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.create_schema(eng)
    _seed(eng)
    yield eng
    eng.dispose()


@pytest.fixture(scope="session")
def schema() -> WhitelistSchema:
    return load_whitelist()
