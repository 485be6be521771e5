"""
Seed data generator — creates a small, realistic blog / messaging dataset.

Generates:
  - ~50 users
  - ~400 blogs (with like counts)
  - ~1 500 comments, ~800 tags, ~2 000 likes
  - ~40 conversations with ~600 messages

Tables are created if missing, then filled via SQLAlchemy Core.
Run:  python -m pipelines.seed.seed_data
"""
from __future__ import annotations

import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

from faker import Faker
from sqlalchemy import create_engine, delete

# ── Make `src` importable when run as a script ───────────
_PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from src.core.config import get_settings  # noqa: E402
from src.db import models  # noqa: E402

fake = Faker()
Faker.seed(42)
random.seed(42)

# ── Tunables ─────────────────────────────────────────────
NUM_USERS = 50
NUM_BLOGS = 400
NUM_COMMENTS = 1_500
NUM_TAGS = 800
NUM_LIKES = 2_000
NUM_CONVERSATIONS = 40
NUM_MESSAGES = 600

TAG_NAMES = [
    "python", "sql", "travel", "food", "music", "startups", "design",
    "ml", "devops", "books", "fitness", "photography",
]

# ── Helper: date ranges ─────────────────────────────────
DATE_START = datetime(2024, 1, 1)
DATE_END = datetime(2025, 12, 31)
DATE_RANGE_DAYS = (DATE_END - DATE_START).days


def _rand_ts() -> datetime:
    return DATE_START + timedelta(
        days=random.randint(0, DATE_RANGE_DAYS),
        hours=random.randint(0, 23),
        minutes=random.randint(0, 59),
        seconds=random.randint(0, 59),
    )


# ── Generators ───────────────────────────────────────────

def gen_users() -> list[dict]:
    rows = []
    seen: set[str] = set()
    uid = 0
    while len(rows) < NUM_USERS:
        username = fake.user_name()
        if username in seen:
            continue
        seen.add(username)
        uid += 1
        ts = _rand_ts()
        rows.append({
            "id": uid,
            "username": username,
            "email": f"{username}@{fake.free_email_domain()}",
            "createdAt": ts,
            "updatedAt": ts,
        })
    return rows


def gen_blogs(users: list[dict]) -> list[dict]:
    rows = []
    for bid in range(1, NUM_BLOGS + 1):
        author = random.choice(users)
        created = max(_rand_ts(), author["createdAt"])
        rows.append({
            "id": bid,
            "title": fake.sentence(nb_words=6).rstrip("."),
            "content": "\n\n".join(fake.paragraphs(nb=3)),
            "userId": author["id"],
            "likeCount": 0,
            "createdAt": created,
            "updatedAt": created + timedelta(days=random.randint(0, 30)),
        })
    return rows


def gen_comments(users: list[dict], blogs: list[dict]) -> list[dict]:
    return [
        {
            "id": cid,
            "content": fake.sentence(nb_words=12),
            "userId": random.choice(users)["id"],
            "blogId": random.choice(blogs)["id"],
            "createdAt": _rand_ts(),
        }
        for cid in range(1, NUM_COMMENTS + 1)
    ]


def gen_tags(blogs: list[dict]) -> list[dict]:
    return [
        {
            "id": tid,
            "name": random.choice(TAG_NAMES),
            "blogId": random.choice(blogs)["id"],
            "createdAt": _rand_ts(),
        }
        for tid in range(1, NUM_TAGS + 1)
    ]


def gen_likes(users: list[dict], blogs: list[dict]) -> list[dict]:
    """Unique (user, blog) pairs; also bumps each blog's likeCount."""
    by_id = {b["id"]: b for b in blogs}
    pairs: set[tuple[int, int]] = set()
    while len(pairs) < NUM_LIKES:
        pairs.add((random.choice(users)["id"], random.choice(blogs)["id"]))

    rows = []
    for lid, (uid, bid) in enumerate(sorted(pairs), start=1):
        by_id[bid]["likeCount"] += 1
        rows.append({"id": lid, "userId": uid, "blogId": bid, "createdAt": _rand_ts()})
    return rows


def gen_conversations(users: list[dict]) -> tuple[list[dict], list[dict]]:
    """Returns (conversations, messages)."""
    conversations = []
    for cid in range(1, NUM_CONVERSATIONS + 1):
        is_group = random.random() < 0.3
        conversations.append({
            "id": cid,
            "title": fake.catch_phrase() if is_group else None,
            "isGroup": is_group,
            "createdAt": _rand_ts(),
        })

    messages = [
        {
            "id": mid,
            "content": fake.sentence(nb_words=10),
            "senderId": random.choice(users)["id"],
            "conversationId": random.choice(conversations)["id"],
            "createdAt": _rand_ts(),
        }
        for mid in range(1, NUM_MESSAGES + 1)
    ]
    return conversations, messages


# ── Main ─────────────────────────────────────────────────

def main() -> None:
    url = get_settings().database_url
    print(f"Connecting to {url.split('@')[-1]} ...")
    engine = create_engine(url)
    models.create_schema(engine)

    users = gen_users()
    blogs = gen_blogs(users)
    comments = gen_comments(users, blogs)
    tags = gen_tags(blogs)
    likes = gen_likes(users, blogs)
    conversations, messages = gen_conversations(users)

    # Children first on delete, parents first on insert
    ordered = [
        (models.users, users),
        (models.blogs, blogs),
        (models.comments, comments),
        (models.tags, tags),
        (models.likes, likes),
        (models.conversations, conversations),
        (models.messages, messages),
    ]
    with engine.begin() as conn:
        for table, _ in reversed(ordered):
            conn.execute(delete(table))
        for table, rows in ordered:
            conn.execute(table.insert(), rows)
            print(f"  {table.name:<13} {len(rows):>6} rows")

    print("Seed complete.")


if __name__ == "__main__":
    main()
