#!/usr/bin/env python3
"""Seed database with demo data.

Creates:
- One admin
- Store owners, each with one store
- Normal users and their ratings of those stores

Architecture note:
- Seed script is idempotent (skips rows whose email already exists)
- Ratings go through services.ratings so the store counters stay consistent

Usage:
    cd services/api
    python -m scripts.seed
"""

import asyncio
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ratings_api.models import Rating, Store, User, UserRole
from ratings_api.services.passwords import hash_password
from ratings_api.services.ratings import submit_rating
from ratings_api.stores.postgres import close_db, create_tables, get_session, init_db

load_dotenv()

# ============================================================
# Accounts
# ============================================================

USERS = [
    {
        "name": "System Administrator",
        "email": "admin@example.com",
        "password": "Admin123!",
        "address": "123 Admin Street, Admin City, AC 12345",
        "role": UserRole.ADMIN,
    },
    {
        "name": "John Store Owner Smith",
        "email": "owner@example.com",
        "password": "Owner123!",
        "address": "456 Store Owner Ave, Business District, BD 67890",
        "role": UserRole.STORE_OWNER,
    },
    {
        "name": "Jane Store Manager Jones",
        "email": "jane.owner@example.com",
        "password": "Owner123!",
        "address": "789 Commerce Blvd, Trade Center, TC 11111",
        "role": UserRole.STORE_OWNER,
    },
    {
        "name": "Alice Regular Customer",
        "email": "user@example.com",
        "password": "User123!",
        "address": "321 User Lane, Customer City, CC 22222",
        "role": UserRole.USER,
    },
    {
        "name": "Bob Shopping Expert",
        "email": "bob.user@example.com",
        "password": "User123!",
        "address": "654 Shopping Mall Rd, Retail Town, RT 33333",
        "role": UserRole.USER,
    },
    {
        "name": "Carol Review Writer",
        "email": "carol.user@example.com",
        "password": "User123!",
        "address": "987 Review Street, Opinion City, OC 44444",
        "role": UserRole.USER,
    },
]

# ============================================================
# Stores (owner referenced by email)
# ============================================================

STORES = [
    {
        "name": "Downtown Electronics Hub",
        "email": "contact@downtown-electronics.example.com",
        "address": "100 Main Street, Downtown, DT 10001",
        "owner": "owner@example.com",
    },
    {
        "name": "Fresh Market Grocery Co",
        "email": "hello@freshmarket.example.com",
        "address": "200 Market Square, Old Town, OT 20002",
        "owner": "jane.owner@example.com",
    },
]

# ============================================================
# Ratings (user email, store email, score, comment)
# ============================================================

RATINGS = [
    ("user@example.com", "contact@downtown-electronics.example.com", 5, "Great selection and helpful staff."),
    ("bob.user@example.com", "contact@downtown-electronics.example.com", 4, "Good prices, checkout was slow."),
    ("carol.user@example.com", "contact@downtown-electronics.example.com", 4, ""),
    ("user@example.com", "hello@freshmarket.example.com", 3, "Produce is fine, parking is hard."),
    ("carol.user@example.com", "hello@freshmarket.example.com", 5, "Best bakery in town."),
]


async def seed_database() -> None:
    await init_db()
    # Idempotent; real deployments run `alembic upgrade head` first.
    await create_tables()

    async with get_session() as session:
        print("Seeding database...")

        print("\nCreating users...")
        user_map = await seed_users(session)

        print("\nCreating stores...")
        store_map = await seed_stores(session, user_map)

        print("\nCreating ratings...")
        await seed_ratings(session, user_map, store_map)

    print("\nDatabase seeded successfully!")
    await close_db()


async def seed_users(session: AsyncSession) -> dict[str, User]:
    user_map: dict[str, User] = {}

    for u in USERS:
        result = await session.execute(select(User).where(User.email == u["email"]))
        existing = result.scalar_one_or_none()

        if existing:
            print(f"  skip {u['email']} (exists)")
            user_map[u["email"]] = existing
            continue

        user = User(
            name=u["name"],
            email=u["email"],
            password_hash=hash_password(u["password"]),
            address=u["address"],
            role=u["role"],
            is_active=True,
        )
        session.add(user)
        await session.flush()
        user_map[u["email"]] = user
        print(f"  + {u['email']} ({u['role'].value})")

    return user_map


async def seed_stores(session: AsyncSession, user_map: dict[str, User]) -> dict[str, Store]:
    store_map: dict[str, Store] = {}

    for s in STORES:
        result = await session.execute(select(Store).where(Store.email == s["email"]))
        existing = result.scalar_one_or_none()

        if existing:
            print(f"  skip {s['name']} (exists)")
            store_map[s["email"]] = existing
            continue

        owner = user_map.get(s["owner"])
        if owner is None:
            print(f"  ! owner not found: {s['owner']}")
            continue

        store = Store(
            name=s["name"],
            email=s["email"],
            address=s["address"],
            owner_id=owner.id,
            average_rating=0.0,
            total_ratings=0,
            is_active=True,
        )
        session.add(store)
        await session.flush()
        store_map[s["email"]] = store
        print(f"  + {s['name']} (owner {owner.email})")

    return store_map


async def seed_ratings(
    session: AsyncSession,
    user_map: dict[str, User],
    store_map: dict[str, Store],
) -> None:
    for user_email, store_email, score, comment in RATINGS:
        user = user_map.get(user_email)
        store = store_map.get(store_email)
        if user is None or store is None:
            print(f"  ! missing user/store for {user_email} -> {store_email}")
            continue

        result = await session.execute(
            select(Rating.id).where(Rating.user_id == user.id, Rating.store_id == store.id)
        )
        if result.scalar_one_or_none() is not None:
            print(f"  skip {user_email} -> {store.name} (exists)")
            continue

        await submit_rating(session, user, store_id=store.id, score=score, comment=comment)
        print(f"  + {user_email} -> {store.name}: {score}")


if __name__ == "__main__":
    asyncio.run(seed_database())
