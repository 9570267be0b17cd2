#!/usr/bin/env python3
"""Seed a demo database for the admin dashboard.

Usage:
    python scripts/seed_demo.py

This script:
1. Initializes the demo database
2. Creates a demo admin account (admin@example.com / admin123)
3. Seeds users with transactions and budgets spread over recent days
"""

from __future__ import annotations

import random
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from finadmin.auth.tokens import register_admin  # noqa: E402
from finadmin.db import repo  # noqa: E402
from finadmin.db.session import get_session, init_db  # noqa: E402
from finadmin.errors import ConflictError  # noqa: E402
from finadmin.models.domain import (  # noqa: E402
    TRANSACTION_CATEGORIES,
    BudgetEntity,
    CategoryBreakdown,
    LineItem,
    TransactionEntity,
    UserEntity,
)

# Constants
DEMO_DB_PATH = PROJECT_ROOT / "demo.db"
DEMO_ADMIN_EMAIL = "admin@example.com"
DEMO_ADMIN_PASSWORD = "admin123"

DEMO_USERS = [
    ("Asha Rao", "asha@example.com"),
    ("Ben Ortiz", "ben@example.com"),
    ("Chen Li", "chen@example.com"),
    ("Dana Kim", "dana@example.com"),
]

DEMO_BUDGET_CATEGORIES = ["Groceries", "Dining Out", "Transportation", "Savings"]

# Fixed seed so repeated runs produce the same demo data
RANDOM_SEED = 7


def seed_admin() -> None:
    """Create the demo admin unless it already exists."""
    session = get_session(DEMO_DB_PATH)
    try:
        register_admin(session, DEMO_ADMIN_EMAIL, DEMO_ADMIN_PASSWORD)
        print(f"Created admin: {DEMO_ADMIN_EMAIL}")
    except ConflictError:
        print(f"Admin already exists: {DEMO_ADMIN_EMAIL}")
    finally:
        session.close()


def _demo_transaction(rng: random.Random, user_id: str, now: datetime) -> TransactionEntity:
    when = now - timedelta(days=rng.randint(0, 45), hours=rng.randint(0, 23))
    category = rng.choice(TRANSACTION_CATEGORIES)

    if rng.random() < 0.25:
        # Scanned bill with a line-item breakdown
        items = tuple(
            LineItem(
                name=f"Item {i + 1}",
                price=round(rng.uniform(1, 40), 2),
                quantity=rng.randint(1, 3),
            )
            for i in range(rng.randint(1, 4))
        )
        total = round(sum(i.price * i.quantity for i in items), 2)
        return TransactionEntity(
            transaction_id=str(uuid.uuid4()),
            user_id=user_id,
            type="debit",
            category=category,
            amount=total,
            date=when,
            created_at=when,
            source="billscan",
            status="completed",
            categories=[CategoryBreakdown(category=category, category_total=total, items=items)],
        )

    return TransactionEntity(
        transaction_id=str(uuid.uuid4()),
        user_id=user_id,
        type="credit" if category in ("Salary", "Refund") else "debit",
        category=category,
        amount=round(rng.uniform(5, 500), 2),
        date=when,
        created_at=when,
        status="completed",
    )


def seed_database() -> None:
    """Seed demo users, transactions and budgets."""
    session = get_session(DEMO_DB_PATH)
    rng = random.Random(RANDOM_SEED)
    now = datetime.now(timezone.utc)

    try:
        if repo.list_users(session):
            print("Demo users already exist")
            return

        for index, (name, email) in enumerate(DEMO_USERS):
            user = UserEntity(
                user_id=str(uuid.uuid4()),
                email=email,
                name=name,
                created_at=now - timedelta(days=10 * index),
            )
            repo.create_user(session, user)
            print(f"  Created user: {email}")

            for _ in range(rng.randint(3, 8)):
                repo.create_transaction(session, _demo_transaction(rng, user.user_id, now))

            for category in rng.sample(DEMO_BUDGET_CATEGORIES, 2):
                repo.create_budget(
                    session,
                    BudgetEntity(
                        budget_id=str(uuid.uuid4()),
                        user_id=user.user_id,
                        category=category,
                        amount=float(rng.randrange(100, 2000, 50)),
                        period=rng.choice(["Weekly", "Monthly"]),
                        type="income" if category == "Savings" else "expense",
                        created_at=now - timedelta(days=rng.randint(0, 20)),
                        updated_at=now,
                    ),
                )

        repo.commit(session)
        print("Database seeded successfully!")

    finally:
        session.close()


def main() -> int:
    """Main entry point."""
    print("=" * 60)
    print("finadmin Demo Seeding Script")
    print("=" * 60)

    print("\n[1/3] Initializing database...")
    init_db(DEMO_DB_PATH)

    print("\n[2/3] Creating admin...")
    seed_admin()

    print("\n[3/3] Seeding records...")
    seed_database()

    print("\n" + "=" * 60)
    print("Demo seeding complete!")
    print(f"Database: {DEMO_DB_PATH}")
    print(f"Run with: FINADMIN_DB_PATH={DEMO_DB_PATH} uvicorn finadmin.api.app:app")
    print("=" * 60)

    return 0


if __name__ == "__main__":
    sys.exit(main())
