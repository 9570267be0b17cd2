"""Repository pattern for database operations.

Encapsulates all SQLAlchemy queries, keeping domain logic pure.
Returns domain models (not SQLAlchemy entities) to external callers.

Store failures surface as finadmin errors:
- missing ids raise NotFoundError
- unique-key violations raise ConflictError
- lock timeouts, unavailable or failing database raise TransientStoreError
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Generator, Iterable

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from finadmin.db.schema import Admin, Budget, Transaction, User
from finadmin.errors import ConflictError, NotFoundError, TransientStoreError, ValidationError
from finadmin.models.domain import (
    BUDGET_PERIODS,
    TRANSACTION_CATEGORIES,
    AdminEntity,
    BudgetEntity,
    CategoryBreakdown,
    LineItem,
    TransactionEntity,
    UserEntity,
    UserRef,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session as DbSession
else:
    DbSession = Session

# Re-export for external use
__all__ = ["DbSession"]

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(session: DbSession, action: str) -> Generator[None, None, None]:
    """Translate SQLAlchemy failures into finadmin errors."""
    try:
        yield
    except IntegrityError as e:
        session.rollback()
        raise ConflictError(f"Duplicate entry while trying to {action}") from e
    except OperationalError as e:
        session.rollback()
        logger.warning(f"Store unavailable during {action}: {e}")
        raise TransientStoreError(f"Store unavailable, could not {action}") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Store failure during {action}: {e}")
        raise TransientStoreError(f"Store failure, could not {action}") from e


def _as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo; stored timestamps are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ============================================================================
# Converters: SQLAlchemy <-> Domain
# ============================================================================


def _categories_to_json(categories: list[CategoryBreakdown] | None) -> str | None:
    if categories is None:
        return None
    return json.dumps(
        [
            {
                "category": c.category,
                "is_non_essential": c.is_non_essential,
                "category_total": c.category_total,
                "items": [
                    {"name": i.name, "price": i.price, "quantity": i.quantity} for i in c.items
                ],
            }
            for c in categories
        ]
    )


def _categories_from_json(value: str | None) -> list[CategoryBreakdown] | None:
    if not value:
        return None
    return [
        CategoryBreakdown(
            category=c["category"],
            is_non_essential=c.get("is_non_essential", False),
            category_total=c["category_total"],
            items=tuple(
                LineItem(name=i["name"], price=i["price"], quantity=i.get("quantity", 1))
                for i in c["items"]
            ),
        )
        for c in json.loads(value)
    ]


def _user_to_entity(user: User) -> UserEntity:
    """Convert SQLAlchemy User to domain entity."""
    return UserEntity(
        user_id=user.user_id,
        email=user.email,
        name=user.name,
        created_at=_as_utc(user.created_at),
    )


def _admin_to_entity(admin: Admin) -> AdminEntity:
    """Convert SQLAlchemy Admin to domain entity."""
    return AdminEntity(
        admin_id=admin.admin_id,
        email=admin.email,
        password_hash=admin.password_hash,
        created_at=_as_utc(admin.created_at),
    )


def _transaction_to_entity(
    txn: Transaction, refs: dict[str, UserRef] | None = None
) -> TransactionEntity:
    """Convert SQLAlchemy Transaction to domain entity."""
    return TransactionEntity(
        transaction_id=txn.transaction_id,
        user_id=txn.user_id,
        type=txn.type,
        category=txn.category,
        amount=txn.amount,
        description=txn.description,
        date=_as_utc(txn.date),
        source=txn.source,
        status=txn.status,
        categories=_categories_from_json(txn.categories_json),
        created_at=_as_utc(txn.created_at),
        user=refs.get(txn.user_id) if refs is not None else None,
    )


def _budget_to_entity(budget: Budget, refs: dict[str, UserRef] | None = None) -> BudgetEntity:
    """Convert SQLAlchemy Budget to domain entity."""
    return BudgetEntity(
        budget_id=budget.budget_id,
        user_id=budget.user_id,
        category=budget.category,
        type=budget.type,
        amount=budget.amount,
        period=budget.period,
        created_at=_as_utc(budget.created_at),
        updated_at=_as_utc(budget.updated_at),
        user=refs.get(budget.user_id) if refs is not None else None,
    )


def _user_refs(session: DbSession, user_ids: Iterable[str]) -> dict[str, UserRef]:
    """Resolve owner identities for a batch of records in one query."""
    ids = set(user_ids)
    if not ids:
        return {}
    rows = session.query(User.user_id, User.name, User.email).filter(User.user_id.in_(ids)).all()
    return {r[0]: UserRef(user_id=r[0], name=r[1], email=r[2]) for r in rows}


# ============================================================================
# Validation
# ============================================================================


def _validate_transaction(entity: TransactionEntity) -> None:
    if entity.type not in ("debit", "credit"):
        raise ValidationError(f"Invalid transaction type: {entity.type}")
    if entity.category not in TRANSACTION_CATEGORIES:
        raise ValidationError(f"Invalid transaction category: {entity.category}")
    if entity.amount < 0.01:
        raise ValidationError("Transaction amount must be positive")
    if entity.source not in ("manual", "billscan"):
        raise ValidationError(f"Invalid transaction source: {entity.source}")
    if entity.status not in ("pending", "completed", "failed"):
        raise ValidationError(f"Invalid transaction status: {entity.status}")
    if entity.source == "billscan" and not entity.categories:
        raise ValidationError("Categories must exist for billscan transactions")
    for group in entity.categories or []:
        if group.category not in TRANSACTION_CATEGORIES:
            raise ValidationError(f"Invalid transaction category: {group.category}")
        if group.category_total < 0.01:
            raise ValidationError("Category total must be positive")
        if not group.items:
            raise ValidationError("Category must contain at least one item")
        for item in group.items:
            if item.price < 0.01:
                raise ValidationError("Item price must be positive")
            if item.quantity < 1:
                raise ValidationError("Quantity must be at least 1")


def _validate_budget(entity: BudgetEntity) -> None:
    if not entity.category.strip():
        raise ValidationError("Budget category is required")
    if entity.type not in ("expense", "income"):
        raise ValidationError(f"Invalid budget type: {entity.type}")
    if entity.period not in BUDGET_PERIODS:
        raise ValidationError(f"Invalid budget period: {entity.period}")
    if entity.amount < 0:
        raise ValidationError("Budget amount cannot be negative")


# ============================================================================
# Admin Repository
# ============================================================================


def get_admin_by_email(session: DbSession, email: str) -> AdminEntity | None:
    """Get admin by email."""
    with _store_errors(session, "fetch admin"):
        admin = session.query(Admin).filter(Admin.email == email).first()
    return _admin_to_entity(admin) if admin else None


def create_admin(session: DbSession, entity: AdminEntity) -> AdminEntity:
    """Create a new admin and commit."""
    with _store_errors(session, "create admin"):
        session.add(
            Admin(
                admin_id=entity.admin_id,
                email=entity.email,
                password_hash=entity.password_hash,
            )
        )
        session.commit()
    return entity


# ============================================================================
# User Repository
# ============================================================================


def list_users(session: DbSession) -> list[UserEntity]:
    """Get all users (password hashes are never returned)."""
    with _store_errors(session, "list users"):
        users = session.query(User).all()
    return [_user_to_entity(u) for u in users]


def get_user(session: DbSession, user_id: str) -> UserEntity | None:
    """Get user by ID."""
    with _store_errors(session, "fetch user"):
        user = session.query(User).filter(User.user_id == user_id).first()
    return _user_to_entity(user) if user else None


def get_user_by_email(session: DbSession, email: str) -> UserEntity | None:
    """Get user by email."""
    with _store_errors(session, "fetch user"):
        user = session.query(User).filter(User.email == email).first()
    return _user_to_entity(user) if user else None


def create_user(
    session: DbSession, entity: UserEntity, password_hash: str | None = None
) -> UserEntity:
    """Create a new user."""
    with _store_errors(session, "create user"):
        session.add(
            User(
                user_id=entity.user_id,
                email=entity.email,
                name=entity.name,
                password_hash=password_hash,
                created_at=entity.created_at,
            )
        )
        session.flush()
    return entity


def delete_user(session: DbSession, user_id: str) -> tuple[int, int]:
    """Delete a user, then their budgets, then their transactions.

    Each step commits on its own; a failure after the first step leaves
    orphaned records behind.

    Returns:
        Tuple of (budgets_deleted, transactions_deleted).

    Raises:
        NotFoundError: If no user has this ID.
    """
    with _store_errors(session, "delete user"):
        user = session.query(User).filter(User.user_id == user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        session.delete(user)
        session.commit()

    with _store_errors(session, "delete user budgets"):
        budgets = session.query(Budget).filter(Budget.user_id == user_id).delete()
        session.commit()

    with _store_errors(session, "delete user transactions"):
        transactions = session.query(Transaction).filter(Transaction.user_id == user_id).delete()
        session.commit()

    logger.info(
        f"Deleted user {user_id} with {budgets} budgets and {transactions} transactions"
    )
    return budgets, transactions


# ============================================================================
# Transaction Repository
# ============================================================================


def list_transactions(session: DbSession) -> list[TransactionEntity]:
    """Get all transactions, newest first, with owner identity resolved."""
    with _store_errors(session, "list transactions"):
        txns = session.query(Transaction).order_by(Transaction.created_at.desc()).all()
        refs = _user_refs(session, (t.user_id for t in txns))
    return [_transaction_to_entity(t, refs) for t in txns]


def get_transactions_for_user(session: DbSession, user_id: str) -> list[TransactionEntity]:
    """Get all transactions owned by a user."""
    with _store_errors(session, "list user transactions"):
        txns = session.query(Transaction).filter(Transaction.user_id == user_id).all()
        refs = _user_refs(session, [user_id])
    return [_transaction_to_entity(t, refs) for t in txns]


def create_transaction(session: DbSession, entity: TransactionEntity) -> TransactionEntity:
    """Validate and create a new transaction."""
    _validate_transaction(entity)
    with _store_errors(session, "create transaction"):
        session.add(
            Transaction(
                transaction_id=entity.transaction_id,
                user_id=entity.user_id,
                type=entity.type,
                category=entity.category,
                amount=entity.amount,
                description=entity.description.strip(),
                date=entity.date,
                source=entity.source,
                categories_json=_categories_to_json(entity.categories),
                status=entity.status,
                created_at=entity.created_at,
            )
        )
        session.flush()
    return entity


def delete_transaction(session: DbSession, transaction_id: str) -> None:
    """Delete a transaction and commit.

    Raises:
        NotFoundError: If no transaction has this ID.
    """
    with _store_errors(session, "delete transaction"):
        txn = (
            session.query(Transaction)
            .filter(Transaction.transaction_id == transaction_id)
            .first()
        )
        if txn is None:
            raise NotFoundError("Transaction not found")
        session.delete(txn)
        session.commit()


# ============================================================================
# Budget Repository
# ============================================================================


def list_budgets(session: DbSession) -> list[BudgetEntity]:
    """Get all budgets with owner identity resolved."""
    with _store_errors(session, "list budgets"):
        budgets = session.query(Budget).all()
        refs = _user_refs(session, (b.user_id for b in budgets))
    return [_budget_to_entity(b, refs) for b in budgets]


def get_budgets_for_user(session: DbSession, user_id: str) -> list[BudgetEntity]:
    """Get all budgets owned by a user."""
    with _store_errors(session, "list user budgets"):
        budgets = session.query(Budget).filter(Budget.user_id == user_id).all()
        refs = _user_refs(session, [user_id])
    return [_budget_to_entity(b, refs) for b in budgets]


def create_budget(session: DbSession, entity: BudgetEntity) -> BudgetEntity:
    """Validate and create a new budget.

    Raises:
        ConflictError: If the user already has a budget for the same
            category, period and type.
    """
    _validate_budget(entity)
    with _store_errors(session, "create budget"):
        session.add(
            Budget(
                budget_id=entity.budget_id,
                user_id=entity.user_id,
                category=entity.category.strip(),
                type=entity.type,
                amount=entity.amount,
                period=entity.period,
                created_at=entity.created_at,
                updated_at=entity.created_at,
            )
        )
        session.flush()
    return entity


def update_budget_amount(session: DbSession, budget_id: str, amount: float) -> None:
    """Change a budget's amount and refresh updated_at."""
    if amount < 0:
        raise ValidationError("Budget amount cannot be negative")
    with _store_errors(session, "update budget"):
        budget = session.query(Budget).filter(Budget.budget_id == budget_id).first()
        if budget is None:
            raise NotFoundError("Budget not found")
        budget.amount = amount
        budget.updated_at = datetime.now(timezone.utc)
        session.commit()


def delete_budget(session: DbSession, budget_id: str) -> None:
    """Delete a budget and commit.

    Raises:
        NotFoundError: If no budget has this ID.
    """
    with _store_errors(session, "delete budget"):
        budget = session.query(Budget).filter(Budget.budget_id == budget_id).first()
        if budget is None:
            raise NotFoundError("Budget not found")
        session.delete(budget)
        session.commit()


# ============================================================================
# Batch Operations
# ============================================================================


def commit(session: DbSession) -> None:
    """Commit current transaction."""
    with _store_errors(session, "commit"):
        session.commit()
