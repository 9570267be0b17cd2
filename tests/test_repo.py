"""Tests for the repository layer.

Covers owner population, cascading user deletion, not-found and
conflict mapping, and store failures surfacing as transient errors.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import DatabaseError, OperationalError

from finadmin.db import repo
from finadmin.errors import ConflictError, NotFoundError, TransientStoreError, ValidationError
from finadmin.models.domain import (
    BudgetEntity,
    CategoryBreakdown,
    LineItem,
    TransactionEntity,
    UserEntity,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _user(user_id: str = "u1", email: str = "a@x.com", name: str = "Alice") -> UserEntity:
    return UserEntity(user_id=user_id, email=email, name=name, created_at=NOW)


def _txn(transaction_id: str, user_id: str = "u1", amount: float = 10.0, **kw) -> TransactionEntity:
    fields = dict(
        transaction_id=transaction_id,
        user_id=user_id,
        type="debit",
        category="Groceries",
        amount=amount,
        date=NOW,
        created_at=NOW,
    )
    fields.update(kw)
    return TransactionEntity(**fields)


def _budget(budget_id: str, user_id: str = "u1", category: str = "Groceries", **kw) -> BudgetEntity:
    fields = dict(
        budget_id=budget_id,
        user_id=user_id,
        category=category,
        amount=100.0,
        created_at=NOW,
        updated_at=NOW,
    )
    fields.update(kw)
    return BudgetEntity(**fields)


def _locked(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestUsers:
    """User reads and the cascading delete."""

    def test_list_and_get_user(self, session):
        repo.create_user(session, _user(), password_hash="secret-hash")
        repo.commit(session)

        users = repo.list_users(session)
        assert [u.email for u in users] == ["a@x.com"]
        assert repo.get_user(session, "u1").name == "Alice"
        assert repo.get_user_by_email(session, "a@x.com").user_id == "u1"
        assert repo.get_user(session, "missing") is None

    def test_user_entity_never_carries_password(self, session):
        repo.create_user(session, _user(), password_hash="secret-hash")
        repo.commit(session)

        user = repo.get_user(session, "u1")
        assert not hasattr(user, "password_hash")

    def test_timestamps_come_back_as_utc(self, session):
        repo.create_user(session, _user())
        repo.commit(session)

        created_at = repo.get_user(session, "u1").created_at
        assert created_at.tzinfo is not None
        assert created_at == NOW

    def test_duplicate_email_is_conflict(self, session):
        repo.create_user(session, _user())
        repo.commit(session)

        with pytest.raises(ConflictError):
            repo.create_user(session, _user(user_id="u2"))

    def test_delete_user_removes_owned_records(self, session):
        repo.create_user(session, _user())
        repo.create_user(session, _user("u2", "b@x.com", "Bob"))
        repo.create_transaction(session, _txn("t1"))
        repo.create_transaction(session, _txn("t2"))
        repo.create_transaction(session, _txn("t3", user_id="u2"))
        repo.create_budget(session, _budget("b1"))
        repo.commit(session)

        budgets, transactions = repo.delete_user(session, "u1")

        assert (budgets, transactions) == (1, 2)
        assert repo.get_user(session, "u1") is None
        assert repo.get_transactions_for_user(session, "u1") == []
        assert repo.get_budgets_for_user(session, "u1") == []
        assert [t.transaction_id for t in repo.list_transactions(session)] == ["t3"]

    def test_delete_missing_user_raises_not_found(self, session):
        with pytest.raises(NotFoundError, match="User not found"):
            repo.delete_user(session, "missing")


class TestTransactions:
    """Transaction reads, validation and deletion."""

    def test_list_populates_owner(self, session):
        repo.create_user(session, _user())
        repo.create_transaction(session, _txn("t1"))
        repo.commit(session)

        [txn] = repo.list_transactions(session)
        assert txn.user is not None
        assert txn.user.email == "a@x.com"
        assert txn.user.name == "Alice"

    def test_orphaned_transaction_has_no_owner(self, session):
        repo.create_transaction(session, _txn("t1", user_id="gone"))
        repo.commit(session)

        [txn] = repo.list_transactions(session)
        assert txn.user is None
        assert txn.user_id == "gone"

    def test_list_is_newest_first(self, session):
        repo.create_transaction(session, _txn("old", created_at=NOW - timedelta(days=2)))
        repo.create_transaction(session, _txn("new", created_at=NOW))
        repo.commit(session)

        assert [t.transaction_id for t in repo.list_transactions(session)] == ["new", "old"]

    def test_billscan_categories_round_trip(self, session):
        breakdown = CategoryBreakdown(
            category="Groceries",
            category_total=12.5,
            items=(LineItem(name="Milk", price=2.5, quantity=5),),
        )
        repo.create_transaction(
            session, _txn("t1", amount=12.5, source="billscan", categories=[breakdown])
        )
        repo.commit(session)

        [txn] = repo.get_transactions_for_user(session, "u1")
        assert txn.source == "billscan"
        assert txn.categories == [breakdown]

    def test_billscan_without_categories_rejected(self, session):
        with pytest.raises(ValidationError):
            repo.create_transaction(session, _txn("t1", source="billscan"))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"type": "refund"},
            {"category": "Yachts"},
            {"amount": 0.0},
            {"status": "lost"},
        ],
    )
    def test_invalid_transaction_rejected(self, session, overrides):
        with pytest.raises(ValidationError):
            repo.create_transaction(session, _txn("t1", **overrides))

    def test_delete_transaction(self, session):
        repo.create_transaction(session, _txn("t1"))
        repo.commit(session)

        repo.delete_transaction(session, "t1")

        assert repo.list_transactions(session) == []

    def test_delete_missing_transaction_raises_not_found(self, session):
        with pytest.raises(NotFoundError, match="Transaction not found"):
            repo.delete_transaction(session, "missing")


class TestBudgets:
    """Budget identity, updates and deletion."""

    def test_duplicate_budget_is_conflict(self, session):
        repo.create_budget(session, _budget("b1"))
        repo.commit(session)

        with pytest.raises(ConflictError):
            repo.create_budget(session, _budget("b2"))

    def test_invalid_period_rejected(self, session):
        with pytest.raises(ValidationError):
            repo.create_budget(session, _budget("b1", period="Daily"))

    def test_update_amount_refreshes_updated_at(self, session):
        repo.create_budget(session, _budget("b1"))
        repo.commit(session)

        repo.update_budget_amount(session, "b1", 250.0)

        [budget] = repo.list_budgets(session)
        assert budget.amount == 250.0
        assert budget.updated_at > NOW

    def test_update_missing_budget_raises_not_found(self, session):
        with pytest.raises(NotFoundError):
            repo.update_budget_amount(session, "missing", 10.0)

    def test_delete_missing_budget_raises_not_found(self, session):
        with pytest.raises(NotFoundError, match="Budget not found"):
            repo.delete_budget(session, "missing")

    def test_list_populates_owner(self, session):
        repo.create_user(session, _user())
        repo.create_budget(session, _budget("b1"))
        repo.commit(session)

        [budget] = repo.list_budgets(session)
        assert budget.user.email == "a@x.com"


class TestStoreFailures:
    """A locked or unavailable database surfaces as TransientStoreError."""

    def test_locked_read_is_transient(self, session, monkeypatch):
        monkeypatch.setattr(session, "query", _locked)

        with pytest.raises(TransientStoreError):
            repo.list_users(session)

    def test_locked_delete_is_transient(self, session, monkeypatch):
        monkeypatch.setattr(session, "query", _locked)

        with pytest.raises(TransientStoreError):
            repo.delete_transaction(session, "t1")

    def test_other_database_error_is_transient(self, session, monkeypatch):
        def corrupt(*args, **kwargs):
            raise DatabaseError("SELECT 1", {}, Exception("database disk image is malformed"))

        monkeypatch.setattr(session, "query", corrupt)

        with pytest.raises(TransientStoreError):
            repo.list_budgets(session)
