"""Tests for deleting all of a user's records by email.

A failure partway through must be reported, never hidden as success.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import DatabaseError

from finadmin.db import repo
from finadmin.errors import NotFoundError, TransientStoreError, ValidationError
from finadmin.models.domain import BudgetEntity, TransactionEntity, UserEntity
from finadmin.ops.bulk_delete import delete_all_for_email

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def seeded(session):
    """One user with three transactions and two budgets, plus a bystander."""
    repo.create_user(session, UserEntity(user_id="u1", email="a@x.com", name="A", created_at=NOW))
    repo.create_user(session, UserEntity(user_id="u2", email="b@x.com", name="B", created_at=NOW))
    for i, user_id in enumerate(["u1", "u1", "u1", "u2"]):
        repo.create_transaction(
            session,
            TransactionEntity(
                transaction_id=f"t{i}",
                user_id=user_id,
                type="debit",
                category="Groceries",
                amount=10.0,
                date=NOW,
                created_at=NOW,
            ),
        )
    for category in ["Groceries", "Utilities"]:
        repo.create_budget(
            session,
            BudgetEntity(
                budget_id=f"b-{category}",
                user_id="u1",
                category=category,
                amount=100.0,
                created_at=NOW,
                updated_at=NOW,
            ),
        )
    repo.commit(session)
    return session


class TestDeleteAllForEmail:
    """Happy path and lookup failures."""

    def test_deletes_only_that_users_transactions(self, seeded):
        result = delete_all_for_email(seeded, "transactions", "a@x.com")

        assert (result.requested, result.succeeded, result.failed) == (3, 3, 0)
        assert result.complete
        assert repo.get_transactions_for_user(seeded, "u1") == []
        assert len(repo.get_transactions_for_user(seeded, "u2")) == 1

    def test_deletes_budgets(self, seeded):
        result = delete_all_for_email(seeded, "budgets", "a@x.com")

        assert result.succeeded == 2
        assert repo.get_budgets_for_user(seeded, "u1") == []

    def test_user_without_records_is_empty_success(self, seeded):
        result = delete_all_for_email(seeded, "budgets", "b@x.com")

        assert result.requested == 0
        assert result.complete

    def test_unknown_email_is_not_found(self, seeded):
        with pytest.raises(NotFoundError, match="User not found"):
            delete_all_for_email(seeded, "transactions", "nobody@x.com")

    def test_unknown_kind_rejected(self, seeded):
        with pytest.raises(ValidationError):
            delete_all_for_email(seeded, "users", "a@x.com")


class TestPartialFailure:
    """One failing record does not stop the rest."""

    def test_failure_is_counted_and_reported(self, seeded, monkeypatch):
        real_delete = repo.delete_transaction
        calls = []

        def flaky_delete(session, transaction_id):
            calls.append(transaction_id)
            if len(calls) == 2:
                raise TransientStoreError("Store unavailable, could not delete transaction")
            real_delete(session, transaction_id)

        monkeypatch.setattr(repo, "delete_transaction", flaky_delete)

        result = delete_all_for_email(seeded, "transactions", "a@x.com")

        assert (result.requested, result.succeeded, result.failed) == (3, 2, 1)
        assert not result.complete
        assert result.failed_ids == [calls[1]]
        remaining = [t.transaction_id for t in repo.get_transactions_for_user(seeded, "u1")]
        assert remaining == [calls[1]]

    def test_database_failure_is_counted_not_raised(self, seeded, monkeypatch):
        real_delete = seeded.delete
        calls = []

        def failing_on_second(instance):
            calls.append(instance.transaction_id)
            if len(calls) == 2:
                raise DatabaseError("DELETE", {}, Exception("disk I/O error"))
            real_delete(instance)

        monkeypatch.setattr(seeded, "delete", failing_on_second)

        result = delete_all_for_email(seeded, "transactions", "a@x.com")

        assert (result.requested, result.succeeded, result.failed) == (3, 2, 1)
        assert result.failed_ids == [calls[1]]
