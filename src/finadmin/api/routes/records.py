"""Transactions and budgets API endpoints.

GET /admin/transactions - All transactions with owner populated
GET /admin/budgets - All budgets with owner populated
DELETE /admin/transactions/{transaction_id} - Delete one transaction
DELETE /admin/budgets/{budget_id} - Delete one budget
DELETE /admin/transactions/by-email/{email} - Delete a user's transactions
DELETE /admin/budgets/by-email/{email} - Delete a user's budgets
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from finadmin.api.app import get_db_session
from finadmin.api.serialize import budget_out, bulk_delete_out, transaction_out
from finadmin.db import repo
from finadmin.db.repo import DbSession
from finadmin.models.domain import RecordKind
from finadmin.models.types import BudgetOut, BulkDeleteResponse, MessageResponse, TransactionOut
from finadmin.ops.bulk_delete import delete_all_for_email

router = APIRouter()

# Multi-Status: some deletions in a bulk request failed
PARTIAL_FAILURE_STATUS = 207


def _bulk_delete(
    session: DbSession, kind: RecordKind, email: str, response: Response
) -> BulkDeleteResponse:
    result = delete_all_for_email(session, kind, email)
    if not result.complete:
        response.status_code = PARTIAL_FAILURE_STATUS
    return bulk_delete_out(result)


@router.get("/transactions", response_model=list[TransactionOut])
def list_transactions(session: DbSession = Depends(get_db_session)) -> list[TransactionOut]:
    """List all transactions, newest first."""
    return [transaction_out(t) for t in repo.list_transactions(session)]


@router.get("/budgets", response_model=list[BudgetOut])
def list_budgets(session: DbSession = Depends(get_db_session)) -> list[BudgetOut]:
    """List all budgets."""
    return [budget_out(b) for b in repo.list_budgets(session)]


@router.delete("/transactions/by-email/{email}", response_model=BulkDeleteResponse)
def delete_transactions_for_email(
    email: str,
    response: Response,
    session: DbSession = Depends(get_db_session),
) -> BulkDeleteResponse:
    """Delete every transaction of a user; 207 on partial failure."""
    return _bulk_delete(session, "transactions", email, response)


@router.delete("/budgets/by-email/{email}", response_model=BulkDeleteResponse)
def delete_budgets_for_email(
    email: str,
    response: Response,
    session: DbSession = Depends(get_db_session),
) -> BulkDeleteResponse:
    """Delete every budget of a user; 207 on partial failure."""
    return _bulk_delete(session, "budgets", email, response)


@router.delete("/transactions/{transaction_id}", response_model=MessageResponse)
def delete_transaction(
    transaction_id: str,
    session: DbSession = Depends(get_db_session),
) -> MessageResponse:
    """Delete a transaction.

    Raises:
        NotFoundError: 404 if transaction not found.
    """
    repo.delete_transaction(session, transaction_id)
    return MessageResponse(message="Transaction deleted successfully")


@router.delete("/budgets/{budget_id}", response_model=MessageResponse)
def delete_budget(
    budget_id: str,
    session: DbSession = Depends(get_db_session),
) -> MessageResponse:
    """Delete a budget.

    Raises:
        NotFoundError: 404 if budget not found.
    """
    repo.delete_budget(session, budget_id)
    return MessageResponse(message="Budget deleted successfully")
