"""Users API endpoints.

GET /admin/users - List users
GET /admin/users/{user_id} - User with their budgets and transactions
DELETE /admin/users/{user_id} - Delete a user and their records
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from finadmin.api.app import get_db_session
from finadmin.api.serialize import budget_out, transaction_out, user_out
from finadmin.db import repo
from finadmin.db.repo import DbSession
from finadmin.models.types import MessageResponse, UserOut, UserRecords

router = APIRouter()


@router.get("/users", response_model=list[UserOut])
def list_users(session: DbSession = Depends(get_db_session)) -> list[UserOut]:
    """List all users (without passwords)."""
    return [user_out(u) for u in repo.list_users(session)]


@router.get("/users/{user_id}", response_model=UserRecords)
def get_user_details(
    user_id: str,
    session: DbSession = Depends(get_db_session),
) -> UserRecords:
    """Get a user with everything they own.

    Raises:
        HTTPException: 404 if user not found.
    """
    user = repo.get_user(session, user_id)

    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    budgets = repo.get_budgets_for_user(session, user_id)
    transactions = repo.get_transactions_for_user(session, user_id)

    return UserRecords(
        user=user_out(user),
        budgets=[budget_out(b) for b in budgets],
        transactions=[transaction_out(t) for t in transactions],
    )


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    session: DbSession = Depends(get_db_session),
) -> MessageResponse:
    """Delete a user, then their budgets and transactions.

    Raises:
        NotFoundError: 404 if user not found.
    """
    repo.delete_user(session, user_id)
    return MessageResponse(message="User and related data deleted successfully")
