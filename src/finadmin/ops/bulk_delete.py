"""Delete every transaction or budget belonging to one user.

Records are removed one at a time, each in its own commit. The
operation is not atomic: a failure partway through leaves the earlier
deletions in place and is reported in the result, never as success.
"""

from __future__ import annotations

import logging

from finadmin.db import repo
from finadmin.db.repo import DbSession
from finadmin.errors import FinAdminError, NotFoundError, ValidationError
from finadmin.models.domain import BulkDeleteResult, RecordKind

logger = logging.getLogger(__name__)


def _record_ids(session: DbSession, kind: RecordKind, user_id: str) -> list[str]:
    if kind == "transactions":
        return [t.transaction_id for t in repo.get_transactions_for_user(session, user_id)]
    return [b.budget_id for b in repo.get_budgets_for_user(session, user_id)]


def _delete_one(session: DbSession, kind: RecordKind, record_id: str) -> None:
    if kind == "transactions":
        repo.delete_transaction(session, record_id)
    else:
        repo.delete_budget(session, record_id)


def delete_all_for_email(session: DbSession, kind: RecordKind, email: str) -> BulkDeleteResult:
    """Delete all records of one kind owned by the user with this email.

    Args:
        session: Database session.
        kind: "transactions" or "budgets".
        email: Owner's email.

    Returns:
        BulkDeleteResult with success/failure counts and failed IDs.

    Raises:
        ValidationError: If kind is not supported.
        NotFoundError: If no user has this email.
    """
    if kind not in ("transactions", "budgets"):
        raise ValidationError(f"Unsupported record kind: {kind}")

    user = repo.get_user_by_email(session, email)
    if user is None:
        raise NotFoundError("User not found")

    record_ids = _record_ids(session, kind, user.user_id)
    result = BulkDeleteResult(email=email, kind=kind, requested=len(record_ids))

    for record_id in record_ids:
        try:
            _delete_one(session, kind, record_id)
        except FinAdminError as e:
            logger.warning(f"Failed to delete {kind} {record_id} for {email}: {e.message}")
            result.failed += 1
            result.failed_ids.append(record_id)
        else:
            result.succeeded += 1

    if result.complete:
        logger.info(f"Deleted {result.succeeded} {kind} for {email}")
    else:
        logger.warning(
            f"Partially deleted {kind} for {email}: "
            f"{result.succeeded} succeeded, {result.failed} failed"
        )
    return result
