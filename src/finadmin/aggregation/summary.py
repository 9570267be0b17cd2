"""Per-user summaries, rankings and time series for the dashboard.

Pure functions over already-fetched records - no database access, no
mutation of inputs. A record is anything with user_id, user, amount and
created_at attributes (TransactionEntity and BudgetEntity both qualify).

A record with a malformed amount counts as zero; a record whose owner
cannot be resolved is grouped under "Unknown". Neither aborts the
computation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Literal, Sequence

import numpy as np

from finadmin.errors import ValidationError
from finadmin.models.domain import UNKNOWN_USER, UserEntity, UserRef

SortKey = Literal["name", "email", "created_at", "total"]
Direction = Literal["asc", "desc"]
HighSpenderMode = Literal["per_user", "per_transaction"]

SORT_KEYS: tuple[str, ...] = ("name", "email", "created_at", "total")

ACTIVE_WINDOW = timedelta(days=30)
HIGH_SPENDER_QUANTILE = 0.75
UNKNOWN_CATEGORY = "Unknown"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

logger = logging.getLogger(__name__)


@dataclass
class UserSummary:
    """All records of one user with a running total.

    Recomputed on every call, never persisted.
    """

    name: str
    email: str
    created_at: datetime | None = None
    records: list[Any] = field(default_factory=list)
    total: float = 0.0


@dataclass(frozen=True)
class DateBucket:
    """Records falling on one calendar day."""

    label: str
    day: date
    count: int
    total: float


@dataclass(frozen=True)
class HomeMetrics:
    """Headline numbers for the home page."""

    total_users: int
    active_users: int
    total_transactions: int
    total_transaction_amount: float
    avg_transaction: float
    total_budgets: int
    total_budget_amount: float
    avg_budget: float
    high_spending_users: int
    high_spending_threshold: float
    high_spender_mode: HighSpenderMode


# ============================================================================
# Record accessors
# ============================================================================


def safe_amount(value: Any) -> float:
    """Coerce an amount to a non-negative float, zero when malformed."""
    if isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Non-numeric amount {value!r} treated as zero")
        return 0.0
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        logger.debug(f"Invalid amount {value!r} treated as zero")
        return 0.0
    return amount


def record_amount(record: Any) -> float:
    return safe_amount(getattr(record, "amount", None))


def _to_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _calendar_day(value: Any) -> date | None:
    if isinstance(value, datetime):
        return _to_utc(value).date()
    if isinstance(value, date):
        return value
    return None


def format_amount(amount: float) -> str:
    """Two-decimal display form of a total."""
    return f"{amount:.2f}"


def _plain_amount(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else repr(float(amount))


# ============================================================================
# Owner resolution
# ============================================================================


def build_user_index(users: Iterable[UserEntity]) -> dict[str, UserRef]:
    """Map user_id to owner identity, built once per aggregation."""
    return {u.user_id: UserRef(user_id=u.user_id, name=u.name, email=u.email) for u in users}


def resolve_owner(record: Any, index: dict[str, UserRef] | None = None) -> UserRef | None:
    """Owner of a record: its populated user, else an index lookup."""
    ref = getattr(record, "user", None)
    if ref is not None:
        return ref
    if index is None:
        return None
    return index.get(getattr(record, "user_id", None))


# ============================================================================
# Grouping, sorting, filtering
# ============================================================================


def group_by_user(
    records: Iterable[Any],
    users: Iterable[UserEntity] | None = None,
    value_fn: Callable[[Any], float] = record_amount,
) -> dict[str, UserSummary]:
    """Group records by owner email.

    Args:
        records: Transactions or budgets.
        users: Optional user list used to resolve records without a
            populated owner.
        value_fn: Amount extractor for the record type.

    Returns:
        Mapping of email to UserSummary, in first-encounter order.
    """
    index = build_user_index(users) if users is not None else None
    summaries: dict[str, UserSummary] = {}

    for record in records:
        owner = resolve_owner(record, index)
        email = owner.email if owner and owner.email else UNKNOWN_USER
        name = owner.name if owner and owner.name else UNKNOWN_USER

        summary = summaries.get(email)
        if summary is None:
            summary = UserSummary(name=name, email=email)
            summaries[email] = summary

        summary.records.append(record)
        summary.total += value_fn(record)

        created_at = _to_utc(getattr(record, "created_at", None))
        if created_at is not None and (
            summary.created_at is None or created_at < summary.created_at
        ):
            summary.created_at = created_at

    return summaries


def summarize_users(
    users: Iterable[UserEntity],
    records: Iterable[Any],
    value_fn: Callable[[Any], float] = record_amount,
) -> list[UserSummary]:
    """One summary per user, including users with no records.

    The summary timestamp is the user's own creation time; records of
    unknown owners are ignored.
    """
    summaries = {
        u.user_id: UserSummary(name=u.name, email=u.email, created_at=_to_utc(u.created_at))
        for u in users
    }
    for record in records:
        summary = summaries.get(getattr(record, "user_id", None))
        if summary is not None:
            summary.records.append(record)
            summary.total += value_fn(record)
    return list(summaries.values())


def _sort_value(summary: UserSummary, key: str) -> tuple:
    if key == "name":
        primary: tuple = (summary.name.casefold(),)
    elif key == "email":
        primary = (summary.email.casefold(),)
    elif key == "created_at":
        # Missing timestamps sort after every real one
        primary = (summary.created_at is None, summary.created_at or _EPOCH)
    elif key == "total":
        primary = (summary.total,)
    else:
        raise ValidationError(f"Unsupported sort key: {key}")
    return primary + (summary.email.casefold(), summary.email, summary.name)


def sort_summaries(
    summaries: Iterable[UserSummary],
    key: str = "name",
    direction: Direction = "asc",
) -> list[UserSummary]:
    """Order summaries by a typed key.

    Ties on the primary key fall back to email then name, so the
    descending order is always the exact reverse of the ascending one.

    Raises:
        ValidationError: For an unsupported key or direction.
    """
    if key not in SORT_KEYS:
        raise ValidationError(f"Unsupported sort key: {key}")
    if direction not in ("asc", "desc"):
        raise ValidationError(f"Unsupported sort direction: {direction}")
    return sorted(summaries, key=lambda s: _sort_value(s, key), reverse=direction == "desc")


def filter_by_search(summaries: Sequence[UserSummary], query: str) -> Sequence[UserSummary]:
    """Keep summaries whose name, email or total contains the query."""
    if not query.strip():
        return summaries
    needle = query.casefold()
    return [
        s
        for s in summaries
        if needle in s.name.casefold()
        or needle in s.email.casefold()
        or needle in format_amount(s.total)
        or needle in _plain_amount(s.total)
    ]


# ============================================================================
# Rankings and series
# ============================================================================


def top_n(
    records: Iterable[Any],
    group_fn: Callable[[Any], str],
    value_fn: Callable[[Any], float],
    n: int,
) -> list[tuple[str, float]]:
    """The n groups with the largest summed value, descending.

    Ties keep first-encountered order.
    """
    if n <= 0:
        return []
    sums: dict[str, float] = {}
    for record in records:
        group = group_fn(record)
        sums[group] = sums.get(group, 0.0) + value_fn(record)
    return sorted(sums.items(), key=lambda kv: -kv[1])[:n]


def category_totals(
    records: Iterable[Any],
    value_fn: Callable[[Any], float] = record_amount,
) -> list[tuple[str, float]]:
    """Summed value per category, in first-seen order."""
    sums: dict[str, float] = {}
    for record in records:
        category = getattr(record, "category", None) or UNKNOWN_CATEGORY
        sums[category] = sums.get(category, 0.0) + value_fn(record)
    return list(sums.items())


def bucket_by_date(
    records: Iterable[Any],
    date_fn: Callable[[Any], Any],
    value_fn: Callable[[Any], float] = record_amount,
) -> list[DateBucket]:
    """Count and sum records per calendar day.

    Only days that have records appear; use zero_fill() for a continuous
    axis. Records without a usable date are skipped.

    Returns:
        Buckets in ascending day order, one per distinct day.
    """
    counts: dict[date, int] = {}
    totals: dict[date, float] = {}
    for record in records:
        day = _calendar_day(date_fn(record))
        if day is None:
            logger.debug(f"Record without usable date skipped: {record!r}")
            continue
        counts[day] = counts.get(day, 0) + 1
        totals[day] = totals.get(day, 0.0) + value_fn(record)

    return [
        DateBucket(label=day.isoformat(), day=day, count=counts[day], total=totals[day])
        for day in sorted(counts)
    ]


def zero_fill(
    buckets: Sequence[DateBucket],
    start: date | None = None,
    end: date | None = None,
) -> list[DateBucket]:
    """Insert empty buckets so every day in [start, end] is present."""
    if not buckets and (start is None or end is None):
        return []
    by_day = {b.day: b for b in buckets}
    first = start or buckets[0].day
    last = end or buckets[-1].day

    filled: list[DateBucket] = []
    day = first
    while day <= last:
        filled.append(
            by_day.get(day, DateBucket(label=day.isoformat(), day=day, count=0, total=0.0))
        )
        day += timedelta(days=1)
    return filled


def cumulative_counts(buckets: Iterable[DateBucket]) -> list[int]:
    """Running total of bucket counts."""
    running = 0
    result = []
    for bucket in buckets:
        running += bucket.count
        result.append(running)
    return result


# ============================================================================
# Home metrics
# ============================================================================


def _upper_quartile(values: Sequence[float]) -> float:
    """Value at rank floor(n/4) of the descending order (0 when empty)."""
    if not values:
        return 0.0
    ordered = np.sort(np.asarray(values, dtype=float))[::-1]
    return float(ordered[int(len(ordered) * (1 - HIGH_SPENDER_QUANTILE))])


def compute_home_metrics(
    users: Sequence[UserEntity],
    transactions: Sequence[Any],
    budgets: Sequence[Any],
    now: datetime | None = None,
    mode: HighSpenderMode = "per_user",
) -> HomeMetrics:
    """Compute the home page headline numbers.

    High spenders are users whose total transaction amount reaches the
    upper-quartile threshold. In "per_transaction" mode the threshold is
    taken over individual transaction amounts (the legacy dashboard
    figure); in "per_user" mode it is taken over per-user totals and
    users with no spend are never counted.

    Args:
        users: All users.
        transactions: All transactions.
        budgets: All budgets.
        now: Reference time for the active-user window.
        mode: Threshold basis for high spenders.

    Returns:
        HomeMetrics record.
    """
    if mode not in ("per_user", "per_transaction"):
        raise ValidationError(f"Unsupported high spender mode: {mode}")

    reference = _to_utc(now) or datetime.now(timezone.utc)
    window_start = reference - ACTIVE_WINDOW
    active_users = sum(
        1 for u in users if u.created_at is not None and _to_utc(u.created_at) >= window_start
    )

    txn_amounts = np.array([record_amount(t) for t in transactions], dtype=float)
    budget_amounts = np.array([record_amount(b) for b in budgets], dtype=float)
    txn_total = float(txn_amounts.sum())
    budget_total = float(budget_amounts.sum())

    spend_by_user: dict[str, float] = {u.user_id: 0.0 for u in users}
    for txn in transactions:
        if txn.user_id in spend_by_user:
            spend_by_user[txn.user_id] += record_amount(txn)

    if mode == "per_transaction":
        threshold = _upper_quartile(txn_amounts.tolist())
        high_spenders = sum(1 for total in spend_by_user.values() if total >= threshold)
    else:
        threshold = _upper_quartile(list(spend_by_user.values()))
        high_spenders = sum(
            1 for total in spend_by_user.values() if total > 0 and total >= threshold
        )

    return HomeMetrics(
        total_users=len(users),
        active_users=active_users,
        total_transactions=len(transactions),
        total_transaction_amount=round(txn_total, 2),
        avg_transaction=round(txn_total / len(transactions), 2) if len(transactions) else 0.0,
        total_budgets=len(budgets),
        total_budget_amount=round(budget_total, 2),
        avg_budget=round(budget_total / len(budgets), 2) if len(budgets) else 0.0,
        high_spending_users=high_spenders,
        high_spending_threshold=threshold,
        high_spender_mode=mode,
    )
