"""Chart series and table rows built from aggregation output.

The dashboard's per-page view state (sort, search, expanded row,
in-flight deletions) is an immutable TableState updated through
reducer-style transitions; rendering is a pure function of records
and state.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Iterable, Sequence

from finadmin.aggregation.summary import (
    UNKNOWN_CATEGORY,
    DateBucket,
    Direction,
    UserSummary,
    bucket_by_date,
    build_user_index,
    category_totals,
    cumulative_counts,
    filter_by_search,
    format_amount,
    record_amount,
    resolve_owner,
    sort_summaries,
    top_n,
)
from finadmin.models.domain import UNKNOWN_USER, UserEntity

TOP_USERS = 5
TOP_BUDGET_CATEGORIES = 5


@dataclass(frozen=True)
class Dataset:
    """One series of values aligned with the chart labels."""

    label: str
    data: list[float]


@dataclass(frozen=True)
class ChartSeries:
    """Chart-ready payload: x labels plus datasets, no styling."""

    label: str
    labels: list[str]
    datasets: list[Dataset]


@dataclass(frozen=True)
class SummaryRow:
    """One line of a per-user summary table."""

    name: str
    email: str
    created_at: datetime | None
    total: float
    total_display: str
    record_count: int


# ============================================================================
# View state
# ============================================================================


@dataclass(frozen=True)
class TableState:
    """Sort, search and row state of one summary table."""

    sort_key: str = "name"
    direction: Direction = "asc"
    search: str = ""
    expanded_email: str | None = None
    deleting_ids: frozenset[str] = field(default_factory=frozenset)
    deleting_emails: frozenset[str] = field(default_factory=frozenset)


def toggle_sort(state: TableState, key: str) -> TableState:
    """Same key flips direction; a new key starts ascending."""
    if state.sort_key == key and state.direction == "asc":
        return replace(state, sort_key=key, direction="desc")
    return replace(state, sort_key=key, direction="asc")


def set_search(state: TableState, query: str) -> TableState:
    return replace(state, search=query)


def toggle_expanded(state: TableState, email: str) -> TableState:
    """Expand a user's row (collapsing it if already open); clears search."""
    expanded = None if state.expanded_email == email else email
    return replace(state, expanded_email=expanded, search="")


def begin_delete(state: TableState, record_id: str) -> TableState:
    return replace(state, deleting_ids=state.deleting_ids | {record_id})


def end_delete(state: TableState, record_id: str) -> TableState:
    return replace(state, deleting_ids=state.deleting_ids - {record_id})


def begin_delete_all(state: TableState, email: str) -> TableState:
    return replace(state, deleting_emails=state.deleting_emails | {email})


def end_delete_all(state: TableState, email: str, succeeded: bool = True) -> TableState:
    """Finish a delete-all; a successful one also collapses the row."""
    expanded = state.expanded_email
    if succeeded and expanded == email:
        expanded = None
    return replace(
        state, deleting_emails=state.deleting_emails - {email}, expanded_email=expanded
    )


# ============================================================================
# Tables
# ============================================================================


def render_summary_rows(
    summaries: Iterable[UserSummary], state: TableState
) -> list[SummaryRow]:
    """Filter by the state's search text, then sort by its key."""
    visible = filter_by_search(list(summaries), state.search)
    ordered = sort_summaries(visible, state.sort_key, state.direction)
    return [
        SummaryRow(
            name=s.name,
            email=s.email,
            created_at=s.created_at,
            total=round(s.total, 2),
            total_display=format_amount(s.total),
            record_count=len(s.records),
        )
        for s in ordered
    ]


RECORD_SORT_KEYS = ("category", "amount", "date", "period", "created_at")


def render_record_rows(
    records: Sequence[Any], key: str, direction: Direction = "asc"
) -> list[Any]:
    """Order one user's records for the expanded row.

    Unknown keys (or keys the record type lacks) keep input order.
    """
    if key not in RECORD_SORT_KEYS or not all(hasattr(r, key) for r in records):
        return list(records)

    if key == "amount":
        sort_fn = record_amount
    elif key in ("category", "period"):
        sort_fn = lambda r: (getattr(r, key) or "").casefold()  # noqa: E731
    else:
        sort_fn = lambda r: getattr(r, key)  # noqa: E731

    return sorted(records, key=sort_fn, reverse=direction == "desc")


# ============================================================================
# Charts
# ============================================================================


def _user_labels(emails: Sequence[str]) -> list[str]:
    """Email local parts, or the full email where two local parts collide."""
    local_parts = [email.split("@")[0] for email in emails]
    seen = Counter(local_parts)
    return [
        local if seen[local] == 1 else email for local, email in zip(local_parts, emails)
    ]


def _per_day(buckets: Sequence[DateBucket]) -> list[str]:
    return [b.label for b in buckets]


def data_distribution_chart(
    users: Sequence, transactions: Sequence, budgets: Sequence
) -> ChartSeries:
    return ChartSeries(
        label="Data Distribution",
        labels=["Users", "Transactions", "Budgets"],
        datasets=[
            Dataset(
                label="Data Distribution",
                data=[float(len(users)), float(len(transactions)), float(len(budgets))],
            )
        ],
    )


def top_users_chart(
    users: Sequence[UserEntity], transactions: Sequence[Any], n: int = TOP_USERS
) -> ChartSeries:
    """Top users by transaction amount; records of unknown owners are left out."""
    index = build_user_index(users)
    owned = [t for t in transactions if resolve_owner(t, index) is not None]
    ranked = top_n(owned, lambda t: resolve_owner(t, index).email, record_amount, n)
    return ChartSeries(
        label="Top Users by Transaction Amount",
        labels=_user_labels([email for email, _ in ranked]),
        datasets=[Dataset(label="Transaction Amount", data=[total for _, total in ranked])],
    )


def transactions_per_user_chart(
    users: Sequence[UserEntity], transactions: Sequence[Any]
) -> ChartSeries:
    """Number of transactions per user, one bar per user email."""
    index = build_user_index(users)
    counts: dict[str, int] = {u.user_id: 0 for u in users}
    for txn in transactions:
        owner = resolve_owner(txn, index)
        if owner is not None and owner.user_id in counts:
            counts[owner.user_id] += 1
    return ChartSeries(
        label="Transactions per User",
        labels=[u.email or UNKNOWN_USER for u in users],
        datasets=[
            Dataset(label="Transactions per User", data=[float(counts[u.user_id]) for u in users])
        ],
    )


def daily_activity_chart(transactions: Sequence[Any]) -> ChartSeries:
    buckets = bucket_by_date(transactions, lambda t: t.date)
    return ChartSeries(
        label="Transactions Per Day",
        labels=_per_day(buckets),
        datasets=[
            Dataset(label="Transaction Count", data=[float(b.count) for b in buckets]),
            Dataset(label="Transaction Amount", data=[b.total for b in buckets]),
        ],
    )


def amount_trend_chart(transactions: Sequence[Any]) -> ChartSeries:
    buckets = bucket_by_date(transactions, lambda t: t.date)
    return ChartSeries(
        label="Transaction Amounts Over Time",
        labels=_per_day(buckets),
        datasets=[Dataset(label="Transaction Amount", data=[b.total for b in buckets])],
    )


def top_budget_categories_chart(
    budgets: Sequence[Any], n: int = TOP_BUDGET_CATEGORIES
) -> ChartSeries:
    ranked = top_n(budgets, lambda b: b.category or UNKNOWN_CATEGORY, record_amount, n)
    return ChartSeries(
        label="Top Budget Categories",
        labels=[category for category, _ in ranked],
        datasets=[Dataset(label="Budget Amount", data=[total for _, total in ranked])],
    )


def budget_vs_actual_chart(budgets: Sequence[Any], transactions: Sequence[Any]) -> ChartSeries:
    """Budgeted vs spent per category, over the union of categories."""
    allocated = dict(category_totals(budgets))
    spent = dict(category_totals(transactions))
    categories = list(dict.fromkeys([*allocated, *spent]))
    return ChartSeries(
        label="Budget vs Actual",
        labels=categories,
        datasets=[
            Dataset(label="Budget Allocated", data=[allocated.get(c, 0.0) for c in categories]),
            Dataset(label="Actual Spending", data=[spent.get(c, 0.0) for c in categories]),
        ],
    )


def category_chart(records: Sequence[Any], label: str) -> ChartSeries:
    totals = category_totals(records)
    return ChartSeries(
        label=label,
        labels=[category for category, _ in totals],
        datasets=[Dataset(label=label, data=[total for _, total in totals])],
    )


def user_growth_chart(users: Sequence[UserEntity]) -> ChartSeries:
    """Cumulative number of users on each day someone joined."""
    buckets = bucket_by_date(users, lambda u: u.created_at, lambda u: 1.0)
    return ChartSeries(
        label="Active Users",
        labels=_per_day(buckets),
        datasets=[
            Dataset(label="Active Users", data=[float(c) for c in cumulative_counts(buckets)])
        ],
    )


def users_joined_chart(users: Sequence[UserEntity]) -> ChartSeries:
    buckets = bucket_by_date(users, lambda u: u.created_at, lambda u: 1.0)
    return ChartSeries(
        label="Users Joined Per Day",
        labels=_per_day(buckets),
        datasets=[Dataset(label="Users Joined", data=[float(b.count) for b in buckets])],
    )


def per_user_totals_chart(
    users: Sequence[UserEntity], records: Sequence[Any], label: str
) -> ChartSeries:
    """Total amount per known user, in user-list order."""
    totals: dict[str, float] = {u.user_id: 0.0 for u in users}
    for record in records:
        if record.user_id in totals:
            totals[record.user_id] += record_amount(record)
    return ChartSeries(
        label=label,
        labels=_user_labels([u.email for u in users]),
        datasets=[Dataset(label=label, data=[totals[u.user_id] for u in users])],
    )


def budget_category_trend_chart(budgets: Sequence[Any]) -> ChartSeries:
    """Budget amount per category per creation day, one dataset per category."""
    days = _per_day(bucket_by_date(budgets, lambda b: b.created_at))
    datasets = []
    for category, _ in category_totals(budgets):
        in_category = [b for b in budgets if (b.category or UNKNOWN_CATEGORY) == category]
        by_day = {
            bucket.label: bucket.total
            for bucket in bucket_by_date(in_category, lambda b: b.created_at)
        }
        datasets.append(Dataset(label=category, data=[by_day.get(d, 0.0) for d in days]))
    return ChartSeries(label="Budgets Over Time", labels=days, datasets=datasets)
