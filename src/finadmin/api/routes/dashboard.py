"""Dashboard feeds: precomputed metrics, chart series and summary tables.

GET /admin/dashboard/home - Headline metrics and overview charts
GET /admin/dashboard/users - Users table and charts
GET /admin/dashboard/transactions - Per-user transaction table and charts
GET /admin/dashboard/budgets - Per-user budget table and charts

Table endpoints accept q (search), sort and direction query parameters.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query

from finadmin.aggregation import presentation as charts
from finadmin.aggregation.presentation import ChartSeries, TableState, render_summary_rows
from finadmin.aggregation.summary import (
    UserSummary,
    compute_home_metrics,
    group_by_user,
    summarize_users,
)
from finadmin.api.app import get_app_settings, get_db_session
from finadmin.api.serialize import chart_out, metrics_out, row_out
from finadmin.config import Settings
from finadmin.db import repo
from finadmin.db.repo import DbSession
from finadmin.models.types import HomeDashboard, TableDashboard

router = APIRouter()

SortParam = Literal["name", "email", "created_at", "total"]
DirectionParam = Literal["asc", "desc"]


def _table(
    summaries: list[UserSummary],
    chart_map: dict[str, ChartSeries],
    q: str,
    sort: str,
    direction: DirectionParam,
) -> TableDashboard:
    state = TableState(sort_key=sort, direction=direction, search=q)
    rows = render_summary_rows(summaries, state)
    return TableDashboard(
        charts={name: chart_out(c) for name, c in chart_map.items()},
        rows=[row_out(r) for r in rows],
        sort=state.sort_key,
        direction=state.direction,
        query=state.search,
    )


@router.get("/dashboard/home", response_model=HomeDashboard)
def home_dashboard(
    session: DbSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> HomeDashboard:
    """Headline metrics and overview charts."""
    users = repo.list_users(session)
    transactions = repo.list_transactions(session)
    budgets = repo.list_budgets(session)

    metrics = compute_home_metrics(
        users, transactions, budgets, mode=settings.high_spender_mode
    )
    chart_map = {
        "distribution": charts.data_distribution_chart(users, transactions, budgets),
        "transactions_per_user": charts.transactions_per_user_chart(users, transactions),
        "top_users": charts.top_users_chart(users, transactions),
        "daily_activity": charts.daily_activity_chart(transactions),
        "top_budget_categories": charts.top_budget_categories_chart(budgets),
        "budget_vs_actual": charts.budget_vs_actual_chart(budgets, transactions),
        "user_growth": charts.user_growth_chart(users),
    }
    return HomeDashboard(
        metrics=metrics_out(metrics),
        charts={name: chart_out(c) for name, c in chart_map.items()},
    )


@router.get("/dashboard/users", response_model=TableDashboard)
def users_dashboard(
    q: str = Query(default="", max_length=200),
    sort: SortParam = "name",
    direction: DirectionParam = "asc",
    session: DbSession = Depends(get_db_session),
) -> TableDashboard:
    """Users with their transaction totals."""
    users = repo.list_users(session)
    transactions = repo.list_transactions(session)
    budgets = repo.list_budgets(session)

    chart_map = {
        "users_joined": charts.users_joined_chart(users),
        "transaction_totals": charts.per_user_totals_chart(
            users, transactions, "Total Transaction Amount"
        ),
        "budget_totals": charts.per_user_totals_chart(users, budgets, "Total Budget Amount"),
    }
    return _table(summarize_users(users, transactions), chart_map, q, sort, direction)


@router.get("/dashboard/transactions", response_model=TableDashboard)
def transactions_dashboard(
    q: str = Query(default="", max_length=200),
    sort: SortParam = "name",
    direction: DirectionParam = "asc",
    session: DbSession = Depends(get_db_session),
) -> TableDashboard:
    """Transactions grouped per user."""
    users = repo.list_users(session)
    transactions = repo.list_transactions(session)

    chart_map = {
        "categories": charts.category_chart(transactions, "Transaction Categories"),
        "trend": charts.amount_trend_chart(transactions),
        "by_user": charts.per_user_totals_chart(
            users, transactions, "Transaction Amounts by User"
        ),
    }
    summaries = list(group_by_user(transactions, users).values())
    return _table(summaries, chart_map, q, sort, direction)


@router.get("/dashboard/budgets", response_model=TableDashboard)
def budgets_dashboard(
    q: str = Query(default="", max_length=200),
    sort: SortParam = "name",
    direction: DirectionParam = "asc",
    session: DbSession = Depends(get_db_session),
) -> TableDashboard:
    """Budgets grouped per user."""
    users = repo.list_users(session)
    budgets = repo.list_budgets(session)

    chart_map = {
        "categories": charts.category_chart(budgets, "Budget Categories"),
        "trend": charts.budget_category_trend_chart(budgets),
        "by_user": charts.per_user_totals_chart(users, budgets, "Budget Amounts by User"),
    }
    summaries = list(group_by_user(budgets, users).values())
    return _table(summaries, chart_map, q, sort, direction)
