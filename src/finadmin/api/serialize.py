"""Domain -> response model converters shared by the route modules."""

from __future__ import annotations

from finadmin.aggregation.presentation import ChartSeries, SummaryRow
from finadmin.aggregation.summary import HomeMetrics
from finadmin.models.domain import (
    BudgetEntity,
    BulkDeleteResult,
    TransactionEntity,
    UserEntity,
    UserRef,
)
from finadmin.models.types import (
    BudgetOut,
    BulkDeleteResponse,
    CategoryBreakdownOut,
    ChartOut,
    DatasetOut,
    HomeMetricsOut,
    LineItemOut,
    SummaryRowOut,
    TransactionOut,
    UserOut,
    UserRefOut,
)


def user_out(user: UserEntity) -> UserOut:
    return UserOut(
        user_id=user.user_id,
        email=user.email,
        name=user.name,
        created_at=user.created_at,
    )


def _ref_out(ref: UserRef | None) -> UserRefOut | None:
    if ref is None:
        return None
    return UserRefOut(user_id=ref.user_id, name=ref.name, email=ref.email)


def transaction_out(txn: TransactionEntity) -> TransactionOut:
    categories = None
    if txn.categories is not None:
        categories = [
            CategoryBreakdownOut(
                category=c.category,
                is_non_essential=c.is_non_essential,
                category_total=c.category_total,
                items=[
                    LineItemOut(name=i.name, price=i.price, quantity=i.quantity) for i in c.items
                ],
            )
            for c in txn.categories
        ]
    return TransactionOut(
        transaction_id=txn.transaction_id,
        user_id=txn.user_id,
        user=_ref_out(txn.user),
        type=txn.type,
        category=txn.category,
        amount=txn.amount,
        description=txn.description,
        date=txn.date,
        source=txn.source,
        status=txn.status,
        categories=categories,
        created_at=txn.created_at,
    )


def budget_out(budget: BudgetEntity) -> BudgetOut:
    return BudgetOut(
        budget_id=budget.budget_id,
        user_id=budget.user_id,
        user=_ref_out(budget.user),
        category=budget.category,
        type=budget.type,
        amount=budget.amount,
        period=budget.period,
        created_at=budget.created_at,
        updated_at=budget.updated_at,
    )


def bulk_delete_out(result: BulkDeleteResult) -> BulkDeleteResponse:
    return BulkDeleteResponse(
        email=result.email,
        kind=result.kind,
        requested=result.requested,
        succeeded=result.succeeded,
        failed=result.failed,
        failed_ids=list(result.failed_ids),
    )


def chart_out(chart: ChartSeries) -> ChartOut:
    return ChartOut(
        label=chart.label,
        labels=list(chart.labels),
        datasets=[DatasetOut(label=d.label, data=list(d.data)) for d in chart.datasets],
    )


def metrics_out(metrics: HomeMetrics) -> HomeMetricsOut:
    return HomeMetricsOut(
        total_users=metrics.total_users,
        active_users=metrics.active_users,
        total_transactions=metrics.total_transactions,
        total_transaction_amount=metrics.total_transaction_amount,
        avg_transaction=metrics.avg_transaction,
        total_budgets=metrics.total_budgets,
        total_budget_amount=metrics.total_budget_amount,
        avg_budget=metrics.avg_budget,
        high_spending_users=metrics.high_spending_users,
        high_spending_threshold=metrics.high_spending_threshold,
        high_spender_mode=metrics.high_spender_mode,
    )


def row_out(row: SummaryRow) -> SummaryRowOut:
    return SummaryRowOut(
        name=row.name,
        email=row.email,
        created_at=row.created_at,
        total=row.total,
        total_display=row.total_display,
        record_count=row.record_count,
    )
