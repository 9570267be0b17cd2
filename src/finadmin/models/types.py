"""Pydantic models for the finadmin API.

Request bodies and response payloads. Field names are the wire names.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """Admin login/register body."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class MessageResponse(BaseModel):
    """Plain message body (also the error body shape)."""

    message: str


class TokenResponse(BaseModel):
    """Successful login."""

    message: str
    token: str


class UserRefOut(BaseModel):
    """Populated owner of a transaction or budget."""

    user_id: str
    name: str
    email: str


class UserOut(BaseModel):
    """User for API response (password never included)."""

    user_id: str
    email: str
    name: str
    created_at: datetime


class LineItemOut(BaseModel):
    """Line item of a scanned bill."""

    name: str
    price: float
    quantity: int


class CategoryBreakdownOut(BaseModel):
    """Category group of a scanned bill."""

    category: str
    is_non_essential: bool
    category_total: float
    items: list[LineItemOut]


class TransactionOut(BaseModel):
    """Transaction for API response."""

    transaction_id: str
    user_id: str
    user: UserRefOut | None
    type: Literal["debit", "credit"]
    category: str
    amount: float
    description: str
    date: datetime
    source: Literal["manual", "billscan"]
    status: Literal["pending", "completed", "failed"]
    categories: list[CategoryBreakdownOut] | None
    created_at: datetime


class BudgetOut(BaseModel):
    """Budget for API response."""

    budget_id: str
    user_id: str
    user: UserRefOut | None
    category: str
    type: Literal["expense", "income"]
    amount: float
    period: Literal["Weekly", "Monthly", "Quarterly", "Yearly"]
    created_at: datetime
    updated_at: datetime


class UserRecords(BaseModel):
    """GET /admin/users/{id} payload."""

    user: UserOut
    budgets: list[BudgetOut]
    transactions: list[TransactionOut]


class BulkDeleteResponse(BaseModel):
    """Outcome of a delete-all-for-email request."""

    email: str
    kind: Literal["transactions", "budgets"]
    requested: int
    succeeded: int
    failed: int
    failed_ids: list[str]


# ============================================================================
# Dashboard payloads
# ============================================================================


class DatasetOut(BaseModel):
    """One data series of a chart."""

    label: str
    data: list[float]


class ChartOut(BaseModel):
    """Chart-ready series: shared x labels plus one or more datasets."""

    label: str
    labels: list[str]
    datasets: list[DatasetOut]


class HomeMetricsOut(BaseModel):
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
    high_spender_mode: Literal["per_user", "per_transaction"]


class HomeDashboard(BaseModel):
    """GET /admin/dashboard/home payload."""

    metrics: HomeMetricsOut
    charts: dict[str, ChartOut]


class SummaryRowOut(BaseModel):
    """One row of a per-user summary table."""

    name: str
    email: str
    created_at: datetime | None
    total: float
    total_display: str
    record_count: int


class TableDashboard(BaseModel):
    """Charts plus a filtered, sorted per-user table."""

    charts: dict[str, ChartOut]
    rows: list[SummaryRowOut]
    sort: str
    direction: Literal["asc", "desc"]
    query: str
