"""Domain models for finadmin.

Pure Python dataclasses representing domain entities.
These models are independent of SQLAlchemy and are what the
aggregation engine and API layer consume.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

# ============================================================================
# User Domain
# ============================================================================

UNKNOWN_USER = "Unknown"


@dataclass(frozen=True)
class UserRef:
    """Resolved owner identity attached to a record."""

    user_id: str
    name: str
    email: str


@dataclass
class UserEntity:
    """Domain model for an application user (no password)."""

    user_id: str
    email: str
    name: str
    created_at: datetime


@dataclass
class AdminEntity:
    """Domain model for a back-office admin."""

    admin_id: str
    email: str
    password_hash: str
    created_at: datetime | None = None


# ============================================================================
# Transaction Domain
# ============================================================================

TransactionType = Literal["debit", "credit"]
TransactionSource = Literal["manual", "billscan"]
TransactionStatus = Literal["pending", "completed", "failed"]

TRANSACTION_CATEGORIES = (
    "Groceries",
    "Junk Food (Non-Essential)",
    "Clothing",
    "Stationery",
    "Medicine",
    "Personal Care",
    "Household Items",
    "Electronics",
    "Entertainment",
    "Transportation",
    "Utilities",
    "Education",
    "Dining Out",
    "Fees/Taxes",
    "Salary",
    "Refund",
    "Business",
    "Other",
)


@dataclass(frozen=True)
class LineItem:
    """Single item captured from a scanned bill."""

    name: str
    price: float
    quantity: int = 1


@dataclass(frozen=True)
class CategoryBreakdown:
    """Per-category group of line items within a scanned bill."""

    category: str
    category_total: float
    items: tuple[LineItem, ...]
    is_non_essential: bool = False


@dataclass
class TransactionEntity:
    """Domain model for a transaction."""

    transaction_id: str
    user_id: str
    type: TransactionType
    category: str
    amount: float
    date: datetime
    created_at: datetime
    description: str = ""
    source: TransactionSource = "manual"
    status: TransactionStatus = "pending"
    categories: list[CategoryBreakdown] | None = None
    user: UserRef | None = None


# ============================================================================
# Budget Domain
# ============================================================================

BudgetType = Literal["expense", "income"]
BudgetPeriod = Literal["Weekly", "Monthly", "Quarterly", "Yearly"]

BUDGET_PERIODS = ("Weekly", "Monthly", "Quarterly", "Yearly")


@dataclass
class BudgetEntity:
    """Domain model for a budget."""

    budget_id: str
    user_id: str
    category: str
    amount: float
    created_at: datetime
    updated_at: datetime
    type: BudgetType = "expense"
    period: BudgetPeriod = "Monthly"
    user: UserRef | None = None


# ============================================================================
# Bulk Operations
# ============================================================================

RecordKind = Literal["transactions", "budgets"]


@dataclass
class BulkDeleteResult:
    """Outcome of deleting every record of one kind for one user."""

    email: str
    kind: RecordKind
    requested: int = 0
    succeeded: int = 0
    failed: int = 0
    failed_ids: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.failed == 0
