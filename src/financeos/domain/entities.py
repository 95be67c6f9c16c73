"""Domain model entities for financeos.

These are pure data classes representing accounting concepts, independent of
database schema. Database implementations convert their rows into these via
the mapper layer, so services never see ORM objects.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

CENT = Decimal("0.01")

# Tolerance used for every "is balanced" comparison (postings and reports).
BALANCE_TOLERANCE = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize a number to whole cents, rounding halves away from zero."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class AccountType(str, Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class AccountSubType(str, Enum):
    CURRENT_ASSET = "CURRENT_ASSET"
    FIXED_ASSET = "FIXED_ASSET"
    OTHER_ASSET = "OTHER_ASSET"
    CURRENT_LIABILITY = "CURRENT_LIABILITY"
    LONG_TERM_LIABILITY = "LONG_TERM_LIABILITY"
    OTHER_LIABILITY = "OTHER_LIABILITY"
    OWNERS_EQUITY = "OWNERS_EQUITY"
    RETAINED_EARNINGS = "RETAINED_EARNINGS"
    OPERATING_REVENUE = "OPERATING_REVENUE"
    OTHER_REVENUE = "OTHER_REVENUE"
    COST_OF_GOODS_SOLD = "COST_OF_GOODS_SOLD"
    OPERATING_EXPENSE = "OPERATING_EXPENSE"
    OTHER_EXPENSE = "OTHER_EXPENSE"


class NormalBalance(str, Enum):
    """Side on which an account's balance naturally increases."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

    @classmethod
    def for_account_type(cls, account_type: AccountType) -> "NormalBalance":
        """Return the conventional normal balance for an account type."""
        if account_type in (AccountType.ASSET, AccountType.EXPENSE):
            return cls.DEBIT
        return cls.CREDIT

    def signed_change(self, debit_amount: Decimal, credit_amount: Decimal) -> Decimal:
        """Balance change caused by one entry on an account with this normal side.

        The side matching the normal balance increases it, the other decreases it.
        """
        if self is NormalBalance.DEBIT:
            return debit_amount - credit_amount
        return credit_amount - debit_amount


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class CategoryType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class SubscriptionTier(str, Enum):
    FREE = "FREE"
    PRO = "PRO"
    BUSINESS = "BUSINESS"


@dataclass(frozen=True)
class Business:
    """Tenant that owns accounts, categories and transactions."""

    id: int
    name: str
    subscription_tier: SubscriptionTier
    next_entry_number: int
    created_at: datetime


@dataclass(frozen=True)
class LedgerAccount:
    """Ledger account domain entity with hierarchical structure."""

    id: int
    business_id: int
    code: str
    name: str
    account_type: AccountType
    sub_type: Optional[AccountSubType]
    normal_balance: NormalBalance
    current_balance: Decimal
    is_active: bool
    parent_account_id: Optional[int]
    description: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Category domain entity with hierarchical structure."""

    id: int
    business_id: int
    name: str
    category_type: CategoryType
    parent_id: Optional[int]
    is_active: bool
    description: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity."""

    id: int
    business_id: int
    date: date
    description: str
    amount: Decimal
    transaction_type: TransactionType
    ledger_account_id: int
    category_id: Optional[int]
    reference_number: Optional[str]
    notes: Optional[str]
    is_reconciled: bool
    created_at: datetime


@dataclass(frozen=True)
class JournalEntry:
    """A posted debit or credit against one ledger account."""

    id: int
    business_id: int
    transaction_id: int
    ledger_account_id: int
    entry_number: int
    date: date
    description: Optional[str]
    debit_amount: Decimal
    credit_amount: Decimal

    @property
    def formatted_number(self) -> str:
        return f"{self.entry_number:06d}"


@dataclass(frozen=True)
class JournalLine:
    """An unsaved journal entry; exactly one of debit/credit is non-zero."""

    ledger_account_id: int
    debit_amount: Decimal = Decimal("0.00")
    credit_amount: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class SplitLine:
    """Share of a transaction's contra side posted to one account."""

    ledger_account_id: int
    amount: Decimal


@dataclass(frozen=True)
class TransactionDraft:
    """Input for posting a transaction."""

    transaction_type: TransactionType
    amount: Decimal
    date: date
    description: str
    ledger_account_id: int
    contra_account_id: Optional[int] = None
    splits: tuple[SplitLine, ...] = ()
    category_id: Optional[int] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class TrialBalanceLine:
    """One account row of a trial balance."""

    account_id: int
    code: str
    name: str
    account_type: AccountType
    normal_balance: NormalBalance
    debit_balance: Decimal
    credit_balance: Decimal


@dataclass(frozen=True)
class TrialBalance:
    """Trial balance as of a date."""

    as_of: date
    lines: tuple[TrialBalanceLine, ...]
    total_debits: Decimal
    total_credits: Decimal

    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) < BALANCE_TOLERANCE


@dataclass(frozen=True)
class GeneralLedgerLine:
    """Journal entry with the account's running balance after it."""

    entry: JournalEntry
    running_balance: Decimal


@dataclass(frozen=True)
class GeneralLedger:
    """Ordered postings for one ledger account."""

    account: LedgerAccount
    start_date: Optional[date]
    end_date: Optional[date]
    lines: tuple[GeneralLedgerLine, ...]
    total_debits: Decimal
    total_credits: Decimal
    ending_balance: Decimal


@dataclass(frozen=True)
class AccountBalance:
    """Account with its balance derived from journal entries."""

    account_id: int
    code: str
    name: str
    account_type: AccountType
    sub_type: Optional[AccountSubType]
    balance: Decimal


@dataclass(frozen=True)
class StatementSection:
    """Group of account balances with a total."""

    name: str
    accounts: tuple[AccountBalance, ...] = ()

    @property
    def total(self) -> Decimal:
        return sum((a.balance for a in self.accounts), Decimal("0.00"))


@dataclass(frozen=True)
class BalanceSheet:
    """Balance sheet as of a date."""

    as_of: date
    assets: tuple[StatementSection, ...]
    liabilities: tuple[StatementSection, ...]
    equity: tuple[StatementSection, ...]
    current_earnings: Decimal

    @property
    def total_assets(self) -> Decimal:
        return sum((s.total for s in self.assets), Decimal("0.00"))

    @property
    def total_liabilities(self) -> Decimal:
        return sum((s.total for s in self.liabilities), Decimal("0.00"))

    @property
    def total_equity(self) -> Decimal:
        return sum((s.total for s in self.equity), Decimal("0.00")) + self.current_earnings

    @property
    def total_liabilities_and_equity(self) -> Decimal:
        return self.total_liabilities + self.total_equity

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_assets - self.total_liabilities_and_equity) < BALANCE_TOLERANCE

    def section(self, name: str) -> StatementSection:
        for section in self.assets + self.liabilities + self.equity:
            if section.name == name:
                return section
        raise KeyError(name)

    @property
    def working_capital(self) -> Decimal:
        return self.section("current_assets").total - self.section("current_liabilities").total

    @property
    def current_ratio(self) -> Decimal:
        current_liabilities = self.section("current_liabilities").total
        if current_liabilities <= 0:
            return Decimal("0")
        return self.section("current_assets").total / current_liabilities

    @property
    def debt_to_equity_ratio(self) -> Decimal:
        if self.total_equity <= 0:
            return Decimal("0")
        return self.total_liabilities / self.total_equity


@dataclass(frozen=True)
class ProfitAndLoss:
    """Income statement over a period."""

    start_date: date
    end_date: date
    operating_revenue: StatementSection
    other_revenue: StatementSection
    cost_of_goods_sold: StatementSection
    operating_expenses: StatementSection
    other_expenses: StatementSection

    @property
    def total_revenue(self) -> Decimal:
        return self.operating_revenue.total + self.other_revenue.total

    @property
    def total_expenses(self) -> Decimal:
        return (
            self.cost_of_goods_sold.total
            + self.operating_expenses.total
            + self.other_expenses.total
        )

    @property
    def gross_profit(self) -> Decimal:
        return self.total_revenue - self.cost_of_goods_sold.total

    @property
    def operating_income(self) -> Decimal:
        return self.gross_profit - self.operating_expenses.total

    @property
    def net_income(self) -> Decimal:
        return self.operating_income - self.other_expenses.total

    def margin(self, amount: Decimal) -> Decimal:
        """Return amount as a percentage of total revenue (0 when no revenue)."""
        if self.total_revenue <= 0:
            return Decimal("0")
        return (amount / self.total_revenue * 100).quantize(Decimal("0.1"))


@dataclass(frozen=True)
class CashMovement:
    """Net cash effect of one transaction."""

    transaction_id: int
    date: date
    description: str
    amount: Decimal


@dataclass(frozen=True)
class CashFlowStatement:
    """Cash flow statement over a period."""

    start_date: date
    end_date: date
    opening_balance: Decimal
    operating: tuple[CashMovement, ...] = field(default_factory=tuple)
    investing: tuple[CashMovement, ...] = field(default_factory=tuple)
    financing: tuple[CashMovement, ...] = field(default_factory=tuple)

    @staticmethod
    def _total(movements: tuple[CashMovement, ...]) -> Decimal:
        return sum((m.amount for m in movements), Decimal("0.00"))

    @property
    def operating_total(self) -> Decimal:
        return self._total(self.operating)

    @property
    def investing_total(self) -> Decimal:
        return self._total(self.investing)

    @property
    def financing_total(self) -> Decimal:
        return self._total(self.financing)

    @property
    def net_cash_flow(self) -> Decimal:
        return self.operating_total + self.investing_total + self.financing_total

    @property
    def closing_balance(self) -> Decimal:
        return self.opening_balance + self.net_cash_flow
