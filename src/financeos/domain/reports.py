"""Financial report generation.

Every report is derived from journal entries, never from the stored
``current_balance`` of an account, so reports for past dates are exact.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from financeos.database.base import Database
from financeos.domain.entities import (
    AccountBalance,
    AccountSubType,
    AccountType,
    BalanceSheet,
    CashFlowStatement,
    CashMovement,
    GeneralLedger,
    GeneralLedgerLine,
    JournalEntry,
    LedgerAccount,
    NormalBalance,
    ProfitAndLoss,
    StatementSection,
    TrialBalance,
    TrialBalanceLine,
)
from financeos.domain.errors import NotFoundError, ValidationError, account_not_found, business_not_found

ZERO = Decimal("0.00")


def _totals(entries: Iterable[JournalEntry]) -> dict[int, tuple[Decimal, Decimal]]:
    """Sum debits and credits per ledger account."""
    debits: dict[int, Decimal] = defaultdict(lambda: ZERO)
    credits: dict[int, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        debits[entry.ledger_account_id] += entry.debit_amount
        credits[entry.ledger_account_id] += entry.credit_amount
    return {account_id: (debits[account_id], credits[account_id]) for account_id in debits}


def is_cash_account(account: LedgerAccount) -> bool:
    """Cash and bank accounts: assets coded 10xx/11xx or named cash/bank."""
    if account.account_type != AccountType.ASSET:
        return False
    name = account.name.lower()
    return account.code.startswith(("10", "11")) or "cash" in name or "bank" in name


def asset_group(account: LedgerAccount) -> str:
    if account.sub_type == AccountSubType.CURRENT_ASSET:
        return "current_assets"
    if account.sub_type == AccountSubType.FIXED_ASSET:
        return "fixed_assets"
    if account.sub_type is None and account.code.startswith("1"):
        return "current_assets"
    return "other_assets"


def liability_group(account: LedgerAccount) -> str:
    if account.sub_type == AccountSubType.CURRENT_LIABILITY:
        return "current_liabilities"
    if account.sub_type == AccountSubType.LONG_TERM_LIABILITY:
        return "long_term_liabilities"
    return "other_liabilities"


def equity_group(account: LedgerAccount) -> str:
    if account.sub_type == AccountSubType.RETAINED_EARNINGS:
        return "retained_earnings"
    return "owners_equity"


def revenue_group(account: LedgerAccount) -> str:
    if account.sub_type == AccountSubType.OPERATING_REVENUE:
        return "operating_revenue"
    if account.sub_type is None and account.code.startswith("4"):
        return "operating_revenue"
    return "other_revenue"


def expense_group(account: LedgerAccount) -> str:
    if account.sub_type == AccountSubType.COST_OF_GOODS_SOLD:
        return "cost_of_goods_sold"
    if account.sub_type == AccountSubType.OPERATING_EXPENSE:
        return "operating_expenses"
    if account.sub_type is None and account.code.startswith("5"):
        return "cost_of_goods_sold"
    if account.sub_type is None and account.code.startswith("6"):
        return "operating_expenses"
    return "other_expenses"


def cash_flow_activity(contra: Optional[LedgerAccount]) -> str:
    """Classify a cash movement by the non-cash account on the other side."""
    if contra is None:
        return "financing"
    if contra.account_type in (AccountType.REVENUE, AccountType.EXPENSE):
        return "operating"
    if contra.sub_type in (AccountSubType.CURRENT_ASSET, AccountSubType.CURRENT_LIABILITY):
        return "operating"
    if contra.sub_type == AccountSubType.FIXED_ASSET:
        return "investing"
    return "financing"


class ReportService:
    """Service for generating accounting reports."""

    def __init__(self, db: Database):
        """Initialize report service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_business(self, business_id: int) -> None:
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))

    def _sections(
        self,
        accounts: list[LedgerAccount],
        totals: dict[int, tuple[Decimal, Decimal]],
        group_of,
        names: tuple[str, ...],
    ) -> tuple[StatementSection, ...]:
        grouped: dict[str, list[AccountBalance]] = {name: [] for name in names}
        for account in accounts:
            debit, credit = totals.get(account.id, (ZERO, ZERO))
            if not account.is_active and debit == ZERO and credit == ZERO:
                continue
            grouped[group_of(account)].append(
                AccountBalance(
                    account_id=account.id,
                    code=account.code,
                    name=account.name,
                    account_type=account.account_type,
                    sub_type=account.sub_type,
                    balance=account.normal_balance.signed_change(debit, credit),
                )
            )
        return tuple(StatementSection(name, tuple(grouped[name])) for name in names)

    def trial_balance(self, business_id: int, as_of: Optional[date] = None) -> TrialBalance:
        """Build a trial balance from all entries dated on or before ``as_of``.

        A balance on the account's abnormal side is shown in the opposite column.

        Raises:
            NotFoundError: If the business doesn't exist
        """
        self._require_business(business_id)
        as_of = as_of or date.today()

        totals = _totals(self.db.list_journal_entries(business_id, end_date=as_of))
        lines = []
        for account in self.db.list_ledger_accounts(business_id):
            debit, credit = totals.get(account.id, (ZERO, ZERO))
            if not account.is_active and debit == ZERO and credit == ZERO:
                continue
            balance = account.normal_balance.signed_change(debit, credit)
            on_debit_side = (account.normal_balance == NormalBalance.DEBIT) == (balance >= 0)
            lines.append(
                TrialBalanceLine(
                    account_id=account.id,
                    code=account.code,
                    name=account.name,
                    account_type=account.account_type,
                    normal_balance=account.normal_balance,
                    debit_balance=abs(balance) if on_debit_side else ZERO,
                    credit_balance=ZERO if on_debit_side else abs(balance),
                )
            )

        return TrialBalance(
            as_of=as_of,
            lines=tuple(lines),
            total_debits=sum((line.debit_balance for line in lines), ZERO),
            total_credits=sum((line.credit_balance for line in lines), ZERO),
        )

    def general_ledger(
        self,
        business_id: int,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> GeneralLedger:
        """List an account's entries with a running balance.

        The running balance starts at zero at the beginning of the window, so
        with no date filter the last running balance equals the account balance.

        Raises:
            NotFoundError: If the account doesn't exist in the business
        """
        account = self.db.get_ledger_account(account_id)
        if account is None or account.business_id != business_id:
            raise NotFoundError(account_not_found(account_id))

        entries = self.db.list_journal_entries(
            business_id, ledger_account_id=account_id, start_date=start_date, end_date=end_date
        )

        running = ZERO
        lines = []
        for entry in entries:
            running += account.normal_balance.signed_change(entry.debit_amount, entry.credit_amount)
            lines.append(GeneralLedgerLine(entry=entry, running_balance=running))

        return GeneralLedger(
            account=account,
            start_date=start_date,
            end_date=end_date,
            lines=tuple(lines),
            total_debits=sum((e.debit_amount for e in entries), ZERO),
            total_credits=sum((e.credit_amount for e in entries), ZERO),
            ending_balance=running,
        )

    def balance_sheet(self, business_id: int, as_of: Optional[date] = None) -> BalanceSheet:
        """Build a balance sheet as of a date.

        Revenue minus expenses to date is carried into equity as current
        earnings, since nothing closes the books into retained earnings.

        Raises:
            NotFoundError: If the business doesn't exist
        """
        self._require_business(business_id)
        as_of = as_of or date.today()

        totals = _totals(self.db.list_journal_entries(business_id, end_date=as_of))
        accounts = self.db.list_ledger_accounts(business_id)

        def of_type(account_type: AccountType) -> list[LedgerAccount]:
            return [a for a in accounts if a.account_type == account_type]

        revenue = sum(
            (a.normal_balance.signed_change(*totals.get(a.id, (ZERO, ZERO))) for a in of_type(AccountType.REVENUE)),
            ZERO,
        )
        expenses = sum(
            (a.normal_balance.signed_change(*totals.get(a.id, (ZERO, ZERO))) for a in of_type(AccountType.EXPENSE)),
            ZERO,
        )

        return BalanceSheet(
            as_of=as_of,
            assets=self._sections(
                of_type(AccountType.ASSET),
                totals,
                asset_group,
                ("current_assets", "fixed_assets", "other_assets"),
            ),
            liabilities=self._sections(
                of_type(AccountType.LIABILITY),
                totals,
                liability_group,
                ("current_liabilities", "long_term_liabilities", "other_liabilities"),
            ),
            equity=self._sections(
                of_type(AccountType.EQUITY),
                totals,
                equity_group,
                ("owners_equity", "retained_earnings"),
            ),
            current_earnings=revenue - expenses,
        )

    def profit_and_loss(self, business_id: int, start_date: date, end_date: date) -> ProfitAndLoss:
        """Build an income statement for entries dated within [start_date, end_date].

        Raises:
            NotFoundError: If the business doesn't exist
            ValidationError: If start_date is after end_date
        """
        self._require_business(business_id)
        if start_date > end_date:
            raise ValidationError("Start date must not be after end date")

        totals = _totals(self.db.list_journal_entries(business_id, start_date=start_date, end_date=end_date))
        revenue_sections = self._sections(
            self.db.list_ledger_accounts(business_id, account_type=AccountType.REVENUE),
            totals,
            revenue_group,
            ("operating_revenue", "other_revenue"),
        )
        expense_sections = self._sections(
            self.db.list_ledger_accounts(business_id, account_type=AccountType.EXPENSE),
            totals,
            expense_group,
            ("cost_of_goods_sold", "operating_expenses", "other_expenses"),
        )

        return ProfitAndLoss(
            start_date=start_date,
            end_date=end_date,
            operating_revenue=revenue_sections[0],
            other_revenue=revenue_sections[1],
            cost_of_goods_sold=expense_sections[0],
            operating_expenses=expense_sections[1],
            other_expenses=expense_sections[2],
        )

    def cash_flow(self, business_id: int, start_date: date, end_date: date) -> CashFlowStatement:
        """Build a cash flow statement for [start_date, end_date].

        Each transaction touching a cash account contributes its net effect on
        cash, classified as operating, investing or financing by the first
        non-cash account it posts to. Transfers between two cash accounts net
        to zero and are left out.

        Raises:
            NotFoundError: If the business doesn't exist
            ValidationError: If start_date is after end_date
        """
        self._require_business(business_id)
        if start_date > end_date:
            raise ValidationError("Start date must not be after end date")

        accounts = {a.id: a for a in self.db.list_ledger_accounts(business_id)}
        cash_ids = {account_id for account_id, a in accounts.items() if is_cash_account(a)}

        def cash_change(entry: JournalEntry) -> Decimal:
            account = accounts[entry.ledger_account_id]
            return account.normal_balance.signed_change(entry.debit_amount, entry.credit_amount)

        opening = sum(
            (
                cash_change(e)
                for e in self.db.list_journal_entries(business_id, end_date=start_date)
                if e.ledger_account_id in cash_ids and e.date < start_date
            ),
            ZERO,
        )

        by_transaction: dict[int, list[JournalEntry]] = defaultdict(list)
        for entry in self.db.list_journal_entries(business_id, start_date=start_date, end_date=end_date):
            by_transaction[entry.transaction_id].append(entry)

        activities: dict[str, list[CashMovement]] = {"operating": [], "investing": [], "financing": []}
        for transaction_id, entries in by_transaction.items():
            net = sum((cash_change(e) for e in entries if e.ledger_account_id in cash_ids), ZERO)
            if net == ZERO:
                continue
            contra = next(
                (accounts[e.ledger_account_id] for e in entries if e.ledger_account_id not in cash_ids),
                None,
            )
            activities[cash_flow_activity(contra)].append(
                CashMovement(
                    transaction_id=transaction_id,
                    date=entries[0].date,
                    description=entries[0].description or "",
                    amount=net,
                )
            )

        return CashFlowStatement(
            start_date=start_date,
            end_date=end_date,
            opening_balance=opening,
            operating=tuple(activities["operating"]),
            investing=tuple(activities["investing"]),
            financing=tuple(activities["financing"]),
        )
