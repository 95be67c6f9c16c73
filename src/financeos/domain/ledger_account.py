"""Ledger account (chart of accounts) domain service."""

from typing import Optional

import structlog

from financeos.database.base import Database
from financeos.domain.entities import (
    AccountSubType,
    AccountType,
    LedgerAccount,
    NormalBalance,
)
from financeos.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_delete_blocked,
    account_not_found,
    business_not_found,
    duplicate_account_code,
)

logger = structlog.get_logger(__name__)

# (code, name, type, sub type) for a new business.
DEFAULT_CHART: tuple[tuple[str, str, AccountType, AccountSubType], ...] = (
    ("1000", "Cash", AccountType.ASSET, AccountSubType.CURRENT_ASSET),
    ("1100", "Bank Account", AccountType.ASSET, AccountSubType.CURRENT_ASSET),
    ("1200", "Accounts Receivable", AccountType.ASSET, AccountSubType.CURRENT_ASSET),
    ("1300", "Inventory", AccountType.ASSET, AccountSubType.CURRENT_ASSET),
    ("1500", "Equipment", AccountType.ASSET, AccountSubType.FIXED_ASSET),
    ("1600", "Property", AccountType.ASSET, AccountSubType.FIXED_ASSET),
    ("2000", "Accounts Payable", AccountType.LIABILITY, AccountSubType.CURRENT_LIABILITY),
    ("2100", "Credit Card", AccountType.LIABILITY, AccountSubType.CURRENT_LIABILITY),
    ("2200", "Sales Tax Payable", AccountType.LIABILITY, AccountSubType.CURRENT_LIABILITY),
    ("2500", "Long-term Loan", AccountType.LIABILITY, AccountSubType.LONG_TERM_LIABILITY),
    ("3000", "Owner's Equity", AccountType.EQUITY, AccountSubType.OWNERS_EQUITY),
    ("3100", "Retained Earnings", AccountType.EQUITY, AccountSubType.RETAINED_EARNINGS),
    ("4000", "Sales Revenue", AccountType.REVENUE, AccountSubType.OPERATING_REVENUE),
    ("4100", "Service Revenue", AccountType.REVENUE, AccountSubType.OPERATING_REVENUE),
    ("4900", "Other Income", AccountType.REVENUE, AccountSubType.OTHER_REVENUE),
    ("5000", "Cost of Goods Sold", AccountType.EXPENSE, AccountSubType.COST_OF_GOODS_SOLD),
    ("5100", "Rent Expense", AccountType.EXPENSE, AccountSubType.OPERATING_EXPENSE),
    ("5200", "Salaries Expense", AccountType.EXPENSE, AccountSubType.OPERATING_EXPENSE),
    ("5300", "Utilities Expense", AccountType.EXPENSE, AccountSubType.OPERATING_EXPENSE),
    ("5400", "Marketing Expense", AccountType.EXPENSE, AccountSubType.OPERATING_EXPENSE),
    ("5500", "Office Supplies", AccountType.EXPENSE, AccountSubType.OPERATING_EXPENSE),
)


class LedgerAccountService:
    """Service for managing a business's chart of accounts."""

    def __init__(self, db: Database):
        """Initialize ledger account service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_business(self, business_id: int) -> None:
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))

    def create_account(
        self,
        business_id: int,
        code: str,
        name: str,
        account_type: AccountType,
        sub_type: Optional[AccountSubType] = None,
        normal_balance: Optional[NormalBalance] = None,
        parent_account_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> LedgerAccount:
        """Create a ledger account with a zero balance.

        Args:
            business_id: Owning business
            code: Account code, unique within the business (e.g. "1000")
            name: Account name
            account_type: ASSET, LIABILITY, EQUITY, REVENUE or EXPENSE
            sub_type: Optional reporting subtype
            normal_balance: Defaults to DEBIT for assets and expenses, CREDIT otherwise
            parent_account_id: Optional parent account in the same business
            description: Optional description

        Returns:
            Created ledger account

        Raises:
            NotFoundError: If the business doesn't exist
            ConflictError: If the code is already used in this business
            ValidationError: If code/name are empty or the parent is invalid
        """
        self._require_business(business_id)

        code = code.strip()
        name = name.strip()
        if not code or not name:
            raise ValidationError("Account code and name are required")

        if self.db.get_ledger_account_by_code(business_id, code) is not None:
            raise ConflictError(duplicate_account_code(code, business_id))

        if parent_account_id is not None:
            parent = self.db.get_ledger_account(parent_account_id)
            if parent is None or parent.business_id != business_id:
                raise ValidationError(f"Parent account {parent_account_id} not found in business {business_id}")

        if normal_balance is None:
            normal_balance = NormalBalance.for_account_type(account_type)

        account_id = self.db.create_ledger_account(
            business_id=business_id,
            code=code,
            name=name,
            account_type=account_type,
            normal_balance=normal_balance,
            sub_type=sub_type,
            parent_account_id=parent_account_id,
            description=description,
        )
        logger.info("ledger_account_created", business_id=business_id, account_id=account_id, code=code)
        return self.db.get_ledger_account(account_id)

    def get_account(self, business_id: int, account_id: int) -> LedgerAccount:
        """Get a ledger account belonging to a business.

        Raises:
            NotFoundError: If the account doesn't exist or belongs to another business
        """
        account = self.db.get_ledger_account(account_id)
        if account is None or account.business_id != business_id:
            raise NotFoundError(account_not_found(account_id))
        return account

    def get_account_by_code(self, business_id: int, code: str) -> Optional[LedgerAccount]:
        return self.db.get_ledger_account_by_code(business_id, code)

    def list_accounts(
        self,
        business_id: int,
        account_type: Optional[AccountType] = None,
        active: Optional[bool] = None,
    ) -> list[LedgerAccount]:
        """List accounts ordered by code."""
        return self.db.list_ledger_accounts(business_id, account_type=account_type, is_active=active)

    def update_account(
        self,
        business_id: int,
        account_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
        parent_account_id: Optional[int] = None,
        clear_parent: bool = False,
    ) -> LedgerAccount:
        """Update descriptive fields. The balance is never touched here.

        Raises:
            NotFoundError: If the account doesn't exist in the business
            ValidationError: If the new parent is invalid
        """
        self.get_account(business_id, account_id)

        if name is not None and not name.strip():
            raise ValidationError("Account name must not be empty")

        if parent_account_id is not None:
            if parent_account_id == account_id:
                raise ValidationError("An account cannot be its own parent")
            parent = self.db.get_ledger_account(parent_account_id)
            if parent is None or parent.business_id != business_id:
                raise ValidationError(f"Parent account {parent_account_id} not found in business {business_id}")
            # Walk up from the new parent; reaching this account would close a loop
            while parent.parent_account_id is not None:
                if parent.parent_account_id == account_id:
                    raise ValidationError(
                        f"Account {parent_account_id} is a sub-account of {account_id} and cannot be its parent"
                    )
                parent = self.db.get_ledger_account(parent.parent_account_id)
                if parent is None:
                    break

        self.db.update_ledger_account(
            account_id,
            name=name.strip() if name is not None else None,
            description=description,
            is_active=is_active,
            parent_account_id=parent_account_id,
            update_parent=clear_parent,
        )
        return self.db.get_ledger_account(account_id)

    def deactivate_account(self, business_id: int, account_id: int) -> LedgerAccount:
        return self.update_account(business_id, account_id, is_active=False)

    def delete_account(self, business_id: int, account_id: int) -> None:
        """Delete an account that was never posted to.

        Raises:
            NotFoundError: If the account doesn't exist in the business
            ValidationError: If the account has transactions or journal entries
        """
        self.get_account(business_id, account_id)

        transaction_count = self.db.get_account_transaction_count(account_id)
        entry_count = self.db.get_account_entry_count(account_id)
        if transaction_count > 0 or entry_count > 0:
            raise ValidationError(account_delete_blocked(account_id, transaction_count, entry_count))

        self.db.delete_ledger_account(account_id)
        logger.info("ledger_account_deleted", business_id=business_id, account_id=account_id)

    def seed_default_chart(self, business_id: int) -> int:
        """Create the default chart of accounts, skipping codes already present.

        Returns:
            Number of accounts created
        """
        self._require_business(business_id)

        created = 0
        for code, name, account_type, sub_type in DEFAULT_CHART:
            if self.db.get_ledger_account_by_code(business_id, code) is not None:
                continue
            self.db.create_ledger_account(
                business_id=business_id,
                code=code,
                name=name,
                account_type=account_type,
                normal_balance=NormalBalance.for_account_type(account_type),
                sub_type=sub_type,
            )
            created += 1

        logger.info("default_chart_seeded", business_id=business_id, created=created)
        return created
