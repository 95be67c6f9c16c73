"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any, Sequence
from datetime import date

# Import entities directly to avoid circular import through domain/__init__.py
from financeos.domain.entities import (
    AccountSubType,
    AccountType,
    Business,
    Category,
    CategoryType,
    JournalEntry,
    JournalLine,
    LedgerAccount,
    NormalBalance,
    SubscriptionTier,
    Transaction,
    TransactionDraft,
    TransactionType,
)


class Database(ABC):
    """Abstract database interface for financeos."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Business operations
    @abstractmethod
    def create_business(self, name: str, subscription_tier: SubscriptionTier) -> int:
        """Create a business. Returns business ID."""
        pass

    @abstractmethod
    def get_business(self, business_id: int) -> Optional[Business]:
        """Get business by ID."""
        pass

    @abstractmethod
    def list_businesses(self) -> list[Business]:
        """List all businesses."""
        pass

    @abstractmethod
    def update_business_tier(self, business_id: int, subscription_tier: SubscriptionTier) -> None:
        """Change a business's subscription tier."""
        pass

    # Ledger account operations
    @abstractmethod
    def create_ledger_account(
        self,
        business_id: int,
        code: str,
        name: str,
        account_type: AccountType,
        normal_balance: NormalBalance,
        sub_type: Optional[AccountSubType] = None,
        parent_account_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a ledger account with a zero balance. Returns account ID."""
        pass

    @abstractmethod
    def get_ledger_account(self, account_id: int) -> Optional[LedgerAccount]:
        """Get ledger account by ID."""
        pass

    @abstractmethod
    def get_ledger_account_by_code(self, business_id: int, code: str) -> Optional[LedgerAccount]:
        """Get ledger account by its business-scoped code."""
        pass

    @abstractmethod
    def list_ledger_accounts(
        self,
        business_id: int,
        account_type: Optional[AccountType] = None,
        is_active: Optional[bool] = None,
    ) -> list[LedgerAccount]:
        """List ledger accounts ordered by code."""
        pass

    @abstractmethod
    def update_ledger_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
        parent_account_id: Optional[int] = None,
        update_parent: bool = False,
    ) -> None:
        """Update descriptive fields of a ledger account.

        Args:
            update_parent: If True, update parent_account_id even if it's None (to clear it)
        """
        pass

    @abstractmethod
    def delete_ledger_account(self, account_id: int) -> None:
        """Hard-delete a ledger account."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        """Count transactions whose main account is the given account."""
        pass

    @abstractmethod
    def get_account_entry_count(self, account_id: int) -> int:
        """Count journal entries posted against the given account."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self,
        business_id: int,
        name: str,
        category_type: CategoryType,
        parent_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_name(self, business_id: int, name: str) -> Optional[Category]:
        """Get category by its business-scoped name."""
        pass

    @abstractmethod
    def list_categories(
        self,
        business_id: int,
        category_type: Optional[CategoryType] = None,
        is_active: Optional[bool] = None,
    ) -> list[Category]:
        """List categories ordered by name."""
        pass

    @abstractmethod
    def get_category_tree(self, business_id: int) -> list[dict[str, Any]]:
        """Get full category tree with hierarchy.

        Returns a list of dictionaries with category data and nested 'children' lists.
        """
        pass

    @abstractmethod
    def update_category(
        self,
        category_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category_type: Optional[CategoryType] = None,
        is_active: Optional[bool] = None,
        parent_id: Optional[int] = None,
        update_parent: bool = False,
    ) -> None:
        """Update category fields."""
        pass

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        """Hard-delete a category."""
        pass

    @abstractmethod
    def get_category_transaction_count(self, category_id: int) -> int:
        """Count transactions referencing a category."""
        pass

    @abstractmethod
    def get_category_child_count(self, category_id: int) -> int:
        """Count direct subcategories."""
        pass

    # Transaction operations
    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def count_transactions(self, business_id: int) -> int:
        """Count all transactions of a business."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[TransactionType] = None,
        ledger_account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        is_reconciled: Optional[bool] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters, newest first."""
        pass

    @abstractmethod
    def update_transaction_details(
        self,
        transaction_id: int,
        description: Optional[str] = None,
        category_id: Optional[int] = None,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
        update_category: bool = False,
    ) -> None:
        """Update non-financial transaction fields.

        Args:
            update_category: If True, update category_id even if it's None (to clear it)
        """
        pass

    @abstractmethod
    def set_transaction_reconciled(self, transaction_id: int, is_reconciled: bool) -> None:
        """Set a transaction's reconciled flag."""
        pass

    # Posting operations. Each call is all-or-nothing.
    @abstractmethod
    def insert_posted_transaction(
        self, business_id: int, draft: TransactionDraft, lines: Sequence[JournalLine]
    ) -> int:
        """Insert a transaction with its journal entries and apply balance changes.

        Entry numbers are allocated from the business counter inside the same
        database transaction. Returns transaction ID.
        """
        pass

    @abstractmethod
    def replace_posted_transaction(
        self, transaction_id: int, draft: TransactionDraft, lines: Sequence[JournalLine]
    ) -> None:
        """Reverse a transaction's entries and re-post it with new lines."""
        pass

    @abstractmethod
    def delete_posted_transaction(self, transaction_id: int) -> None:
        """Reverse balance changes, then delete journal entries and the transaction."""
        pass

    # Journal entry operations
    @abstractmethod
    def list_journal_entries(
        self,
        business_id: int,
        ledger_account_id: Optional[int] = None,
        transaction_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[JournalEntry]:
        """List journal entries ordered by (date, entry_number) ascending."""
        pass
