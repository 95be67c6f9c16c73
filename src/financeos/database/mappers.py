"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so enum values stored as strings
and Numeric columns come back as the types the domain expects.
"""

from decimal import Decimal

from financeos.domain import entities as domain
from financeos.database.models import (
    Business as ORMBusiness,
    LedgerAccount as ORMLedgerAccount,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    JournalEntry as ORMJournalEntry,
)


def _money(value) -> Decimal:
    return domain.to_money(value if value is not None else 0)


def business_to_domain(orm_business: ORMBusiness) -> domain.Business:
    """Convert SQLAlchemy Business model to domain Business entity."""
    return domain.Business(
        id=orm_business.id,
        name=orm_business.name,
        subscription_tier=domain.SubscriptionTier(orm_business.subscription_tier),
        next_entry_number=orm_business.next_entry_number,
        created_at=orm_business.created_at,
    )


def ledger_account_to_domain(orm_account: ORMLedgerAccount) -> domain.LedgerAccount:
    """Convert SQLAlchemy LedgerAccount model to domain LedgerAccount entity."""
    return domain.LedgerAccount(
        id=orm_account.id,
        business_id=orm_account.business_id,
        code=orm_account.code,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        sub_type=domain.AccountSubType(orm_account.sub_type) if orm_account.sub_type else None,
        normal_balance=domain.NormalBalance(orm_account.normal_balance),
        current_balance=_money(orm_account.current_balance),
        is_active=orm_account.is_active,
        parent_account_id=orm_account.parent_account_id,
        description=orm_account.description,
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        business_id=orm_category.business_id,
        name=orm_category.name,
        category_type=domain.CategoryType(orm_category.category_type),
        parent_id=orm_category.parent_id,
        is_active=orm_category.is_active,
        description=orm_category.description,
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        business_id=orm_transaction.business_id,
        date=orm_transaction.date,
        description=orm_transaction.description,
        amount=_money(orm_transaction.amount),
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        ledger_account_id=orm_transaction.ledger_account_id,
        category_id=orm_transaction.category_id,
        reference_number=orm_transaction.reference_number,
        notes=orm_transaction.notes,
        is_reconciled=orm_transaction.is_reconciled,
        created_at=orm_transaction.created_at,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model to domain JournalEntry entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        business_id=orm_entry.business_id,
        transaction_id=orm_entry.transaction_id,
        ledger_account_id=orm_entry.ledger_account_id,
        entry_number=orm_entry.entry_number,
        date=orm_entry.date,
        description=orm_entry.description,
        debit_amount=_money(orm_entry.debit_amount),
        credit_amount=_money(orm_entry.credit_amount),
    )
