"""Ledger engine: posting, updating and reversing double-entry transactions."""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from financeos.database.base import Database
from financeos.domain.entities import (
    BALANCE_TOLERANCE,
    JournalEntry,
    JournalLine,
    SplitLine,
    Transaction,
    TransactionDraft,
    TransactionType,
    to_money,
)
from financeos.domain.errors import (
    InvariantViolationError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
    business_not_found,
    transaction_limit_reached,
    transaction_not_found,
    unbalanced_entries,
)
from financeos.domain.subscription import get_tier_limits, is_limit_reached

logger = structlog.get_logger(__name__)


def contra_legs(draft: TransactionDraft) -> list[SplitLine]:
    """Return the contra side of a draft as (account, amount) legs.

    Raises:
        ValidationError: If neither or both of contra account and splits are given,
            or if split amounts don't add up to the transaction amount
    """
    if draft.splits and draft.contra_account_id is not None:
        raise ValidationError("Provide either a contra account or splits, not both")

    if not draft.splits:
        if draft.contra_account_id is None:
            raise ValidationError("A contra account is required")
        return [SplitLine(draft.contra_account_id, draft.amount)]

    legs = [SplitLine(s.ledger_account_id, to_money(s.amount)) for s in draft.splits]
    for leg in legs:
        if leg.amount <= 0:
            raise ValidationError("Split amounts must be positive")
    split_total = sum((leg.amount for leg in legs), Decimal("0.00"))
    if split_total != draft.amount:
        raise ValidationError(f"Split amounts ({split_total}) must add up to the transaction amount ({draft.amount})")
    return legs


def build_journal_lines(draft: TransactionDraft) -> list[JournalLine]:
    """Derive the balanced journal lines for a draft.

    INCOME debits the main (cash/bank) account and credits revenue.
    EXPENSE debits the expense account and credits the main account.
    TRANSFER debits the main (destination) account and credits the source.

    Raises:
        ValidationError: On an inconsistent contra side
        InvariantViolationError: If the derived lines don't balance
    """
    legs = contra_legs(draft)
    amount = draft.amount

    if draft.transaction_type == TransactionType.EXPENSE:
        lines = [JournalLine(leg.ledger_account_id, debit_amount=leg.amount) for leg in legs]
        lines.append(JournalLine(draft.ledger_account_id, credit_amount=amount))
    else:
        lines = [JournalLine(draft.ledger_account_id, debit_amount=amount)]
        lines.extend(JournalLine(leg.ledger_account_id, credit_amount=leg.amount) for leg in legs)

    debits = sum((line.debit_amount for line in lines), Decimal("0.00"))
    credits = sum((line.credit_amount for line in lines), Decimal("0.00"))
    if abs(debits - credits) >= BALANCE_TOLERANCE:
        raise InvariantViolationError(unbalanced_entries(debits, credits))
    return lines


class LedgerService:
    """Service for posting transactions to the general ledger."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_quota(self, business_id: int) -> None:
        business = self.db.get_business(business_id)
        if business is None:
            raise NotFoundError(business_not_found(business_id))

        limit = get_tier_limits(business.subscription_tier).transactions_limit
        used = self.db.count_transactions(business_id)
        if is_limit_reached(used, limit):
            logger.warning("transaction_limit_reached", business_id=business_id, used=used, limit=limit)
            raise LimitExceededError(transaction_limit_reached(business.subscription_tier.value, limit))

    def _validate_account(self, business_id: int, account_id: int) -> None:
        account = self.db.get_ledger_account(account_id)
        if account is None or account.business_id != business_id:
            raise ValidationError(f"Ledger account {account_id} not found in business {business_id}")
        if not account.is_active:
            raise ValidationError(f"Ledger account {account.code} ({account.name}) is inactive")

    def _validate_category(self, business_id: int, category_id: int) -> None:
        category = self.db.get_category(category_id)
        if category is None or category.business_id != business_id:
            raise ValidationError(f"Category {category_id} not found in business {business_id}")
        if not category.is_active:
            raise ValidationError(f"Category '{category.name}' is inactive")

    def _prepare(self, business_id: int, draft: TransactionDraft) -> tuple[TransactionDraft, list[JournalLine]]:
        """Validate a draft and derive its journal lines."""
        if draft.amount is None or Decimal(draft.amount) <= 0:
            raise ValidationError("Amount must be greater than zero")
        if not draft.description or not draft.description.strip():
            raise ValidationError("Description must not be empty")

        draft = TransactionDraft(
            transaction_type=draft.transaction_type,
            amount=to_money(draft.amount),
            date=draft.date,
            description=draft.description.strip(),
            ledger_account_id=draft.ledger_account_id,
            contra_account_id=draft.contra_account_id,
            splits=tuple(draft.splits),
            category_id=draft.category_id,
            reference_number=draft.reference_number,
            notes=draft.notes,
        )

        legs = contra_legs(draft)
        account_ids = [draft.ledger_account_id] + [leg.ledger_account_id for leg in legs]
        if draft.ledger_account_id in account_ids[1:]:
            raise ValidationError("Contra account must differ from the main account")
        for account_id in account_ids:
            self._validate_account(business_id, account_id)
        if draft.category_id is not None:
            self._validate_category(business_id, draft.category_id)

        return draft, build_journal_lines(draft)

    def post_transaction(self, business_id: int, draft: TransactionDraft) -> Transaction:
        """Post a transaction and its journal entries atomically.

        Args:
            business_id: Owning business
            draft: Transaction input

        Returns:
            The posted transaction

        Raises:
            NotFoundError: If the business doesn't exist
            LimitExceededError: If the tier's transaction quota is used up
            ValidationError: If the draft is invalid
            InvariantViolationError: If the derived entries don't balance
        """
        self._check_quota(business_id)
        draft, lines = self._prepare(business_id, draft)

        transaction_id = self.db.insert_posted_transaction(business_id, draft, lines)
        logger.info(
            "transaction_posted",
            business_id=business_id,
            transaction_id=transaction_id,
            transaction_type=draft.transaction_type.value,
            amount=str(draft.amount),
        )
        return self.db.get_transaction(transaction_id)

    def get_transaction(self, business_id: int, transaction_id: int) -> Transaction:
        """Get a transaction belonging to a business.

        Raises:
            NotFoundError: If the transaction doesn't exist or belongs to another business
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None or txn.business_id != business_id:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

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
        return self.db.list_transactions(
            business_id,
            start_date=start_date,
            end_date=end_date,
            transaction_type=transaction_type,
            ledger_account_id=ledger_account_id,
            category_id=category_id,
            is_reconciled=is_reconciled,
        )

    def get_journal_entries(self, business_id: int, transaction_id: int) -> list[JournalEntry]:
        self.get_transaction(business_id, transaction_id)
        return self.db.list_journal_entries(business_id, transaction_id=transaction_id)

    def _current_contra_legs(self, txn: Transaction) -> list[SplitLine]:
        """Rebuild the contra side of a posted transaction from its entries."""
        entries = self.db.list_journal_entries(txn.business_id, transaction_id=txn.id)
        main_is_credit = txn.transaction_type == TransactionType.EXPENSE
        legs = []
        main_seen = False
        for entry in entries:
            is_main = entry.ledger_account_id == txn.ledger_account_id and (
                entry.credit_amount > 0 if main_is_credit else entry.debit_amount > 0
            )
            if is_main and not main_seen:
                main_seen = True
                continue
            legs.append(SplitLine(entry.ledger_account_id, entry.debit_amount + entry.credit_amount))
        return legs

    def update_transaction(
        self,
        business_id: int,
        transaction_id: int,
        description: Optional[str] = None,
        category_id: Optional[int] = None,
        clear_category: bool = False,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
        amount: Optional[Decimal] = None,
        date: Optional[date] = None,
        transaction_type: Optional[TransactionType] = None,
        ledger_account_id: Optional[int] = None,
        contra_account_id: Optional[int] = None,
        splits: Optional[Sequence[SplitLine]] = None,
    ) -> Transaction:
        """Update a transaction.

        Description, category, reference and notes are plain updates. Changing
        amount, date, type, main or contra account reverses the old entries and
        posts new ones in a single database transaction.

        Args:
            clear_category: If True, clear the category (category_id must be None)

        Raises:
            NotFoundError: If the transaction doesn't exist in the business
            ValidationError: If the update is invalid, or a financial field of a
                reconciled transaction would change
        """
        txn = self.get_transaction(business_id, transaction_id)

        if clear_category and category_id is not None:
            raise ValidationError("Cannot set both category_id and clear_category")
        if category_id is not None:
            self._validate_category(business_id, category_id)

        financial = any(
            value is not None
            for value in (amount, date, transaction_type, ledger_account_id, contra_account_id, splits)
        )

        if not financial:
            if description is not None and not description.strip():
                raise ValidationError("Description must not be empty")
            self.db.update_transaction_details(
                transaction_id,
                description=description.strip() if description is not None else None,
                category_id=category_id,
                reference_number=reference_number,
                notes=notes,
                update_category=clear_category,
            )
            logger.info("transaction_updated", business_id=business_id, transaction_id=transaction_id)
            return self.db.get_transaction(transaction_id)

        if txn.is_reconciled:
            raise ValidationError(
                f"Transaction {transaction_id} is reconciled; unreconcile it before changing amounts, dates or accounts"
            )

        new_amount = to_money(amount) if amount is not None else txn.amount
        if contra_account_id is None and splits is None:
            legs = self._current_contra_legs(txn)
            if len(legs) == 1:
                contra_account_id = legs[0].ledger_account_id
            elif new_amount != txn.amount:
                raise ValidationError("Transaction has split postings; provide new splits to change its amount")
            else:
                splits = legs

        if clear_category:
            new_category_id = None
        elif category_id is not None:
            new_category_id = category_id
        else:
            new_category_id = txn.category_id

        draft = TransactionDraft(
            transaction_type=transaction_type or txn.transaction_type,
            amount=new_amount,
            date=date or txn.date,
            description=description if description is not None else txn.description,
            ledger_account_id=ledger_account_id or txn.ledger_account_id,
            contra_account_id=contra_account_id,
            splits=tuple(splits or ()),
            category_id=new_category_id,
            reference_number=reference_number if reference_number is not None else txn.reference_number,
            notes=notes if notes is not None else txn.notes,
        )
        draft, lines = self._prepare(business_id, draft)

        self.db.replace_posted_transaction(transaction_id, draft, lines)
        logger.info(
            "transaction_reposted",
            business_id=business_id,
            transaction_id=transaction_id,
            amount=str(draft.amount),
        )
        return self.db.get_transaction(transaction_id)

    def reverse_transaction(self, business_id: int, transaction_id: int) -> None:
        """Undo a transaction's balance effects and delete it with its entries.

        Raises:
            NotFoundError: If the transaction doesn't exist in the business
            ValidationError: If the transaction is reconciled
        """
        txn = self.get_transaction(business_id, transaction_id)
        if txn.is_reconciled:
            raise ValidationError(f"Cannot delete reconciled transaction {transaction_id}")

        self.db.delete_posted_transaction(transaction_id)
        logger.info("transaction_reversed", business_id=business_id, transaction_id=transaction_id)

    def reconcile_transaction(self, business_id: int, transaction_id: int) -> Transaction:
        """Toggle the reconciled flag. Balances are not affected."""
        txn = self.get_transaction(business_id, transaction_id)
        return self.set_reconciled(business_id, transaction_id, not txn.is_reconciled)

    def set_reconciled(self, business_id: int, transaction_id: int, is_reconciled: bool) -> Transaction:
        self.get_transaction(business_id, transaction_id)
        self.db.set_transaction_reconciled(transaction_id, is_reconciled)
        logger.info(
            "transaction_reconciled",
            business_id=business_id,
            transaction_id=transaction_id,
            is_reconciled=is_reconciled,
        )
        return self.db.get_transaction(transaction_id)
