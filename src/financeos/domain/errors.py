"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist or belongs to another business."""


class ConflictError(ValidationError):
    """Domain conflict, such as uniqueness violations."""


class LimitExceededError(DomainError):
    """Subscription tier quota has been reached."""


class InvariantViolationError(DomainError):
    """Internal ledger invariant broken (debits != credits).

    Never caused by user input; seeing one means the posting code is wrong.
    """


def business_not_found(business_id: int) -> str:
    """Return message for missing business."""
    return f"Business {business_id} not found"


def account_not_found(account_id: int) -> str:
    """Return message for missing ledger account."""
    return f"Ledger account {account_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def duplicate_account_code(code: str, business_id: int) -> str:
    """Return message for a ledger account code already in use."""
    return f"Account code '{code}' already exists for business {business_id}"


def duplicate_category_name(name: str, business_id: int) -> str:
    """Return message for a category name already in use."""
    return f"Category '{name}' already exists for business {business_id}"


def transaction_limit_reached(tier: str, limit: int) -> str:
    """Return message when the tier's transaction quota is exhausted."""
    return (
        f"Transaction limit reached for {tier} plan ({limit} transactions). "
        "Upgrade your plan to post more transactions."
    )


def unbalanced_entries(debits: Decimal, credits: Decimal) -> str:
    """Return message for journal lines whose debits and credits differ."""
    return f"Journal entries are unbalanced: debits {debits} != credits {credits}"


def account_delete_blocked(account_id: int, transaction_count: int, entry_count: int) -> str:
    """Return message when a ledger account has postings."""
    parts = []
    if transaction_count > 0:
        parts.append(f"{transaction_count} transaction{'s' if transaction_count != 1 else ''}")
    if entry_count > 0:
        parts.append(f"{entry_count} journal entr{'ies' if entry_count != 1 else 'y'}")
    return (
        f"Cannot delete ledger account {account_id}: it has {', '.join(parts)}. "
        "Deactivate it instead."
    )


def category_delete_blocked(category_id: int, transaction_count: int, child_count: int) -> str:
    """Return message when a category is still referenced."""
    if transaction_count > 0:
        return (
            f"Cannot delete category {category_id}: it has {transaction_count} "
            f"transaction{'s' if transaction_count != 1 else ''}. Deactivate it instead."
        )
    return (
        f"Cannot delete category {category_id}: it has {child_count} "
        f"subcategor{'ies' if child_count != 1 else 'y'}."
    )
