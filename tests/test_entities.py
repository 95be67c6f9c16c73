"""Tests for domain entities and the mapper layer."""

from datetime import date, datetime
from decimal import Decimal

from financeos.database.mappers import business_to_domain, ledger_account_to_domain
from financeos.database.models import Business as ORMBusiness
from financeos.database.models import LedgerAccount as ORMLedgerAccount
from financeos.domain.entities import (
    AccountType,
    JournalEntry,
    NormalBalance,
    SubscriptionTier,
    to_money,
)


def test_to_money_rounds_half_up():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money("10.004") == Decimal("10.00")
    assert to_money(3) == Decimal("3.00")
    assert to_money(0.1) == Decimal("0.10")


def test_normal_balance_for_account_type():
    assert NormalBalance.for_account_type(AccountType.ASSET) == NormalBalance.DEBIT
    assert NormalBalance.for_account_type(AccountType.EXPENSE) == NormalBalance.DEBIT
    assert NormalBalance.for_account_type(AccountType.LIABILITY) == NormalBalance.CREDIT
    assert NormalBalance.for_account_type(AccountType.EQUITY) == NormalBalance.CREDIT
    assert NormalBalance.for_account_type(AccountType.REVENUE) == NormalBalance.CREDIT


def test_signed_change():
    debit, credit = Decimal("100.00"), Decimal("0.00")

    assert NormalBalance.DEBIT.signed_change(debit, credit) == Decimal("100.00")
    assert NormalBalance.CREDIT.signed_change(debit, credit) == Decimal("-100.00")
    assert NormalBalance.CREDIT.signed_change(credit, debit) == Decimal("100.00")


def test_formatted_entry_number():
    entry = JournalEntry(
        id=1,
        business_id=1,
        transaction_id=1,
        ledger_account_id=1,
        entry_number=42,
        date=date(2024, 1, 1),
        description=None,
        debit_amount=Decimal("1.00"),
        credit_amount=Decimal("0.00"),
    )

    assert entry.formatted_number == "000042"


def test_business_mapper():
    created = datetime(2024, 1, 1, 12, 0)
    orm = ORMBusiness(id=3, name="Acme", subscription_tier="PRO", next_entry_number=7, created_at=created)

    biz = business_to_domain(orm)

    assert biz.subscription_tier == SubscriptionTier.PRO
    assert biz.next_entry_number == 7
    assert biz.created_at == created


def test_ledger_account_mapper_money_and_enums():
    orm = ORMLedgerAccount(
        id=5,
        business_id=3,
        code="1100",
        name="Bank",
        account_type="ASSET",
        sub_type=None,
        normal_balance="DEBIT",
        current_balance=None,
        is_active=True,
        parent_account_id=None,
        description=None,
        created_at=datetime(2024, 1, 1),
    )

    acc = ledger_account_to_domain(orm)

    assert acc.account_type == AccountType.ASSET
    assert acc.sub_type is None
    assert acc.normal_balance == NormalBalance.DEBIT
    assert acc.current_balance == Decimal("0.00")
