"""Tests for accounting reports."""

from datetime import date
from decimal import Decimal

import pytest

from financeos.domain.entities import SplitLine
from financeos.domain.errors import NotFoundError, ValidationError


@pytest.fixture
def books(post):
    """Two months of activity for a small consultancy."""
    post("TRANSFER", "10000", "1100", "3000", description="Owner investment", on=date(2024, 1, 5))
    post("INCOME", "5000", "1100", "4100", description="Consulting project", on=date(2024, 1, 10))
    post("EXPENSE", "1200", "1100", "5100", description="January rent", on=date(2024, 1, 20))
    post("TRANSFER", "3000", "1500", "1100", description="Laptop purchase", on=date(2024, 2, 1))
    post("TRANSFER", "4000", "1100", "2500", description="Bank loan", on=date(2024, 2, 10))
    post("EXPENSE", "800", "1100", "5000", description="Resold licences", on=date(2024, 2, 15))


class TestTrialBalance:
    """Tests for the trial balance."""

    def test_balanced(self, report_service, business, books):
        tb = report_service.trial_balance(business.id, as_of=date(2024, 12, 31))

        assert tb.total_debits == tb.total_credits == Decimal("19000.00")
        assert tb.is_balanced
        assert tb.difference == Decimal("0.00")

    def test_columns_follow_normal_balance(self, report_service, business, books):
        tb = report_service.trial_balance(business.id, as_of=date(2024, 12, 31))
        lines = {line.code: line for line in tb.lines}

        assert lines["1100"].debit_balance == Decimal("14000.00")
        assert lines["2500"].credit_balance == Decimal("4000.00")
        assert lines["4100"].credit_balance == Decimal("5000.00")
        assert lines["5100"].debit_balance == Decimal("1200.00")

    def test_as_of_excludes_later_entries(self, report_service, business, books):
        tb = report_service.trial_balance(business.id, as_of=date(2024, 1, 31))
        lines = {line.code: line for line in tb.lines}

        assert tb.total_debits == tb.total_credits == Decimal("15000.00")
        assert lines["1100"].debit_balance == Decimal("13800.00")

    def test_abnormal_balance_in_opposite_column(self, report_service, post, business):
        post("EXPENSE", "100", "1000", "5500", on=date(2024, 1, 1))

        tb = report_service.trial_balance(business.id, as_of=date(2024, 1, 31))
        cash = next(line for line in tb.lines if line.code == "1000")

        assert cash.debit_balance == Decimal("0.00")
        assert cash.credit_balance == Decimal("100.00")
        assert tb.is_balanced

    def test_inactive_accounts(self, report_service, account_service, accounts, business, books):
        account_service.deactivate_account(business.id, accounts["1600"].id)
        account_service.deactivate_account(business.id, accounts["5100"].id)

        codes = {line.code for line in report_service.trial_balance(business.id).lines}

        assert "1600" not in codes
        assert "5100" in codes

    def test_unknown_business(self, report_service):
        with pytest.raises(NotFoundError):
            report_service.trial_balance(999)


class TestGeneralLedger:
    """Tests for the general ledger."""

    def test_running_balance_matches_account(self, report_service, account_service, accounts, business, books):
        ledger = report_service.general_ledger(business.id, accounts["1100"].id)

        assert [line.running_balance for line in ledger.lines] == [
            Decimal("10000.00"),
            Decimal("15000.00"),
            Decimal("13800.00"),
            Decimal("10800.00"),
            Decimal("14800.00"),
            Decimal("14000.00"),
        ]
        assert ledger.ending_balance == account_service.get_account(business.id, accounts["1100"].id).current_balance

    def test_ordered_by_date_then_entry_number(self, report_service, post, accounts, business):
        post("INCOME", "10", "1100", "4100", description="Later", on=date(2024, 3, 2))
        post("INCOME", "20", "1100", "4100", description="Earlier", on=date(2024, 3, 1))

        ledger = report_service.general_ledger(business.id, accounts["1100"].id)

        assert [line.entry.description for line in ledger.lines] == ["Earlier", "Later"]

    def test_window(self, report_service, accounts, business, books):
        ledger = report_service.general_ledger(
            business.id, accounts["1100"].id, start_date=date(2024, 2, 1), end_date=date(2024, 2, 28)
        )

        assert len(ledger.lines) == 3
        assert ledger.total_debits == Decimal("4000.00")
        assert ledger.total_credits == Decimal("3800.00")
        assert ledger.ending_balance == Decimal("200.00")

    def test_foreign_account(self, report_service, business_service, accounts):
        other = business_service.create_business("Other Co")

        with pytest.raises(NotFoundError):
            report_service.general_ledger(other.id, accounts["1100"].id)


class TestLedgerConsistency:
    """Stored balances agree with the journal after edits and reversals."""

    def _assert_consistent(self, report_service, account_service, business):
        for account in account_service.list_accounts(business.id):
            ledger = report_service.general_ledger(business.id, account.id)
            assert ledger.ending_balance == account.current_balance, account.code
        assert report_service.trial_balance(business.id).is_balanced

    def test_repost_and_reverse(
        self, report_service, account_service, ledger_service, post, accounts, business, books
    ):
        sale = post("INCOME", "750", "1100", "4100", description="Workshop", on=date(2024, 3, 1))
        supplies = post(
            "EXPENSE",
            "300",
            "2100",
            description="Supplies and ads",
            on=date(2024, 3, 5),
            splits=(SplitLine(accounts["5500"].id, Decimal("180")), SplitLine(accounts["5400"].id, Decimal("120"))),
        )
        rent = post("EXPENSE", "1200", "1100", "5100", description="March rent", on=date(2024, 3, 20))

        ledger_service.update_transaction(
            business.id, sale.id, amount=Decimal("900"), date=date(2024, 3, 8), contra_account_id=accounts["4900"].id
        )
        ledger_service.update_transaction(business.id, rent.id, amount=Decimal("1250"), date=date(2024, 2, 28))
        self._assert_consistent(report_service, account_service, business)

        ledger_service.reverse_transaction(business.id, supplies.id)
        ledger_service.reverse_transaction(business.id, rent.id)
        self._assert_consistent(report_service, account_service, business)

        balances = {a.code: a.current_balance for a in account_service.list_accounts(business.id)}
        assert balances["1100"] == Decimal("14900.00")
        assert balances["4100"] == Decimal("5000.00")
        assert balances["4900"] == Decimal("900.00")
        assert balances["2100"] == Decimal("0.00")
        assert balances["5500"] == Decimal("0.00")
        assert balances["5100"] == Decimal("1200.00")


class TestBalanceSheet:
    """Tests for the balance sheet."""

    def test_balances(self, report_service, business, books):
        sheet = report_service.balance_sheet(business.id, as_of=date(2024, 12, 31))

        assert sheet.total_assets == Decimal("17000.00")
        assert sheet.total_liabilities == Decimal("4000.00")
        assert sheet.current_earnings == Decimal("3000.00")
        assert sheet.total_equity == Decimal("13000.00")
        assert sheet.is_balanced

    def test_sections(self, report_service, business, books):
        sheet = report_service.balance_sheet(business.id, as_of=date(2024, 12, 31))

        assert sheet.section("current_assets").total == Decimal("14000.00")
        assert sheet.section("fixed_assets").total == Decimal("3000.00")
        assert sheet.section("long_term_liabilities").total == Decimal("4000.00")
        assert sheet.section("owners_equity").total == Decimal("10000.00")

    def test_ratios(self, report_service, business, books):
        sheet = report_service.balance_sheet(business.id, as_of=date(2024, 12, 31))

        assert sheet.working_capital == Decimal("14000.00")
        assert sheet.current_ratio == Decimal("0")
        assert sheet.debt_to_equity_ratio == Decimal("4000") / Decimal("13000")

    def test_empty_books(self, report_service, business):
        sheet = report_service.balance_sheet(business.id)

        assert sheet.total_assets == Decimal("0.00")
        assert sheet.is_balanced


class TestProfitAndLoss:
    """Tests for the profit and loss statement."""

    def test_two_months(self, report_service, business, books):
        pnl = report_service.profit_and_loss(business.id, date(2024, 1, 1), date(2024, 2, 29))

        assert pnl.total_revenue == Decimal("5000.00")
        assert pnl.cost_of_goods_sold.total == Decimal("800.00")
        assert pnl.gross_profit == Decimal("4200.00")
        assert pnl.operating_expenses.total == Decimal("1200.00")
        assert pnl.operating_income == Decimal("3000.00")
        assert pnl.net_income == Decimal("3000.00")
        assert pnl.margin(pnl.net_income) == Decimal("60.0")

    def test_period_filter(self, report_service, business, books):
        pnl = report_service.profit_and_loss(business.id, date(2024, 1, 1), date(2024, 1, 31))

        assert pnl.cost_of_goods_sold.total == Decimal("0.00")
        assert pnl.net_income == Decimal("3800.00")
        assert pnl.margin(pnl.net_income) == Decimal("76.0")

    def test_no_revenue_margin_is_zero(self, report_service, post, business):
        post("EXPENSE", "50", "1100", "5100", on=date(2024, 1, 3))

        pnl = report_service.profit_and_loss(business.id, date(2024, 1, 1), date(2024, 1, 31))

        assert pnl.net_income == Decimal("-50.00")
        assert pnl.margin(pnl.net_income) == Decimal("0")

    def test_start_after_end(self, report_service, business):
        with pytest.raises(ValidationError):
            report_service.profit_and_loss(business.id, date(2024, 2, 1), date(2024, 1, 1))


class TestCashFlow:
    """Tests for the cash flow statement."""

    def test_january(self, report_service, business, books):
        statement = report_service.cash_flow(business.id, date(2024, 1, 1), date(2024, 1, 31))

        assert statement.opening_balance == Decimal("0.00")
        assert statement.operating_total == Decimal("3800.00")
        assert statement.financing_total == Decimal("10000.00")
        assert statement.investing == ()
        assert statement.closing_balance == Decimal("13800.00")

    def test_february(self, report_service, account_service, accounts, business, books):
        statement = report_service.cash_flow(business.id, date(2024, 2, 1), date(2024, 2, 29))

        assert statement.opening_balance == Decimal("13800.00")
        assert [m.amount for m in statement.investing] == [Decimal("-3000.00")]
        assert [m.amount for m in statement.financing] == [Decimal("4000.00")]
        assert [m.amount for m in statement.operating] == [Decimal("-800.00")]
        assert statement.net_cash_flow == Decimal("200.00")
        assert statement.closing_balance == account_service.get_account(business.id, accounts["1100"].id).current_balance

    def test_transfer_between_cash_accounts_ignored(self, report_service, post, business):
        post("INCOME", "500", "1100", "4100", on=date(2024, 3, 1))
        post("TRANSFER", "200", "1000", "1100", description="Petty cash", on=date(2024, 3, 2))

        statement = report_service.cash_flow(business.id, date(2024, 3, 1), date(2024, 3, 31))

        assert len(statement.operating) == 1
        assert statement.net_cash_flow == Decimal("500.00")
