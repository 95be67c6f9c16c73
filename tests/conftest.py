"""Shared pytest fixtures for financeos tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from financeos.config import get_settings
from financeos.database.factories import create_sqlite_database
from financeos.domain.business import BusinessService
from financeos.domain.category import CategoryService
from financeos.domain.entities import SubscriptionTier, TransactionDraft, TransactionType
from financeos.domain.ledger import LedgerService
from financeos.domain.ledger_account import LedgerAccountService
from financeos.domain.reports import ReportService


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep the developer's environment out of the tests."""
    for name in (
        "FINANCEOS_DB_PATH",
        "FINANCEOS_BUSINESS_ID",
        "FINANCEOS_LOG_LEVEL",
        "FINANCEOS_LOG_FORMAT",
        "FINANCEOS_REDIS_URL",
        "FINANCEOS_LOOKBACK_MONTHS",
        "FINANCEOS_GEMINI_MODEL",
        "FINANCEOS_LLM_TIMEOUT",
        "FINANCEOS_TIMELINE_TTL",
        "FINANCEOS_SIMULATION_TTL",
        "GOOGLE_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def business_service(temp_db):
    return BusinessService(temp_db)


@pytest.fixture
def account_service(temp_db):
    return LedgerAccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    return CategoryService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    return LedgerService(temp_db)


@pytest.fixture
def report_service(temp_db):
    return ReportService(temp_db)


@pytest.fixture
def business(business_service, account_service, category_service):
    """A FREE business with the default chart of accounts and categories."""
    biz = business_service.create_business("Acme Consulting", SubscriptionTier.FREE)
    account_service.seed_default_chart(biz.id)
    category_service.seed_default_categories(biz.id)
    return biz


@pytest.fixture
def accounts(account_service, business):
    """Default chart of accounts keyed by code."""
    return {acc.code: acc for acc in account_service.list_accounts(business.id)}


@pytest.fixture
def post(ledger_service, business, accounts):
    """Post a transaction by account code: post("INCOME", "100", "1100", "4100")."""

    def _post(
        transaction_type: str,
        amount: str,
        account_code: str,
        contra_code: str | None = None,
        description: str = "Test transaction",
        on: date = date(2024, 3, 15),
        splits=(),
        business_id: int | None = None,
    ):
        return ledger_service.post_transaction(
            business_id or business.id,
            TransactionDraft(
                transaction_type=TransactionType(transaction_type),
                amount=Decimal(amount),
                date=on,
                description=description,
                ledger_account_id=accounts[account_code].id,
                contra_account_id=accounts[contra_code].id if contra_code else None,
                splits=tuple(splits),
            ),
        )

    return _post


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
