"""SQLAlchemy models for financeos database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    Index,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Business(Base):
    """Business (tenant) model."""

    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    subscription_tier = Column(String, nullable=False, default="FREE")
    # Next journal entry number; incremented inside the posting transaction
    next_entry_number = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    ledger_accounts = relationship("LedgerAccount", back_populates="business", cascade="all, delete-orphan")
    categories = relationship("Category", back_populates="business", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="business", cascade="all, delete-orphan")


class LedgerAccount(Base):
    """Ledger account model with optional parent account."""

    __tablename__ = "ledger_accounts"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    account_type = Column(String, nullable=False)
    sub_type = Column(String, nullable=True)
    normal_balance = Column(String, nullable=False)
    current_balance = Column(Numeric(14, 2), nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    parent_account_id = Column(Integer, ForeignKey("ledger_accounts.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("business_id", "code", name="uq_business_account_code"),)

    # Relationships
    business = relationship("Business", back_populates="ledger_accounts")
    parent_account = relationship("LedgerAccount", remote_side=[id], backref="sub_accounts")
    journal_entries = relationship("JournalEntry", back_populates="ledger_account")


class Category(Base):
    """Category model with hierarchical structure."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    category_type = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("business_id", "name", name="uq_business_category_name"),)

    # Relationships
    business = relationship("Business", back_populates="categories")
    parent = relationship("Category", remote_side=[id], backref="children")
    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    transaction_type = Column(String, nullable=False)
    ledger_account_id = Column(Integer, ForeignKey("ledger_accounts.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    reference_number = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    is_reconciled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    business = relationship("Business", back_populates="transactions")
    ledger_account = relationship("LedgerAccount")
    category = relationship("Category", back_populates="transactions")
    journal_entries = relationship(
        "JournalEntry", back_populates="transaction", cascade="all, delete-orphan"
    )


class JournalEntry(Base):
    """Journal entry model: one debit or credit posting."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    ledger_account_id = Column(Integer, ForeignKey("ledger_accounts.id"), nullable=False)
    entry_number = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=True)
    debit_amount = Column(Numeric(14, 2), nullable=False, default=0)
    credit_amount = Column(Numeric(14, 2), nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("business_id", "entry_number", name="uq_business_entry_number"),
        Index("ix_journal_account_date", "ledger_account_id", "date", "entry_number"),
    )

    # Relationships
    transaction = relationship("Transaction", back_populates="journal_entries")
    ledger_account = relationship("LedgerAccount", back_populates="journal_entries")


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """Turn on foreign key enforcement for SQLite connections."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
