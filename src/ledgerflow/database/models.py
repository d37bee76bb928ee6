"""SQLAlchemy models for ledgerflow database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Float,
    Boolean,
    Index,
    UniqueConstraint,
    create_engine,
    text,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(12, 2)


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo on round trip anyway."""
    return datetime.now(UTC).replace(tzinfo=None)


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    kind = Column(String, nullable=False, default="checking")
    institution = Column(String, nullable=True)
    last_four = Column(String(4), nullable=True)
    color = Column(String, nullable=True)
    balance = Column(MONEY, nullable=False, default=0)
    opening_balance = Column(MONEY, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_account_user_name"),)

    # Relationships
    transactions = relationship("Transaction", back_populates="account")
    staged = relationship("StagingTransaction", back_populates="account")


class Dialect(Base):
    """User-registered CSV dialect."""

    __tablename__ = "dialects"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    date_column = Column(String, nullable=False)
    description_column = Column(String, nullable=False)
    amount_column = Column(String, nullable=False)
    category_column = Column(String, nullable=True)
    account_number_column = Column(String, nullable=True)
    date_format = Column(String, nullable=True)
    amount_sign = Column(String, nullable=False, default="negative-is-expense")
    # Stored as a JSON list of header names
    detection_headers = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class StagingTransaction(Base):
    """Draft transaction awaiting user review."""

    __tablename__ = "staging_transactions"
    # Committed and discarded drafts never hand their id to a new draft
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    raw_data = Column(Text, nullable=False)
    amount = Column(MONEY, nullable=False)
    type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    subcategory = Column(String, nullable=True)
    vendor = Column(String, nullable=True)
    description = Column(String, nullable=False, default="")
    original_description = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    user_id = Column(String, nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    source = Column(String, nullable=False, default="csv")
    bank_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="staged")


class Transaction(Base):
    """Committed ledger transaction."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    amount = Column(MONEY, nullable=False)
    type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    subcategory = Column(String, nullable=True)
    vendor = Column(String, nullable=True)
    description = Column(String, nullable=False, default="")
    original_description = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    user_id = Column(String, nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    source = Column(String, nullable=False, default="csv")
    bank_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    # Dedup key is unique among live rows
    __table_args__ = (
        Index(
            "uq_transaction_dedup_key",
            "user_id",
            "date",
            "description",
            "amount",
            "account_id",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    # Relationships
    account = relationship("Account", back_populates="transactions")
    category_changes = relationship("CategoryChangeLog", back_populates="transaction")


class CategorizationRule(Base):
    """Pattern rule mapping descriptions to vendor and category."""

    __tablename__ = "categorization_rules"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    pattern = Column(String, nullable=False)
    vendor = Column(String, nullable=False)
    category = Column(String, nullable=False)
    subcategory = Column(String, nullable=True)
    scope = Column(String, nullable=True)
    confidence = Column(Float, nullable=False, default=0.8)
    user_defined = Column(Boolean, nullable=False, default=True)
    use_count = Column(Integer, nullable=False, default=1)
    last_used = Column(DateTime, nullable=True, default=utcnow)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class CategoryChangeLog(Base):
    """Append-only audit row for a category change."""

    __tablename__ = "category_change_logs"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False, index=True)
    previous_category = Column(String, nullable=True)
    new_category = Column(String, nullable=False)
    user_id = Column(String, nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    transaction = relationship("Transaction", back_populates="category_changes")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
