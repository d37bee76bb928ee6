"""Shared pytest fixtures for ledgerflow tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
import pytest

from ledgerflow.database.factories import create_sqlite_database
from ledgerflow.domain.account import AccountService
from ledgerflow.domain.audit import AuditService
from ledgerflow.domain.categorization import CategorizationService
from ledgerflow.domain.csv_import import CSVImportService
from ledgerflow.domain.dialects import DialectService
from ledgerflow.domain.entities import DraftFields, TransactionType
from ledgerflow.domain.ledger import LedgerService
from ledgerflow.domain.staging import StagingService

USER = "user-1"
OTHER_USER = "user-2"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def user_id():
    return USER


@pytest.fixture
def other_user_id():
    return OTHER_USER


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def dialect_service(temp_db):
    """Create a DialectService with a temporary database."""
    return DialectService(temp_db)


@pytest.fixture
def categorization_service(temp_db):
    """Create a CategorizationService with a temporary database."""
    return CategorizationService(temp_db)


@pytest.fixture
def staging_service(temp_db):
    """Create a StagingService with a temporary database."""
    return StagingService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def audit_service(temp_db):
    """Create an AuditService with a temporary database."""
    return AuditService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create a CSVImportService with a temporary database."""
    return CSVImportService(temp_db)


@pytest.fixture
def checking_account(account_service):
    """Checking account opened with 1000.00."""
    account_id = account_service.create_account(
        user_id=USER,
        name="Everyday Checking",
        kind="checking",
        institution="Chase",
        balance=Decimal("1000.00"),
    )
    return account_service.get_account(account_id)


@pytest.fixture
def credit_account(account_service):
    """Credit card account with nothing owed."""
    account_id = account_service.create_account(
        user_id=USER, name="Blue Cash", kind="credit", institution="American Express"
    )
    return account_service.get_account(account_id)


@pytest.fixture
def make_fields():
    """Build DraftFields with sensible defaults."""

    def _make(
        description="Grocery Store",
        amount="50.00",
        txn_type=TransactionType.EXPENSE,
        txn_date=date(2024, 1, 15),
        category="Groceries",
        **extra,
    ):
        return DraftFields(
            date=txn_date,
            amount=Decimal(amount),
            type=txn_type,
            description=description,
            original_description=extra.pop("original_description", description.upper()),
            category=category,
            **extra,
        )

    return _make


@pytest.fixture
def stage(staging_service, make_fields):
    """Stage a draft for USER and return it."""

    def _stage(account_id=None, user_id=USER, raw_row="raw", **kwargs):
        return staging_service.create(
            raw_row=raw_row,
            fields=make_fields(**kwargs),
            user_id=user_id,
            account_id=account_id,
            source="csv",
        )

    return _stage


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
