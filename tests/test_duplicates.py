"""Tests for duplicate detection."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import text

from ledgerflow.domain.duplicates import DuplicateDetector

from conftest import OTHER_USER, USER


@pytest.fixture
def detector(temp_db):
    return DuplicateDetector(temp_db)


@pytest.fixture
def legacy_db(temp_db):
    """Database without the live-row unique index, as data imported before it existed."""
    session = temp_db._get_session()
    session.execute(text("DROP INDEX uq_transaction_dedup_key"))
    session.commit()
    return temp_db


def _insert(db, description="Coffee", amount="4.50", txn_date=date(2024, 1, 15), account_id=None, user_id=USER):
    return db.create_transaction(
        amount=Decimal(amount),
        type="expense",
        category="Dining",
        description=description,
        date=txn_date,
        user_id=user_id,
        source="csv",
        account_id=account_id,
    )


def test_is_duplicate_matches_key(detector, temp_db, stage, checking_account):
    _insert(temp_db, description="Grocery Store", amount="50.00", account_id=checking_account.id)

    same = stage(account_id=checking_account.id)
    other_day = stage(account_id=checking_account.id, txn_date=date(2024, 1, 16))
    other_amount = stage(account_id=checking_account.id, amount="50.01")
    no_account = stage()

    assert detector.is_duplicate(same, USER)
    assert not detector.is_duplicate(other_day, USER)
    assert not detector.is_duplicate(other_amount, USER)
    assert not detector.is_duplicate(no_account, USER)
    assert not detector.is_duplicate(same, OTHER_USER)


def test_deleted_transactions_are_not_duplicates(detector, temp_db, stage):
    txn_id = _insert(temp_db, description="Grocery Store", amount="50.00")
    temp_db.soft_delete_transaction(txn_id, temp_db.get_transaction(txn_id).created_at)

    assert not detector.is_duplicate(stage(), USER)


def test_transaction_is_not_its_own_duplicate(detector, temp_db):
    txn = temp_db.get_transaction(_insert(temp_db))
    assert not detector.is_duplicate(txn, USER)


def test_find_duplicates_groups(legacy_db):
    first = _insert(legacy_db)
    second = _insert(legacy_db)
    third = _insert(legacy_db)
    _insert(legacy_db, description="Tea")
    _insert(legacy_db, user_id=OTHER_USER)

    groups = DuplicateDetector(legacy_db).find_duplicates(USER)

    assert len(groups) == 1
    assert groups[0].original.id == first
    assert [t.id for t in groups[0].duplicates] == [second, third]
    assert groups[0].key == (date(2024, 1, 15), "Coffee", Decimal("4.50"), None)


def test_find_duplicates_none(detector, temp_db):
    _insert(temp_db)
    _insert(temp_db, description="Tea")
    assert detector.find_duplicates(USER) == []
