"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the schema can change without
the services noticing.
"""

import json
from decimal import Decimal

from ledgerflow.domain import entities as domain
from ledgerflow.database.models import (
    Account as ORMAccount,
    Dialect as ORMDialect,
    StagingTransaction as ORMStagingTransaction,
    Transaction as ORMTransaction,
    CategorizationRule as ORMCategorizationRule,
    CategoryChangeLog as ORMCategoryChangeLog,
)


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(value).quantize(Decimal("0.01"))


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        kind=domain.AccountKind.parse(orm_account.kind),
        institution=orm_account.institution,
        last_four=orm_account.last_four,
        color=orm_account.color,
        balance=_money(orm_account.balance),
        opening_balance=_money(orm_account.opening_balance),
        user_id=orm_account.user_id,
        created_at=orm_account.created_at,
    )


def dialect_to_domain(orm_dialect: ORMDialect) -> domain.Dialect:
    """Convert SQLAlchemy Dialect model to domain Dialect entity."""
    return domain.Dialect(
        name=orm_dialect.name,
        column_mapping=domain.ColumnMapping(
            date=orm_dialect.date_column,
            description=orm_dialect.description_column,
            amount=orm_dialect.amount_column,
            category=orm_dialect.category_column,
            account_number=orm_dialect.account_number_column,
        ),
        detection_headers=frozenset(json.loads(orm_dialect.detection_headers)),
        date_format=orm_dialect.date_format,
        amount_sign=domain.AmountSign(orm_dialect.amount_sign),
        builtin=False,
    )


def staging_to_domain(orm_staging: ORMStagingTransaction) -> domain.TransactionDraft:
    """Convert SQLAlchemy StagingTransaction model to domain TransactionDraft."""
    return domain.TransactionDraft(
        id=orm_staging.id,
        raw_row=orm_staging.raw_data,
        amount=_money(orm_staging.amount),
        type=domain.TransactionType(orm_staging.type),
        category=orm_staging.category,
        subcategory=orm_staging.subcategory,
        vendor=orm_staging.vendor,
        description=orm_staging.description,
        original_description=orm_staging.original_description,
        date=orm_staging.date,
        user_id=orm_staging.user_id,
        account_id=orm_staging.account_id,
        source=orm_staging.source,
        bank_name=orm_staging.bank_name,
        created_at=orm_staging.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        amount=_money(orm_transaction.amount),
        type=domain.TransactionType(orm_transaction.type),
        category=orm_transaction.category,
        subcategory=orm_transaction.subcategory,
        vendor=orm_transaction.vendor,
        description=orm_transaction.description,
        original_description=orm_transaction.original_description,
        date=orm_transaction.date,
        user_id=orm_transaction.user_id,
        account_id=orm_transaction.account_id,
        source=orm_transaction.source,
        bank_name=orm_transaction.bank_name,
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
        deleted_at=orm_transaction.deleted_at,
    )


def rule_to_domain(orm_rule: ORMCategorizationRule) -> domain.CategorizationRule:
    """Convert SQLAlchemy CategorizationRule model to domain entity."""
    return domain.CategorizationRule(
        id=orm_rule.id,
        user_id=orm_rule.user_id,
        pattern=orm_rule.pattern,
        vendor=orm_rule.vendor,
        category=orm_rule.category,
        subcategory=orm_rule.subcategory,
        scope=orm_rule.scope,
        confidence=float(orm_rule.confidence),
        user_defined=bool(orm_rule.user_defined),
        use_count=orm_rule.use_count,
        last_used=orm_rule.last_used,
        created_at=orm_rule.created_at,
    )


def change_log_to_domain(orm_log: ORMCategoryChangeLog) -> domain.CategoryChangeLog:
    """Convert SQLAlchemy CategoryChangeLog model to domain entity."""
    return domain.CategoryChangeLog(
        id=orm_log.id,
        transaction_id=orm_log.transaction_id,
        previous_category=orm_log.previous_category,
        new_category=orm_log.new_category,
        user_id=orm_log.user_id,
        timestamp=orm_log.timestamp,
    )
