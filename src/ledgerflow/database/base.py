"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Iterable
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerflow.domain.entities import (
    Account,
    CategorizationRule,
    CategoryChangeLog,
    Dialect,
    Transaction,
    TransactionDraft,
)


class Database(ABC):
    """Abstract database interface for ledgerflow.

    Write methods commit immediately unless called inside ``transaction()``,
    in which case they only flush and the outermost block commits or rolls
    back everything together.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Open an all-or-nothing unit of work.

        Store errors raised inside the block are re-raised as StoreFailure
        after rollback; any other exception is re-raised unchanged after
        rollback. Blocks nest; only the outermost one commits.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        user_id: str,
        name: str,
        kind: str,
        institution: Optional[str] = None,
        last_four: Optional[str] = None,
        color: Optional[str] = None,
        balance: Decimal = Decimal("0"),
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID, always reading the stored balance."""
        pass

    @abstractmethod
    def list_accounts(self, user_id: Optional[str] = None) -> list[Account]:
        """List accounts, optionally only those of one user."""
        pass

    @abstractmethod
    def adjust_account_balance(self, account_id: int, delta: Decimal) -> None:
        """Atomically add delta to the stored balance (SET balance = balance + delta)."""
        pass

    @abstractmethod
    def set_account_balance(self, account_id: int, balance: Decimal) -> None:
        """Overwrite the stored balance."""
        pass

    # Dialect operations
    @abstractmethod
    def create_dialect(self, dialect: Dialect) -> int:
        """Persist a user dialect. Returns dialect ID."""
        pass

    @abstractmethod
    def get_dialect_by_name(self, name: str) -> Optional[Dialect]:
        """Get a stored dialect by name (case-insensitive)."""
        pass

    @abstractmethod
    def list_dialects(self) -> list[Dialect]:
        """List stored dialects in creation order."""
        pass

    @abstractmethod
    def delete_dialect(self, name: str) -> bool:
        """Delete a stored dialect. Returns False if it did not exist."""
        pass

    # Staging operations
    @abstractmethod
    def create_staging_transaction(
        self,
        raw_data: str,
        amount: Decimal,
        type: str,
        category: str,
        description: str,
        date: date,
        user_id: str,
        source: str,
        account_id: Optional[int] = None,
        bank_name: Optional[str] = None,
        subcategory: Optional[str] = None,
        vendor: Optional[str] = None,
        original_description: Optional[str] = None,
    ) -> int:
        """Create a staged draft. Returns draft ID."""
        pass

    @abstractmethod
    def get_staging_transaction(self, staging_id: int) -> Optional[TransactionDraft]:
        """Get a staged draft by ID."""
        pass

    @abstractmethod
    def list_staging_transactions(
        self, user_id: str, ids: Optional[Iterable[int]] = None
    ) -> list[TransactionDraft]:
        """List a user's drafts, most recent date first, optionally limited to ids."""
        pass

    @abstractmethod
    def update_staging_transaction(self, staging_id: int, **fields) -> None:
        """Update editable draft fields (category, subcategory, vendor, description)."""
        pass

    @abstractmethod
    def delete_staging_transactions(self, ids: Iterable[int], user_id: str) -> int:
        """Delete the user's drafts among ids. Returns the number deleted."""
        pass

    # Ledger operations
    @abstractmethod
    def create_transaction(
        self,
        amount: Decimal,
        type: str,
        category: str,
        description: str,
        date: date,
        user_id: str,
        source: str,
        account_id: Optional[int] = None,
        bank_name: Optional[str] = None,
        subcategory: Optional[str] = None,
        vendor: Optional[str] = None,
        original_description: Optional[str] = None,
    ) -> int:
        """Create a ledger transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get ledger transaction by ID (including soft-deleted)."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        user_id: Optional[str] = None,
        account_id: Optional[int] = None,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        """List ledger transactions, newest first."""
        pass

    @abstractmethod
    def find_matching_transaction(
        self,
        user_id: str,
        date: date,
        description: str,
        amount: Decimal,
        account_id: Optional[int],
    ) -> Optional[Transaction]:
        """Find a live transaction with the same dedup key."""
        pass

    @abstractmethod
    def update_transaction_category(
        self, transaction_id: int, category: str, subcategory: Optional[str] = None
    ) -> None:
        """Update transaction category."""
        pass

    @abstractmethod
    def soft_delete_transaction(self, transaction_id: int, deleted_at: datetime) -> None:
        """Mark a transaction deleted."""
        pass

    # Categorization rule operations
    @abstractmethod
    def create_rule(
        self,
        user_id: str,
        pattern: str,
        vendor: str,
        category: str,
        subcategory: Optional[str] = None,
        scope: Optional[str] = None,
        confidence: float = 0.8,
        user_defined: bool = True,
        use_count: int = 1,
    ) -> int:
        """Create a categorization rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_rule(self, rule_id: int) -> Optional[CategorizationRule]:
        """Get categorization rule by ID."""
        pass

    @abstractmethod
    def list_rules(self, user_id: str) -> list[CategorizationRule]:
        """List a user's rules in creation order."""
        pass

    @abstractmethod
    def update_rule(self, rule_id: int, **fields) -> None:
        """Update rule fields."""
        pass

    @abstractmethod
    def delete_rule(self, rule_id: int) -> None:
        """Delete a rule."""
        pass

    @abstractmethod
    def record_rule_usage(self, rule_ids: Iterable[int], used_at: datetime) -> None:
        """Atomically increment use_count and set last_used for each rule."""
        pass

    # Category change log operations
    @abstractmethod
    def create_category_change_log(
        self,
        transaction_id: int,
        previous_category: Optional[str],
        new_category: str,
        user_id: str,
    ) -> int:
        """Append a category change. Returns log ID."""
        pass

    @abstractmethod
    def list_category_change_logs(
        self, transaction_id: Optional[int] = None, user_id: Optional[str] = None
    ) -> list[CategoryChangeLog]:
        """List change logs, oldest first."""
        pass
