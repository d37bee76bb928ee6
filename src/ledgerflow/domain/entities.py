"""Domain model entities for ledgerflow.

These are pure data classes representing business concepts, independent of
database schema. Services and the CLI only ever see these types; the
SQLAlchemy models stay behind the database layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

from ledgerflow.domain.errors import ValidationError


class AccountKind(str, Enum):
    """Kind of account, which decides how amount signs are read."""

    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"

    @classmethod
    def parse(cls, value: "str | AccountKind") -> "AccountKind":
        """Parse an account kind, accepting the legacy 'debit' alias."""
        if isinstance(value, AccountKind):
            return value
        normalized = value.strip().lower()
        if normalized == "debit":
            return cls.CHECKING
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(kind.value for kind in cls)
            raise ValidationError(f"Invalid account kind '{value}'. Must be one of: {valid}")


class TransactionType(str, Enum):
    """Direction of money for a transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class AmountSign(str, Enum):
    """How a bank export writes negative amounts."""

    NEGATIVE_IS_EXPENSE = "negative-is-expense"
    PARENTHESES_IS_EXPENSE = "parentheses-is-expense"


@dataclass(frozen=True)
class Account:
    """Bank account domain entity."""

    id: int
    name: str
    kind: AccountKind
    institution: Optional[str]
    last_four: Optional[str]
    color: Optional[str]
    balance: Decimal
    opening_balance: Decimal
    user_id: str
    created_at: datetime


@dataclass(frozen=True)
class ColumnMapping:
    """Which CSV columns hold which draft fields."""

    date: str
    description: str
    amount: str
    category: Optional[str] = None
    account_number: Optional[str] = None

    def columns(self) -> list[str]:
        """Return every mapped column name."""
        return [
            col
            for col in (self.date, self.description, self.amount, self.category, self.account_number)
            if col is not None
        ]


@dataclass(frozen=True)
class Dialect:
    """A named CSV convention used by one bank export."""

    name: str
    column_mapping: ColumnMapping
    detection_headers: frozenset[str]
    date_format: Optional[str] = None
    amount_sign: AmountSign = AmountSign.NEGATIVE_IS_EXPENSE
    builtin: bool = False


@dataclass(frozen=True)
class DraftFields:
    """Normalized fields produced from one CSV row."""

    date: date
    amount: Decimal
    type: TransactionType
    description: str
    original_description: str
    category: str
    category_provided: bool = True
    subcategory: Optional[str] = None
    vendor: Optional[str] = None
    account_number: Optional[str] = None


@dataclass(frozen=True)
class TransactionDraft:
    """Staged transaction awaiting review."""

    id: int
    raw_row: str
    amount: Decimal
    type: TransactionType
    category: str
    subcategory: Optional[str]
    vendor: Optional[str]
    description: str
    original_description: Optional[str]
    date: date
    user_id: str
    account_id: Optional[int]
    source: str
    bank_name: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Committed ledger transaction."""

    id: int
    amount: Decimal
    type: TransactionType
    category: str
    subcategory: Optional[str]
    vendor: Optional[str]
    description: str
    original_description: Optional[str]
    date: date
    user_id: str
    account_id: Optional[int]
    source: str
    bank_name: Optional[str]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(frozen=True)
class CategorizationRule:
    """Pattern-to-vendor/category mapping owned by one user."""

    id: int
    user_id: str
    pattern: str
    vendor: str
    category: str
    subcategory: Optional[str]
    scope: Optional[str]
    confidence: float
    user_defined: bool
    use_count: int
    last_used: Optional[datetime]
    created_at: datetime


@dataclass(frozen=True)
class CategoryChangeLog:
    """Append-only record of a category change."""

    id: int
    transaction_id: int
    previous_category: Optional[str]
    new_category: str
    user_id: str
    timestamp: datetime


@dataclass(frozen=True)
class VendorSuggestion:
    """Vendor proposed by a matching rule."""

    vendor: str
    confidence: float
    source: str


@dataclass(frozen=True)
class CategorySuggestion:
    """Category proposed by a matching rule."""

    category: str
    subcategory: Optional[str]
    confidence: float
    source: str


@dataclass(frozen=True)
class CategorizationResult:
    """Suggestions for one description, best first."""

    description: str
    vendors: list[VendorSuggestion] = field(default_factory=list)
    categories: list[CategorySuggestion] = field(default_factory=list)
    matched_rules: list[CategorizationRule] = field(default_factory=list)

    @property
    def best_category(self) -> Optional[CategorySuggestion]:
        return self.categories[0] if self.categories else None

    @property
    def best_vendor(self) -> Optional[VendorSuggestion]:
        return self.vendors[0] if self.vendors else None


@dataclass(frozen=True)
class RowError:
    """A CSV row that was skipped, with the reason."""

    row_num: int
    reason: str
    raw_row: str = ""

    def __str__(self) -> str:
        return f"Row {self.row_num}: {self.reason}"


@dataclass(frozen=True)
class ImportResult:
    """Outcome of importing one CSV file into staging."""

    dialect_name: str
    drafts: list[TransactionDraft] = field(default_factory=list)
    duplicates: list[RowError] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def imported(self) -> int:
        return len(self.drafts)

    @property
    def skipped(self) -> int:
        return len(self.duplicates) + len(self.errors)


@dataclass(frozen=True)
class DuplicateGroup:
    """Ledger transactions sharing one dedup key; the first is the original."""

    key: tuple[date, str, Decimal, Optional[int]]
    original: Transaction
    duplicates: list[Transaction]


@dataclass(frozen=True)
class CategoryChangePattern:
    """How often one description moved from one category to another."""

    description: str
    previous_category: Optional[str]
    new_category: str
    count: int


@dataclass(frozen=True)
class CategoryChangeReport:
    """Aggregated category corrections and the keywords they suggest."""

    total_changes: int
    patterns: list[CategoryChangePattern]
    keyword_suggestions: dict[str, list[str]]
