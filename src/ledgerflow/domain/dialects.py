"""CSV dialect registry and the service persisting user dialects."""

import logging
from typing import Iterable, Optional

from ledgerflow.database.base import Database
from ledgerflow.domain.entities import AmountSign, ColumnMapping, Dialect
from ledgerflow.domain.errors import (
    ConflictError,
    FormatNotDetectedError,
    NotFoundError,
    ValidationError,
    dialect_not_found,
    format_not_detected,
)

logger = logging.getLogger(__name__)


def _fold(header: str) -> str:
    return header.strip().lower()


BUILTIN_DIALECTS: tuple[Dialect, ...] = (
    Dialect(
        name="Amex",
        column_mapping=ColumnMapping(
            date="Date",
            description="Description",
            amount="Amount",
            category="Category",
            account_number="Account #",
        ),
        detection_headers=frozenset({"Date", "Description", "Card Member", "Account #", "Amount"}),
        date_format="%m/%d/%Y",
        builtin=True,
    ),
    Dialect(
        name="Chase Credit",
        column_mapping=ColumnMapping(
            date="Transaction Date",
            description="Description",
            amount="Amount",
            category="Category",
        ),
        detection_headers=frozenset(
            {"Transaction Date", "Post Date", "Description", "Category", "Type", "Amount"}
        ),
        date_format="%m/%d/%Y",
        builtin=True,
    ),
    Dialect(
        name="Chase Checking",
        column_mapping=ColumnMapping(
            date="Posting Date",
            description="Description",
            amount="Amount",
        ),
        detection_headers=frozenset(
            {"Details", "Posting Date", "Description", "Amount", "Type", "Balance"}
        ),
        date_format="%m/%d/%Y",
        builtin=True,
    ),
    Dialect(
        name="Bank of America",
        column_mapping=ColumnMapping(
            date="Date",
            description="Description",
            amount="Amount",
        ),
        detection_headers=frozenset({"Date", "Description", "Amount", "Running Bal."}),
        date_format="%m/%d/%Y",
        builtin=True,
    ),
    Dialect(
        name="Generic",
        column_mapping=ColumnMapping(
            date="Date",
            description="Description",
            amount="Amount",
            category="Category",
        ),
        detection_headers=frozenset({"Date", "Description", "Amount"}),
        date_format=None,
        builtin=True,
    ),
)


def validate_dialect(dialect: Dialect) -> None:
    """Check a dialect is usable before registering it.

    Raises:
        ValidationError: If the name or detection headers are empty, or a
            required mapped column is not among the detection headers
    """
    if not dialect.name or not dialect.name.strip():
        raise ValidationError("Dialect name cannot be empty")
    if not dialect.detection_headers:
        raise ValidationError(f"Dialect '{dialect.name}' needs at least one detection header")
    detection = {_fold(h) for h in dialect.detection_headers}
    mapping = dialect.column_mapping
    required = [mapping.date, mapping.description, mapping.amount]
    missing = [col for col in required if _fold(col) not in detection]
    if missing:
        raise ValidationError(
            f"Dialect '{dialect.name}' maps columns missing from its detection headers: "
            + ", ".join(missing)
        )


class DialectRegistry:
    """Ordered set of named dialects with header-based detection.

    Detection picks, among dialects whose detection headers all appear in
    the file, the one with the most detection headers; ties go to the name
    that sorts first. The outcome does not depend on registration order.
    """

    def __init__(self, dialects: Iterable[Dialect] = ()):
        self._dialects: list[Dialect] = []
        for dialect in dialects:
            self.register(dialect)

    def register(self, dialect: Dialect) -> None:
        """Add a dialect.

        Raises:
            ConflictError: If a dialect with the same name (any case) exists
            ValidationError: If the dialect is malformed
        """
        validate_dialect(dialect)
        if self.find(dialect.name) is not None:
            raise ConflictError(f"CSV dialect '{dialect.name}' is already registered")
        self._dialects.append(dialect)

    def find(self, name: str) -> Optional[Dialect]:
        """Return the dialect with this name (case-insensitive), or None."""
        folded = _fold(name)
        for dialect in self._dialects:
            if _fold(dialect.name) == folded:
                return dialect
        return None

    def get(self, name: str) -> Dialect:
        """Return the dialect with this name.

        Raises:
            NotFoundError: If no such dialect is registered
        """
        dialect = self.find(name)
        if dialect is None:
            raise NotFoundError(dialect_not_found(name))
        return dialect

    def names(self) -> list[str]:
        return [d.name for d in self._dialects]

    def __iter__(self):
        return iter(list(self._dialects))

    def __len__(self) -> int:
        return len(self._dialects)

    def candidates(self, headers: Iterable[str]) -> list[Dialect]:
        """Every dialect whose detection headers are present, best first."""
        present = {_fold(h) for h in headers if h is not None}
        matching = [
            d for d in self._dialects if {_fold(h) for h in d.detection_headers} <= present
        ]
        return sorted(matching, key=lambda d: (-len(d.detection_headers), _fold(d.name)))

    def detect(self, headers: Iterable[str]) -> Dialect:
        """Pick the dialect for a header row.

        Raises:
            FormatNotDetectedError: If no registered dialect matches
        """
        headers = list(headers)
        matching = self.candidates(headers)
        if not matching:
            raise FormatNotDetectedError(format_not_detected(headers))
        if len(matching) > 1:
            logger.debug(
                "Headers match %d dialects, using %s", len(matching), matching[0].name
            )
        return matching[0]


def default_registry() -> DialectRegistry:
    """Registry holding only the built-in dialects."""
    return DialectRegistry(BUILTIN_DIALECTS)


class DialectService:
    """Service for managing user-registered CSV dialects."""

    def __init__(self, db: Database):
        """Initialize dialect service.

        Args:
            db: Database instance
        """
        self.db = db

    def register_dialect(
        self,
        name: str,
        date_column: str,
        description_column: str,
        amount_column: str,
        detection_headers: Optional[Iterable[str]] = None,
        category_column: Optional[str] = None,
        account_number_column: Optional[str] = None,
        date_format: Optional[str] = None,
        amount_sign: AmountSign | str = AmountSign.NEGATIVE_IS_EXPENSE,
    ) -> Dialect:
        """Validate and persist a new dialect.

        When detection_headers is omitted, the mapped columns are used.

        Raises:
            ConflictError: If the name clashes with a built-in or stored dialect
            ValidationError: If the dialect is malformed
        """
        mapping = ColumnMapping(
            date=date_column,
            description=description_column,
            amount=amount_column,
            category=category_column,
            account_number=account_number_column,
        )
        headers = frozenset(detection_headers) if detection_headers else frozenset(mapping.columns())
        try:
            sign = AmountSign(amount_sign)
        except ValueError:
            valid = ", ".join(s.value for s in AmountSign)
            raise ValidationError(f"Invalid amount sign '{amount_sign}'. Must be one of: {valid}")
        dialect = Dialect(
            name=name.strip(),
            column_mapping=mapping,
            detection_headers=headers,
            date_format=date_format,
            amount_sign=sign,
        )

        # Registering into a full registry checks names against built-ins too
        self.build_registry().register(dialect)
        self.db.create_dialect(dialect)
        logger.info("Registered CSV dialect %s", dialect.name)
        return dialect

    def list_dialects(self) -> list[Dialect]:
        """List built-in dialects followed by stored ones."""
        return list(self.build_registry())

    def get_dialect(self, name: str) -> Dialect:
        return self.build_registry().get(name)

    def delete_dialect(self, name: str) -> None:
        """Delete a stored dialect.

        Raises:
            ValidationError: If the dialect is built in
            NotFoundError: If no stored dialect has this name
        """
        builtin = default_registry().find(name)
        if builtin is not None:
            raise ValidationError(f"Cannot delete built-in dialect '{builtin.name}'")
        if not self.db.delete_dialect(name):
            raise NotFoundError(dialect_not_found(name))

    def build_registry(self) -> DialectRegistry:
        """Registry of built-in dialects plus every stored dialect."""
        registry = default_registry()
        for dialect in self.db.list_dialects():
            registry.register(dialect)
        return registry
