"""CSV import domain service."""

import csv
import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Iterator, Optional

from ledgerflow.database.base import Database
from ledgerflow.domain.account import AccountService
from ledgerflow.domain.categorization import (
    DEFAULT_CATEGORY,
    CategorizationService,
    fallback_category,
)
from ledgerflow.domain.dialects import DialectService
from ledgerflow.domain.duplicates import DuplicateDetector
from ledgerflow.domain.entities import Account, Dialect, DraftFields, ImportResult, RowError
from ledgerflow.domain.errors import MissingFieldError, RowParseError, ValidationError
from ledgerflow.domain.normalizer import normalize_row
from ledgerflow.domain.staging import StagingService

logger = logging.getLogger(__name__)

DELIMITERS = ",;\t|"
SNIFF_BYTES = 4096


class _LineRecorder:
    """Iterate file lines while keeping the text of the current record."""

    def __init__(self, lines: Iterable[str]):
        self._lines = iter(lines)
        self.buffer: list[str] = []

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        line = next(self._lines)
        self.buffer.append(line)
        return line

    def take(self) -> str:
        """Return the recorded record text and start a new record."""
        text = "".join(self.buffer).strip("\r\n")
        self.buffer = []
        return text


def sniff_delimiter(sample: str) -> str:
    """Guess the delimiter among comma, semicolon, tab and pipe."""
    try:
        return csv.Sniffer().sniff(sample, delimiters=DELIMITERS).delimiter
    except csv.Error:
        return ","


def read_headers(csv_file_path: str) -> list[str]:
    """Read the header row of a CSV file."""
    with open(csv_file_path, "r", encoding="utf-8-sig", newline="") as f:
        delimiter = sniff_delimiter(f.read(SNIFF_BYTES))
        f.seek(0)
        return next(csv.reader(f, delimiter=delimiter), [])


class CSVImportService:
    """Service for importing bank CSV exports into staging."""

    def __init__(self, db: Database):
        """Initialize CSV import service.

        Args:
            db: Database instance
        """
        self.db = db
        self.account_service = AccountService(db)
        self.dialect_service = DialectService(db)
        self.categorization = CategorizationService(db)
        self.duplicates = DuplicateDetector(db)
        self.staging = StagingService(db)

    def detect_dialect(self, csv_file_path: str) -> Dialect:
        """Detect which dialect a CSV file uses from its header row.

        Raises:
            FileNotFoundError: If the file does not exist
            FormatNotDetectedError: If no dialect matches
        """
        if not Path(csv_file_path).exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")
        return self.dialect_service.build_registry().detect(read_headers(csv_file_path))

    def import_file(
        self,
        csv_file_path: str,
        user_id: str,
        account_id: int,
        dialect_name: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ImportResult:
        """Import a CSV file into staging for review.

        Rows that cannot be parsed and rows already in the ledger are skipped
        and reported; everything else becomes a staged draft.

        Args:
            csv_file_path: Path to CSV file
            user_id: User importing the file
            account_id: Account the statement belongs to
            dialect_name: Dialect to use; detected from the headers if None
            cancel: Event that stops the import when set. Drafts staged by
                this run are discarded.

        Returns:
            ImportResult with drafts, skipped duplicates and row errors

        Raises:
            AccountNotFoundError: If the account does not exist
            NotAuthorizedError: If the account belongs to another user
            FileNotFoundError: If CSV file doesn't exist
            NotFoundError: If dialect_name is not registered
            FormatNotDetectedError: If no dialect matches the headers
            ValidationError: If the file has no header row
        """
        account = self.account_service.get_owned_account(account_id, user_id)

        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        registry = self.dialect_service.build_registry()
        drafts = []
        duplicates: list[RowError] = []
        errors: list[RowError] = []

        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            delimiter = sniff_delimiter(f.read(SNIFF_BYTES))
            f.seek(0)

            recorder = _LineRecorder(f)
            reader = csv.DictReader(recorder, delimiter=delimiter)
            if reader.fieldnames is None:
                raise ValidationError(f"CSV file has no header row: {csv_file_path}")
            recorder.take()

            if dialect_name is not None:
                dialect = registry.get(dialect_name)
            else:
                dialect = registry.detect(reader.fieldnames)
            logger.info("Importing %s as %s into account %d", csv_path.name, dialect.name, account.id)

            for row_num, row in enumerate(reader, start=2):  # Start at 2 (header is row 1)
                raw_row = recorder.take()
                if cancel is not None and cancel.is_set():
                    discarded = self.staging.discard([d.id for d in drafts], user_id)
                    logger.info("Import cancelled at row %d; discarded %d drafts", row_num, discarded)
                    return ImportResult(
                        dialect_name=dialect.name,
                        duplicates=duplicates,
                        errors=errors,
                        cancelled=True,
                    )

                try:
                    fields = normalize_row(row, dialect, account.kind)
                except MissingFieldError as e:
                    logger.info("Row %d skipped: %s", row_num, e)
                    errors.append(RowError(row_num=row_num, reason=str(e), raw_row=raw_row))
                    continue
                except RowParseError as e:
                    logger.warning("Row %d skipped: %s", row_num, e)
                    errors.append(RowError(row_num=row_num, reason=str(e), raw_row=raw_row))
                    continue

                if self.duplicates.find_match(
                    user_id, fields.date, fields.description, fields.amount, account.id
                ) is not None:
                    logger.info("Row %d skipped: already in ledger", row_num)
                    duplicates.append(
                        RowError(row_num=row_num, reason="Duplicate transaction", raw_row=raw_row)
                    )
                    continue

                fields = self._categorize(fields, user_id, account)
                drafts.append(
                    self.staging.create(
                        raw_row=raw_row,
                        fields=fields,
                        user_id=user_id,
                        account_id=account.id,
                        source="csv",
                        bank_name=account.institution or dialect.name,
                    )
                )

        logger.info(
            "Staged %d transactions from %s (%d duplicates, %d errors)",
            len(drafts),
            csv_path.name,
            len(duplicates),
            len(errors),
        )
        return ImportResult(
            dialect_name=dialect.name,
            drafts=drafts,
            duplicates=duplicates,
            errors=errors,
        )

    def _categorize(self, fields: DraftFields, user_id: str, account: Account) -> DraftFields:
        """Pick category and vendor: user rules, then the export, then keywords."""
        result = self.categorization.categorize(
            user_id, fields.original_description or fields.description, str(account.id)
        )
        best = result.best_category
        if best is not None:
            vendor = result.best_vendor.vendor if result.best_vendor else None
            return replace(fields, category=best.category, subcategory=best.subcategory, vendor=vendor)
        if fields.category_provided:
            return fields
        keyword_category = fallback_category(fields.description)
        if keyword_category != DEFAULT_CATEGORY:
            return replace(fields, category=keyword_category)
        return fields
