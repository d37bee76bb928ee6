"""Import-to-ledger pipeline exposed to callers outside the package.

An HTTP layer or a script holds one ``LedgerPipeline`` per database
session and calls these methods with the authenticated user id.
"""

import threading
from decimal import Decimal
from typing import Iterable, Optional

from ledgerflow.database.base import Database
from ledgerflow.domain.csv_import import CSVImportService
from ledgerflow.domain.entities import ImportResult, Transaction, TransactionDraft
from ledgerflow.domain.ledger import LedgerService
from ledgerflow.domain.staging import StagingService


class LedgerPipeline:
    """File -> staging -> ledger, with balances kept in step."""

    def __init__(self, db: Database):
        self.db = db
        self.importer = CSVImportService(db)
        self.staging = StagingService(db)
        self.ledger = LedgerService(db)

    def import_file(
        self,
        path: str,
        user_id: str,
        account_id: int,
        dialect_name: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ImportResult:
        return self.importer.import_file(path, user_id, account_id, dialect_name, cancel)

    def review_staged(self, user_id: str) -> list[TransactionDraft]:
        return self.staging.list(user_id)

    def commit_staged(self, ids: Iterable[int], user_id: str) -> list[Transaction]:
        return self.ledger.commit(ids, user_id)

    def discard_staged(self, ids: Iterable[int], user_id: str) -> int:
        return self.staging.discard(ids, user_id)

    def recategorize(
        self,
        transaction_id: int,
        category: str,
        user_id: str,
        subcategory: Optional[str] = None,
        learn: bool = False,
    ) -> Transaction:
        return self.ledger.recategorize(transaction_id, category, user_id, subcategory, learn)

    def recalculate_balance(self, account_id: int) -> Decimal:
        return self.ledger.recalculate(account_id)
