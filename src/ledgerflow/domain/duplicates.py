"""Duplicate detection against the committed ledger."""

from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerflow.database.base import Database
from ledgerflow.domain.entities import DuplicateGroup, Transaction, TransactionDraft
from ledgerflow.utils.amount_parser import to_magnitude


def dedup_key(item: Transaction | TransactionDraft) -> tuple[date, str, Decimal, Optional[int]]:
    """Identity of a transaction for duplicate purposes."""
    return (item.date, item.description, to_magnitude(item.amount), item.account_id)


class DuplicateDetector:
    """Read-only checks for transactions already in the ledger."""

    def __init__(self, db: Database):
        """Initialize duplicate detector.

        Args:
            db: Database instance
        """
        self.db = db

    def find_match(
        self,
        user_id: str,
        txn_date: date,
        description: str,
        amount: Decimal,
        account_id: Optional[int],
    ) -> Optional[Transaction]:
        """Return the live ledger transaction with this key, if any."""
        return self.db.find_matching_transaction(
            user_id=user_id,
            date=txn_date,
            description=description,
            amount=to_magnitude(amount),
            account_id=account_id,
        )

    def is_duplicate(self, candidate: Transaction | TransactionDraft, user_id: str) -> bool:
        """Check whether a draft (or transaction) is already in the user's ledger.

        Two transactions are the same when they share calendar date, amount,
        description and account. Soft-deleted transactions do not count.
        """
        match = self.find_match(
            user_id,
            candidate.date,
            candidate.description,
            candidate.amount,
            candidate.account_id,
        )
        if match is None:
            return False
        # A committed transaction is not a duplicate of itself
        return not (isinstance(candidate, Transaction) and match.id == candidate.id)

    def find_duplicates(
        self, user_id: str, account_id: Optional[int] = None
    ) -> list[DuplicateGroup]:
        """Group live ledger transactions sharing a key.

        Returns:
            One group per key with more than one transaction; the lowest id
            is the original. Groups are ordered by their original's id.
        """
        groups: dict[tuple, list[Transaction]] = {}
        for txn in self.db.list_transactions(user_id=user_id, account_id=account_id):
            groups.setdefault(dedup_key(txn), []).append(txn)

        result = []
        for key, members in groups.items():
            if len(members) < 2:
                continue
            members.sort(key=lambda t: t.id)
            result.append(DuplicateGroup(key=key, original=members[0], duplicates=members[1:]))
        result.sort(key=lambda g: g.original.id)
        return result
