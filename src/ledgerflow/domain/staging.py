"""Staging store: drafts awaiting review before they reach the ledger."""

import logging
from typing import Iterable, Optional

from ledgerflow.database.base import Database
from ledgerflow.domain.categorization import fallback_category
from ledgerflow.domain.duplicates import DuplicateDetector
from ledgerflow.domain.entities import DraftFields, TransactionDraft
from ledgerflow.domain.errors import (
    DuplicateTransactionError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
    not_authorized,
)
from ledgerflow.utils.amount_parser import to_magnitude
from ledgerflow.utils.text import (
    collapse_whitespace,
    normalize_category,
    normalize_description,
    normalize_optional,
    title_case,
)

logger = logging.getLogger(__name__)


class StagingService:
    """Service for staged transaction drafts."""

    def __init__(self, db: Database):
        """Initialize staging service.

        Args:
            db: Database instance
        """
        self.db = db
        self.duplicates = DuplicateDetector(db)

    def create(
        self,
        raw_row: str,
        fields: DraftFields,
        user_id: str,
        account_id: Optional[int],
        source: str,
        bank_name: Optional[str] = None,
        reject_duplicates: bool = False,
    ) -> TransactionDraft:
        """Persist a draft built from normalized fields.

        Args:
            raw_row: Verbatim source text of the row
            fields: Normalized fields
            user_id: Owner of the draft
            account_id: Account the draft will be committed to, if any
            source: Where the draft came from ('csv', 'manual', ...)
            bank_name: Optional bank name
            reject_duplicates: Refuse a draft already present in the ledger

        Returns:
            The stored draft

        Raises:
            ValidationError: If the description is empty
            DuplicateTransactionError: If reject_duplicates is set and the
                draft matches a live ledger transaction
        """
        description = normalize_description(fields.description)
        if not description:
            raise ValidationError("Transaction description cannot be empty")
        category = normalize_category(fields.category) or fallback_category(description)
        amount = to_magnitude(fields.amount)

        if reject_duplicates:
            match = self.duplicates.find_match(
                user_id, fields.date, description, amount, account_id
            )
            if match is not None:
                raise DuplicateTransactionError(
                    f"Transaction already in ledger as #{match.id}: "
                    f"{fields.date} {description} {amount}"
                )

        draft_id = self.db.create_staging_transaction(
            raw_data=raw_row,
            amount=amount,
            type=fields.type.value,
            category=category,
            subcategory=normalize_optional(fields.subcategory),
            vendor=collapse_whitespace(fields.vendor) or None,
            description=description,
            original_description=collapse_whitespace(fields.original_description) or None,
            date=fields.date,
            user_id=user_id,
            account_id=account_id,
            source=collapse_whitespace(source).lower() or "manual",
            bank_name=normalize_optional(bank_name),
        )
        return self.db.get_staging_transaction(draft_id)

    def list(self, user_id: str) -> list[TransactionDraft]:
        """List the user's drafts, most recent date first."""
        return self.db.list_staging_transactions(user_id)

    def get(self, draft_id: int, user_id: str) -> TransactionDraft:
        """Get one of the user's drafts.

        Raises:
            NotFoundError: If the draft does not exist
            NotAuthorizedError: If it belongs to another user
        """
        draft = self.db.get_staging_transaction(draft_id)
        if draft is None:
            raise NotFoundError(f"Staged transaction {draft_id} not found")
        if draft.user_id != user_id:
            raise NotAuthorizedError(not_authorized("staged transaction", draft_id))
        return draft

    def discard(self, ids: Iterable[int], user_id: str) -> int:
        """Delete the user's drafts among ids; other ids are ignored.

        Returns:
            Number of drafts deleted
        """
        ids = list(ids)
        if not ids:
            return 0
        deleted = self.db.delete_staging_transactions(ids, user_id)
        logger.info("Discarded %d of %d staged transactions", deleted, len(ids))
        return deleted

    def update(
        self,
        draft_id: int,
        user_id: str,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        vendor: Optional[str] = None,
        description: Optional[str] = None,
    ) -> TransactionDraft:
        """Edit a draft during review. Only the given fields change."""
        self.get(draft_id, user_id)
        fields = {}
        if category is not None:
            fields["category"] = normalize_category(category)
            if not fields["category"]:
                raise ValidationError("Category cannot be empty")
        if subcategory is not None:
            fields["subcategory"] = normalize_optional(subcategory)
        if vendor is not None:
            fields["vendor"] = collapse_whitespace(vendor) or None
        if description is not None:
            fields["description"] = title_case(description)
            if not fields["description"]:
                raise ValidationError("Transaction description cannot be empty")
        if fields:
            self.db.update_staging_transaction(draft_id, **fields)
        return self.db.get_staging_transaction(draft_id)
