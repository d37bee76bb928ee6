"""Commit coordinator and ledger maintenance.

Every method that touches more than one row runs inside a single
``Database.transaction()`` so a failure part way leaves the ledger, the
staging area and account balances exactly as they were.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from ledgerflow.database.base import Database
from ledgerflow.database.models import utcnow
from ledgerflow.domain.categorization import CategorizationService
from ledgerflow.domain.duplicates import DuplicateDetector
from ledgerflow.domain.entities import (
    Account,
    AccountKind,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from ledgerflow.domain.errors import (
    AccountNotFoundError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
    account_not_found,
    not_authorized,
    staged_not_found,
    transaction_not_found,
)
from ledgerflow.utils.text import normalize_category, normalize_optional

logger = logging.getLogger(__name__)


def balance_delta(amount: Decimal, txn_type: TransactionType, account_kind: AccountKind) -> Decimal:
    """Signed change a transaction makes to its account's balance.

    Income raises a checking/savings/investment balance and expenses lower
    it. Credit balances track what is owed, so the signs are reversed.
    """
    delta = amount if txn_type is TransactionType.INCOME else -amount
    if account_kind is AccountKind.CREDIT:
        delta = -delta
    return delta


class LedgerService:
    """Service for committing drafts and maintaining the ledger."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db
        self.duplicates = DuplicateDetector(db)
        self.categorization = CategorizationService(db)

    def _owned_account(self, account_id: int, user_id: str) -> Account:
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_not_found(account_id))
        if account.user_id != user_id:
            raise NotAuthorizedError(not_authorized("account", account_id))
        return account

    def commit(self, draft_ids: Iterable[int], user_id: str) -> list[Transaction]:
        """Move drafts into the ledger and update account balances.

        All drafts are committed in one unit of work. A draft that matches a
        live ledger transaction is skipped and stays staged. Ids that are not
        staged for the user are ignored, as in discard.

        Args:
            draft_ids: Staged transaction IDs
            user_id: Owner of the drafts

        Returns:
            The committed transactions, in the order requested

        Raises:
            AccountNotFoundError: If a draft's account no longer exists
            NotAuthorizedError: If a draft's account belongs to someone else
            StoreFailure: If the store fails; nothing is committed
        """
        requested = list(dict.fromkeys(draft_ids))
        if not requested:
            return []

        committed: list[Transaction] = []
        with self.db.transaction():
            drafts = {d.id: d for d in self.db.list_staging_transactions(user_id, requested)}
            missing = [i for i in requested if i not in drafts]
            if missing:
                logger.info("Ignoring ids for user %s: %s", user_id, staged_not_found(missing))

            for draft_id in requested:
                draft = drafts.get(draft_id)
                if draft is None:
                    continue
                if self.duplicates.is_duplicate(draft, user_id):
                    logger.info(
                        "Skipping staged transaction %d: already in ledger (%s %s %s)",
                        draft.id,
                        draft.date,
                        draft.description,
                        draft.amount,
                    )
                    continue
                committed.append(self._commit_draft(draft, user_id))

        logger.info("Committed %d of %d staged transactions", len(committed), len(requested))
        return committed

    def _commit_draft(self, draft: TransactionDraft, user_id: str) -> Transaction:
        account = None
        if draft.account_id is not None:
            account = self._owned_account(draft.account_id, user_id)

        transaction_id = self.db.create_transaction(
            amount=draft.amount,
            type=draft.type.value,
            category=draft.category,
            subcategory=draft.subcategory,
            vendor=draft.vendor,
            description=draft.description,
            original_description=draft.original_description,
            date=draft.date,
            user_id=user_id,
            account_id=draft.account_id,
            source=draft.source,
            bank_name=draft.bank_name,
        )

        if account is not None:
            delta = balance_delta(draft.amount, draft.type, account.kind)
            self.db.adjust_account_balance(account.id, delta)
            logger.debug("Account %d balance %+.2f", account.id, delta)

        self.db.delete_staging_transactions([draft.id], user_id)
        return self.db.get_transaction(transaction_id)

    def recalculate(self, account_id: int) -> Decimal:
        """Recompute an account balance from its opening balance and ledger.

        The stored balance is only written when it differs. Running it twice
        gives the same answer.

        Raises:
            AccountNotFoundError: If the account does not exist
        """
        with self.db.transaction():
            account = self.db.get_account(account_id)
            if account is None:
                raise AccountNotFoundError(account_not_found(account_id))

            balance = account.opening_balance
            for txn in self.db.list_transactions(account_id=account_id):
                balance += balance_delta(txn.amount, txn.type, account.kind)

            if balance != account.balance:
                logger.info(
                    "Account %d balance drifted: stored %s, ledger %s",
                    account_id,
                    account.balance,
                    balance,
                )
                self.db.set_account_balance(account_id, balance)
        return balance

    def get_transaction(self, transaction_id: int, user_id: str) -> Transaction:
        """Get one of the user's ledger transactions.

        Raises:
            NotFoundError: If the transaction does not exist
            NotAuthorizedError: If it belongs to another user
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        if txn.user_id != user_id:
            raise NotAuthorizedError(not_authorized("transaction", transaction_id))
        return txn

    def list_transactions(
        self,
        user_id: str,
        account_id: Optional[int] = None,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        return self.db.list_transactions(
            user_id=user_id, account_id=account_id, include_deleted=include_deleted
        )

    def remove_transaction(self, transaction_id: int, user_id: str) -> Transaction:
        """Soft-delete a ledger transaction and reverse its balance change.

        Raises:
            NotFoundError: If the transaction does not exist or is already deleted
            NotAuthorizedError: If it belongs to another user
        """
        with self.db.transaction():
            txn = self.get_transaction(transaction_id, user_id)
            if txn.is_deleted:
                raise NotFoundError(transaction_not_found(transaction_id))
            self.db.soft_delete_transaction(transaction_id, utcnow())
            if txn.account_id is not None:
                account = self.db.get_account(txn.account_id)
                if account is not None:
                    delta = balance_delta(txn.amount, txn.type, account.kind)
                    self.db.adjust_account_balance(account.id, -delta)
        logger.info("Removed transaction %d", transaction_id)
        return self.db.get_transaction(transaction_id)

    def remove_duplicates(self, user_id: str, account_id: Optional[int] = None) -> int:
        """Soft-delete every non-original member of each duplicate group.

        Returns:
            Number of transactions removed
        """
        removed = 0
        with self.db.transaction():
            for group in self.duplicates.find_duplicates(user_id, account_id):
                for txn in group.duplicates:
                    self.remove_transaction(txn.id, user_id)
                    removed += 1
        return removed

    def recategorize(
        self,
        transaction_id: int,
        new_category: str,
        user_id: str,
        subcategory: Optional[str] = None,
        learn: bool = False,
    ) -> Transaction:
        """Change a transaction's category and record the change.

        An unchanged category (and subcategory) writes nothing, and only a
        category change is logged. With learn, a rule is learned from the
        corrected transaction in the same unit of work.

        Raises:
            ValidationError: If the category is blank
            NotFoundError: If the transaction does not exist
            NotAuthorizedError: If it belongs to another user
        """
        category = normalize_category(new_category)
        if not category:
            raise ValidationError("Category cannot be empty")
        subcategory = normalize_optional(subcategory)

        with self.db.transaction():
            txn = self.get_transaction(transaction_id, user_id)
            if txn.category == category and (subcategory is None or txn.subcategory == subcategory):
                return txn

            self.db.update_transaction_category(
                transaction_id, category, subcategory if subcategory is not None else txn.subcategory
            )
            if txn.category != category:
                self.db.create_category_change_log(
                    transaction_id=transaction_id,
                    previous_category=txn.category,
                    new_category=category,
                    user_id=user_id,
                )
            updated = self.db.get_transaction(transaction_id)
            if learn:
                self.categorization.learn(updated)

        logger.info(
            "Recategorized transaction %d: %s -> %s", transaction_id, txn.category, category
        )
        return updated
