"""Category change history and the rules it suggests."""

import logging
from typing import Optional

from ledgerflow.database.base import Database
from ledgerflow.domain.categorization import SUGGESTED_CONFIDENCE, CategorizationService
from ledgerflow.domain.entities import (
    CategorizationRule,
    CategoryChangeLog,
    CategoryChangePattern,
    CategoryChangeReport,
)
from ledgerflow.domain.errors import (
    NotAuthorizedError,
    NotFoundError,
    not_authorized,
    transaction_not_found,
)
from ledgerflow.utils.text import title_case

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 4


class AuditService:
    """Service for reading and mining the category change log."""

    def __init__(self, db: Database):
        """Initialize audit service.

        Args:
            db: Database instance
        """
        self.db = db
        self.categorization = CategorizationService(db)

    def history(self, transaction_id: int, user_id: str) -> list[CategoryChangeLog]:
        """Category changes of one transaction, oldest first.

        Raises:
            NotFoundError: If the transaction does not exist
            NotAuthorizedError: If it belongs to another user
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        if txn.user_id != user_id:
            raise NotAuthorizedError(not_authorized("transaction", transaction_id))
        return self.db.list_category_change_logs(transaction_id=transaction_id)

    def analyze(self, user_id: Optional[str] = None, min_occurrences: int = 3) -> CategoryChangeReport:
        """Group category changes and derive keyword suggestions.

        Changes are grouped by (description, previous, new) and sorted most
        frequent first. Groups seen at least min_occurrences times contribute
        their description words longer than three characters, uppercased, as
        keywords for the new category.

        Args:
            user_id: Only analyze this user's changes (all users if None)
            min_occurrences: Group size needed before keywords are suggested

        Returns:
            CategoryChangeReport
        """
        logs = self.db.list_category_change_logs(user_id=user_id)

        descriptions: dict[int, str] = {}
        counts: dict[tuple[str, Optional[str], str], int] = {}
        for log in logs:
            if log.transaction_id not in descriptions:
                txn = self.db.get_transaction(log.transaction_id)
                descriptions[log.transaction_id] = txn.description if txn is not None else ""
            key = (descriptions[log.transaction_id], log.previous_category, log.new_category)
            counts[key] = counts.get(key, 0) + 1

        patterns = [
            CategoryChangePattern(
                description=description,
                previous_category=previous,
                new_category=new,
                count=count,
            )
            for (description, previous, new), count in counts.items()
        ]
        # Stable sort keeps first-seen order among equal counts
        patterns.sort(key=lambda p: -p.count)

        suggestions: dict[str, list[str]] = {}
        for pattern in patterns:
            if pattern.count < min_occurrences:
                continue
            keywords = suggestions.setdefault(pattern.new_category, [])
            for word in pattern.description.upper().split():
                if len(word) >= MIN_KEYWORD_LENGTH and word not in keywords:
                    keywords.append(word)

        return CategoryChangeReport(
            total_changes=len(logs),
            patterns=patterns,
            keyword_suggestions=suggestions,
        )

    def apply_suggestions(self, user_id: str, min_occurrences: int = 3) -> list[CategorizationRule]:
        """Turn keyword suggestions into implicit rules for the user.

        Keywords that already have a rule with the same pattern are skipped.

        Returns:
            The rules created
        """
        report = self.analyze(user_id=user_id, min_occurrences=min_occurrences)
        existing = {rule.pattern.lower() for rule in self.db.list_rules(user_id)}

        created = []
        for category, keywords in report.keyword_suggestions.items():
            for keyword in keywords:
                if keyword.lower() in existing:
                    continue
                rule = self.categorization.add_rule(
                    user_id=user_id,
                    pattern=keyword,
                    vendor=title_case(keyword),
                    category=category,
                    confidence=SUGGESTED_CONFIDENCE,
                    user_defined=False,
                )
                existing.add(keyword.lower())
                created.append(rule)
        logger.info("Created %d suggested rules for user %s", len(created), user_id)
        return created
