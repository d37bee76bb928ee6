"""Categorization engine: user rules, usage tracking, learning, keyword fallback."""

import logging
import re
from functools import lru_cache
from typing import Iterable, Optional

from ledgerflow.database.base import Database
from ledgerflow.database.models import utcnow
from ledgerflow.domain.entities import (
    CategorizationResult,
    CategorizationRule,
    CategorySuggestion,
    Transaction,
    TransactionDraft,
    VendorSuggestion,
)
from ledgerflow.domain.errors import (
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
    not_authorized,
    rule_not_found,
)
from ledgerflow.utils.text import collapse_whitespace, normalize_category, normalize_optional, title_case

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.8
SUGGESTED_CONFIDENCE = 0.5
DEFAULT_CATEGORY = "Other"

# Checked in order against the uppercased description; first hit wins.
# "UBER EATS" must stay ahead of "UBER".
KEYWORD_CATEGORIES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("WALMART", "TARGET", "COSTCO", "WALGREENS", "CVS"), "Retail"),
    (("STOP & SHOP", "KROGER", "ALDI", "TRADER JOE", "WHOLE FOODS", "SAFEWAY"), "Groceries"),
    (("AMAZON", "EBAY", "ETSY", "SHOPIFY", "ALIEXPRESS"), "Online Shopping"),
    (
        ("UBER EATS", "DOORDASH", "GRUBHUB", "MCDONALD", "STARBUCKS", "CHIPOTLE", "RESTAURANT", "PIZZA"),
        "Dining",
    ),
    (
        (
            "NETFLIX", "HULU", "DISNEY", "SPOTIFY", "APPLE MUSIC", "HBO",
            "PRIME VIDEO", "YOUTUBE", "OPENAI", "CHATGPT",
        ),
        "Subscription",
    ),
    (
        ("UBER", "LYFT", "TAXI", "TRANSIT", "SUBWAY", "BUS", "TRAIN", "AMTRAK", "AIRLINE", "FLIGHT"),
        "Transportation",
    ),
    (("RENT", "MORTGAGE", "APARTMENT", "HOUSING", "LEASE"), "Housing"),
    (("ELECTRIC", "GAS", "WATER", "INTERNET", "CABLE", "PHONE", "UTILITY"), "Utilities"),
    (("DOCTOR", "HOSPITAL", "PHARMACY", "MEDICAL", "HEALTH", "DENTAL", "VISION"), "Healthcare"),
    (("SCHOOL", "TUITION", "UNIVERSITY", "COLLEGE", "EDUCATION", "COURSE", "BOOK"), "Education"),
    (("GYM", "FITNESS", "SPORT", "EXERCISE"), "Fitness"),
    (("PAYCHECK", "SALARY", "DEPOSIT", "INCOME", "PAYMENT"), "Income"),
)


def fallback_category(description: Optional[str]) -> str:
    """Category from the static keyword table, or 'Other'."""
    upper = (description or "").upper()
    for keywords, category in KEYWORD_CATEGORIES:
        if any(keyword in upper for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern:
    """Compile a glob pattern: '*' is any run, '?' one character, the rest literal."""
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE)


def pattern_matches(pattern: str, text: str) -> bool:
    """True if the glob occurs anywhere in text, ignoring case."""
    return compile_pattern(pattern).search(text) is not None


def derive_pattern(description: str) -> str:
    """Generalize a description into a rule pattern (digit runs become '*')."""
    return collapse_whitespace(re.sub(r"[0-9]+", "*", description))


def derive_vendor(pattern: str) -> str:
    """Readable vendor name from a learned pattern."""
    words = [w for w in re.sub(r"[*?#]", " ", pattern).split() if w]
    return title_case(" ".join(words)) or title_case(pattern)


def _sort_key(rule: CategorizationRule):
    # Never-used rules sort after used ones
    recency = -rule.last_used.timestamp() if rule.last_used else float("inf")
    return (not rule.user_defined, -rule.confidence, -rule.use_count, recency)


def _validate_confidence(confidence: float) -> None:
    if not 0.0 <= confidence <= 1.0:
        raise ValidationError(f"Confidence must be between 0 and 1, got {confidence}")


class CategorizationService:
    """Service for a user's categorization rules.

    Rules live in the database and are loaded per call, so one service can
    be shared by workers handling different users.

    Note that ``categorize`` is read + update: every matched rule has its
    use count incremented and last-used time refreshed. Use ``suggest`` for
    a dry-run lookup.
    """

    def __init__(self, db: Database):
        """Initialize categorization service.

        Args:
            db: Database instance
        """
        self.db = db

    # Matching
    def matching_rules(
        self, user_id: str, description: str, account_scope: Optional[str] = None
    ) -> list[CategorizationRule]:
        """Rules matching the description and scope, best first."""
        if not description:
            return []
        matched = [
            rule
            for rule in self.db.list_rules(user_id)
            if pattern_matches(rule.pattern, description)
            and (rule.scope is None or rule.scope == account_scope)
        ]
        return sorted(matched, key=_sort_key)

    def suggest(
        self, user_id: str, description: str, account_scope: Optional[str] = None
    ) -> CategorizationResult:
        """Vendor and category suggestions without touching usage statistics."""
        matched = self.matching_rules(user_id, description, account_scope)

        vendors: dict[str, VendorSuggestion] = {}
        categories: dict[tuple[str, str], CategorySuggestion] = {}
        for rule in matched:
            source = "user" if rule.user_defined else "pattern"
            vendor_key = rule.vendor.lower()
            if vendor_key not in vendors:
                vendors[vendor_key] = VendorSuggestion(
                    vendor=rule.vendor, confidence=rule.confidence, source=source
                )
            category_key = (rule.category, rule.subcategory or "")
            if category_key not in categories:
                categories[category_key] = CategorySuggestion(
                    category=rule.category,
                    subcategory=rule.subcategory,
                    confidence=rule.confidence,
                    source=source,
                )

        return CategorizationResult(
            description=description,
            vendors=list(vendors.values()),
            categories=list(categories.values()),
            matched_rules=matched,
        )

    def record_usage(self, rule_ids: Iterable[int]) -> None:
        """Count one more use of each rule and stamp it as just used."""
        self.db.record_rule_usage(rule_ids, utcnow())

    def categorize(
        self, user_id: str, description: str, account_scope: Optional[str] = None
    ) -> CategorizationResult:
        """Suggest, then record usage of every matched rule."""
        result = self.suggest(user_id, description, account_scope)
        if result.matched_rules:
            self.record_usage(rule.id for rule in result.matched_rules)
        return result

    # Learning
    def learn(
        self,
        transaction: Transaction | TransactionDraft,
        vendor: Optional[str] = None,
        subcategory: Optional[str] = None,
        scoped: bool = False,
    ) -> Optional[CategorizationRule]:
        """Create (or refresh) a rule from a categorized transaction.

        The pattern is the original description with digit runs replaced by
        '*'. The rule applies to every account of the user unless scoped is
        set, which limits it to the transaction's account. An existing rule
        with the same pattern and scope is updated instead of duplicated.

        Returns:
            The new or updated rule, or None if the transaction has no description
        """
        description = transaction.original_description or transaction.description
        if not description or not description.strip():
            return None

        pattern = derive_pattern(description)
        scope = None
        if scoped and transaction.account_id is not None:
            scope = str(transaction.account_id)
        vendor = vendor or transaction.vendor or derive_vendor(pattern)
        subcategory = subcategory if subcategory is not None else transaction.subcategory

        for rule in self.db.list_rules(transaction.user_id):
            if rule.pattern.lower() == pattern.lower() and rule.scope == scope:
                self.db.update_rule(
                    rule.id,
                    vendor=vendor,
                    category=transaction.category,
                    subcategory=subcategory,
                    user_defined=True,
                )
                self.record_usage([rule.id])
                logger.info("Refreshed rule %d for pattern %r", rule.id, pattern)
                return self.db.get_rule(rule.id)

        rule = self.add_rule(
            user_id=transaction.user_id,
            pattern=pattern,
            vendor=vendor,
            category=transaction.category,
            subcategory=subcategory,
            scope=scope,
        )
        logger.info("Learned rule %d for pattern %r -> %s", rule.id, pattern, rule.category)
        return rule

    # Rule management
    def add_rule(
        self,
        user_id: str,
        pattern: str,
        vendor: str,
        category: str,
        subcategory: Optional[str] = None,
        scope: Optional[str] = None,
        confidence: float = DEFAULT_CONFIDENCE,
        user_defined: bool = True,
    ) -> CategorizationRule:
        """Create a rule.

        Raises:
            ValidationError: If pattern, vendor or category is blank, or the
                confidence is outside [0, 1]
        """
        pattern = collapse_whitespace(pattern)
        if not pattern:
            raise ValidationError("Rule pattern cannot be empty")
        vendor = collapse_whitespace(vendor)
        if not vendor:
            raise ValidationError("Rule vendor cannot be empty")
        category = normalize_category(category)
        if not category:
            raise ValidationError("Rule category cannot be empty")
        _validate_confidence(confidence)

        rule_id = self.db.create_rule(
            user_id=user_id,
            pattern=pattern,
            vendor=vendor,
            category=category,
            subcategory=normalize_optional(subcategory),
            scope=scope or None,
            confidence=confidence,
            user_defined=user_defined,
            use_count=1,
        )
        return self.db.get_rule(rule_id)

    def get_rule(self, rule_id: int, user_id: str) -> CategorizationRule:
        """Get one of the user's rules.

        Raises:
            NotFoundError: If the rule does not exist
            NotAuthorizedError: If it belongs to another user
        """
        rule = self.db.get_rule(rule_id)
        if rule is None:
            raise NotFoundError(rule_not_found(rule_id))
        if rule.user_id != user_id:
            raise NotAuthorizedError(not_authorized("rule", rule_id))
        return rule

    def list_rules(self, user_id: str) -> list[CategorizationRule]:
        return self.db.list_rules(user_id)

    def update_rule(self, rule_id: int, user_id: str, **updates) -> CategorizationRule:
        """Update fields of one of the user's rules and mark it as just used."""
        self.get_rule(rule_id, user_id)

        fields = {}
        if updates.get("pattern") is not None:
            fields["pattern"] = collapse_whitespace(updates["pattern"])
            if not fields["pattern"]:
                raise ValidationError("Rule pattern cannot be empty")
        if updates.get("vendor") is not None:
            fields["vendor"] = collapse_whitespace(updates["vendor"])
        if updates.get("category") is not None:
            fields["category"] = normalize_category(updates["category"])
        if "subcategory" in updates:
            fields["subcategory"] = normalize_optional(updates["subcategory"])
        if "scope" in updates:
            fields["scope"] = updates["scope"] or None
        if updates.get("confidence") is not None:
            _validate_confidence(updates["confidence"])
            fields["confidence"] = updates["confidence"]
        if updates.get("user_defined") is not None:
            fields["user_defined"] = bool(updates["user_defined"])
        unknown = set(updates) - {
            "pattern", "vendor", "category", "subcategory", "scope", "confidence", "user_defined"
        }
        if unknown:
            raise ValidationError(f"Unknown rule fields: {', '.join(sorted(unknown))}")

        fields["last_used"] = utcnow()
        self.db.update_rule(rule_id, **fields)
        return self.db.get_rule(rule_id)

    def remove_rule(self, rule_id: int, user_id: str) -> None:
        """Delete one of the user's rules."""
        self.get_rule(rule_id, user_id)
        self.db.delete_rule(rule_id)
