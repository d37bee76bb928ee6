"""Text normalization shared by every ingestion path."""

import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(value: Optional[str]) -> str:
    """Trim and collapse runs of whitespace to single spaces."""
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value).strip()


def title_case(value: Optional[str]) -> str:
    """Lowercase each word, then uppercase its first character.

    Unlike str.title() this leaves letters after punctuation alone
    ("mcdonald's" -> "Mcdonald's"), and it is idempotent.
    """
    words = collapse_whitespace(value).lower().split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)


def normalize_description(value: Optional[str]) -> str:
    """Canonical form of a transaction description."""
    return title_case(value)


def normalize_category(value: Optional[str]) -> str:
    """Canonical form of a category name."""
    return title_case(value)


def normalize_optional(value: Optional[str]) -> Optional[str]:
    """Title case a value, mapping blank to None."""
    normalized = title_case(value)
    return normalized or None
