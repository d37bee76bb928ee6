"""Utility functions for ledgerflow."""

from ledgerflow.utils.date_parser import parse_date
from ledgerflow.utils.amount_parser import parse_amount, to_magnitude
from ledgerflow.utils.text import normalize_category, normalize_description, title_case

__all__ = [
    "parse_date",
    "parse_amount",
    "to_magnitude",
    "normalize_category",
    "normalize_description",
    "title_case",
]
