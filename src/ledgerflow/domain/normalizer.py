"""Turn one raw CSV row into normalized draft fields.

This is the only place amount signs are interpreted. A bank export's sign
convention says how a negative number is written; the account kind then
says what a negative number means. On a credit card a positive amount is a
purchase (it increases what is owed); everywhere else a positive amount is
money coming in.
"""

from decimal import Decimal
from typing import Mapping, Optional

from ledgerflow.domain.entities import (
    AccountKind,
    Dialect,
    DraftFields,
    TransactionType,
)
from ledgerflow.domain.errors import MissingFieldError, RowParseError
from ledgerflow.utils.amount_parser import parse_amount, to_magnitude
from ledgerflow.utils.date_parser import parse_date
from ledgerflow.utils.text import collapse_whitespace, normalize_category, normalize_description

UNCATEGORIZED = "Uncategorized"
INCOME_CATEGORY = "Income"


def resolve_type(amount: Decimal, account_kind: AccountKind | str) -> TransactionType:
    """Decide income or expense from a signed amount and the account kind."""
    kind = AccountKind.parse(account_kind)
    if kind is AccountKind.CREDIT:
        return TransactionType.EXPENSE if amount > 0 else TransactionType.INCOME
    return TransactionType.INCOME if amount > 0 else TransactionType.EXPENSE


def default_category(txn_type: TransactionType) -> str:
    """Category used when the export leaves it blank."""
    return INCOME_CATEGORY if txn_type is TransactionType.INCOME else UNCATEGORIZED


def _lookup(row: Mapping[str, Optional[str]], column: Optional[str]) -> str:
    """Case-insensitive column lookup returning a trimmed value."""
    if column is None:
        return ""
    if column in row:
        value = row[column]
    else:
        folded = column.strip().lower()
        value = next(
            (v for k, v in row.items() if k is not None and k.strip().lower() == folded),
            None,
        )
    return value.strip() if isinstance(value, str) else ""


def normalize_row(
    row: Mapping[str, Optional[str]],
    dialect: Dialect,
    account_kind: AccountKind | str,
) -> DraftFields:
    """Normalize a CSV row read with the dialect's column mapping.

    Args:
        row: Mapping of header name to cell value (csv.DictReader row)
        dialect: Dialect describing the columns, date format and sign convention
        account_kind: Kind of the account the statement belongs to

    Returns:
        DraftFields with a non-negative amount and the resolved type

    Raises:
        MissingFieldError: If date, description or amount is blank
        RowParseError: If the date or amount cannot be parsed
    """
    mapping = dialect.column_mapping

    date_str = _lookup(row, mapping.date)
    if not date_str:
        raise MissingFieldError("Missing date")
    description = _lookup(row, mapping.description)
    if not description:
        raise MissingFieldError("Missing description")
    amount_str = _lookup(row, mapping.amount)
    if not amount_str:
        raise MissingFieldError("Missing amount")

    try:
        txn_date = parse_date(date_str, dialect.date_format)
    except ValueError as e:
        raise RowParseError(str(e)) from e

    try:
        signed = parse_amount(amount_str, dialect.amount_sign)
    except ValueError as e:
        raise RowParseError(str(e)) from e

    txn_type = resolve_type(signed, account_kind)

    category = normalize_category(_lookup(row, mapping.category))
    category_provided = bool(category)
    if not category_provided:
        category = default_category(txn_type)

    return DraftFields(
        date=txn_date,
        amount=to_magnitude(signed),
        type=txn_type,
        description=normalize_description(description),
        original_description=collapse_whitespace(description),
        category=category,
        category_provided=category_provided,
        account_number=_lookup(row, mapping.account_number) or None,
    )
