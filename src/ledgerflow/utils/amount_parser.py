"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

from ledgerflow.domain.entities import AmountSign

CENTS = Decimal("0.01")


def parse_amount(
    amount_str: str, sign: AmountSign = AmountSign.NEGATIVE_IS_EXPENSE
) -> Decimal:
    """Parse an amount string into a signed Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45" / "-$123.45" / "$-123.45" (negative-is-expense)
    - "1,234.56"
    - "(123.45)" (parentheses-is-expense)

    Args:
        amount_str: Amount string
        sign: Sign convention of the export. A minus sign is only accepted
            under negative-is-expense, parentheses only under
            parentheses-is-expense.

    Returns:
        Decimal amount, negative for the side the convention marks

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    # Remove currency symbols, thousands separators and whitespace
    amount_str = re.sub(r"[$€£¥,\s]", "", amount_str)

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        if sign is not AmountSign.PARENTHESES_IS_EXPENSE:
            raise ValueError(f"Unexpected parentheses in amount '{amount_str}'")
        is_negative = True
        amount_str = amount_str[1:-1]

    if amount_str.startswith("-"):
        if sign is not AmountSign.NEGATIVE_IS_EXPENSE:
            raise ValueError(f"Unexpected minus sign in amount '{amount_str}'")
        is_negative = True
        amount_str = amount_str[1:]
    elif amount_str.startswith("+"):
        amount_str = amount_str[1:]

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def to_magnitude(amount: Decimal) -> Decimal:
    """Return the absolute value rounded to cents."""
    return abs(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
