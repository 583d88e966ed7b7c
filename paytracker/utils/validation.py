"""
Validation of user-entered money amounts.

Accepted: "1200", "1200.5", "1200,50", " 99.90 ".
Rejected: negatives, NaN / Infinity, too many decimal places, non-numbers.
"""
import re
from decimal import Decimal, InvalidOperation

_AMOUNT_RE = re.compile(r"^\d+(?:\.(\d+))?$")


def normalize_decimal_input(value: str) -> str:
    """' 100,50 ' -> '100.50'"""
    return value.strip().replace(",", ".")


def validate_decimal_amount(value: str, max_decimal_places: int = 2) -> tuple[bool, str | None]:
    """
    Check an amount without raising

    Returns:
        (True, None) or (False, reason)

    Example:
        >>> validate_decimal_amount("100.505")
        (False, "At most 2 decimal places")
    """
    normalized = normalize_decimal_input(value)
    try:
        amount = Decimal(normalized)
    except InvalidOperation:
        return False, "Invalid amount"
    if not amount.is_finite():
        return False, "Invalid amount"
    if amount < 0:
        return False, "Amount cannot be negative"

    match = _AMOUNT_RE.match(normalized)
    if match is None or len(match.group(1) or "") > max_decimal_places:
        return False, f"At most {max_decimal_places} decimal places"
    return True, None


def validate_and_normalize_amount(value: str, max_decimal_places: int = 2) -> str:
    """field_validator helper: the normalized string, or ValueError with the reason"""
    ok, error = validate_decimal_amount(value, max_decimal_places)
    if not ok:
        raise ValueError(error)
    return normalize_decimal_input(value)
