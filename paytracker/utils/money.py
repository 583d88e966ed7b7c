"""
Money formatting shared by notifications and API responses.

Usage:
    from paytracker.utils.money import format_money

    format_money(15000, "USD")     -> "$15,000.00"
    format_money("1200.5", "EUR")  -> "€1,200.50"
    format_money(42, "CAD")        -> "42.00 CAD"
"""
from decimal import Decimal

_CURRENCY_SYMBOL = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def format_money(amount, currency: str = "USD", decimals: int = 2) -> str:
    """
    Format an amount with thousands separators and the currency symbol.

    Args:
        amount: int / float / Decimal / str
        currency: ISO currency code
        decimals: digits after the decimal point

    Returns:
        "$1,200.00" / "42.00 CAD"
    """
    if isinstance(amount, str):
        amount = Decimal(amount)
    formatted = f"{{:,.{decimals}f}}".format(abs(amount))
    sign = "-" if amount < 0 else ""
    symbol = _CURRENCY_SYMBOL.get(currency)
    if symbol:
        return f"{sign}{symbol}{formatted}"
    return f"{sign}{formatted} {currency}"


def money_str(amount: Decimal) -> str:
    """Decimal as a plain 2-place string for JSON payloads"""
    return f"{Decimal(amount):.2f}"
