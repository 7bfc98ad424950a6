from __future__ import annotations

# symbol, minor-unit digits
_CURRENCIES = {
    "USD": ("$", 2),
    "CAD": ("CA$", 2),
    "AUD": ("A$", 2),
    "EUR": ("€", 2),
    "GBP": ("£", 2),
    "JPY": ("¥", 0),
    "KRW": ("₩", 0),
}

def format_money(cents: int, currency: str) -> str:
    """Render an amount in minor units, e.g. (1999, "usd") -> "$19.99".

    Unknown currencies fall back to "19.99 XYZ".
    """
    code = currency.upper()
    known = _CURRENCIES.get(code)
    if known is None:
        return f"{cents / 100:.2f} {code}"
    symbol, digits = known
    amount = cents / (10 ** digits) if digits else cents
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{digits}f}"
