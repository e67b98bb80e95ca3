"""
ISO 4217 currency codes accepted by MAIB.

The merchant handler identifies currencies by their numeric code, while
orders and payments carry the alphabetic one. MAIB settles in MDL and
accepts the major foreign currencies below.
"""

from maib_gateway.engine.errors import InvalidPaymentAmount

NUMERIC_CODES: dict[str, str] = {
    "MDL": "498",  # Moldovan leu
    "EUR": "978",  # Euro
    "USD": "840",  # US dollar
    "RON": "946",  # Romanian leu
    "GBP": "826",  # Pound sterling
    "RUB": "643",  # Russian ruble
    "UAH": "980",  # Ukrainian hryvnia
    "CHF": "756",  # Swiss franc
}


def numeric_code(currency_code: str) -> str:
    """Resolve the numeric ISO 4217 code for an alphabetic currency code."""
    code = NUMERIC_CODES.get((currency_code or "").upper())
    if code is None:
        raise InvalidPaymentAmount(f"Unsupported currency: {currency_code}")
    return code
