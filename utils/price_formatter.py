import math

import config


def format_price_number(amount) -> str:
    """
    Format an amount without currency symbol.

    Whole amounts drop the decimals (1740.0 -> "1740"), others keep at most two
    decimals with trailing zeros removed (12.50 -> "12.5"). None, "" and
    unparsable values format as "0".
    """
    if amount is None or amount == "":
        return "0"
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return "0"
    if math.isnan(value) or math.isinf(value):
        return "0"

    if value % 1 == 0:
        return f"{value:.0f}"

    formatted = f"{value:.2f}".rstrip("0").rstrip(".")
    return formatted


def format_price(amount, currency_symbol: str | None = None) -> str:
    symbol = currency_symbol if currency_symbol is not None else config.CURRENCY_SYMBOL
    return f"{symbol}{format_price_number(amount)}"
