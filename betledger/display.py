"""Text formatting shared by the CLI and the dashboard API."""

import math

from betledger.models import Bet, OddsType
from betledger.settlement import american_to_decimal, decimal_to_american, round_money


def format_currency(amount: float, symbol: str = "$") -> str:
    """Format money as ``$12.50`` / ``-$12.50``."""
    amount = round_money(amount)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):.2f}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_american(value: float | None) -> str:
    """Rounded American odds with an explicit sign for positive prices."""
    if value is None:
        return ""
    # Half-up, so -112.5 shows as -112 and +112.5 as +113.
    rounded = math.floor(value + 0.5)
    return f"+{rounded}" if rounded > 0 else str(rounded)


def format_odds(bet: Bet, view: OddsType | str | None = None) -> str:
    """Render a bet's odds in the requested convention.

    The odds are shown as entered when ``view`` matches how the bet was
    recorded (or is None). Conversions that have no defined value render as
    an empty string.
    """
    view = OddsType(view) if view is not None else bet.odds_type
    if view == bet.odds_type:
        return bet.odds

    if view == OddsType.DECIMAL:
        decimal = american_to_decimal(bet.odds)
        return f"{decimal:.2f}" if decimal is not None else ""

    return format_american(decimal_to_american(bet.odds))
