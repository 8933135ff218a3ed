"""Bet settlement calculator.

Pure functions that turn a single bet into money figures. Nothing here
raises on bad input: stakes and odds are free text, so every number is
coerced with ``to_number`` first and every division is guarded.

Profit is always the net gain; the returned stake is not included.

    American +150, stake 100  -> profit 150.00
    American -120, stake 120  -> profit 100.00
    Decimal 1.80, stake 50    -> profit 40.00
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel

from betledger.models import Bet, BetResult, OddsType


class Settlement(BaseModel):
    """Derived figures for one bet."""

    profit: float
    payout_if_win: float
    implied_probability: float


def to_number(value: Any) -> float:
    """Coerce any value to a finite float, 0.0 when that is not possible."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        # float() would read "1_000" as 1000
        if not value or "_" in value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def stake_amount(value: Any) -> float:
    """Stake used for money figures. Negative stakes count as 0."""
    return max(to_number(value), 0.0)


def round_money(value: float) -> float:
    """Round to cents with ties away from zero, on the exact binary value."""
    cents = Decimal(abs(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return math.copysign(float(cents), value) if cents else 0.0


def american_profit(stake: Any, odds: Any) -> float:
    s = stake_amount(stake)
    o = to_number(odds)
    if not s or not o:
        return 0.0
    if o > 0:
        return s * o / 100
    return s * 100 / abs(o)


def decimal_profit(stake: Any, odds: Any) -> float:
    s = stake_amount(stake)
    d = to_number(odds)
    if not s or not d:
        return 0.0
    return s * (d - 1)


def win_profit(bet: Bet) -> float:
    """Profit the bet would book if it won, whatever its actual result."""
    if bet.odds_type == OddsType.AMERICAN:
        return american_profit(bet.stake, bet.odds)
    return decimal_profit(bet.stake, bet.odds)


def profit_for_bet(bet: Bet) -> float:
    """Realized profit: win profit if Won, minus the stake if Lost, else 0."""
    if bet.result == BetResult.WON:
        return win_profit(bet)
    if bet.result == BetResult.LOST:
        return -stake_amount(bet.stake)
    return 0.0


def payout_if_win(bet: Bet) -> float:
    return stake_amount(bet.stake) + win_profit(bet)


def implied_prob(odds_type: OddsType, odds: Any) -> float:
    """Break-even win probability embedded in an odds quote."""
    o = to_number(odds)
    if not o:
        return 0.0
    if odds_type == OddsType.DECIMAL:
        return 1 / o
    if o > 0:
        return 100 / (o + 100)
    return abs(o) / (abs(o) + 100)


def american_to_decimal(odds: Any) -> float | None:
    """Convert American odds to decimal. None when the input has no value."""
    a = to_number(odds)
    if not a:
        return None
    if a > 0:
        return 1 + a / 100
    return 1 + 100 / abs(a)


def decimal_to_american(odds: Any) -> float | None:
    """Convert decimal odds to American. None for 0, unparseable or exactly 1.0."""
    d = to_number(odds)
    if not d or d == 1:
        return None
    if d >= 2:
        return (d - 1) * 100
    return -100 / (d - 1)


def settle(bet: Bet) -> Settlement:
    return Settlement(
        profit=profit_for_bet(bet),
        payout_if_win=payout_if_win(bet),
        implied_probability=implied_prob(bet.odds_type, bet.odds),
    )
