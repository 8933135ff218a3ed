"""Ledger aggregator: filtered view, summary statistics and equity curve.

Every function here is pure. ``aggregate`` takes one snapshot of the bet
collection and one reference "now", so the statistics and the equity curve
it returns always describe the same set of bets.
"""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Iterable, Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field

from betledger.models import Bet, BetResult
from betledger.settlement import profit_for_bet, round_money, to_number

logger = logging.getLogger(__name__)

ALL = "All"

_DAY_END_OFFSET = timedelta(days=1) - timedelta(milliseconds=1)


# ============================================================================
# Models
# ============================================================================


class FilterSpec(BaseModel):
    """Current filter selection. Empty ``date_from``/``date_to`` mean unbounded."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    query: str = ""
    result: BetResult | Literal["All"] = ALL
    sport: str = ALL
    date_from: str = Field(default="", alias="from")
    date_to: str = Field(default="", alias="to")


class LedgerStats(BaseModel):
    total_stake: float = 0.0
    realized: float = 0.0
    pending_stake: float = 0.0
    won: int = 0
    lost: int = 0
    pending: int = 0
    pushes: int = 0
    roi: float = 0.0
    count: int = 0


class EquityPoint(BaseModel):
    date: str
    pnl: float


class LedgerView(BaseModel):
    """Everything a screen needs for one render."""

    bets: list[Bet] = Field(default_factory=list)
    stats: LedgerStats = Field(default_factory=LedgerStats)
    equity_curve: list[EquityPoint] = Field(default_factory=list)
    # Bets whose date could not be parsed and were placed at "now".
    undated_ids: list[str] = Field(default_factory=list)


# ============================================================================
# Dates
# ============================================================================


def parse_date_strict(value: str | None) -> datetime | None:
    """Parse ISO date/datetime text to an aware UTC datetime, None on failure.

    Date-only text is midnight UTC; naive datetimes are taken as UTC.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_bet_date(value: str | None, now: datetime | None = None) -> datetime:
    """Parse a bet date, falling back to ``now`` when it is not a date."""
    parsed = parse_date_strict(value)
    if parsed is not None:
        return parsed
    return _reference_now(now)


def _start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


def _reference_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


# ============================================================================
# Filtering
# ============================================================================


def _matches_result(bet: Bet, result: BetResult | str) -> bool:
    if result == ALL:
        return True
    return bet.result == result


def _matches_sport(bet: Bet, sport: str) -> bool:
    if sport == ALL:
        return True
    if not bet.sport:
        return False
    return bet.sport.lower() == sport.lower()


def _matches_query(bet: Bet, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    haystack = "\n".join(
        [bet.book or "", bet.sport or "", bet.event or "", bet.market or "", bet.notes or ""]
    ).lower()
    return needle in haystack


def _date_bounds(filters: FilterSpec, now: datetime) -> tuple[datetime | None, datetime | None]:
    lower = None
    upper = None
    if filters.date_from:
        lower = _start_of_day(parse_bet_date(filters.date_from, now))
    if filters.date_to:
        upper = _start_of_day(parse_bet_date(filters.date_to, now)) + _DAY_END_OFFSET
    return lower, upper


def apply_filters(
    bets: Iterable[Bet],
    filters: FilterSpec | None = None,
    now: datetime | None = None,
) -> list[Bet]:
    """Keep bets passing every active filter, most recent first.

    Ties on date keep their input order.
    """
    filters = filters or FilterSpec()
    now = _reference_now(now)

    ranged = bool(filters.date_from or filters.date_to)
    lower, upper = _date_bounds(filters, now) if ranged else (None, None)

    kept = []
    for bet in bets:
        if not _matches_result(bet, filters.result):
            continue
        if not _matches_sport(bet, filters.sport):
            continue
        if ranged:
            moment = parse_bet_date(bet.date, now)
            if lower is not None and moment < lower:
                continue
            if upper is not None and moment > upper:
                continue
        if not _matches_query(bet, filters.query):
            continue
        kept.append(bet)

    return sorted(kept, key=lambda b: parse_bet_date(b.date, now), reverse=True)


# ============================================================================
# Statistics
# ============================================================================


def compute_stats(bets: Sequence[Bet]) -> LedgerStats:
    total_stake = sum(to_number(b.stake) for b in bets)
    realized = sum(profit_for_bet(b) for b in bets)
    pending_stake = sum(to_number(b.stake) for b in bets if b.result == BetResult.PENDING)
    roi = realized / total_stake * 100 if total_stake else 0.0

    return LedgerStats(
        total_stake=total_stake,
        realized=realized,
        pending_stake=pending_stake,
        won=sum(1 for b in bets if b.result == BetResult.WON),
        lost=sum(1 for b in bets if b.result == BetResult.LOST),
        pending=sum(1 for b in bets if b.result == BetResult.PENDING),
        pushes=sum(1 for b in bets if b.result in (BetResult.PUSH, BetResult.VOID)),
        roi=roi,
        count=len(bets),
    )


def equity_curve(bets: Iterable[Bet], now: datetime | None = None) -> list[EquityPoint]:
    """Running realized P&L over settled bets in chronological order."""
    now = _reference_now(now)
    settled = [b for b in bets if b.result != BetResult.PENDING]
    settled.sort(key=lambda b: parse_bet_date(b.date, now))

    points = []
    cumulative = 0.0
    for bet in settled:
        cumulative += profit_for_bet(bet)
        points.append(EquityPoint(date=bet.date, pnl=round_money(cumulative)))
    return points


def distinct_sports(bets: Iterable[Bet]) -> list[str]:
    """Sorted, case-insensitively unique, non-empty sport names."""
    seen: dict[str, str] = {}
    for bet in bets:
        if bet.sport:
            seen.setdefault(bet.sport.lower(), bet.sport)
    return sorted(seen.values(), key=str.lower)


def aggregate(
    bets: Iterable[Bet],
    filters: FilterSpec | None = None,
    now: datetime | None = None,
) -> LedgerView:
    """Filter, sort and summarize one snapshot of the bet collection."""
    snapshot = tuple(bets)
    now = _reference_now(now)

    filtered = apply_filters(snapshot, filters, now)
    undated = [b.id for b in filtered if parse_date_strict(b.date) is None]
    if undated:
        logger.debug(f"{len(undated)} bet(s) with unparseable dates placed at {now.isoformat()}")

    return LedgerView(
        bets=filtered,
        stats=compute_stats(filtered),
        equity_curve=equity_curve(filtered, now),
        undated_ids=undated,
    )
