"""
Unit Tests: Ledger Aggregator

Test cases:
- Result, sport, date range and free-text filters
- Display sort (most recent first)
- Summary statistics and ROI guard
- Equity curve ordering and rounding
- Fail-open date handling
"""

from datetime import datetime, timezone

import pytest

from betledger.aggregator import (
    FilterSpec,
    aggregate,
    apply_filters,
    compute_stats,
    distinct_sports,
    equity_curve,
    parse_bet_date,
    parse_date_strict,
)
from betledger.models import Bet, BetResult, OddsType

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def ids(bets):
    return [b.id for b in bets]


def test_no_filters_sorts_most_recent_first(sample_bets):
    assert ids(apply_filters(sample_bets, FilterSpec(), NOW)) == ["b3", "b2", "b4", "b1"]


def test_result_filter_is_exact(sample_bets):
    filtered = apply_filters(sample_bets, FilterSpec(result="Won"), NOW)
    assert ids(filtered) == ["b1"]


def test_sport_filter_is_case_insensitive(sample_bets):
    filtered = apply_filters(sample_bets, FilterSpec(sport="NBA"), NOW)
    assert ids(filtered) == ["b3", "b1"]


def test_empty_sport_never_matches_a_specific_sport():
    bets = [Bet(id="x", sport="", date="2024-01-01")]
    assert apply_filters(bets, FilterSpec(sport="NBA"), NOW) == []
    assert ids(apply_filters(bets, FilterSpec(sport="All"), NOW)) == ["x"]


def test_query_searches_descriptive_fields(sample_bets):
    assert ids(apply_filters(sample_bets, FilterSpec(query="CHIEFS"), NOW)) == ["b2"]
    assert ids(apply_filters(sample_bets, FilterSpec(query="line move"), NOW)) == ["b3"]
    assert ids(apply_filters(sample_bets, FilterSpec(query="draftkings"), NOW)) == ["b3", "b1"]


def test_blank_query_matches_everything(sample_bets):
    assert len(apply_filters(sample_bets, FilterSpec(query="   "), NOW)) == len(sample_bets)


def test_filters_are_conjunctive(sample_bets):
    filters = FilterSpec(query="draftkings", result="Pending", sport="nba")
    assert ids(apply_filters(sample_bets, filters, NOW)) == ["b3"]


def test_date_range_is_inclusive_of_to_day():
    bets = [
        Bet(id="on-to", date="2024-03-10"),
        Bet(id="after-to", date="2024-03-11"),
        Bet(id="on-from", date="2024-03-01"),
        Bet(id="before-from", date="2024-02-29"),
        Bet(id="late-on-to", date="2024-03-10T23:59:59"),
    ]
    filters = FilterSpec(date_from="2024-03-01", date_to="2024-03-10")
    assert sorted(ids(apply_filters(bets, filters, NOW))) == ["late-on-to", "on-from", "on-to"]


def test_open_ended_date_ranges():
    bets = [Bet(id="a", date="2024-01-01"), Bet(id="b", date="2024-05-01")]
    assert ids(apply_filters(bets, FilterSpec(date_from="2024-02-01"), NOW)) == ["b"]
    assert ids(apply_filters(bets, FilterSpec(date_to="2024-02-01"), NOW)) == ["a"]


def test_filter_spec_accepts_from_to_aliases():
    filters = FilterSpec.model_validate({"from": "2024-01-01", "to": "2024-01-31"})
    assert filters.date_from == "2024-01-01"
    assert filters.date_to == "2024-01-31"


def test_unparseable_date_fails_open_to_now():
    bets = [Bet(id="bad", date="someday"), Bet(id="old", date="2024-01-01")]
    assert parse_bet_date("someday", NOW) == NOW
    # "now" is 2024-06-01, so the bad date sorts first and falls in June
    assert ids(apply_filters(bets, FilterSpec(), NOW)) == ["bad", "old"]
    assert ids(apply_filters(bets, FilterSpec(date_from="2024-06-01"), NOW)) == ["bad"]


def test_parse_date_strict():
    assert parse_date_strict("2024-03-01") == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert parse_date_strict("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
    assert parse_date_strict("") is None
    assert parse_date_strict("03/01/2024") is None


def test_stats_scenario():
    bets = [
        Bet(odds_type=OddsType.AMERICAN, odds="-110", stake="100", result=BetResult.WON),
        Bet(odds_type=OddsType.DECIMAL, odds="2.0", stake="50", result=BetResult.LOST),
    ]
    stats = compute_stats(bets)
    assert stats.realized == pytest.approx(100 * 100 / 110 - 50)
    assert stats.realized == pytest.approx(40.91, abs=0.01)
    assert stats.total_stake == pytest.approx(150.0)
    assert stats.roi == pytest.approx(27.27, abs=0.01)
    assert (stats.won, stats.lost, stats.pushes, stats.pending, stats.count) == (1, 1, 0, 0, 2)


def test_stats_counts_pending_and_pushes(sample_bets):
    extra = Bet(odds="2.0", stake="10", result=BetResult.VOID, odds_type=OddsType.DECIMAL)
    stats = compute_stats([*sample_bets, extra])
    assert stats.pushes == 2
    assert stats.pending == 1
    assert stats.pending_stake == pytest.approx(20.0)
    assert stats.total_stake == pytest.approx(210.0)


def test_roi_is_zero_without_stake():
    stats = compute_stats([Bet(stake="", odds="-110", result=BetResult.WON)])
    assert stats.total_stake == 0
    assert stats.roi == 0.0
    assert compute_stats([]).roi == 0.0


def test_equity_curve_is_chronological_and_skips_pending(sample_bets):
    curve = equity_curve(sample_bets, NOW)
    settled = [b for b in sample_bets if b.result != BetResult.PENDING]
    assert len(curve) == len(settled)
    assert [p.date for p in curve] == ["2024-03-01", "2024-03-02", "2024-03-03"]
    assert [p.pnl for p in curve] == [90.91, 90.91, 40.91]


def test_equity_curve_rounds_ties_up():
    bets = [Bet(date="2024-01-01", odds_type=OddsType.DECIMAL, odds="1.125", stake="1", result=BetResult.WON)]
    assert [p.pnl for p in equity_curve(bets, NOW)] == [0.13]


def test_equity_curve_rounds_only_emitted_values():
    bets = [
        Bet(date=f"2024-01-0{i}", odds_type=OddsType.DECIMAL, odds="1.004", stake="1", result=BetResult.WON)
        for i in range(1, 4)
    ]
    curve = equity_curve(bets, NOW)
    # each step is 0.004; rounding the running total each step would stay at 0.00
    assert [p.pnl for p in curve] == [0.0, 0.01, 0.01]


def test_aggregate_uses_one_filtered_snapshot(sample_bets):
    view = aggregate(iter(sample_bets), FilterSpec(sport="NBA"), NOW)
    assert ids(view.bets) == ["b3", "b1"]
    assert view.stats.count == 2
    assert len(view.equity_curve) == 1
    assert view.undated_ids == []


def test_aggregate_reports_undated_bets():
    view = aggregate([Bet(id="bad", date="not a date")], None, NOW)
    assert view.undated_ids == ["bad"]


def test_aggregate_does_not_mutate_input(sample_bets):
    before = [b.to_record() for b in sample_bets]
    aggregate(sample_bets, FilterSpec(result="Lost"), NOW)
    assert [b.to_record() for b in sample_bets] == before


def test_distinct_sports(sample_bets):
    assert distinct_sports(sample_bets) == ["NBA", "NFL", "Soccer"]
