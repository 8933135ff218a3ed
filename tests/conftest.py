"""Shared fixtures: isolated data directory and sample bets."""

import pytest

from betledger.config import get_settings
from betledger.models import Bet, BetResult, OddsType


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point settings at an empty temp data directory."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.delenv("LOGFIRE_TOKEN", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def sample_bets() -> list[Bet]:
    return [
        Bet(
            id="b1",
            date="2024-03-01",
            book="DraftKings",
            sport="NBA",
            event="Lakers vs Celtics",
            market="Moneyline",
            odds_type=OddsType.AMERICAN,
            odds="-110",
            stake="100",
            result=BetResult.WON,
        ),
        Bet(
            id="b2",
            date="2024-03-03",
            book="FanDuel",
            sport="NFL",
            event="Chiefs vs Bills",
            market="Spread",
            odds_type=OddsType.DECIMAL,
            odds="2.0",
            stake="50",
            result=BetResult.LOST,
        ),
        Bet(
            id="b3",
            date="2024-03-05",
            book="DraftKings",
            sport="nba",
            event="Nuggets vs Suns",
            market="Total",
            odds_type=OddsType.AMERICAN,
            odds="+150",
            stake="20",
            result=BetResult.PENDING,
            notes="late line move",
        ),
        Bet(
            id="b4",
            date="2024-03-02",
            book="BetMGM",
            sport="Soccer",
            event="Arsenal vs Spurs",
            market="Draw no bet",
            odds_type=OddsType.DECIMAL,
            odds="1.8",
            stake="30",
            result=BetResult.PUSH,
        ),
    ]
