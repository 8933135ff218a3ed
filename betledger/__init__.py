"""BetLedger: personal wager ledger with settlement and performance statistics."""

__version__ = "0.1.0"

from betledger.aggregator import (
    EquityPoint,
    FilterSpec,
    LedgerStats,
    LedgerView,
    aggregate,
    apply_filters,
    compute_stats,
    equity_curve,
)
from betledger.models import Bet, BetResult, OddsType
from betledger.settlement import Settlement, settle, to_number

__all__ = [
    "__version__",
    # Models
    "Bet",
    "BetResult",
    "OddsType",
    # Settlement
    "Settlement",
    "settle",
    "to_number",
    # Aggregation
    "EquityPoint",
    "FilterSpec",
    "LedgerStats",
    "LedgerView",
    "aggregate",
    "apply_filters",
    "compute_stats",
    "equity_curve",
]
