"""In-memory owner of the bet collection, persisted after every change.

Each mutation builds a new list, saves it, and only then swaps it in. If
the save fails the error propagates and the in-memory collection is left
exactly as it was, so memory and disk never silently disagree. Mutations
are serialized with a lock because the API runs them on worker threads.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Iterable

from betledger.aggregator import FilterSpec, LedgerView, aggregate
from betledger.config import get_settings
from betledger.exceptions import BetNotFoundError, LedgerError
from betledger.models import Bet
from betledger.storage.ledger import load_bets, save_bets
from betledger.storage.transfer import read_import, write_export

logger = logging.getLogger(__name__)


class LedgerStore:
    """Single mutable reference to the user's bets."""

    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()
        self._bets: tuple[Bet, ...] = tuple(load_bets(path))

    @classmethod
    def from_settings(cls) -> "LedgerStore":
        return cls(get_settings().ledger_path)

    @property
    def bets(self) -> tuple[Bet, ...]:
        return self._bets

    def __len__(self) -> int:
        return len(self._bets)

    def _commit(self, bets: Iterable[Bet]) -> None:
        new_bets = tuple(bets)
        save_bets(self.path, new_bets)
        self._bets = new_bets

    def _index_of(self, bet_id: str) -> int:
        for i, bet in enumerate(self._bets):
            if bet.id == bet_id:
                return i
        raise BetNotFoundError(bet_id)

    def get(self, bet_id: str) -> Bet:
        return self._bets[self._index_of(bet_id)]

    def add(self, bet: Bet) -> Bet:
        """Add a bet at the top of the ledger."""
        with self._lock:
            if any(existing.id == bet.id for existing in self._bets):
                raise LedgerError(f"Bet id already exists: {bet.id}")
            self._commit((bet, *self._bets))
        logger.info(f"Added bet {bet.id}")
        return bet

    def update(self, bet_id: str, **changes: Any) -> Bet:
        """Apply field changes to one bet. The id cannot change."""
        with self._lock:
            index = self._index_of(bet_id)
            updated = self._bets[index].with_changes(**changes)
            bets = list(self._bets)
            bets[index] = updated
            self._commit(bets)
        logger.info(f"Updated bet {bet_id}: {', '.join(sorted(changes)) or 'no changes'}")
        return updated

    def delete(self, bet_id: str) -> Bet:
        with self._lock:
            index = self._index_of(bet_id)
            removed = self._bets[index]
            self._commit(self._bets[:index] + self._bets[index + 1:])
        logger.info(f"Deleted bet {bet_id}")
        return removed

    def clear(self) -> int:
        with self._lock:
            count = len(self._bets)
            self._commit(())
        logger.info(f"Cleared {count} bets from ledger")
        return count

    def replace_all(self, bets: Iterable[Bet]) -> int:
        """Swap the whole collection, e.g. after a validated import."""
        new_bets = tuple(bets)
        ids = [bet.id for bet in new_bets]
        if len(ids) != len(set(ids)):
            raise LedgerError("Duplicate bet ids in replacement collection")
        with self._lock:
            self._commit(new_bets)
        logger.info(f"Replaced ledger with {len(new_bets)} bets")
        return len(new_bets)

    def import_file(self, path: Path) -> int:
        """Replace the ledger with an exported file. Invalid files change nothing."""
        return self.replace_all(read_import(path))

    def export_file(self, path: Path) -> Path:
        return write_export(path, self._bets)

    def view(self, filters: FilterSpec | None = None) -> LedgerView:
        return aggregate(self._bets, filters)
