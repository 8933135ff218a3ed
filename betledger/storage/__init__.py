"""Storage layer for BetLedger - local file persistence and JSON import/export.

This package provides:
- Ledger persistence (load/save the bet collection to data/bets.json)
- Import/export of the JSON exchange document
- LedgerStore, the single owner of the mutable bet collection

Writes are atomic and imports are validated as a whole before anything
is applied.
"""

# Ledger file
from .ledger import (
    dump_bets,
    load_bets,
    save_bets,
)

# Import/export
from .transfer import (
    export_bets,
    parse_import,
    read_import,
    validate_import,
    write_export,
)

# Collection owner
from .store import LedgerStore

__all__ = [
    # Ledger file
    "dump_bets",
    "load_bets",
    "save_bets",
    # Import/export
    "export_bets",
    "parse_import",
    "read_import",
    "validate_import",
    "write_export",
    # Collection owner
    "LedgerStore",
]
