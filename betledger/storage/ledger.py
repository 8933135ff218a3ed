"""Bet collection persistence with atomic writes to data/bets.json."""

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from betledger.exceptions import LedgerStorageError
from betledger.models import Bet

logger = logging.getLogger(__name__)


def dump_bets(bets: Iterable[Bet]) -> str:
    """Serialize bets as the exchange document (JSON array, indent 2)."""
    return json.dumps([bet.to_record() for bet in bets], indent=2, ensure_ascii=False)


def load_bets(path: Path) -> list[Bet]:
    """Load the bet collection from ``path``. A missing or empty file is an empty ledger."""
    if not path.exists():
        logger.info(f"Ledger file not found: {path}. Starting with an empty ledger.")
        return []

    try:
        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            logger.warning(f"Empty ledger file: {path}. Starting with an empty ledger.")
            return []

        data = json.loads(raw)
        if not isinstance(data, list):
            raise LedgerStorageError(f"Ledger file is not a JSON array: {path}")

        bets = [Bet.model_validate(item) for item in data]
        logger.debug(f"Loaded {len(bets)} bets from {path}")
        return bets

    except LedgerStorageError as e:
        logger.error(e.message)
        raise
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Corrupted ledger file {path}: {e}")
        raise LedgerStorageError(f"Corrupted ledger file {path}: {e}") from e
    except OSError as e:
        logger.error(f"Failed to read ledger {path}: {e}")
        raise LedgerStorageError(f"Failed to read ledger {path}: {e}") from e


def save_bets(path: Path, bets: Iterable[Bet]) -> None:
    """Atomically save the bet collection to ``path``.

    Writes to a temp file in the same directory and renames it over the
    ledger, so a crash mid-write leaves the previous file intact.
    """
    content = dump_bets(bets)

    temp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            delete=False,
            suffix=".json",
            encoding="utf-8",
        ) as temp_file:
            temp_file.write(content)
            temp_path = Path(temp_file.name)

        # Atomic rename
        shutil.move(str(temp_path), str(path))
        logger.debug(f"Saved ledger to {path}")

    except Exception as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        logger.error(f"Failed to save ledger: {e}")
        raise LedgerStorageError(f"Failed to save ledger {path}: {e}") from e
