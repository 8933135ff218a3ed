"""JSON import/export of the bet collection.

The exchange document is a JSON array of flat bet records. An import is
all-or-nothing: the whole payload is validated before anything is
returned, so a caller never applies half a file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from pydantic import TypeAdapter, ValidationError

from betledger.exceptions import InvalidImportError
from betledger.models import Bet
from betledger.storage.ledger import dump_bets

logger = logging.getLogger(__name__)

_BET_LIST = TypeAdapter(list[Bet])


def export_bets(bets: Iterable[Bet]) -> str:
    return dump_bets(bets)


def write_export(path: Path, bets: Iterable[Bet]) -> Path:
    """Write the exchange document to ``path`` and return it."""
    bets = list(bets)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_bets(bets) + "\n", encoding="utf-8")
    logger.info(f"Exported {len(bets)} bets to {path}")
    return path


def validate_import(data: Any) -> list[Bet]:
    """Validate an already-decoded payload as a list of bet records."""
    if not isinstance(data, list):
        raise InvalidImportError(
            f"Invalid file: expected a JSON array of bets, got {type(data).__name__}"
        )
    if not all(isinstance(item, dict) for item in data):
        raise InvalidImportError("Invalid file: every entry must be a bet object")

    try:
        bets = _BET_LIST.validate_python(data)
    except ValidationError as e:
        raise InvalidImportError(
            f"Invalid file: {e.error_count()} invalid field(s)",
            details=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()],
        ) from e

    ids = [bet.id for bet in bets]
    if len(ids) != len(set(ids)):
        raise InvalidImportError("Invalid file: duplicate bet ids")

    return bets


def parse_import(text: str) -> list[Bet]:
    """Decode and validate an exchange document."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidImportError(f"Invalid JSON: {e.msg} (line {e.lineno})") from e
    return validate_import(data)


def read_import(path: Path) -> list[Bet]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidImportError(f"Cannot read import file {path}: {e}") from e
    bets = parse_import(text)
    logger.info(f"Read {len(bets)} bets from {path}")
    return bets
