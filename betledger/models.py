"""Bet record and the closed enumerations it is built from."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Exchange-document key order; export and storage write exactly these keys.
RECORD_FIELDS = (
    "id",
    "date",
    "book",
    "sport",
    "event",
    "market",
    "oddsType",
    "odds",
    "stake",
    "result",
    "notes",
)


class OddsType(str, Enum):
    AMERICAN = "American"
    DECIMAL = "Decimal"


class BetResult(str, Enum):
    PENDING = "Pending"
    WON = "Won"
    LOST = "Lost"
    PUSH = "Push"
    VOID = "Void"


def generate_bet_id() -> str:
    """Generate a unique bet ID (32 hex chars)."""
    return uuid4().hex


def today_iso() -> str:
    return datetime.now().date().isoformat()


class Bet(BaseModel):
    """One wagered event.

    ``odds`` and ``stake`` are kept as text so a half-typed entry survives a
    save; arithmetic always goes through ``settlement.to_number``.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(default_factory=generate_bet_id)
    date: str = Field(default_factory=today_iso)
    book: str = ""
    sport: str = ""
    event: str = ""
    market: str = ""
    odds_type: OddsType = Field(default=OddsType.AMERICAN, alias="oddsType")
    odds: str = ""
    stake: str = ""
    result: BetResult = BetResult.PENDING
    notes: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def ensure_id(cls, v: Any) -> str:
        if v is None or v == "":
            return generate_bet_id()
        if isinstance(v, (str, int)) and not isinstance(v, bool):
            return str(v)
        raise ValueError("id must be a string")

    @field_validator("date", "book", "sport", "event", "market", "notes", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, (dict, list)):
            raise ValueError("expected a text value")
        return str(v).strip()

    @field_validator("odds", "stake", mode="before")
    @classmethod
    def coerce_numeric_text(cls, v: Any) -> str:
        # Imported documents may carry plain JSON numbers here.
        if v is None:
            return ""
        if isinstance(v, (dict, list)):
            raise ValueError("expected a numeric or text value")
        return str(v).strip()

    def to_record(self) -> dict[str, str]:
        """Flat exchange-document record (camelCase ``oddsType``)."""
        data = self.model_dump(mode="json", by_alias=True)
        return {key: data[key] for key in RECORD_FIELDS}

    def with_changes(self, **changes: Any) -> Bet:
        """Return a validated copy with ``changes`` applied. ``id`` is immutable."""
        if "id" in changes and changes["id"] != self.id:
            raise ValueError("Bet id is immutable")
        record: dict[str, Any] = self.to_record()
        for key, value in changes.items():
            record["oddsType" if key == "odds_type" else key] = value
        return Bet.model_validate(record)
