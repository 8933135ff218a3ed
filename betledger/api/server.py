"""FastAPI dashboard server for the BetLedger ledger."""

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from betledger import __version__
from betledger.aggregator import FilterSpec, distinct_sports
from betledger.config import get_settings
from betledger.display import format_odds
from betledger.exceptions import (
    BetNotFoundError,
    InvalidImportError,
    LedgerError,
    LedgerStorageError,
)
from betledger.models import Bet, BetResult, OddsType
from betledger.settlement import Settlement, settle
from betledger.storage import LedgerStore, validate_import

logger = logging.getLogger(__name__)


class BetPayload(BaseModel):
    """Fields accepted when creating or editing a bet. ``id`` is server-assigned."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    date: str | None = None
    book: str | None = None
    sport: str | None = None
    event: str | None = None
    market: str | None = None
    odds_type: OddsType | None = Field(default=None, alias="oddsType")
    odds: str | int | float | None = None
    stake: str | int | float | None = None
    result: BetResult | None = None
    notes: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BetDetail(BaseModel):
    bet: Bet
    settlement: Settlement
    odds_display: str


@lru_cache()
def get_store() -> LedgerStore:
    """Process-wide ledger store backed by the configured data directory."""
    return LedgerStore.from_settings()


def _detail(bet: Bet, odds_view: str | None = None) -> BetDetail:
    return BetDetail(
        bet=bet,
        settlement=settle(bet),
        odds_display=format_odds(bet, odds_view),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(f"Starting BetLedger API (data dir: {settings.data_dir})")
    yield
    logger.info("Shutting down BetLedger API")


app = FastAPI(title="BetLedger API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().server.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(BetNotFoundError)
async def bet_not_found_handler(request: Request, exc: BetNotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(InvalidImportError)
async def invalid_import_handler(request: Request, exc: InvalidImportError):
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "errors": exc.details},
    )


@app.exception_handler(LedgerStorageError)
async def storage_error_handler(request: Request, exc: LedgerStorageError):
    logger.error(f"Storage failure on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


# ============================================================================
# Endpoints
# ============================================================================


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy", "service": "betledger-api", "version": __version__}


@app.get("/api/config")
async def get_config():
    """Return the display and ledger configuration."""
    settings = get_settings()
    return {
        "ledger": settings.ledger.model_dump(),
        "display": settings.display.model_dump(),
    }


@app.get("/api/bets")
async def list_bets(
    q: str = "",
    result: str = "All",
    sport: str = "All",
    date_from: str = Query("", alias="from"),
    date_to: str = Query("", alias="to"),
    odds_view: str | None = None,
    store: LedgerStore = Depends(get_store),
):
    """Filtered ledger with statistics and equity curve."""
    try:
        filters = FilterSpec(query=q, result=result, sport=sport, date_from=date_from, date_to=date_to)
        view_type = OddsType(odds_view) if odds_view else None
    except (ValidationError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    view = store.view(filters)
    return {
        **view.model_dump(mode="json", by_alias=True),
        "rows": [
            {
                "id": bet.id,
                "odds_display": format_odds(bet, view_type),
                **settle(bet).model_dump(),
            }
            for bet in view.bets
        ],
        "sports": distinct_sports(store.bets),
    }


@app.delete("/api/bets", status_code=200)
def clear_bets(store: LedgerStore = Depends(get_store)):
    return {"deleted": store.clear()}


@app.get("/api/bets/{bet_id}", response_model=BetDetail)
async def get_bet(bet_id: str, store: LedgerStore = Depends(get_store)):
    return _detail(store.get(bet_id))


@app.post("/api/bets", status_code=201, response_model=BetDetail)
def create_bet(payload: BetPayload, store: LedgerStore = Depends(get_store)):
    try:
        bet = Bet.model_validate(payload.changes())
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _detail(store.add(bet))


@app.patch("/api/bets/{bet_id}", response_model=BetDetail)
def update_bet(bet_id: str, payload: BetPayload, store: LedgerStore = Depends(get_store)):
    try:
        bet = store.update(bet_id, **payload.changes())
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _detail(bet)


@app.delete("/api/bets/{bet_id}", status_code=204)
def delete_bet(bet_id: str, store: LedgerStore = Depends(get_store)):
    store.delete(bet_id)
    return Response(status_code=204)


@app.get("/api/export")
async def export_bets(store: LedgerStore = Depends(get_store)):
    """The full collection as the exchange document."""
    return [bet.to_record() for bet in store.bets]


@app.post("/api/import")
def import_bets(payload: Any = Body(...), store: LedgerStore = Depends(get_store)):
    """Replace the ledger with an exchange document. Invalid payloads change nothing."""
    bets = validate_import(payload)
    return {"imported": store.replace_all(bets)}


@app.get("/api/settle", response_model=Settlement)
async def settle_preview(odds_type: OddsType = OddsType.AMERICAN, odds: str = "", stake: str = ""):
    """Payout and implied probability for a bet being entered, as if it wins."""
    bet = Bet(odds_type=odds_type, odds=odds, stake=stake, result=BetResult.WON)
    return settle(bet)
