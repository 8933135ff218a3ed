"""BetLedger CLI entry point."""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

load_dotenv()

from betledger import __version__
from betledger.aggregator import FilterSpec, LedgerView
from betledger.config import get_settings
from betledger.display import format_currency, format_odds, format_percent
from betledger.exceptions import BetNotFoundError, InvalidImportError, LedgerError
from betledger.models import Bet, BetResult, OddsType
from betledger.settlement import profit_for_bet, settle, to_number
from betledger.storage import LedgerStore, save_bets

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

RESULT_CHOICES = [r.value for r in BetResult]
ODDS_TYPE_CHOICES = [t.value for t in OddsType]

CONFIG_TEMPLATE = """# BetLedger Configuration
# Secrets (e.g. LOGFIRE_TOKEN) belong in .env, not here.

ledger:
  file_name: bets.json
  export_file_name: bets.json

display:
  odds_view: American
  currency_symbol: "$"
  default_sport: Other

server:
  host: 127.0.0.1
  port: 8000
"""


# ============================================================================
# Helpers
# ============================================================================


def _open_store() -> LedgerStore:
    return LedgerStore.from_settings()


def _resolve_id(store: LedgerStore, bet_id: str) -> str:
    """Accept a full id or a unique id prefix."""
    matches = [bet.id for bet in store.bets if bet.id.startswith(bet_id)]
    if bet_id in matches:
        return bet_id
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise BetNotFoundError(bet_id)
    raise LedgerError(f"Ambiguous bet id prefix '{bet_id}' matches {len(matches)} bets")


def _filters_from_args(args: argparse.Namespace) -> FilterSpec:
    return FilterSpec(
        query=args.query,
        result=args.result,
        sport=args.sport,
        date_from=args.date_from,
        date_to=args.date_to,
    )


def _bet_fields_from_args(args: argparse.Namespace) -> dict:
    fields = {
        "date": args.date,
        "book": args.book,
        "sport": args.sport,
        "event": args.event,
        "market": args.market,
        "odds_type": args.odds_type,
        "odds": args.odds,
        "stake": args.stake,
        "result": args.result,
        "notes": args.notes,
    }
    return {key: value for key, value in fields.items() if value is not None}


def _print_bet(bet: Bet, symbol: str) -> None:
    s = settle(bet)
    print(f"  ID: {bet.id}")
    print(f"  Date: {bet.date}")
    print(f"  Event: {bet.event or '—'} ({bet.market or '—'})")
    print(f"  Book/Sport: {bet.book or '—'} / {bet.sport or '—'}")
    print(f"  Odds: {bet.odds_type.value} {bet.odds}")
    print(f"  Stake: {format_currency(to_number(bet.stake), symbol)}")
    print(f"  Result: {bet.result.value}")
    print(f"  Implied Probability: {s.implied_probability:.2%}")
    print(f"  Payout if Win: {format_currency(s.payout_if_win, symbol)}")
    print(f"  Realized P&L: {format_currency(s.profit, symbol)}\n")


def _print_stats(view: LedgerView, symbol: str) -> None:
    stats = view.stats
    print(f"Realized P&L: {format_currency(stats.realized, symbol)}  (ROI {format_percent(stats.roi)})")
    print(f"Total Staked: {format_currency(stats.total_stake, symbol)}  (Pending stake {format_currency(stats.pending_stake, symbol)})")
    print(f"Record (W-L-P): {stats.won}-{stats.lost}-{stats.pushes}  ({stats.pending} pending)")
    print(f"Bets: {stats.count}")
    if view.undated_ids:
        print(f"\n⚠ {len(view.undated_ids)} bet(s) have an unreadable date and were treated as today:")
        for bet_id in view.undated_ids:
            print(f"  • {bet_id}")


# ============================================================================
# Commands
# ============================================================================


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize data directory, configuration file and empty ledger."""
    settings = get_settings()
    data_dir = settings.data_dir

    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created data directory: {data_dir}")

        config_path = data_dir / "config.yaml"
        if not config_path.exists():
            config_path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
            logger.info(f"Created config template: {config_path}")
        else:
            logger.info(f"Config file already exists: {config_path}")

        ledger_path = settings.ledger_path
        if not ledger_path.exists():
            save_bets(ledger_path, [])
            logger.info(f"Created empty ledger: {ledger_path}")
        else:
            logger.info(f"Ledger already exists: {ledger_path}")

        print(f"\n✓ Data directory initialized at {data_dir}\n")
        return 0

    except Exception as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"\n❌ Initialization failed: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== BetLedger Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}")
        print(f"Ledger File: {settings.ledger_path}\n")

        print("Display:")
        print(f"  Odds View: {settings.display.odds_view}")
        print(f"  Currency Symbol: {settings.display.currency_symbol}")
        print(f"  Default Sport: {settings.display.default_sport}\n")

        print("Server:")
        print(f"  Host: {settings.server.host}")
        print(f"  Port: {settings.server.port}\n")

        print(f"Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")
        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"\n❌ Failed to load configuration: {e}\n")
        return 1


def cmd_add(args: argparse.Namespace) -> int:
    """Record a new bet."""
    settings = get_settings()
    fields = _bet_fields_from_args(args)
    fields.setdefault("sport", settings.display.default_sport)

    try:
        bet = Bet(**fields)
        store = _open_store()
        store.add(bet)
    except ValidationError as e:
        print("\n❌ Invalid bet:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except LedgerError as e:
        logger.error(f"Failed to add bet: {e}")
        print(f"\n❌ {e}\n")
        return 1

    print("\n✓ Bet added\n")
    _print_bet(bet, settings.display.currency_symbol)
    return 0


def cmd_update(args: argparse.Namespace) -> int:
    """Edit fields of an existing bet (e.g. settle it)."""
    settings = get_settings()
    changes = _bet_fields_from_args(args)
    if not changes:
        print("\nNothing to update. Pass at least one field option.\n")
        return 1

    try:
        store = _open_store()
        bet = store.update(_resolve_id(store, args.bet_id), **changes)
    except ValidationError as e:
        print("\n❌ Invalid bet:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except LedgerError as e:
        logger.error(f"Failed to update bet: {e}")
        print(f"\n❌ {e}\n")
        return 1

    print("\n✓ Bet updated\n")
    _print_bet(bet, settings.display.currency_symbol)
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    """Remove a bet from the ledger."""
    try:
        store = _open_store()
        removed = store.delete(_resolve_id(store, args.bet_id))
    except LedgerError as e:
        logger.error(f"Failed to delete bet: {e}")
        print(f"\n❌ {e}\n")
        return 1

    print(f"\n✓ Deleted bet {removed.id} ({removed.event or 'no event'})\n")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Show the filtered ledger, most recent first."""
    settings = get_settings()
    symbol = settings.display.currency_symbol
    odds_view = args.odds_view or settings.display.odds_view

    try:
        store = _open_store()
        view = store.view(_filters_from_args(args))
    except ValidationError as e:
        print(f"\n❌ Invalid filter: {e}\n")
        return 1
    except LedgerError as e:
        logger.error(f"Failed to read ledger: {e}")
        print(f"\n❌ {e}\n")
        return 1

    print(f"\n=== Bets ({len(view.bets)}) ===\n")
    if not view.bets:
        print("  No bets match the current filters.\n")
        return 0

    header = f"{'ID':<8}  {'Date':<10}  {'Book':<12}  {'Sport':<8}  {'Event':<28}  {'Odds':>8}  {'Stake':>10}  {'Result':<7}  {'Payout':>10}  {'P&L':>10}"
    print(header)
    print("-" * len(header))
    for bet in view.bets:
        s = settle(bet)
        print(
            f"{bet.id[:8]:<8}  {bet.date[:10]:<10}  {(bet.book or '—')[:12]:<12}  "
            f"{(bet.sport or '—')[:8]:<8}  {(bet.event or '—')[:28]:<28}  "
            f"{format_odds(bet, odds_view):>8}  "
            f"{format_currency(to_number(bet.stake), symbol):>10}  {bet.result.value:<7}  "
            f"{format_currency(s.payout_if_win, symbol):>10}  "
            f"{format_currency(profit_for_bet(bet), symbol):>10}"
        )
    print()
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Show summary statistics for the filtered ledger."""
    settings = get_settings()

    try:
        store = _open_store()
        view = store.view(_filters_from_args(args))
    except ValidationError as e:
        print(f"\n❌ Invalid filter: {e}\n")
        return 1
    except LedgerError as e:
        logger.error(f"Failed to read ledger: {e}")
        print(f"\n❌ {e}\n")
        return 1

    print("\n=== Ledger Statistics ===\n")
    _print_stats(view, settings.display.currency_symbol)
    print()
    return 0


def cmd_equity(args: argparse.Namespace) -> int:
    """Show the cumulative P&L series over settled bets."""
    settings = get_settings()
    symbol = settings.display.currency_symbol

    try:
        store = _open_store()
        view = store.view(_filters_from_args(args))
    except ValidationError as e:
        print(f"\n❌ Invalid filter: {e}\n")
        return 1
    except LedgerError as e:
        logger.error(f"Failed to read ledger: {e}")
        print(f"\n❌ {e}\n")
        return 1

    print("\n=== Equity Curve ===\n")
    if not view.equity_curve:
        print("  No settled bets yet.\n")
        return 0

    for point in view.equity_curve:
        print(f"  {point.date:<12} {format_currency(point.pnl, symbol):>12}")
    print()
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Write the ledger as a JSON exchange document."""
    settings = get_settings()
    path = Path(args.path) if args.path else Path.cwd() / settings.ledger.export_file_name

    try:
        store = _open_store()
        if path.resolve() == store.path.resolve():
            print(f"\n❌ Refusing to export over the live ledger file: {path}\n")
            return 1
        store.export_file(path)
    except (LedgerError, OSError) as e:
        logger.error(f"Export failed: {e}")
        print(f"\n❌ Export failed: {e}\n")
        return 1

    print(f"\n✓ Exported {len(store)} bets to {path}\n")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Replace the ledger with a JSON exchange document."""
    try:
        store = _open_store()
        count = store.import_file(Path(args.path))
    except InvalidImportError as e:
        print(f"\n❌ {e.message}\n")
        for detail in e.details[:10]:
            print(f"  • {'.'.join(str(x) for x in detail['loc'])}: {detail['msg']}")
        print("Existing bets were left unchanged.\n")
        return 1
    except LedgerError as e:
        logger.error(f"Import failed: {e}")
        print(f"\n❌ Import failed: {e}\n")
        return 1

    print(f"\n✓ Imported {count} bets\n")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    """Delete every bet from the ledger."""
    if not args.yes:
        answer = input("This will delete ALL bets from this device. Continue? [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            print("Cancelled.")
            return 0

    try:
        count = _open_store().clear()
    except LedgerError as e:
        logger.error(f"Failed to clear ledger: {e}")
        print(f"\n❌ {e}\n")
        return 1

    print(f"\n✓ Deleted {count} bets\n")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the dashboard API server."""
    import uvicorn

    from betledger.api.server import app
    from betledger.observability import initialize_logfire

    settings = get_settings()
    host = args.host or settings.server.host
    port = args.port or settings.server.port

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        initialize_logfire(settings, app)
        print(f"\n=== BetLedger Dashboard API {__version__} ===\n")
        print(f"Ledger: {settings.ledger_path}")
        print(f"Listening on http://{host}:{port}\n")
        uvicorn.run(app, host=host, port=port, log_level="debug" if args.debug else "info")
        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        print(f"\nFailed to start: {e}\n")
        return 1


# ============================================================================
# Parser
# ============================================================================


def _add_filter_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--query", "-q", default="", help="Free-text search over book, sport, event, market, notes")
    parser.add_argument("--result", default="All", choices=["All", *RESULT_CHOICES], help="Result filter")
    parser.add_argument("--sport", default="All", help="Sport filter (case-insensitive)")
    parser.add_argument("--from", dest="date_from", default="", help="Start date (YYYY-MM-DD, inclusive)")
    parser.add_argument("--to", dest="date_to", default="", help="End date (YYYY-MM-DD, inclusive)")


def _add_bet_args(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument("--date", default=None, help="Bet date (YYYY-MM-DD, default today)")
    parser.add_argument("--book", default=None, help="Sportsbook")
    parser.add_argument("--sport", default=None, help="Sport")
    parser.add_argument("--event", default=None, help="Event description")
    parser.add_argument("--market", default=None, help="Market (e.g. moneyline, spread)")
    parser.add_argument("--odds-type", dest="odds_type", default=None, choices=ODDS_TYPE_CHOICES, help="Odds convention")
    parser.add_argument("--odds", default=None, required=required, help="Odds (e.g. -110 or 1.91)")
    parser.add_argument("--stake", default=None, required=required, help="Amount risked")
    parser.add_argument("--result", default=None, choices=RESULT_CHOICES, help="Bet result")
    parser.add_argument("--notes", default=None, help="Free-form notes")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="betledger",
        description="BetLedger: personal wager ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"BetLedger {__version__}",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable info logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_init = subparsers.add_parser("init", help="Initialize data directory and configuration")
    parser_init.set_defaults(func=cmd_init)

    parser_config = subparsers.add_parser("config", help="Display merged configuration")
    parser_config.set_defaults(func=cmd_config)

    parser_add = subparsers.add_parser("add", help="Record a new bet")
    _add_bet_args(parser_add, required=True)
    parser_add.set_defaults(func=cmd_add)

    parser_update = subparsers.add_parser("update", help="Edit or settle an existing bet")
    parser_update.add_argument("bet_id", help="Bet id (or unique prefix)")
    _add_bet_args(parser_update, required=False)
    parser_update.set_defaults(func=cmd_update)

    parser_delete = subparsers.add_parser("delete", help="Delete a bet")
    parser_delete.add_argument("bet_id", help="Bet id (or unique prefix)")
    parser_delete.set_defaults(func=cmd_delete)

    parser_list = subparsers.add_parser("list", help="List bets, most recent first")
    _add_filter_args(parser_list)
    view_group = parser_list.add_mutually_exclusive_group()
    view_group.add_argument("--decimal", dest="odds_view", action="store_const", const="Decimal", help="Show odds as decimal")
    view_group.add_argument("--american", dest="odds_view", action="store_const", const="American", help="Show odds as American")
    parser_list.set_defaults(func=cmd_list, odds_view=None)

    parser_stats = subparsers.add_parser("stats", help="Show summary statistics")
    _add_filter_args(parser_stats)
    parser_stats.set_defaults(func=cmd_stats)

    parser_equity = subparsers.add_parser("equity", help="Show cumulative P&L series")
    _add_filter_args(parser_equity)
    parser_equity.set_defaults(func=cmd_equity)

    parser_export = subparsers.add_parser("export", help="Export bets to a JSON file")
    parser_export.add_argument("path", nargs="?", default=None, help="Output file (default ./bets.json)")
    parser_export.set_defaults(func=cmd_export)

    parser_import = subparsers.add_parser("import", help="Replace bets with a JSON file")
    parser_import.add_argument("path", help="JSON file produced by export")
    parser_import.set_defaults(func=cmd_import)

    parser_clear = subparsers.add_parser("clear", help="Delete ALL bets")
    parser_clear.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    parser_clear.set_defaults(func=cmd_clear)

    parser_serve = subparsers.add_parser("serve", help="Start the dashboard API server")
    parser_serve.add_argument("--host", default=None, help="Bind host")
    parser_serve.add_argument("--port", type=int, default=None, help="Bind port")
    parser_serve.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
