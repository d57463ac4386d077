#!/usr/bin/env python3
"""
Nawartu Client - CLI Entry Point

Terminal front end for the Nawartu hospitality platform.

Usage:
    nawartu governorates                     # List all governorates
    nawartu governorates حلب                 # Search by name or city
    nawartu governorates --near 33.5 36.3    # Order for a host location
    nawartu nearest 35.1 36.7                # Nearest governorate
    nawartu calendar --month 2025-06         # Two-month calendar
    nawartu availability LISTING_ID          # Availability snapshot
    nawartu availability LISTING_ID --watch  # Reprint on live changes
    nawartu check LISTING_ID 2025-06-01 2025-06-04 --guests 2
    nawartu translate "شقة فاخرة" --to en    # Translate text
    nawartu resolve listings.json            # Resolve listing text
    nawartu language ar                      # Switch display language
"""

import argparse
import json
import logging
import sys
import time
from datetime import date
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nawartu import __version__
from nawartu.app_state import AppState
from nawartu.models import AvailabilityDay, Governorate
from nawartu.services.availability import AvailabilityGateway
from nawartu.services.backend import BackendClient
from nawartu.services.calendar import (
    DateRangeSelector,
    format_nights,
    month_title,
    weekday_labels,
)
from nawartu.services.content import BilingualContentResolver
from nawartu.services.governorate import GovernorateService
from nawartu.services.notifications import ConsoleNotifier
from nawartu.services.realtime import ChangeFeed
from nawartu.services.realtime_bridge import RealtimeBridge
from nawartu.services.translation import create_translator, detect_script
from nawartu.utils.i18n import SUPPORTED_LANGUAGES

console = Console()

logger = logging.getLogger('Nawartu')

STATUS_STYLES = {
    "available": "green",
    "booked": "red",
    "blocked": "dim",
    "maintenance": "yellow",
    "reserved": "magenta",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def _month(value: str) -> date:
    try:
        return date.fromisoformat(f"{value}-01")
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid month '{value}', expected YYYY-MM")


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="nawartu",
        description="Nawartu Client - Syrian hospitality platform from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  nawartu governorates                       # All 14 governorates
  nawartu --lang ar governorates دمشق        # Search, Arabic output
  nawartu nearest 35.1 36.7                  # Nearest governorate
  nawartu calendar --from 2025-06-01 --to 2025-06-04
  nawartu availability 7f1c... --start 2025-06-01 --end 2025-07-01
  nawartu translate "Modern villa" --to ar
  nawartu resolve listings.json --no-translate
        """,
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose (debug) logging"
    )

    parser.add_argument(
        "--lang",
        choices=SUPPORTED_LANGUAGES,
        default=None,
        help="Display language (default: saved preference)",
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    governorates = subparsers.add_parser("governorates", help="List or search governorates")
    governorates.add_argument("query", nargs="?", default="", help="Name or city to search for")
    governorates.add_argument(
        "--near",
        nargs=2,
        type=float,
        metavar=("LAT", "LNG"),
        help="Order by distance from a host location",
    )

    nearest = subparsers.add_parser("nearest", help="Nearest governorate to a point")
    nearest.add_argument("lat", type=float)
    nearest.add_argument("lng", type=float)

    calendar = subparsers.add_parser("calendar", help="Show a two-month stay calendar")
    calendar.add_argument("--month", type=_month, default=None, help="First month (YYYY-MM)")
    calendar.add_argument("--from", dest="check_in", type=_date, default=None, help="Check-in date")
    calendar.add_argument("--to", dest="check_out", type=_date, default=None, help="Check-out date")

    availability = subparsers.add_parser("availability", help="Show a listing's availability")
    availability.add_argument("listing_id")
    availability.add_argument("--start", type=_date, default=None)
    availability.add_argument("--end", type=_date, default=None)
    availability.add_argument(
        "--watch", action="store_true", help="Keep running and reprint on live changes"
    )

    check = subparsers.add_parser("check", help="Check a prospective stay")
    check.add_argument("listing_id")
    check.add_argument("check_in", type=_date)
    check.add_argument("check_out", type=_date)
    check.add_argument("--guests", type=int, default=1)

    translate = subparsers.add_parser("translate", help="Translate text between Arabic and English")
    translate.add_argument("text")
    translate.add_argument("--to", dest="target", choices=SUPPORTED_LANGUAGES, required=True)
    translate.add_argument("--from", dest="source", choices=SUPPORTED_LANGUAGES + ("auto",), default="auto")

    resolve = subparsers.add_parser("resolve", help="Resolve listing text from a JSON file")
    resolve.add_argument("json_file", help="JSON file with a listing object or a list of them")
    resolve.add_argument("--no-translate", action="store_true", help="Skip machine translation")

    language = subparsers.add_parser("language", help="Show or set the display language")
    language.add_argument("value", nargs="?", choices=SUPPORTED_LANGUAGES)

    return parser.parse_args(argv)


def print_governorates(
    governorates: list[Governorate],
    lang: str,
    near: Optional[tuple[float, float]] = None
) -> None:
    """Print governorates as a table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", width=3)
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Region", style="yellow")
    table.add_column("Major cities")
    if near:
        table.add_column("Distance (deg)", justify="right")

    for i, gov in enumerate(governorates, 1):
        row = [
            str(i),
            gov.id,
            GovernorateService.display_name(gov, lang),
            gov.region,
            "، ".join(gov.major_cities[:3]),
        ]
        if near:
            row.append(f"{GovernorateService.distance(near[0], near[1], gov):.2f}")
        table.add_row(*row)

    console.print(table)
    console.print(f"  Total: {len(governorates)} governorates")


def print_calendar(selector: DateRangeSelector, lang: str) -> None:
    """Print the two visible months side by side."""
    tables = []
    for year, month in selector.visible_months():
        table = Table(title=month_title(year, month, lang), show_lines=False, box=None)
        for label in weekday_labels(lang):
            table.add_column(label, justify="right", width=3)

        cells = selector.month_cells(year, month)
        for week_start in range(0, len(cells), 7):
            row = []
            for cell in cells[week_start:week_start + 7]:
                text = str(cell.date.day)
                if not cell.in_month or cell.past:
                    style = "dim"
                elif cell.start or cell.end:
                    style = "bold reverse"
                elif cell.in_range:
                    style = "on grey23"
                elif cell.today:
                    style = "underline"
                else:
                    style = ""
                row.append(f"[{style}]{text}[/{style}]" if style else text)
            table.add_row(*row)
        tables.append(table)

    grid = Table.grid(padding=(0, 4))
    grid.add_row(*tables)
    console.print(grid)

    nights = selector.nights
    if nights is not None:
        console.print(f"\n  {selector.selection.start} -> {selector.selection.end}: {format_nights(nights, lang)}")


def run_governorates(args: argparse.Namespace, state: AppState) -> int:
    if args.near:
        lat, lng = args.near
        governorates = GovernorateService.ordered_for_host(lat, lng)
        if args.query:
            matches = {gov.id for gov in GovernorateService.suggestions(args.query, state.language)}
            governorates = [gov for gov in governorates if gov.id in matches]
        print_governorates(governorates, state.language, near=(lat, lng))
    else:
        print_governorates(GovernorateService.suggestions(args.query, state.language), state.language)
    return 0


def run_nearest(args: argparse.Namespace, state: AppState) -> int:
    gov = GovernorateService.nearest(args.lat, args.lng)
    console.print(
        Panel.fit(
            f"[bold green]{GovernorateService.display_name(gov, state.language)}[/bold green] "
            f"[dim]({gov.id}, {gov.region})[/dim]",
            border_style="green",
        )
    )
    return 0


def run_calendar(args: argparse.Namespace, state: AppState) -> int:
    selector = DateRangeSelector(anchor=args.month or args.check_in)
    for day in (args.check_in, args.check_out):
        if day is not None and not selector.select_date(day):
            console.print(f"[yellow]{day} is in the past and cannot be selected[/yellow]")
    print_calendar(selector, state.language)
    return 0


def _backend(state: AppState) -> BackendClient:
    return BackendClient(access_token=state.access_token)


def print_availability(listing_id: str, days: list[AvailabilityDay]) -> None:
    table = Table(title=f"Availability: {listing_id}", show_header=True, header_style="bold")
    table.add_column("Date", style="cyan")
    table.add_column("Status")
    table.add_column("Price x", justify="right")
    table.add_column("Min nights", justify="right")
    for day in days:
        style = STATUS_STYLES.get(day.status, "")
        table.add_row(
            day.date.isoformat(),
            f"[{style}]{day.status}[/{style}]" if style else day.status,
            f"{day.price_modifier:g}",
            str(day.min_stay_nights),
        )
    console.print(table)
    console.print(f"  Total: {len(days)} days")


def watch_availability(gateway: AvailabilityGateway, poll_interval: float = 1.0) -> None:
    """Reprint the snapshot whenever a live change replaces it, until Ctrl+C."""
    console.print("[dim]Watching for changes (Ctrl+C to stop)...[/dim]")
    shown = gateway.availability
    try:
        while True:
            time.sleep(poll_interval)
            if gateway.availability is not shown:
                shown = gateway.availability
                print_availability(gateway.listing_id, shown)
    except KeyboardInterrupt:
        console.print("[dim]Stopped watching[/dim]")


def run_availability(args: argparse.Namespace, state: AppState) -> int:
    notifier = ConsoleNotifier(state.language, console)
    backend = _backend(state)
    feed = ChangeFeed() if args.watch else None
    bridge = RealtimeBridge(feed, access_token=state.access_token) if feed is not None else None
    try:
        if bridge is not None:
            bridge.start()
        with AvailabilityGateway(
            backend, args.listing_id, feed=feed, notifier=notifier,
            start_date=args.start, end_date=args.end,
        ) as gateway:
            with console.status("[dim]Loading availability...[/dim]"):
                days = gateway.fetch_availability()
            if gateway.error:
                return 1
            print_availability(args.listing_id, days)
            if bridge is not None:
                watch_availability(gateway)
    finally:
        if bridge is not None:
            bridge.stop()
        backend.close()
    return 0


def run_check(args: argparse.Namespace, state: AppState) -> int:
    notifier = ConsoleNotifier(state.language, console)
    backend = _backend(state)
    try:
        with AvailabilityGateway(backend, args.listing_id, notifier=notifier) as gateway:
            result = gateway.check_availability(args.check_in, args.check_out, args.guests)
    finally:
        backend.close()

    if result is None:
        console.print("[yellow]No availability information returned[/yellow]")
        return 1

    table = Table(title="Availability check", show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Available", "[green]yes[/green]" if result.is_available else "[red]no[/red]")
    table.add_row("Nights", f"{result.available_nights}/{result.total_nights}")
    table.add_row("Base price", f"{result.base_price:g}")
    table.add_row("Total price", f"{result.total_price:g}")
    if result.blocked_dates:
        table.add_row("Blocked", ", ".join(d.isoformat() for d in result.blocked_dates))
    console.print(table)
    return 0 if result.is_available else 2


def run_translate(args: argparse.Namespace, state: AppState) -> int:
    translator = create_translator(_backend(state))
    source = args.source
    if source == "auto":
        source = detect_script(args.text) or "auto"
    result = translator.translate_detailed(args.text, args.target, source)
    console.print(result.text)
    if not result.translated:
        console.print("[dim](not translated)[/dim]")
        return 1
    return 0


def run_resolve(args: argparse.Namespace, state: AppState) -> int:
    try:
        with open(args.json_file, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Could not read {args.json_file}: {e}[/red]")
        return 1

    records = data if isinstance(data, list) else [data]
    translator = None if args.no_translate else create_translator(_backend(state))
    resolver = BilingualContentResolver(translator)

    with console.status("[dim]Resolving listing text...[/dim]"):
        resolved = resolver.resolve_many(records, state.language, auto_translate=not args.no_translate)

    table = Table(show_lines=True)
    table.add_column("Name", style="cyan", max_width=30)
    table.add_column("Location", style="green", max_width=25)
    table.add_column("Description", max_width=60)
    table.add_column("Auto", justify="center")
    for content in resolved:
        flags = [field[0].upper() for field, flag in content.auto_translated.items() if flag]
        table.add_row(content.name, content.location, content.description, "".join(flags) or "-")
    console.print(table)
    return 0


def run_language(args: argparse.Namespace, state: AppState) -> int:
    if args.value:
        state.set_language(args.value)
        console.print(f"[green]Language set to {args.value} ({state.direction})[/green]")
    else:
        console.print(f"{state.language} ({state.direction})")
    return 0


COMMANDS = {
    "governorates": run_governorates,
    "nearest": run_nearest,
    "calendar": run_calendar,
    "availability": run_availability,
    "check": run_check,
    "translate": run_translate,
    "resolve": run_resolve,
    "language": run_language,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    state = AppState.load()
    if args.lang:
        state.language = args.lang

    logger.debug(f"Running '{args.command}' in {state.language}")
    return COMMANDS[args.command](args, state)


if __name__ == "__main__":
    sys.exit(main())
