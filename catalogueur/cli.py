"""Command-line interface for catalogueur."""

import sys
import json
import logging
import argparse
import asyncio
import dataclasses
from datetime import date
from pathlib import Path
from typing import Any, List, Optional

import httpx
from rich import box
from rich.console import Console
from rich.table import Table

from catalogueur import __version__
from catalogueur.api.error_handler import FatalCatalogError
from catalogueur.api.fetcher import PageFetcher, parse_cookie_header
from catalogueur.api.throttle import RequestDelay
from catalogueur.backends.giantbomb import GiantBombBackend
from catalogueur.backends.gog import GogBackend
from catalogueur.backends.tvtropes import TvTropesBackend
from catalogueur.config.loader import load_config, ConfigError
from catalogueur.config.settings import (
    api_settings,
    crawler_settings,
    giantbomb_settings,
    gog_settings,
    tvtropes_settings,
)
from catalogueur.config.validator import validate_config, ValidationError, VALID_LOG_LEVELS
from catalogueur.crawler import gamersgate
from catalogueur.library.legacy_games import AppStateReader
from catalogueur.models import GameDetails, LocalGame
from catalogueur.resolution.engine import ResolutionEngine
from catalogueur.resolution.modes import ResolutionMode
from catalogueur.ui.prompts import ConsoleChooser

logger = logging.getLogger(__name__)

BACKENDS = ['giantbomb', 'gog', 'tvtropes']


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog='catalogueur',
        description='Game metadata resolution and storefront library import',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Resolve a game against GiantBomb
  catalogueur resolve "Doom II" --backend giantbomb --platform PC

  # Pick the match yourself when several games qualify
  catalogueur resolve "Tomb Raider" --backend gog --interactive

  # Import a GamersGate order history (browser Cookie header in a file)
  catalogueur crawl gamersgate --cookie-file cookies.txt --json

  # List games owned in the Legacy Games launcher
  catalogueur legacy-games
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=Path,
        metavar='PATH',
        help='Path to config.yaml (default: ./config.yaml)'
    )

    parser.add_argument(
        '--log-level',
        choices=VALID_LOG_LEVELS,
        type=str.upper,
        help='Log level. Overrides config.'
    )

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    resolve = subparsers.add_parser('resolve', help='Resolve a game name to one catalog record')
    resolve.add_argument('name', help='Game name as known locally')
    resolve.add_argument('--backend', choices=BACKENDS, required=True, help='Catalog to search')
    resolve.add_argument(
        '--platform',
        dest='platforms',
        action='append',
        default=[],
        metavar='PLATFORM',
        help='Platform the game is owned on (repeatable)'
    )
    resolve.add_argument(
        '--release-date',
        type=date.fromisoformat,
        metavar='YYYY-MM-DD',
        help='Known release date, used to pick between same-named games'
    )
    resolve.add_argument('--source', help='Library the game was imported from (e.g. GOG)')
    resolve.add_argument('--game-id', help='Game id in the source library')
    resolve.add_argument(
        '--interactive',
        action='store_true',
        help='Prompt for a choice when several games match'
    )
    resolve.add_argument('--json', action='store_true', help='Print JSON instead of a table')

    crawl = subparsers.add_parser('crawl', help='Import an authenticated storefront library')
    crawl.add_argument('store', choices=['gamersgate'], help='Storefront to crawl')
    crawl.add_argument(
        '--cookie-file',
        type=Path,
        required=True,
        metavar='FILE',
        help='File holding the browser Cookie header of a logged in session'
    )
    crawl.add_argument('--json', action='store_true', help='Print JSON instead of a table')

    legacy = subparsers.add_parser('legacy-games', help='List games owned in the Legacy Games launcher')
    legacy.add_argument('--app-state', metavar='PATH', help='Path to the launcher app-state.json')
    legacy.add_argument('--json', action='store_true', help='Print JSON instead of a table')

    return parser


def _setup_logging(config: dict) -> None:
    """
    Setup logging configuration from config.

    Args:
        config: Configuration dictionary
    """
    logging_config = config.get('logging') or {}

    level_str = str(logging_config.get('level', 'INFO')).upper()
    level = getattr(logging, level_str, logging.INFO)

    handlers = []

    if logging_config.get('console', True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        handlers.append(console_handler)

    log_file = logging_config.get('file')
    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(
                logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            )
            handlers.append(file_handler)
        except (OSError, PermissionError) as e:
            print(f"Error: Could not create log file '{log_file}': {e}", file=sys.stderr)
            sys.exit(1)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True
    )

    # httpx logs full URLs at DEBUG level, API keys included
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {k: _to_jsonable(v) for k, v in dataclasses.asdict(value).items()}
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, date):
        return value.isoformat()
    return value


def _print_json(value: Any) -> None:
    print(json.dumps(_to_jsonable(value), indent=2, ensure_ascii=False))


def _join(values: Optional[List[Any]]) -> str:
    return ", ".join(str(v) for v in values or [])


def _print_details(console: Console, details: GameDetails, cover: Optional[str]) -> None:
    table = Table(title=details.name, box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")

    rows = [
        ("Names", _join(details.names)),
        ("Release date", str(details.release_date or "")),
        ("Platforms", _join(details.platforms)),
        ("Genres", _join(details.genres)),
        ("Tags", _join(details.tags)),
        ("Developers", _join(details.developers)),
        ("Publishers", _join(details.publishers)),
        ("Series", _join(details.series)),
        ("Age ratings", _join(details.age_ratings)),
        ("Links", _join(f"{link.name}: {link.url}" for link in details.links)),
        ("Cover", cover or ""),
    ]
    for field, value in rows:
        if value:
            table.add_row(field, value)
    console.print(table)

    if details.description:
        console.print(details.description, markup=False)


async def run_resolve(config: dict, args: argparse.Namespace, console: Console) -> int:
    """
    Resolve one game and print the record.

    Returns:
        Exit code (0 resolved, 2 nothing matched)
    """
    api = api_settings(config)
    mode = ResolutionMode.INTERACTIVE if args.interactive else ResolutionMode.UNATTENDED
    chooser = ConsoleChooser(console) if args.interactive else None
    game = LocalGame(
        name=args.name,
        platforms=tuple(args.platforms),
        release_date=args.release_date,
        source=args.source,
        game_id=args.game_id,
    )

    async with httpx.AsyncClient(headers={"User-Agent": api.user_agent}, follow_redirects=True) as client:
        if args.backend == 'giantbomb':
            backend = GiantBombBackend(giantbomb_settings(config), api, client)
        elif args.backend == 'gog':
            backend = GogBackend(gog_settings(config), api, client)
        else:
            fetcher = PageFetcher(client=client, timeout=api.request_timeout, user_agent=api.user_agent)
            backend = TvTropesBackend(fetcher, tvtropes_settings(config))

        engine = ResolutionEngine(backend, game, mode, chooser)
        details = await engine.resolve()
        if details.is_empty:
            logger.info(f"No match for '{args.name}' on {args.backend}")
            if args.json:
                _print_json(None)
            else:
                console.print(f"No match for '{args.name}'")
            return 2

        cover = await engine.get_cover_image()

    if args.json:
        _print_json(details)
    else:
        _print_details(console, details, cover)
    return 0


async def run_crawl(config: dict, args: argparse.Namespace, console: Console) -> int:
    """Crawl the GamersGate order history of a logged in session."""
    try:
        cookie_header = args.cookie_file.read_text(encoding='utf-8').strip()
    except OSError as e:
        print(f"Error: Could not read cookie file '{args.cookie_file}': {e}", file=sys.stderr)
        return 1

    settings = crawler_settings(config)
    api = api_settings(config)
    delay = RequestDelay(settings.min_delay_ms, settings.max_delay_ms)

    async with PageFetcher(
        timeout=settings.timeout,
        user_agent=api.user_agent,
        cookies=parse_cookie_header(cookie_header),
    ) as fetcher:
        user_id = await gamersgate.get_logged_in_user_id(fetcher)
        if user_id is None:
            print("Error: Not logged in to GamersGate; refresh the cookie file", file=sys.stderr)
            return 1
        logger.info(f"Logged in to GamersGate as user {user_id}")

        records = await gamersgate.get_all_games(fetcher, delay)

    if args.json:
        _print_json(records)
        return 0

    table = Table(title=f"GamersGate library ({len(records)} games)", box=box.SIMPLE)
    table.add_column("Title", style="bold")
    table.add_column("ID")
    table.add_column("Order")
    table.add_column("DRM")
    table.add_column("Downloads", justify="right")
    for record in records:
        table.add_row(
            record.title,
            record.external_id,
            str(record.parent_order_id),
            record.drm or "",
            str(len(record.download_urls)),
        )
    console.print(table)
    return 0


def run_legacy_games(args: argparse.Namespace, console: Console) -> int:
    """List games owned in the Legacy Games launcher."""
    games = AppStateReader(args.app_state).get_user_owned_games()
    if games is None:
        print("Error: Legacy Games app state not found or incomplete", file=sys.stderr)
        return 1

    if args.json:
        _print_json(games)
        return 0

    table = Table(title=f"Legacy Games library ({len(games)} games)", box=box.SIMPLE)
    table.add_column("Name", style="bold")
    table.add_column("Installer")
    table.add_column("Size", justify="right")
    for game in games:
        table.add_row(game.game_name, game.installer_uuid, game.game_installed_size or "")
    console.print(table)
    return 0


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for catalogueur CLI.

    Args:
        argv: Command-line arguments (default: sys.argv)

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        validate_config(config)
    except (ConfigError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if args.log_level:
        config.setdefault('logging', {})
        config['logging'] = {**(config['logging'] or {}), 'level': args.log_level}

    _setup_logging(config)
    console = Console()

    try:
        if args.command == 'resolve':
            return asyncio.run(run_resolve(config, args, console))
        if args.command == 'crawl':
            return asyncio.run(run_crawl(config, args, console))
        return run_legacy_games(args, console)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user.", file=sys.stderr)
        return 130
    except FatalCatalogError as e:
        print(f"\nFatal error: {e}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"\nError: Invalid app state file: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
