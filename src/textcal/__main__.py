"""Entry point for ``python -m textcal`` and the ``textcal`` script.

Subcommands:
    parse   -- Default.  Extract an event from text, optionally check it
               against (and add it to) Google Calendar.
    status  -- Report which extraction providers are configured.

Exit codes:
    0 -- Success.
    1 -- An error occurred (invalid configuration, bad ``--now`` value,
         calendar authentication or API failure).
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime

from textcal.calendar import CalendarAPIError, GoogleCalendarClient, get_calendar_credentials
from textcal.config import (
    ConfigError,
    Settings,
    build_strategy_config,
    load_settings,
    provider_status,
)
from textcal.log import setup_logging
from textcal.output import print_pipeline_result
from textcal.pipeline import build_pipeline, run_pipeline

_SUBCOMMANDS = {"parse", "status"}


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="textcal",
        description="Turn a natural-language activity into a calendar event.",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- "parse" subcommand (default) ---------------------------------
    parse_parser = subparsers.add_parser(
        "parse",
        help="Extract an event from text and check availability.",
    )
    parse_parser.add_argument(
        "text",
        nargs="+",
        help='The activity, e.g. "gym tomorrow for 2 hours at the arc gym".',
    )
    parse_parser.add_argument(
        "--timezone",
        "--tz",
        default=None,
        help="IANA timezone of the user (defaults to TIMEZONE from config).",
    )
    parse_parser.add_argument(
        "--now",
        default=None,
        help="Reference instant in ISO 8601 (defaults to the current time).",
    )
    parse_parser.add_argument(
        "--check-calendar",
        action="store_true",
        default=False,
        help="Read Google Calendar and report conflicts and alternatives.",
    )
    parse_parser.add_argument(
        "--create",
        action="store_true",
        default=False,
        help="Add the extracted event to Google Calendar.",
    )
    parse_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the result as JSON.",
    )
    parse_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )

    # --- "status" subcommand ------------------------------------------
    status_parser = subparsers.add_parser(
        "status",
        help="Show which extraction providers are configured.",
    )
    status_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the status as JSON.",
    )
    status_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )

    return parser


def _resolve_command(
    parser: argparse.ArgumentParser,
    argv: list[str],
) -> argparse.Namespace:
    """Parse *argv*, routing to ``parse`` when no subcommand is given.

    ``textcal meeting at 3pm`` is the same as ``textcal parse meeting at
    3pm``.  ``-h``/``--help`` as the first token shows top-level help.
    """
    if not argv:
        argv = ["parse"]
    elif argv[0] not in _SUBCOMMANDS and argv[0] not in {"-h", "--help"}:
        argv = ["parse", *argv]

    return parser.parse_args(argv)


def _load_settings(verbose: bool) -> Settings | None:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None

    if not verbose:
        setup_logging(settings.log_level)
    return settings


def _parse_reference(value: str) -> datetime:
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _handle_parse(args: argparse.Namespace) -> int:
    """Execute the ``parse`` subcommand.

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    settings = _load_settings(args.verbose)
    if settings is None:
        return 1

    text = " ".join(args.text).strip()
    if not text:
        print("Error: Text must not be empty", file=sys.stderr)
        return 1

    reference = None
    if args.now is not None:
        try:
            reference = _parse_reference(args.now)
        except ValueError:
            print(f"Error: Invalid --now value: {args.now}", file=sys.stderr)
            return 1

    timezone = args.timezone or settings.timezone
    pipeline = build_pipeline(build_strategy_config(settings))

    client: GoogleCalendarClient | None = None
    if args.check_calendar or args.create:
        try:
            credentials = get_calendar_credentials(
                settings.credentials_path, settings.token_path
            )
        except CalendarAPIError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        client = GoogleCalendarClient(
            credentials, timezone=timezone, calendar_id=settings.calendar_id
        )

    result = run_pipeline(
        text,
        pipeline,
        timezone=timezone,
        reference=reference,
        calendar_reader=client.list_existing_events if client and args.check_calendar else None,
    )
    print_pipeline_result(result, as_json=args.json)

    if args.create and client is not None:
        try:
            created = client.create_event(result.event)
        except CalendarAPIError as exc:
            print(f"Error: Could not create event: {exc}", file=sys.stderr)
            return 1
        print(f"Created event (ID: {created.get('id', '?')})", file=sys.stderr)

    return 0


def _handle_status(args: argparse.Namespace) -> int:
    """Execute the ``status`` subcommand.

    Returns:
        Exit code: ``0`` on success, ``1`` on configuration error.
    """
    settings = _load_settings(args.verbose)
    if settings is None:
        return 1

    status = provider_status(build_strategy_config(settings))
    if args.json:
        print(json.dumps(status, indent=2))
        return 0

    for name, enabled in status.items():
        print(f"  {name:<9} {'enabled' if enabled else 'not configured'}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the textcal CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    parser = build_parser()
    args = _resolve_command(parser, argv if argv is not None else sys.argv[1:])

    setup_logging("DEBUG" if getattr(args, "verbose", False) else "INFO")

    if args.command == "status":
        return _handle_status(args)

    return _handle_parse(args)


if __name__ == "__main__":
    raise SystemExit(main())
