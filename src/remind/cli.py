"""Command-line interface for RE:MIND.

This module provides the main entry point for the ``remind`` command.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import httpx
import structlog

from remind import __version__
from remind.config import Settings, get_settings
from remind.db import create_engine_from_settings, ensure_core_schema
from remind.logs import configure_logging
from remind.models import ChangeType
from remind.nlp import VoiceCommandInterpreter, parse_natural_language
from remind.notifications import EmailSender, PushSender, ReminderDispatcher, SmsSender
from remind.sync import OfflineStore, SyncReconciler

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="remind", description="RE:MIND reminders")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind host (default: settings api_host)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default: settings api_port)")

    subparsers.add_parser("init-db", help="Create database tables if they do not exist")

    dispatch_parser = subparsers.add_parser("dispatch-reminders", help="Send every due reminder once")
    dispatch_parser.add_argument("--limit", type=int, default=500, help="Max reminders per run")

    parse_parser = subparsers.add_parser("parse", help="Parse a natural-language reminder")
    parse_parser.add_argument("text", help='Text such as "Call mom tomorrow at 3pm"')

    voice_parser = subparsers.add_parser("voice", help="Interpret a voice transcript")
    voice_parser.add_argument("transcript", help='Transcript such as "hey wanda buy milk and call the dentist"')

    sync_parser = subparsers.add_parser("sync", help="Sync the local offline store with the API")
    sync_parser.add_argument("--offline", action="store_true", help="Only record changes; do not contact the API")
    sync_parser.add_argument("--add", default=None, help="Record a new event parsed from this text first")
    sync_parser.add_argument("--force", action="store_true", help="Always pull server state after replaying")
    sync_parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the offline store (default: settings sync_db_path)",
    )

    return parser


def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from remind.api import create_app

    uvicorn.run(
        create_app(settings),
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_level=settings.log_level.lower(),
    )
    return 0


def _cmd_init_db(settings: Settings) -> int:
    engine = create_engine_from_settings(settings)
    ensure_core_schema(engine)
    print(f"Database ready at {engine.url.render_as_string(hide_password=True)}")
    return 0


def _cmd_dispatch(args: argparse.Namespace, settings: Settings) -> int:
    engine = create_engine_from_settings(settings)
    ensure_core_schema(engine)
    dispatcher = ReminderDispatcher(
        engine=engine,
        email=EmailSender(settings),
        push=PushSender(settings),
        sms=SmsSender(settings),
    )
    report = dispatcher.dispatch_due(limit=args.limit)
    print(f"Due: {report.due}  sent: {report.sent}  failed: {report.failed}")
    for failure in report.channel_failures:
        print(f"- channel failed: {failure}")
    return 0 if report.failed == 0 else 1


def _cmd_parse(args: argparse.Namespace) -> int:
    parsed = parse_natural_language(args.text)
    print(f"Title: {parsed.title}")
    print(f"Date: {parsed.date.isoformat()}")
    print(f"Confidence: {parsed.confidence:.2f}")
    if not parsed.date_inferred:
        print("No date or time recognised; defaulted to now")
    return 0


def _cmd_voice(args: argparse.Namespace) -> int:
    command = VoiceCommandInterpreter().process_transcript(args.transcript)
    if command is None:
        print("No trigger phrase found in transcript")
        return 1
    print(command.model_dump_json(indent=2))
    return 0


async def _cmd_sync(args: argparse.Namespace, settings: Settings) -> int:
    store = OfflineStore(args.db or settings.sync_db_path)
    store.initialize()

    headers = {"Authorization": f"Bearer {settings.sync_token}"} if settings.sync_token else {}
    async with httpx.AsyncClient(base_url=settings.sync_api_url, headers=headers) as client:
        reconciler = SyncReconciler(
            store,
            client,
            batch_size=settings.sync_batch_size,
            requeue_failed=settings.sync_requeue_failed,
            online=False,
        )

        if args.add:
            parsed = parse_natural_language(args.add)
            change = await reconciler.record_change(
                ChangeType.CREATE,
                {"title": parsed.title, "start_date": parsed.date.isoformat()},
            )
            print(f"Recorded {change.type.value} {change.data['id']}: {parsed.title}")

        if args.offline:
            print(f"Pending changes: {reconciler.status.pending_changes}")
            return 0

        result = await reconciler.set_online(True)
        if args.force:
            result = await reconciler.force_sync()

    status = reconciler.status
    if result is not None:
        print(
            f"Batches: {result.batches}  sent: {result.succeeded}  failed: {result.failed}  "
            f"fetched: {result.fetched}"
        )
    print(f"Pending changes: {status.pending_changes}")
    if status.error:
        print(f"Sync error: {status.error}")
        return 1
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the RE:MIND CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("remind_cli_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    if parsed.command == "serve":
        return _cmd_serve(parsed, settings)
    if parsed.command == "init-db":
        return _cmd_init_db(settings)
    if parsed.command == "dispatch-reminders":
        return _cmd_dispatch(parsed, settings)
    if parsed.command == "parse":
        return _cmd_parse(parsed)
    if parsed.command == "voice":
        return _cmd_voice(parsed)
    if parsed.command == "sync":
        return asyncio.run(_cmd_sync(parsed, settings))

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
