"""CLI entry point: sync, scheduler, show."""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from scripts.sheet_sync.config import SyncConfig, load_config
from scripts.sheet_sync.errors import SheetSyncError
from scripts.sheet_sync.fetch import SheetFetcher
from scripts.sheet_sync.logging_config import configure_logging
from scripts.sheet_sync.reconcile import SheetReconciler, run_once

logger = logging.getLogger("sheet_sync.cli")

EXIT_OK = 0
EXIT_FAILED = 1


def _load(args: argparse.Namespace) -> SyncConfig:
    config = load_config()
    configure_logging(args.log_level or config.log_level, config.secret_values())
    return config


def cmd_sync(args: argparse.Namespace) -> int:
    """Run one reconciliation of both sheets."""
    config = _load(args)
    result = run_once(config, dry_run=args.dry_run)
    logger.info("Sync results: %s", result.as_dict())
    print("Sync done" if not args.dry_run else "Dry run done")
    return EXIT_OK


def cmd_scheduler(args: argparse.Namespace) -> int:
    """Start the APScheduler loop; blocks until interrupted."""
    from scripts.sheet_sync.scheduler import start_scheduler

    start_scheduler(_load(args))
    return EXIT_OK


def cmd_show(args: argparse.Namespace) -> int:
    """Print what the next sync would write, without touching the store."""
    config = _load(args)
    fetcher = SheetFetcher.from_config(config.sheets)
    try:
        apps, user_apps = SheetReconciler(config, None, fetcher).load()
    finally:
        fetcher.close()

    if args.dataset in ("all", "apps"):
        fmt = "{:<10}  {:<30}  {}"
        print(fmt.format("APP NO", "LABEL", "URL"))
        print("-" * 80)
        for a in apps.accepted:
            print(fmt.format(a.app_no, a.label[:30], a.url))
        print(f"{len(apps.accepted)} apps ({apps.rejected} dropped)")

    if args.dataset == "all":
        print()

    if args.dataset in ("all", "user_apps"):
        fmt = "{:<40}  {:<10}  {:<7}  {}"
        print(fmt.format("EMAIL", "APP NO", "ALLOWED", "EDITOR"))
        print("-" * 80)
        for u in user_apps.accepted:
            print(fmt.format(u.email[:40], u.app_no, str(u.allowed), str(u.editor)))
        print(f"{len(user_apps.accepted)} user_apps ({user_apps.rejected} dropped)")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheet-sync",
        description="Reconcile the apps and user allow-list sheets into the store",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override LOG_LEVEL",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Run one-shot sync")
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and parse both sheets but skip the upserts",
    )
    sync_parser.set_defaults(func=cmd_sync)

    sched_parser = subparsers.add_parser("scheduler", help="Start scheduled sync loop")
    sched_parser.set_defaults(func=cmd_scheduler)

    show_parser = subparsers.add_parser("show", help="Print the records the next sync would write")
    show_parser.add_argument(
        "--dataset", "-d",
        choices=["all", "apps", "user_apps"],
        default="all",
        help="Which table to print (default: all)",
    )
    show_parser.set_defaults(func=cmd_show)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit status."""
    configure_logging()
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except SheetSyncError as exc:
        logger.error("%s failed: %s", args.command, exc, exc_info=True)
        return EXIT_FAILED
