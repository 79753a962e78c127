"""
CLI (Command Line Interface).

    lmswatch run [--start N] [--end M]   fetch listing, diff, notify, persist
    lmswatch scrape                      browser session, store raw pages
    lmswatch subjects                    list stored subject snapshots

Scheduling is not handled here: call `lmswatch run` from cron or any
other trigger.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

import requests
from playwright.async_api import Error as PlaywrightError

from lmswatch.browser import PlaywrightBrowser
from lmswatch.collect import SliceRange
from lmswatch.config import Settings, load_settings
from lmswatch.errors import LmsWatchError, ValidationError
from lmswatch.http_client import ClientOptions, PortalClient
from lmswatch.log import configure_logging
from lmswatch.model import SUBJECT_KEY_PREFIX, Subject
from lmswatch.session import PortalSession, SessionOptions
from lmswatch.storage import page_store, snapshot_store
from lmswatch.webhook import DiscordWebhook
from lmswatch.worker import Outcome, Worker

logger = logging.getLogger(__name__)


def _cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    """
    One diff/notify run over the (optionally sliced) course listing.
    """
    client = PortalClient(
        ClientOptions(
            login_url=settings.login_url,
            subjects_url=settings.subjects_url,
            username=settings.username,
            password=settings.password,
        )
    )
    worker = Worker(
        client=client,
        store=snapshot_store(settings.data_dir),
        webhook=DiscordWebhook(settings.discord_webhook_url, settings.discord_user_id),
    )

    slice_range = None
    if args.start is not None or args.end is not None:
        slice_range = SliceRange(args.start, args.end)

    report = asyncio.run(worker.handle(slice_range))

    for r in report.results:
        extra = f" ({'; '.join(r.reasons)})" if r.reasons else ""
        print(f"{r.course_id} | {r.outcome.value}{extra}")

    return 0 if report.count(Outcome.FAILED) == 0 and not report.errors else 1


def _cmd_scrape(args: argparse.Namespace, settings: Settings) -> int:
    """
    Browser session through the portal into the LMS; raw pages go to the audit store.
    """
    session = PortalSession(
        SessionOptions(
            portal_url=settings.portal_url,
            lms_url=settings.lms_url,
            username=settings.username,
            password=settings.password,
        ),
        browser=PlaywrightBrowser(headless=settings.headless),
        pages=page_store(settings.data_dir),
    )

    ctx = asyncio.run(session.scrape())

    total = sum(len(m) for m in ctx.meetings.values())
    print(f"Saved {len(ctx.urls)} pages ({total} meetings) to: {Path(settings.data_dir) / 'pages'}")
    return 0


def _cmd_subjects(args: argparse.Namespace, settings: Settings) -> int:
    """
    Print every stored subject snapshot (read-only).
    """
    store = snapshot_store(settings.data_dir)
    keys = store.list(SUBJECT_KEY_PREFIX)
    if not keys:
        print("No subjects stored yet.")
        return 0

    for key in keys:
        raw = store.get(key)
        if raw is None:
            continue
        try:
            subject = Subject.from_json(raw)
        except ValueError:
            print(f"{key} | (unreadable snapshot)")
            continue
        lectures = sum(len(m.lectures) for m in subject.meetings)
        print(f"{subject.course_id} | {subject.name} | {len(subject.meetings)} meetings, {lectures} lectures")

    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="lmswatch", description="Watch an LMS for new lecture material")
    parser.add_argument("--env-file", type=Path, default=None, help="Path to a .env file")
    sub = parser.add_subparsers(dest="command", required=True)

    p_run = sub.add_parser("run", help="Fetch subjects, notify about changes, save snapshots")
    p_run.add_argument("--start", type=int, default=None, help="First course card to process")
    p_run.add_argument("--end", type=int, default=None, help="Stop before this course card")

    sub.add_parser("scrape", help="Browse the portal and store raw lecture pages")
    sub.add_parser("subjects", help="List stored subject snapshots")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    handlers = {
        "run": _cmd_run,
        "scrape": _cmd_scrape,
        "subjects": _cmd_subjects,
    }
    handler = handlers.get(args.command)
    if handler is None:
        raise SystemExit(2)

    try:
        settings = load_settings(args.env_file)
        configure_logging(settings.log_level)
        raise SystemExit(handler(args, settings))
    except ValidationError as e:
        print(f"Configuration error: {e}")
        raise SystemExit(1)
    except (LmsWatchError, requests.RequestException, PlaywrightError) as e:
        logger.error("Run failed: %s", e)
        raise SystemExit(1)
