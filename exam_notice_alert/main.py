"""Entrypoint for the exam notice email alert."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from functools import partial
from typing import List, Optional

from requests.exceptions import RequestException

from .config import Settings, get_settings
from .monitor import NoticeMonitor, build_filters
from .notifier import send_digest
from .simulate import run_scenarios
from .source import fetch_notices
from .state import KnownSentStore, KnownSentStoreError, PersistenceFilter

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Email an alert when new exam notices appear.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--test", action="store_true", help="search past notices, do not record them")
    mode.add_argument("--seed", action="store_true", help="record current notices without emailing")
    mode.add_argument(
        "--check", action="store_true", help="one-shot time + keyword check, no persistence"
    )
    mode.add_argument("--simulate", action="store_true", help="run offline mock scenarios")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def build_monitor(settings: Settings, *, check_only: bool = False) -> NoticeMonitor:
    persistence = None
    if not check_only:
        persistence = PersistenceFilter(KnownSentStore(settings.known_sent_path))

    return NoticeMonitor(
        filters=build_filters(settings, persistence, check_only=check_only),
        persistence=persistence,
        fetch=partial(
            fetch_notices,
            settings.news_api_url,
            settings.exam_api_url,
            settings.request_timeout,
        ),
        notify=partial(send_digest, settings),
        seed_mode=settings.seed_mode and not check_only,
        record_sent=not settings.test_mode,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run the alert workflow."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    if args.simulate:
        run_scenarios()
        return 0

    try:
        settings = get_settings(require_email=not args.seed)
    except ValueError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1

    if args.test:
        settings = dataclasses.replace(settings, test_mode=True, seed_mode=False)
    elif args.seed:
        settings = dataclasses.replace(settings, seed_mode=True, test_mode=False)

    mode = "SEED" if settings.seed_mode else "TEST" if settings.test_mode else "PRODUCTION"
    if args.check:
        mode = "CHECK"
    LOGGER.info("Starting check in %s MODE...", mode)

    try:
        result = build_monitor(settings, check_only=args.check).run()
    except RequestException as exc:
        LOGGER.error("Failed to fetch notices: %s", exc)
        return 1
    except KnownSentStoreError as exc:
        LOGGER.error("Known-Sent store error: %s", exc)
        return 1
    except Exception as exc:  # noqa: BLE001
        LOGGER.error("Run failed: %s", exc)
        return 1

    LOGGER.info(
        "Done: fetched=%d relevant=%d emailed=%d recorded=%d",
        result.fetched,
        result.relevant,
        result.notified,
        result.persisted,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
