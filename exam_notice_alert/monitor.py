"""The notice evaluation pipeline: fetch, filter, notify, record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from .config import Settings
from .filters import ContentFilter, NoticeFilter, TimeFilter, apply_filters
from .models import Notice
from .state import PersistenceFilter

LOGGER = logging.getLogger(__name__)

Fetcher = Callable[[], List[Notice]]
Notifier = Callable[[Sequence[Notice]], None]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class RunResult:
    fetched: int = 0
    relevant: int = 0
    notified: int = 0
    persisted: int = 0
    seeded: bool = False


def sort_by_date(notices: Sequence[Notice]) -> List[Notice]:
    """Oldest first; notices with unparseable dates go to the front."""
    return sorted(notices, key=lambda n: n.published_at or _EPOCH)


def build_filters(
    settings: Settings, persistence: Optional[PersistenceFilter], *, check_only: bool = False
) -> List[NoticeFilter]:
    """Compose the filter chain for the configured run mode.

    - normal: time + persistence, content only decides styling
    - test: content only, no age cutoff and history is not a gate
    - check: time + content, nothing is persisted
    """
    if check_only:
        return [TimeFilter(settings.age_limit_hours), ContentFilter()]
    if settings.test_mode:
        return [ContentFilter()]
    filters: list[NoticeFilter] = [TimeFilter(settings.age_limit_hours)]
    if persistence is not None:
        filters.append(persistence)
    return filters


class NoticeMonitor:
    """Runs the pipeline once.

    ``persistence`` is the collaborator that preloads and records sent
    notices; it may also appear in ``filters`` as a gate, but its lifecycle
    is driven from here either way.
    """

    def __init__(
        self,
        filters: Sequence[NoticeFilter],
        persistence: Optional[PersistenceFilter],
        fetch: Fetcher,
        notify: Notifier,
        *,
        seed_mode: bool = False,
        record_sent: bool = True,
    ) -> None:
        self.filters = list(filters)
        self.persistence = persistence
        self.fetch = fetch
        self.notify = notify
        self.seed_mode = seed_mode
        self.record_sent = record_sent

    def run(self) -> RunResult:
        result = RunResult()
        try:
            if self.persistence is not None:
                self.persistence.init()

            notices = sort_by_date(self.fetch())
            result.fetched = len(notices)
            LOGGER.info("Fetched %d unique notices", len(notices))

            if self.persistence is not None:
                self.persistence.preload(notices)

            if self.seed_mode:
                return self._seed(notices, result)

            relevant = apply_filters(notices, self.filters)
            result.relevant = len(relevant)
            if not relevant:
                LOGGER.info("No new relevant notices, nothing to send")
                return result

            self.notify(relevant)
            result.notified = len(relevant)

            if self.persistence is not None and self.record_sent:
                result.persisted = self.persistence.save_sent_notices(relevant)
            elif self.persistence is not None:
                LOGGER.info("TEST MODE: not recording %d sent notices", len(relevant))
            return result
        finally:
            if self.persistence is not None:
                self.persistence.cleanup()

    def _seed(self, notices: List[Notice], result: RunResult) -> RunResult:
        if self.persistence is None:
            raise ValueError("Seed mode needs a persistence store")
        baseline = [n for n in notices if self.persistence.check(n)]
        result.seeded = True
        result.persisted = self.persistence.save_sent_notices(baseline)
        LOGGER.info("SEED MODE: recorded %d notices without sending email", result.persisted)
        return result
