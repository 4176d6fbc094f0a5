"""Offline scenarios that run the real pipeline against mock notices."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from .filters import TimeFilter
from .models import Notice
from .monitor import NoticeMonitor, RunResult
from .notifier import build_subject
from .state import InMemoryKnownSentStore, PersistenceFilter

LOGGER = logging.getLogger(__name__)


def mock_scenarios(now: Optional[datetime] = None) -> Dict[str, List[Notice]]:
    today = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "WORST_CASE": [
            Notice(
                id="88888",
                title="Holiday Notice: Holi Festival",
                date=today,
                content="download/holi.pdf",
            ),
            Notice(
                id="77777",
                title="Exam Form for B.Tech I Sem (Back)",
                date=today,
                content="download/back_i_sem.pdf",
            ),
        ],
        "BEST_CASE": [
            Notice(
                id="99999",
                title="Urgent: Exam Form for B.Tech VI Sem (Main) 2025",
                date=today,
                content="download/form_vi_sem.pdf",
            ),
        ],
    }


class LoggingNotifier:
    """Stands in for the email sender and remembers what it would send."""

    def __init__(self) -> None:
        self.sent: List[str] = []

    def __call__(self, notices: Sequence[Notice]) -> None:
        subject = build_subject(notices)
        self.sent.append(subject)
        LOGGER.info("[MOCK EMAIL] %d alert(s), subject: %s", len(notices), subject)


def run_scenario(name: str, notices: Sequence[Notice], now: Optional[datetime] = None) -> RunResult:
    LOGGER.info("--- SIMULATING SCENARIO: %s ---", name)
    persistence = PersistenceFilter(InMemoryKnownSentStore())
    monitor = NoticeMonitor(
        filters=[TimeFilter(24, now=now), persistence],
        persistence=persistence,
        fetch=lambda: list(notices),
        notify=LoggingNotifier(),
    )
    return monitor.run()


def run_scenarios(now: Optional[datetime] = None) -> Dict[str, RunResult]:
    """Run every mock scenario in production mode."""
    LOGGER.info("STARTING SIMULATIONS...")
    return {
        name: run_scenario(name, notices, now=now)
        for name, notices in mock_scenarios(now).items()
    }
