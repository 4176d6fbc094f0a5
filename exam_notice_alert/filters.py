"""Predicates that decide which notices are worth an alert."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Protocol, Sequence

from .models import Notice

LOGGER = logging.getLogger(__name__)

CRITICAL_PATTERNS = (
    re.compile(r"BTU.*Exam.*Form.*VI\s*Sem", re.IGNORECASE),
    re.compile(r"B\.?Tech.*(6th|VI\b|Sixth)\s*Sem", re.IGNORECASE),
    re.compile(r"Even\s*Sem.*Exam", re.IGNORECASE),
    re.compile(r"(Exam|Form|Fee).*?(6th|VI\b|Sixth)", re.IGNORECASE),
)
GENERIC_EXAM_FORM = re.compile(r"Exam.*Form", re.IGNORECASE)
EXCLUDE_SEMESTERS = re.compile(
    r"(1st|3rd|5th|7th|I\s*Sem|III\s*Sem|V\s*Sem|VII\s*Sem)", re.IGNORECASE
)


class NoticeFilter(Protocol):
    def check(self, notice: Notice) -> bool:
        ...


def is_critical(title: str) -> bool:
    """Return True if the title looks like a 6th semester exam form notice."""
    if any(pattern.search(title) for pattern in CRITICAL_PATTERNS):
        return True
    return bool(GENERIC_EXAM_FORM.search(title)) and not EXCLUDE_SEMESTERS.search(title)


class TimeFilter:
    """Keep notices published at or after ``now - max_age_hours``."""

    def __init__(self, max_age_hours: int = 24, now: Optional[datetime] = None) -> None:
        reference = now or datetime.now(timezone.utc)
        self.cutoff = reference - timedelta(hours=max_age_hours)

    def check(self, notice: Notice) -> bool:
        published = notice.published_at
        if published is None:
            LOGGER.debug("Notice %s: unparseable date %r -> skip", notice.id, notice.date)
            return False
        return published >= self.cutoff


class ContentFilter:
    def check(self, notice: Notice) -> bool:
        matched = is_critical(notice.title)
        if matched:
            LOGGER.info("MATCH FOUND: %s", notice.title)
        return matched


def apply_filters(notices: Iterable[Notice], filters: Sequence[NoticeFilter]) -> List[Notice]:
    """Keep the notices every filter approves, in their original order."""
    kept: list[Notice] = []
    for notice in notices:
        # all() stops at the first filter that says no
        if all(f.check(notice) for f in filters):
            kept.append(notice)
        else:
            LOGGER.debug("Notice %s rejected (title: %s)", notice.id, notice.title[:30])
    return kept
