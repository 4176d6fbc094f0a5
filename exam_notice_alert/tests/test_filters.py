from datetime import datetime, timedelta, timezone

import pytest

from exam_notice_alert.filters import ContentFilter, TimeFilter, apply_filters, is_critical
from exam_notice_alert.models import Notice


NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _notice(notice_id, title="Notice", date=None):
    return Notice(
        id=notice_id,
        title=title,
        date=(date or NOW).isoformat(),
        content=f"download/{notice_id}.pdf",
    )


class RejectIds:
    def __init__(self, *ids):
        self.ids = set(ids)
        self.seen = []

    def check(self, notice):
        self.seen.append(notice.id)
        return notice.id not in self.ids


@pytest.mark.parametrize(
    "title",
    [
        "Exam Form for B.Tech VI Sem",
        "BTU Exam Form Notice for VI Sem students",
        "Even Sem Main Exam 2025 schedule",
        "Fee submission for 6th semester",
        "Exam Form for B.Tech VI Sem and I Sem (Back)",
    ],
)
def test_explicit_patterns_are_critical(title):
    assert is_critical(title) is True


def test_generic_exam_form_without_excluded_semester_is_critical():
    assert is_critical("Exam Form submission open") is True


@pytest.mark.parametrize(
    "title",
    [
        "Exam Form for B.Tech I Sem (Back)",
        "Exam Form 3rd semester",
        "Exam Form for VII Sem",
    ],
)
def test_generic_exam_form_with_excluded_semester_is_not_critical(title):
    assert is_critical(title) is False


def test_unrelated_title_is_not_critical():
    assert is_critical("Holiday Notice: Holi Festival") is False


def test_content_filter_uses_title_only():
    content = ContentFilter()

    assert content.check(_notice("1", "exam form for b.tech vi sem")) is True
    assert content.check(_notice("2", "Sports week")) is False


def test_time_filter_boundary_is_inclusive():
    time_filter = TimeFilter(24, now=NOW)
    cutoff = NOW - timedelta(hours=24)

    assert time_filter.check(_notice("1", date=cutoff)) is True
    assert time_filter.check(_notice("2", date=cutoff - timedelta(seconds=1))) is False
    assert time_filter.check(_notice("3", date=NOW)) is True


def test_time_filter_cutoff_fixed_at_construction():
    time_filter = TimeFilter(48, now=NOW)

    assert time_filter.cutoff == NOW - timedelta(hours=48)
    assert time_filter.check(_notice("1", date=NOW - timedelta(hours=40))) is True


def test_time_filter_drops_unparseable_dates():
    notice = Notice(id="1", title="t", date="sometime last week", content="x.pdf")

    assert TimeFilter(24, now=NOW).check(notice) is False


def test_apply_filters_is_strict_and():
    notices = [_notice("1"), _notice("2"), _notice("3")]
    first = RejectIds("1")
    second = RejectIds("3")

    assert [n.id for n in apply_filters(notices, [first, second])] == ["2"]
    assert [n.id for n in apply_filters(notices, [second, first])] == ["2"]


def test_apply_filters_short_circuits_on_first_rejection():
    first = RejectIds("1")
    second = RejectIds()

    apply_filters([_notice("1"), _notice("2")], [first, second])

    assert first.seen == ["1", "2"]
    assert second.seen == ["2"]


def test_apply_filters_without_filters_keeps_everything():
    notices = [_notice("1"), _notice("2")]

    assert apply_filters(notices, []) == notices
