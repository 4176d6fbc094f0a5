"""Data models for the exam notice alert."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

_FALLBACK_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%d-%m-%Y")


def parse_notice_date(value: str) -> Optional[datetime]:
    """Parse a source date string into an aware datetime, or None."""
    text = (value or "").strip()
    if not text:
        return None

    parsed = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None

    if parsed.tzinfo is None:
        # 날짜만 있는 값은 UTC 자정, 시각이 있으면 로컬 시간으로 본다
        if len(text) == 10 and "-" in text and text.count(":") == 0:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone()
    return parsed


@dataclass(frozen=True)
class Notice:
    """A single announcement returned by the college notice APIs."""

    id: str
    title: str
    date: str
    content: str

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "Notice":
        return cls(
            id=str(raw["id"]).strip(),
            title=str(raw.get("title") or ""),
            date=str(raw.get("date") or ""),
            content=str(raw.get("content") or ""),
        )

    @property
    def published_at(self) -> Optional[datetime]:
        return parse_notice_date(self.date)


@dataclass(frozen=True)
class KnownSentRecord:
    """Persisted proof that a notice has already been alerted on."""

    notice_id: str
    title: str
    date: str
    url: str
    sent_at: str

    @classmethod
    def from_notice(cls, notice: Notice, sent_at: Optional[datetime] = None) -> "KnownSentRecord":
        stamp = sent_at or datetime.now(timezone.utc)
        return cls(
            notice_id=notice.id,
            title=notice.title,
            date=notice.date,
            url=notice.content,
            sent_at=stamp.isoformat(),
        )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "KnownSentRecord":
        return cls(
            notice_id=str(doc.get("noticeId") or "").strip(),
            title=str(doc.get("title") or ""),
            date=str(doc.get("date") or ""),
            url=str(doc.get("url") or ""),
            sent_at=str(doc.get("sentAt") or ""),
        )

    def to_document(self) -> Dict[str, str]:
        return {
            "noticeId": self.notice_id,
            "title": self.title,
            "date": self.date,
            "url": self.url,
            "sentAt": self.sent_at,
        }
