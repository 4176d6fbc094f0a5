# exam_notice_alert/notifier.py
"""Email digest rendering and delivery via the Resend API."""

from __future__ import annotations

import logging
from typing import Sequence

import resend

from .config import Settings
from .filters import is_critical
from .models import Notice

LOGGER = logging.getLogger(__name__)

CRITICAL_SUBJECT = "🚨 CRITICAL: 6th Sem Exam Notice Detected!"
GENERAL_SUBJECT = "📢 New College Notice(s) Released"
TEST_PREFIX = "[TEST] "

CRITICAL_BANNER = "⚠️ Important Exam Notice Found"
GENERAL_BANNER = "📢 New College Notices Released"


def has_critical(notices: Sequence[Notice]) -> bool:
    return any(is_critical(n.title) for n in notices)


def build_subject(notices: Sequence[Notice], test_mode: bool = False) -> str:
    """Pick the subject line from the batch as a whole, not per notice."""
    subject = CRITICAL_SUBJECT if has_critical(notices) else GENERAL_SUBJECT
    return f"{TEST_PREFIX}{subject}" if test_mode else subject


def build_download_url(origin: str, content: str) -> str:
    # content는 소스에서 받은 그대로 붙인다 (검증/이스케이프 없음)
    return f"{origin}{content}"


def _build_card(notice: Notice, origin: str) -> str:
    if is_critical(notice.title):
        border, background, heading, button = "#ef4444", "#fef2f2", "#991b1b", "#dc2626"
    else:
        border, background, heading, button = "#93c5fd", "#eff6ff", "#1e3a8a", "#2563eb"

    return f"""
        <div style="border: 2px solid {border}; background-color: {background}; padding: 15px; margin-bottom: 15px; border-radius: 8px;">
            <h3 style="margin: 0 0 10px 0; color: {heading};">{notice.title}</h3>
            <p><strong>Date:</strong> {notice.date} <span style="color: #666;">(ID: {notice.id})</span></p>
            <a href="{build_download_url(origin, notice.content)}" style="background-color: {button}; color: white; padding: 10px 15px; text-decoration: none; border-radius: 5px; font-weight: bold;">
                DOWNLOAD PDF
            </a>
        </div>
"""


def build_digest_html(notices: Sequence[Notice], origin: str, test_mode: bool = False) -> str:
    """Render every notice as a card inside a single HTML document."""
    banner = CRITICAL_BANNER if has_critical(notices) else GENERAL_BANNER
    test_line = (
        '<p style="color: orange;">This is a TEST run searching past data.</p>' if test_mode else ""
    )
    cards = "".join(_build_card(n, origin) for n in notices)

    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{banner}</title>
</head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2>{banner}</h2>
    {test_line}
    {cards}
    <p style="color: #9ca3af; font-size: 12px;">{len(notices)} notice(s) in this digest.</p>
</body>
</html>
"""


def send_digest(settings: Settings, notices: Sequence[Notice]) -> None:
    """Send one digest email for all notices. Delivery errors propagate."""
    if not notices:
        LOGGER.info("No notices to send")
        return

    resend.api_key = settings.resend_api_key
    subject = build_subject(notices, settings.test_mode)
    response = resend.Emails.send(
        {
            "from": settings.email_from,
            "to": list(settings.email_to),
            "subject": subject,
            "html": build_digest_html(notices, settings.download_origin, settings.test_mode),
        }
    )
    email_id = response.get("id") if isinstance(response, dict) else None
    LOGGER.info("Email sent: %s (%d notices, id=%s)", subject, len(notices), email_id)
