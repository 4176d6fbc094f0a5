"""Configuration handling for the exam notice alert."""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv


DEFAULT_AGE_LIMIT_HOURS = 24
DEFAULT_DOWNLOAD_ORIGIN = "https://ecajmer.ac.in/"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_KNOWN_SENT_PATH = Path(__file__).resolve().parent.parent / "known_sent.json"

_DIRTY_URL_CHARS = re.compile(r"['\"\s]")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded once from environment variables."""

    news_api_url: str
    exam_api_url: str
    resend_api_key: str = ""
    email_from: str = ""
    email_to: Tuple[str, ...] = ()
    known_sent_path: Path = DEFAULT_KNOWN_SENT_PATH
    test_mode: bool = False
    seed_mode: bool = False
    age_limit_hours: int = DEFAULT_AGE_LIMIT_HOURS
    download_origin: str = DEFAULT_DOWNLOAD_ORIGIN
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def clean_url(url: str | None) -> str:
    """Strip quotes and whitespace that tend to leak into CI secrets."""
    return _DIRTY_URL_CHARS.sub("", url) if url else ""


def _parse_bool(raw: str | None) -> bool:
    return (raw or "").strip().lower() in ("true", "1", "yes")


def _parse_recipients(raw: str | None) -> Tuple[str, ...]:
    return tuple(part.strip() for part in (raw or "").split(",") if part.strip())


def get_settings(require_email: bool = True) -> Settings:
    """Load settings from environment variables, raising on missing values."""
    load_dotenv()

    news_url = clean_url(os.getenv("COLLEGE_NEWS_API"))
    exam_url = clean_url(os.getenv("COLLEGE_EXAM_API"))
    if not news_url or not exam_url:
        raise ValueError("COLLEGE_NEWS_API and COLLEGE_EXAM_API are required")

    seed_mode = _parse_bool(os.getenv("SEED_MODE"))
    test_mode = _parse_bool(os.getenv("TEST_MODE"))

    api_key = (os.getenv("RESEND_API_KEY") or "").strip()
    email_from = (os.getenv("EMAIL_FROM") or "").strip()
    email_to = _parse_recipients(os.getenv("EMAIL_TO"))
    if require_email and not seed_mode and not (api_key and email_from and email_to):
        raise ValueError("RESEND_API_KEY, EMAIL_FROM and EMAIL_TO are required")

    age_raw = os.getenv("AGE_LIMIT_HOURS", str(DEFAULT_AGE_LIMIT_HOURS))
    try:
        age_limit_hours = int(age_raw)
    except ValueError as exc:
        raise ValueError("AGE_LIMIT_HOURS must be an integer") from exc
    if age_limit_hours <= 0:
        raise ValueError("AGE_LIMIT_HOURS must be positive")

    timeout_raw = os.getenv("REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))
    try:
        request_timeout = float(timeout_raw)
    except ValueError as exc:
        raise ValueError("REQUEST_TIMEOUT must be a number") from exc

    known_sent_raw = os.getenv("KNOWN_SENT_PATH")
    known_sent_path = Path(known_sent_raw.strip()) if known_sent_raw else DEFAULT_KNOWN_SENT_PATH

    return Settings(
        news_api_url=news_url,
        exam_api_url=exam_url,
        resend_api_key=api_key,
        email_from=email_from,
        email_to=email_to,
        known_sent_path=known_sent_path,
        test_mode=test_mode,
        seed_mode=seed_mode,
        age_limit_hours=age_limit_hours,
        download_origin=os.getenv("DOWNLOAD_ORIGIN", DEFAULT_DOWNLOAD_ORIGIN).strip(),
        request_timeout=request_timeout,
    )
