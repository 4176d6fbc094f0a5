"""Fetch notices from the college news and exam APIs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, List

import requests

from .models import Notice

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def fetch_json(url: str, timeout: float = DEFAULT_TIMEOUT) -> Any:
    """Retrieve and decode the JSON body of the given URL."""
    headers = {"Accept": "application/json"}
    response = requests.get(url, headers=headers, timeout=timeout)
    response.raise_for_status()
    return response.json()


def parse_notices(payload: Any) -> List[Notice]:
    """Turn an API body of the form ``{"data": [...]}`` into Notice objects."""
    if not isinstance(payload, dict):
        LOGGER.warning("Unexpected payload type %s, treating as empty", type(payload).__name__)
        return []

    notices: list[Notice] = []
    for raw in payload.get("data") or []:
        if not isinstance(raw, dict) or raw.get("id") is None:
            LOGGER.warning("Skipping notice without id: %r", raw)
            continue
        notices.append(Notice.from_api(raw))
    return notices


def merge_unique(*sources: Iterable[Notice]) -> List[Notice]:
    """Merge notice lists and keep one notice per id.

    When an id appears more than once, the last occurrence in merge order
    replaces the earlier one but keeps the position where the id was first
    seen.
    """
    merged: dict[str, Notice] = {}
    for notices in sources:
        for notice in notices:
            previous = merged.get(notice.id)
            if previous is not None and previous != notice:
                LOGGER.debug("Notice %s differs between sources, keeping the later one", notice.id)
            merged[notice.id] = notice
    return list(merged.values())


async def _fetch_both(news_url: str, exam_url: str, timeout: float) -> tuple[Any, Any]:
    return await asyncio.gather(
        asyncio.to_thread(fetch_json, news_url, timeout),
        asyncio.to_thread(fetch_json, exam_url, timeout),
    )


def fetch_notices(news_url: str, exam_url: str, timeout: float = DEFAULT_TIMEOUT) -> List[Notice]:
    """Fetch both endpoints together and return the deduplicated notices.

    Either request failing fails the whole fetch.
    """
    news_payload, exam_payload = asyncio.run(_fetch_both(news_url, exam_url, timeout))
    news = parse_notices(news_payload)
    exams = parse_notices(exam_payload)
    notices = merge_unique(news, exams)
    LOGGER.info(
        "Fetched %d news + %d exam notices, %d unique", len(news), len(exams), len(notices)
    )
    return notices
