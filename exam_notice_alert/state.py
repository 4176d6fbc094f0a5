# state.py
"""이미 알림을 보낸 공지(Known-Sent 기록)를 관리하는 모듈."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Collection, Dict, Iterable, List, Optional, Set

from .models import KnownSentRecord, Notice

LOGGER = logging.getLogger(__name__)


class KnownSentStoreError(RuntimeError):
    """The store could not be opened, read or written."""


class DuplicateNoticeError(KnownSentStoreError):
    """A record with the same notice id is already stored."""


class InMemoryKnownSentStore:
    """Known-Sent records kept in a dict keyed by notice id."""

    def __init__(self, records: Iterable[KnownSentRecord] = ()) -> None:
        self._records: Dict[str, KnownSentRecord] = {r.notice_id: r for r in records}
        self.is_open = False

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def _ensure_open(self) -> None:
        if not self.is_open:
            raise KnownSentStoreError("Store is not open")

    @property
    def records(self) -> List[KnownSentRecord]:
        return list(self._records.values())

    def find_existing_ids(self, ids: Collection[str]) -> Set[str]:
        """Return the subset of ``ids`` that already have a record."""
        self._ensure_open()
        wanted = {str(x).strip() for x in ids}
        return wanted & self._records.keys()

    def insert_many(self, records: Iterable[KnownSentRecord]) -> List[KnownSentRecord]:
        """Insert records one by one, skipping the ones that fail.

        Returns the records that were actually written.
        """
        self._ensure_open()
        inserted: list[KnownSentRecord] = []
        for record in records:
            try:
                self._insert_one(record)
            except KnownSentStoreError as exc:
                LOGGER.warning("Failed to save notice %s: %s", record.notice_id, exc)
                continue
            inserted.append(record)
        if inserted:
            self._flush()
        return inserted

    def _insert_one(self, record: KnownSentRecord) -> None:
        if not record.notice_id:
            raise KnownSentStoreError("notice_id is required")
        if record.notice_id in self._records:
            raise DuplicateNoticeError(f"notice {record.notice_id} already exists")
        self._records[record.notice_id] = record

    def _flush(self) -> None:
        """Persist pending inserts; nothing to do in memory."""


class KnownSentStore(InMemoryKnownSentStore):
    """Known-Sent records stored as a JSON document file.

    The file looks like ``{"notices": [{"noticeId": ..., ...}, ...]}`` and is
    replaced atomically on every write.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)

    def open(self) -> None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            LOGGER.info("%s not found, starting with no records", self.path.name)
            raw = None
        except OSError as exc:
            raise KnownSentStoreError(f"Cannot read {self.path}: {exc}") from exc

        self._records = {}
        if raw:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise KnownSentStoreError(f"{self.path} is not valid JSON") from exc
            items = data.get("notices", []) if isinstance(data, dict) else None
            if not isinstance(items, list):
                raise KnownSentStoreError(f"{self.path} has no 'notices' list")
            for item in items:
                if not isinstance(item, dict):
                    raise KnownSentStoreError(f"{self.path} has a malformed record: {item!r}")
                record = KnownSentRecord.from_document(item)
                if record.notice_id:
                    self._records[record.notice_id] = record

        super().open()
        LOGGER.info("Known-Sent store opened, %d records", len(self._records))

    def close(self) -> None:
        super().close()
        self._records = {}
        LOGGER.info("Known-Sent store closed")

    def _flush(self) -> None:
        data = {"notices": [r.to_document() for r in self._records.values()]}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".known_sent-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise KnownSentStoreError(f"Cannot write {self.path}: {exc}") from exc


class PersistenceFilter:
    """Keeps notices that have not been alerted on yet.

    Also owns the store lifecycle: ``init`` before use, ``preload`` once per
    run with the fetched notices, ``cleanup`` at the end.
    """

    def __init__(self, store: InMemoryKnownSentStore) -> None:
        self.store = store
        self.sent_ids: Set[str] = set()

    def init(self) -> None:
        self.store.open()

    def preload(self, notices: Iterable[Notice]) -> None:
        ids = [n.id for n in notices]
        self.sent_ids = set(self.store.find_existing_ids(ids))
        LOGGER.info("Preloaded %d known ids out of %d notices", len(self.sent_ids), len(ids))

    def check(self, notice: Notice) -> bool:
        known = notice.id in self.sent_ids
        if known:
            LOGGER.debug("Notice %s: already sent -> skip", notice.id)
        return not known

    def save_sent_notices(
        self, notices: Iterable[Notice], sent_at: Optional[datetime] = None
    ) -> int:
        """Record notices as sent. Returns how many records were written."""
        batch = list(notices)
        if not batch:
            return 0
        records = [KnownSentRecord.from_notice(n, sent_at) for n in batch]
        inserted = self.store.insert_many(records)
        self.sent_ids.update(r.notice_id for r in inserted)

        if len(inserted) < len(batch):
            LOGGER.warning("Saved %d of %d notices", len(inserted), len(batch))
        else:
            LOGGER.info("Saved %d notices to the Known-Sent store", len(inserted))
        return len(inserted)

    def cleanup(self) -> None:
        self.store.close()
