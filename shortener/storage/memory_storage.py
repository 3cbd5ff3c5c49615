"""
Storage module for the shortener (in-memory implementation).

Responsibilities:
    - Allocate random codes and map them to original URLs
    - Dedupe by long URL (a resubmitted URL returns its existing code)
    - Soft-delete codes on behalf of their owner
    - List an owner's live links

Design:
    - A RecordIndex guarded by one exclusive lock, held for reads and writes
      alike; operations are cheap enough that read/write splitting buys nothing.
    - `save` takes the lock per allocation attempt, so random generation happens
      outside the critical section.
    - `save_batch` takes the lock once and commits all staged records or none.
    - No durability: contents are lost when the process exits.
"""

import logging
import threading
from typing import List, Optional, Sequence, Tuple

from shortener.codegen import allocate
from shortener.exceptions import ShortURLNotFoundError

from .base import BaseStorage
from .dedup import RecordIndex
from .models import SaveResult, UserURLEntry, format_short_url

logger = logging.getLogger(__name__)


class MemoryStorage(BaseStorage):
    def __init__(self) -> None:
        """
        Initialize an empty store.

        Internal schema:
            self._index: RecordIndex  (code -> Record, url -> code)
        """
        self._lock = threading.Lock()
        self._index = RecordIndex()

    def save(self, owner_id: str, url: str, base_url: str) -> SaveResult:
        def attempt(code: str) -> Optional[SaveResult]:
            with self._lock:
                admission = self._index.admit(code, url, owner_id)
                if admission is None:
                    return None
                if admission.fresh:
                    self._index.put(admission.record)
            return admission.result(base_url)

        result = allocate(attempt)
        if result.conflict:
            logger.info("URL already shortened, returning existing code: %s", url)
        return result

    def save_batch(self, owner_id: str, urls: Sequence[str], base_url: str) -> List[str]:
        if not urls:
            return []
        with self._lock:
            codes, staged = self._index.plan_batch(owner_id, urls)
            for record in staged:
                self._index.put(record)
        logger.debug("Saved batch of %d URLs (%d new) for owner %r", len(urls), len(staged), owner_id)
        return [format_short_url(base_url, code) for code in codes]

    def load_full(self, code: str) -> Tuple[str, bool]:
        with self._lock:
            record = self._index.get(code)
        if record is None:
            raise ShortURLNotFoundError(f"short code {code!r} not found")
        return record.original_url, record.is_deleted

    def load_user_urls(self, owner_id: str, base_url: str) -> List[UserURLEntry]:
        with self._lock:
            records = self._index.live_for(owner_id)
        return [UserURLEntry(format_short_url(base_url, r.short_code), r.original_url) for r in records]

    def delete_batch(self, owner_id: str, codes: Sequence[str]) -> List[str]:
        with self._lock:
            tombstones = self._index.plan_tombstones(owner_id, codes)
            for record in tombstones:
                self._index.put(record)
        return [r.short_code for r in tombstones]

    def ping(self) -> None:
        return None
