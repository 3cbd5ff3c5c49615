"""
FileStorage – append-only JSON journal backend
=============================================

Durability through a newline-delimited JSON log. Every mutation (new record,
tombstone) appends the full serialized Record; lines are never rewritten and
the file is never compacted.

Recovery
--------
On construction the journal is replayed line by line into a RecordIndex.
Later lines override earlier ones for the same code (last write wins), fields
missing from a later line keep their earlier value, and a tombstone is never
undone. A malformed line is logged and skipped.

Writes
------
Mutations hold the instance lock around append + flush + fsync, and only then
update the in-memory index. If the append fails the index is untouched and the
caller gets a StorageError, so memory never runs ahead of disk. A crash
mid-append can at worst truncate the last line, which replay skips; the
next append first terminates it so later records stay on lines of their own.

Reads consult the in-memory index only.

Example
-------
>>> storage = FileStorage("shortener_data.json")
>>> storage.save("u1", "https://example.com", "http://localhost:8080/").short_url
'http://localhost:8080/Xy3...'
"""

import json
import logging
import os
import threading
from typing import Iterable, List, Optional, Sequence, Tuple

from shortener.codegen import allocate
from shortener.exceptions import BackendUnavailableError, ShortURLNotFoundError, StorageError

from .base import BaseStorage
from .dedup import RecordIndex
from .models import Record, SaveResult, UserURLEntry, format_short_url

logger = logging.getLogger(__name__)

JOURNAL_FILE_MODE = 0o600


class FileStorage(BaseStorage):
    """Journal-backed implementation of the storage contract.

    Parameters
    ----------
    path : str
        Journal location. Created on first write if missing.
    """

    def __init__(self, path: str) -> None:
        if not path:
            raise ValueError("path is required for the file storage backend")
        self.path = path
        self._lock = threading.Lock()
        self._index = RecordIndex()
        # True when the journal ends in a torn line with no trailing newline
        self._unterminated = False
        self._replay()

    # ---- Internal helpers -------------------------------------------------

    def _replay(self) -> None:
        """Rebuild the index from the journal. A missing file means an empty store."""
        try:
            fh = open(self.path, "rb")
        except FileNotFoundError:
            logger.info("Journal %s does not exist yet, starting empty", self.path)
            return
        except OSError as exc:
            logger.error("Cannot open journal %s: %s", self.path, exc)
            raise BackendUnavailableError(f"open journal {self.path}: {exc}") from exc

        replayed = skipped = 0
        with self._lock, fh:
            try:
                for lineno, raw in enumerate(fh, start=1):
                    self._unterminated = not raw.endswith(b"\n")
                    if not raw.strip():
                        continue
                    try:
                        # UnicodeDecodeError and json.JSONDecodeError are both ValueErrors
                        data = json.loads(raw.decode("utf-8"))
                        code = data.get("short_url") if isinstance(data, dict) else None
                        record = Record.from_journal(data, previous=self._index.get(code) if code else None)
                    except ValueError as exc:
                        logger.warning("Skipping malformed journal line %s:%d: %s", self.path, lineno, exc)
                        skipped += 1
                        continue
                    self._index.put(record)
                    replayed += 1
            except OSError as exc:
                logger.error("Error reading journal %s: %s", self.path, exc)
                raise BackendUnavailableError(f"read journal {self.path}: {exc}") from exc

        if self._unterminated:
            logger.warning("Journal %s ends in an unterminated line; next append starts a new line", self.path)
        logger.info(
            "Replayed %d journal lines from %s (%d skipped, %d records)",
            replayed, self.path, skipped, len(self._index),
        )

    def _append(self, records: Iterable[Record]) -> None:
        """Append records as one write and force them to disk. Caller holds the lock."""
        payload = "".join(json.dumps(r.to_journal(), ensure_ascii=False) + "\n" for r in records)
        if not payload:
            return
        if self._unterminated:
            payload = "\n" + payload
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_WRONLY | os.O_APPEND, JOURNAL_FILE_MODE)
            with os.fdopen(fd, "a", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
        except OSError as exc:
            logger.error("Failed to append to journal %s: %s", self.path, exc)
            raise StorageError(f"append to journal {self.path}: {exc}") from exc
        self._unterminated = False

    def _commit(self, records: List[Record]) -> None:
        self._append(records)
        for record in records:
            self._index.put(record)

    # ---- Contract methods -------------------------------------------------

    def save(self, owner_id: str, url: str, base_url: str) -> SaveResult:
        def attempt(code: str) -> Optional[SaveResult]:
            with self._lock:
                admission = self._index.admit(code, url, owner_id)
                if admission is None:
                    return None
                if admission.fresh:
                    self._commit([admission.record])
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
            self._commit(staged)
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
            self._commit(tombstones)
        if tombstones:
            logger.info("Tombstoned %d of %d requested codes for owner %r", len(tombstones), len(codes), owner_id)
        return [r.short_code for r in tombstones]

    def ping(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        if not os.access(directory, os.W_OK):
            raise BackendUnavailableError(f"journal directory {directory} is not writable")
