"""
Conflict/dedup policy for the map-backed stores (memory and file journal).

`RecordIndex` owns the code → Record mapping together with a secondary
url → code index, and decides for every write whether:

    - the URL is already shortened      -> reuse its code (conflict outcome)
    - the candidate code is already used -> collision, caller retries
    - otherwise                          -> a new Record to commit

The index only *plans* writes; committing is a separate `put` so the file
store can append to its journal first and touch memory only once the line is
on disk. It is not thread-safe: each store guards it with its own lock.

The relational store gets the same semantics from its UNIQUE constraints
(see db_storage.py).
"""

from datetime import datetime, timezone
from typing import Dict, List, NamedTuple, Optional, Sequence, Set, Tuple

from shortener.codegen import allocate

from .models import Record, SaveResult, format_short_url


class Admission(NamedTuple):
    record: Record
    fresh: bool

    def result(self, base_url: str) -> SaveResult:
        return SaveResult(format_short_url(base_url, self.record.short_code), conflict=not self.fresh)


class RecordIndex:
    def __init__(self) -> None:
        self._records: Dict[str, Record] = {}
        self._by_url: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._records)

    def get(self, code: str) -> Optional[Record]:
        return self._records.get(code)

    def code_for_url(self, url: str) -> Optional[str]:
        return self._by_url.get(url)

    def put(self, record: Record) -> None:
        """Insert or replace a record. Replacing keeps the code's original position."""
        previous = self._records.get(record.short_code)
        if previous is not None and previous.original_url != record.original_url:
            if self._by_url.get(previous.original_url) == record.short_code:
                del self._by_url[previous.original_url]
        self._records[record.short_code] = record
        self._by_url.setdefault(record.original_url, record.short_code)

    # ---- Planning ---------------------------------------------------------

    def admit(self, code: str, url: str, owner_id: str) -> Optional[Admission]:
        """
        Decide the outcome of saving `url` under candidate `code`.

        Returns:
            Admission(existing, fresh=False) if the URL is already mapped,
            None if `code` is taken,
            Admission(new_record, fresh=True) otherwise (not yet stored).
        """
        existing_code = self._by_url.get(url)
        if existing_code is not None:
            return Admission(self._records[existing_code], fresh=False)
        if code in self._records:
            return None
        return Admission(Record(short_code=code, original_url=url, owner_id=owner_id), fresh=True)

    def plan_batch(self, owner_id: str, urls: Sequence[str]) -> Tuple[List[str], List[Record]]:
        """
        Plan a batch insert.

        Every URL gets a code: the existing one when already mapped (or when it
        appeared earlier in the same batch), otherwise a fresh random code that
        collides neither with stored codes nor with codes staged for this batch.

        Returns:
            (codes in input order, new records to commit)

        Raises:
            AllocationExhaustedError: No free code found for some URL; nothing
                has been staged into the index.
        """
        codes: List[str] = []
        staged: List[Record] = []
        staged_codes: Set[str] = set()
        staged_urls: Dict[str, str] = {}

        for url in urls:
            existing = self._by_url.get(url) or staged_urls.get(url)
            if existing is not None:
                codes.append(existing)
                continue

            def _free(code: str) -> Optional[str]:
                if code in self._records or code in staged_codes:
                    return None
                return code

            code = allocate(_free)
            staged_codes.add(code)
            staged_urls[url] = code
            staged.append(Record(short_code=code, original_url=url, owner_id=owner_id))
            codes.append(code)

        return codes, staged

    def plan_tombstones(self, owner_id: str, codes: Sequence[str]) -> List[Record]:
        """
        Return tombstoned copies of the live records in `codes` owned by `owner_id`.

        Unknown codes, codes owned by others and already deleted codes are
        skipped; duplicates in `codes` are collapsed.
        """
        if not owner_id:
            return []
        now = datetime.now(timezone.utc)
        planned: List[Record] = []
        seen: Set[str] = set()
        for code in codes:
            if code in seen:
                continue
            seen.add(code)
            record = self._records.get(code)
            if record is None or record.is_deleted or record.owner_id != owner_id:
                continue
            planned.append(record.tombstoned(now))
        return planned

    def live_for(self, owner_id: str) -> List[Record]:
        if not owner_id:
            return []
        return [r for r in self._records.values() if r.owner_id == owner_id and not r.is_deleted]
