"""
Value types shared by every storage backend.

- Record: one shortening (code, original URL, owner, tombstone state)
- UserURLEntry: listing projection returned to the owner
- SaveResult: outcome of a single save (fresh allocation vs. existing mapping)

Records are frozen: backends hand out the stored value itself, and the only
permitted mutation (soft delete) produces a new Record via `tombstoned()`.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_slash(base_url: str) -> str:
    """Return `base_url` with exactly one trailing slash appended if missing."""
    if base_url and not base_url.endswith("/"):
        return base_url + "/"
    return base_url


def format_short_url(base_url: str, code: str) -> str:
    return ensure_slash(base_url) + code


@dataclass(frozen=True)
class Record:
    short_code: str
    original_url: str
    owner_id: str = ""
    is_deleted: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    deleted_at: Optional[datetime] = None

    def tombstoned(self, at: Optional[datetime] = None) -> "Record":
        """Return a soft-deleted copy. Already deleted records are returned unchanged."""
        if self.is_deleted:
            return self
        return replace(self, is_deleted=True, deleted_at=at or _utcnow())

    def to_journal(self) -> Dict[str, Any]:
        """
        Serialize to the journal line format.

        `uuid` is reserved and always written empty.
        """
        return {
            "uuid": "",
            "short_url": self.short_code,
            "original_url": self.original_url,
            "user_id": self.owner_id,
            "is_deleted": self.is_deleted,
            "created_at": self.created_at.isoformat(),
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }

    @classmethod
    def from_journal(cls, data: Dict[str, Any], previous: Optional["Record"] = None) -> "Record":
        """
        Build a Record from one decoded journal line.

        When `previous` is given (an earlier line for the same code), fields
        absent from `data` keep their earlier values and a tombstone is never
        reverted.

        Raises:
            ValueError: If the line has no code, no URL (and no previous record
                to inherit one from), or a malformed field.
        """
        if not isinstance(data, dict):
            raise ValueError("journal line is not a JSON object")
        code = data.get("short_url")
        if not isinstance(code, str) or not code:
            raise ValueError("journal line has no short_url")

        base = previous or cls(short_code=code, original_url="")
        url = data.get("original_url", base.original_url)
        if not isinstance(url, str) or not url:
            raise ValueError(f"journal line for {code!r} has no original_url")

        owner = data.get("user_id", base.owner_id)
        flag = data.get("is_deleted", False)
        if not isinstance(flag, bool):
            raise ValueError(f"journal line for {code!r} has non-boolean is_deleted")
        is_deleted = flag or base.is_deleted
        created_at = _parse_ts(data.get("created_at")) or base.created_at
        deleted_at = _parse_ts(data.get("deleted_at")) or base.deleted_at

        return cls(
            short_code=code,
            original_url=url,
            owner_id=str(owner or ""),
            is_deleted=is_deleted,
            created_at=created_at,
            deleted_at=deleted_at if is_deleted else None,
        )


def _parse_ts(raw: Any) -> Optional[datetime]:
    if raw in (None, ""):
        return None
    if not isinstance(raw, str):
        raise ValueError(f"timestamp must be a string, got {type(raw).__name__}")
    return datetime.fromisoformat(raw)


@dataclass(frozen=True)
class UserURLEntry:
    short_url: str
    original_url: str


@dataclass(frozen=True)
class SaveResult:
    """
    Outcome of `BaseStorage.save`.

    `conflict` is True when the URL was already shortened; `short_url` then
    carries the previously assigned code. Callers map it to a different
    response status than a fresh allocation.
    """

    short_url: str
    conflict: bool = False
