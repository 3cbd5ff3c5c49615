"""
Base storage interface for the shortener.

Purpose:
    Define a small, stable contract that the in-memory, file-journal and
    PostgreSQL backends implement, so the HTTP layer never needs to know where
    data lives.

Contract summary:
    save            allocate (or reuse) a code for one URL
    save_batch      allocate codes for many URLs, all-or-nothing
    load_full       resolve a code to (url, is_deleted)
    load_user_urls  list an owner's live links
    delete_batch    soft-delete codes, scoped to their owner
    ping / close / bootstrap

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.

LLM Prompt Example:
    "Show how a narrow, explicit storage interface lets three backends with
    very different conflict mechanics expose identical dedup semantics."
"""

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

from shortener.exceptions import ShortURLGoneError

from .models import SaveResult, UserURLEntry


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod  # pragma: no cover
    def save(self, owner_id: str, url: str, base_url: str) -> SaveResult:
        """
        Allocate a short code for `url` on behalf of `owner_id`.

        Returns:
            SaveResult: fully-qualified short URL; `conflict=True` when the
            URL was already mapped (by any owner) and the existing code is
            returned instead of a new one.

        Raises:
            AllocationExhaustedError: Every attempt collided on the code.
            GenerationError: The random source failed.
            StorageError: Backend I/O failure.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def save_batch(self, owner_id: str, urls: Sequence[str], base_url: str) -> List[str]:
        """
        Bulk variant of `save`.

        Either every URL is persisted or none is. URLs that are already mapped
        (or repeated within the batch) resolve to their existing code.

        Returns:
            List[str]: fully-qualified short URLs in input order.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def load_full(self, code: str) -> Tuple[str, bool]:
        """
        Resolve a code.

        Returns:
            Tuple[str, bool]: (original_url, is_deleted).

        Raises:
            ShortURLNotFoundError: The code was never allocated.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def load_user_urls(self, owner_id: str, base_url: str) -> List[UserURLEntry]:
        """Return the non-deleted entries owned by `owner_id`, oldest first."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_batch(self, owner_id: str, codes: Sequence[str]) -> List[str]:
        """
        Soft-delete `codes`, but only those owned by `owner_id`.

        Codes owned by someone else, unknown codes and already-deleted codes are
        skipped silently.

        Returns:
            List[str]: the codes tombstoned by this call.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def ping(self) -> None:
        """Raise BackendUnavailableError if the backend cannot serve requests."""
        raise NotImplementedError

    def bootstrap(self) -> None:
        """Create schema/resources. No-op for non-persistent backends."""

    def close(self) -> None:
        """Release resources held by the backend."""

    def load(self, code: str) -> str:
        """
        Resolve a code to its URL, treating tombstones as an error.

        Raises:
            ShortURLNotFoundError: The code was never allocated.
            ShortURLGoneError: The code was soft-deleted.
        """
        url, is_deleted = self.load_full(code)
        if is_deleted:
            raise ShortURLGoneError(f"short code {code!r} has been deleted")
        return url
