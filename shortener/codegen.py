"""
Short-code generation for the shortener.

Provided helpers:
- generate_code: random Base62 string of a fixed length, drawn from the OS CSPRNG
- allocate: the retry-budget loop every storage backend runs around an atomic
  "insert if the code is absent" step

Notes:
- Codes are uniformly random over the 62-character alphabet; no hashing of the
  long URL is involved, so two URLs never share a code by construction and
  uniqueness is enforced by the storage layer (unique key + retry).
- `allocate` never reuses a collided value: every attempt draws a fresh code.
"""

import logging
import random
from typing import Callable, Optional, TypeVar

from shortener.exceptions import AllocationExhaustedError, GenerationError

logger = logging.getLogger(__name__)

_BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"

CODE_LENGTH = 8
MAX_ATTEMPTS = 5

T = TypeVar("T")


def generate_code(length: int = CODE_LENGTH) -> str:
    """
    Return a random Base62 code of exactly `length` characters.

    Raises:
        ValueError: If `length` is not positive.
        GenerationError: If the OS random source is unavailable.
    """
    if length <= 0:
        raise ValueError("length must be positive")
    try:
        rng = random.SystemRandom()
        return "".join(rng.choice(_BASE62_ALPHABET) for _ in range(length))
    except (OSError, NotImplementedError) as exc:
        logger.error("Random source failed while generating a short code: %s", exc)
        raise GenerationError("error generating random short code") from exc


def allocate(
    attempt: Callable[[str], Optional[T]],
    *,
    attempts: int = MAX_ATTEMPTS,
    length: int = CODE_LENGTH,
) -> T:
    """
    Run `attempt` with fresh random codes until it reports success.

    `attempt(code)` returns a value on success (including a dedup short-circuit)
    or None when `code` collided with an existing one.

    Raises:
        AllocationExhaustedError: If all `attempts` collided.
        GenerationError: Propagated from `generate_code`, never retried.
    """
    for n in range(1, attempts + 1):
        code = generate_code(length)
        result = attempt(code)
        if result is not None:
            return result
        logger.debug("Short code collision on attempt %d/%d: %s", n, attempts, code)

    logger.warning("Failed to allocate a unique short code after %d attempts", attempts)
    raise AllocationExhaustedError(f"could not allocate a unique short code after {attempts} attempts")
