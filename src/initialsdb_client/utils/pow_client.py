"""Client-side proof-of-work solver.

The solver runs on the asyncio event loop. It hashes candidates in bursts of
:data:`PROGRESS_INTERVAL` and yields one loop tick between bursts so other
pending work (network completions, UI redraws) keeps running while a puzzle is
being solved.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable

from initialsdb_client.core.errors import PowExpiredError
from initialsdb_client.core.pow import compute_pow_hash, has_leading_zero_bits

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 5000

ProgressCallback = Callable[[int, int], None]


async def solve_pow(
    challenge_bytes: bytes,
    difficulty: int,
    ttl_secs: float,
    on_progress: ProgressCallback | None = None,
) -> str:
    """Find the smallest decimal nonce satisfying the difficulty predicate.

    Args:
        challenge_bytes: Decoded server-issued challenge payload.
        difficulty: Required number of leading zero bits in the digest.
        ttl_secs: Seconds from now until the challenge expires.
        on_progress: Optional ``(tries_so_far, seconds_remaining)`` callback,
            invoked once every ``PROGRESS_INTERVAL`` candidates.

    Returns:
        The winning nonce as a decimal string.

    Raises:
        PowExpiredError: If the deadline passes before a solution is found.
            The deadline is only checked at yield points, so the search may
            overshoot it by up to ``PROGRESS_INTERVAL`` digests.
        ValueError: If ``difficulty`` is negative.
    """
    if difficulty < 0:
        raise ValueError(f"difficulty must be non-negative, got {difficulty}")

    deadline = time.monotonic() + ttl_secs
    started = time.monotonic()
    nonce = 0

    while True:
        if nonce % PROGRESS_INTERVAL == 0:
            if on_progress is not None:
                remaining = max(0, math.ceil(deadline - time.monotonic()))
                on_progress(nonce, remaining)
            # Task cancellation is delivered here as well.
            await asyncio.sleep(0)
            if time.monotonic() > deadline:
                logger.info(
                    "PoW expired after %d tries (difficulty=%d)", nonce, difficulty
                )
                raise PowExpiredError("PoW expired")

        candidate = str(nonce)
        if has_leading_zero_bits(compute_pow_hash(challenge_bytes, candidate), difficulty):
            logger.debug(
                "PoW solved: nonce=%s difficulty=%d elapsed=%.3fs",
                candidate,
                difficulty,
                time.monotonic() - started,
            )
            return candidate

        nonce += 1
