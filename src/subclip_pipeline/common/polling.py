"""Bounded fixed-delay polling for externally completed jobs."""

from __future__ import annotations

from typing import Awaitable, Callable

import structlog

logger = structlog.get_logger()


class PollTimeout(Exception):
    """Raised when the attempt budget is exhausted before readiness."""

    def __init__(self, attempts: int, waited: float) -> None:
        super().__init__(f"not ready after {attempts} attempts ({waited:g}s)")
        self.attempts = attempts
        self.waited = waited


async def poll_until_ready(
    check: Callable[[], Awaitable[bool]],
    *,
    interval: float,
    max_attempts: int,
    sleep: Callable[[float], Awaitable[None]],
    label: str = "poll",
) -> int:
    """Wait ``interval`` then call ``check``, up to ``max_attempts`` times.

    The job being polled was submitted just before this is called, so every
    attempt sleeps first; the worst-case wait is ``interval * max_attempts``.
    Any exception raised by ``check`` counts as "not ready yet".

    Returns:
        The 1-based attempt number on which the check succeeded.

    Raises:
        PollTimeout: If every attempt came back not ready.
    """
    for attempt in range(1, max_attempts + 1):
        await sleep(interval)
        try:
            ready = await check()
        except Exception as exc:
            logger.warning(f"{label}.check_error", attempt=attempt, error=str(exc))
            ready = False

        if ready:
            logger.info(f"{label}.ready", attempt=attempt)
            return attempt

        logger.debug(f"{label}.not_ready", attempt=attempt)

    raise PollTimeout(max_attempts, interval * max_attempts)
