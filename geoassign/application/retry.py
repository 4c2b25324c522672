"""Retry-with-backoff for async operations that talk to something unreliable."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and timing.

    Delay before attempt n+1 is ``backoff_base_s * 2 ** (n - 1)``. Each
    attempt gets ``attempt_timeout_s``; ``overall_timeout_s`` (if set)
    bounds the whole loop including sleeps.
    """

    max_attempts: int = 3
    backoff_base_s: float = 1.0
    attempt_timeout_s: float | None = 5.0
    overall_timeout_s: float | None = None

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        return self.backoff_base_s * 2 ** (attempt - 1)


class AttemptTimeoutError(TimeoutError):
    def __init__(self, timeout_s: float):
        self.timeout_s = timeout_s
        super().__init__(f"Attempt timed out after {timeout_s:g}s")


class RetryExhaustedError(Exception):
    def __init__(self, attempts: int, last_error: BaseException | None):
        self.attempts = attempts
        self.last_error = last_error
        detail = str(last_error) if last_error else "no attempt completed"
        super().__init__(f"Failed after {attempts} attempt(s): {detail}")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Run ``operation`` until it succeeds or the policy gives up.

    A timed-out attempt counts as a failed one and is retried.

    Raises:
        RetryExhaustedError: every attempt failed, or the overall timeout hit.
    """
    state = {"attempts": 0, "last_error": None}

    async def _loop() -> T:
        for attempt in range(1, policy.max_attempts + 1):
            state["attempts"] = attempt
            try:
                if policy.attempt_timeout_s is None:
                    return await operation()
                try:
                    return await asyncio.wait_for(operation(), timeout=policy.attempt_timeout_s)
                except asyncio.TimeoutError as exc:
                    raise AttemptTimeoutError(policy.attempt_timeout_s) from exc
            except Exception as exc:
                state["last_error"] = exc
                logger.debug(
                    "%s attempt %d/%d failed: %s", label, attempt, policy.max_attempts, exc
                )
                if attempt < policy.max_attempts:
                    await sleep(policy.delay_for(attempt))

        raise RetryExhaustedError(state["attempts"], state["last_error"])

    if policy.overall_timeout_s is None:
        return await _loop()

    try:
        return await asyncio.wait_for(_loop(), timeout=policy.overall_timeout_s)
    except asyncio.TimeoutError:
        last_error = state["last_error"] or TimeoutError(
            f"Overall timeout of {policy.overall_timeout_s:g}s exceeded"
        )
        logger.debug("%s cancelled by overall timeout after %d attempt(s)", label, state["attempts"])
        raise RetryExhaustedError(state["attempts"], last_error) from None
