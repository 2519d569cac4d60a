"""Convergence loop - bounded polling state machine.

The remote system has no completion callbacks, so waiting for a state is
done by polling. A loop is an immutable ConvergeLoop value advanced by the
pure advance() function; converge() drives it with a clock and a sleep
function, both injectable so tests can run on a fake clock.

State transitions:
    PENDING ──refresh: completed──▶ COMPLETED
    PENDING ──refresh: error──────▶ ERROR
    PENDING ──deadline passed─────▶ TIMEOUT
    PENDING ──too many empty refreshes──▶ COMPLETED

Timing:
- delay: sleep before the first refresh
- wait between refreshes: 100ms doubling per attempt, capped at 10s,
  never below min_interval, never past the deadline
- each refresh is bounded by the time left until the deadline
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace

from dshub.app.metrics.collector import CONVERGE_ATTEMPTS, CONVERGE_RESULT_TOTAL
from dshub.core.domain import CONVERGE_TERMINAL_STATES, ConvergeState
from dshub.core.errors import ConvergeError, ConvergeTimeoutError
from dshub.core.logging_schema import LogEvent

logger = logging.getLogger(__name__)

INITIAL_BACKOFF = 0.1  # seconds
MAX_BACKOFF = 10.0  # seconds


@dataclass(frozen=True)
class LoopConfig:
    """Timing configuration of one loop.

    Attributes:
        timeout: Overall deadline, measured from start (seconds)
        min_interval: Minimum wait between refreshes (seconds)
        delay: Wait before the first refresh (seconds)
        not_found_checks: Empty refreshes tolerated in a row
    """

    timeout: float
    min_interval: float = 0.0
    delay: float = 0.0
    not_found_checks: int = 20


@dataclass(frozen=True)
class RefreshResult:
    """What one refresh observed.

    empty=True means the refresh produced no observation at all (neither
    the object nor a classifiable error).
    """

    state: ConvergeState
    error: Exception | None = None
    empty: bool = False

    @classmethod
    def pending(cls, error: Exception | None = None) -> "RefreshResult":
        return cls(ConvergeState.PENDING, error)

    @classmethod
    def completed(cls) -> "RefreshResult":
        return cls(ConvergeState.COMPLETED)

    @classmethod
    def failed(cls, error: Exception) -> "RefreshResult":
        return cls(ConvergeState.ERROR, error)

    @classmethod
    def no_result(cls) -> "RefreshResult":
        return cls(ConvergeState.PENDING, empty=True)


@dataclass(frozen=True)
class ConvergeLoop:
    """Snapshot of a convergence loop."""

    name: str
    config: LoopConfig
    started_at: float
    state: ConvergeState = ConvergeState.PENDING
    attempts: int = 0
    empty_observations: int = 0
    last_error: Exception | None = None

    @classmethod
    def start(cls, name: str, config: LoopConfig, now: float) -> "ConvergeLoop":
        return cls(name=name, config=config, started_at=now)

    @property
    def deadline(self) -> float:
        return self.started_at + self.config.timeout

    @property
    def done(self) -> bool:
        return self.state in CONVERGE_TERMINAL_STATES

    def remaining(self, now: float) -> float:
        return max(0.0, self.deadline - now)

    def timed_out(self) -> "ConvergeLoop":
        if self.done:
            return self
        return replace(self, state=ConvergeState.TIMEOUT)

    def raise_for_state(self) -> None:
        """Raise unless the loop completed.

        Raises:
            ConvergeError: Loop ended in ERROR.
            ConvergeTimeoutError: Loop ended in TIMEOUT.
        """
        if self.state == ConvergeState.ERROR:
            raise ConvergeError(self.name, self.last_error)
        if self.state == ConvergeState.TIMEOUT:
            raise ConvergeTimeoutError(
                self.name, self.config.timeout, self.attempts, self.last_error
            )


def advance(loop: ConvergeLoop, result: RefreshResult, now: float) -> ConvergeLoop:
    """Apply one refresh result (pure)."""
    if loop.done:
        return loop

    attempts = loop.attempts + 1

    if result.empty:
        empty = loop.empty_observations + 1
        # Persistent absence counts as the object being gone
        if empty > loop.config.not_found_checks:
            return replace(
                loop,
                state=ConvergeState.COMPLETED,
                attempts=attempts,
                empty_observations=empty,
            )
        nxt = replace(loop, attempts=attempts, empty_observations=empty)
    else:
        nxt = replace(
            loop,
            state=result.state,
            attempts=attempts,
            empty_observations=0,
            last_error=result.error or loop.last_error,
        )

    if nxt.state == ConvergeState.PENDING and now >= nxt.deadline:
        return nxt.timed_out()
    return nxt


def next_wait(loop: ConvergeLoop) -> float:
    """Wait before the next refresh (ignores the deadline)."""
    backoff = min(INITIAL_BACKOFF * 2 ** max(loop.attempts - 1, 0), MAX_BACKOFF)
    return max(backoff, loop.config.min_interval)


async def converge(
    config: LoopConfig,
    refresh: Callable[[], Awaitable[RefreshResult]],
    *,
    name: str,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    log_extra: dict | None = None,
) -> ConvergeLoop:
    """Run refresh until the loop leaves PENDING.

    Returns:
        The final loop (COMPLETED, ERROR or TIMEOUT). Use
        ConvergeLoop.raise_for_state() to turn failures into exceptions.
    """
    extra = {"loop": name, **(log_extra or {})}
    loop = ConvergeLoop.start(name, config, clock())

    delay = min(config.delay, loop.remaining(clock()))
    if delay > 0:
        await sleep(delay)

    while not loop.done:
        remaining = loop.remaining(clock())
        if remaining <= 0:
            loop = loop.timed_out()
            break
        try:
            result = await asyncio.wait_for(refresh(), timeout=remaining)
        except asyncio.TimeoutError:
            loop = loop.timed_out()
            break

        loop = advance(loop, result, clock())
        if loop.done:
            break

        wait = min(next_wait(loop), loop.remaining(clock()))
        logger.debug(
            "Waiting for state to converge",
            extra={
                **extra,
                "event": LogEvent.CONVERGE_PENDING,
                "attempt": loop.attempts,
                "wait_s": wait,
                "error": str(result.error) if result.error else None,
            },
        )
        if wait > 0:
            await sleep(wait)

    CONVERGE_RESULT_TOTAL.labels(loop=name, state=loop.state.value).inc()
    CONVERGE_ATTEMPTS.labels(loop=name).observe(loop.attempts)
    result_extra = {**extra, "attempt": loop.attempts, "state": loop.state.value}
    match loop.state:
        case ConvergeState.COMPLETED:
            logger.info(
                "Converged",
                extra={**result_extra, "event": LogEvent.CONVERGE_COMPLETE},
            )
        case ConvergeState.TIMEOUT:
            logger.warning(
                "Convergence timed out",
                extra={**result_extra, "event": LogEvent.CONVERGE_TIMEOUT},
            )
        case _:
            logger.warning(
                "Convergence failed: %s",
                loop.last_error,
                extra={**result_extra, "event": LogEvent.CONVERGE_FAILED},
            )
    return loop
