"""Bounded polling of readiness probes."""

import time
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, Field

from .errors import PollTimeoutError
from .logging_config import get_logger

logger = get_logger(__name__)

Probe = Callable[[], bool]


class PollState(BaseModel):
    """Progress of a single poll_until call."""

    started_at: float = Field(..., description="Clock reading when polling started")
    attempts: int = Field(0, description="Number of probe invocations so far")
    logged_wait: bool = Field(False, description="Whether the waiting notice was emitted")

    def elapsed(self, now: float) -> float:
        return now - self.started_at


def poll_until(timeout: float, interval: float, probe: Probe,
               notice: str = "Waiting for condition",
               notice_fields: Optional[Dict[str, Any]] = None,
               clock: Callable[[], float] = time.monotonic,
               sleep: Callable[[float], None] = time.sleep) -> bool:
    """Invoke ``probe`` every ``interval`` seconds until it returns True.

    Exceptions raised by the probe propagate immediately. The waiting notice
    is logged once, on the first probe that is not ready.

    Args:
        timeout: Seconds after which polling gives up.
        interval: Seconds between two probe invocations.
        probe: Callable returning True once the condition holds.
        notice: Message logged on the first non-ready probe.
        notice_fields: Structured fields added to the notice.

    Returns:
        True once the probe succeeded.

    Raises:
        PollTimeoutError: If the probe was not ready before ``timeout`` elapsed.
    """
    if interval <= 0:
        raise ValueError("interval must be positive")

    state = PollState(started_at=clock())
    while True:
        state.attempts += 1
        if probe():
            logger.debug("Probe ready", attempts=state.attempts, elapsed=state.elapsed(clock()))
            return True

        if not state.logged_wait:
            state.logged_wait = True
            logger.info(notice, timeout=timeout, interval=interval, **(notice_fields or {}))

        elapsed = state.elapsed(clock())
        if elapsed >= timeout:
            raise PollTimeoutError(timeout, f"{notice}: timed out after {timeout:g}s ({state.attempts} attempts)")
        sleep(min(interval, timeout - elapsed))
