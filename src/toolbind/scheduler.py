"""
Debounced scheduling for repeated validation requests.

A Debouncer is owned by its caller; each schedule() cancels the pending
call of the same debouncer and arms a new one, so only the most recent
request in a burst runs.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import structlog

from toolbind.config import EngineConfig, get_config

logger = structlog.get_logger(__name__)


class ScheduledCall:
    """Cancel handle for one scheduled call."""

    def __init__(self, callback: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        self._callback = callback
        self._args = args
        self._kwargs = kwargs
        self._handle: asyncio.TimerHandle | None = None
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def cancelled(self) -> bool:
        return self._handle is not None and self._handle.cancelled()

    @property
    def pending(self) -> bool:
        return not self._fired and not self.cancelled

    def cancel(self) -> bool:
        """
        Cancel the call if it has not run yet.

        Returns:
            True if this call cancelled it, False if it already ran or
            was already cancelled
        """
        if not self.pending or self._handle is None:
            return False
        self._handle.cancel()
        return True

    def _arm(self, loop: asyncio.AbstractEventLoop, delay: float) -> None:
        self._handle = loop.call_later(delay, self._run)

    def _run(self) -> None:
        self._fired = True
        self._callback(*self._args, **self._kwargs)


class Debouncer:
    """
    Runs at most one call per quiet period.

    Must be used from code running inside an asyncio event loop.
    """

    def __init__(self, delay: float | None = None, config: EngineConfig | None = None) -> None:
        """
        Initialize the debouncer.

        Args:
            delay: Quiet period in seconds (default: config debounce_delay)
            config: Engine configuration
        """
        config = config or get_config()
        self.delay = config.debounce_delay if delay is None else delay
        if self.delay < 0:
            raise ValueError(f"Debounce delay must be non-negative, got {self.delay}")
        self._current: ScheduledCall | None = None

    @property
    def pending(self) -> bool:
        return self._current is not None and self._current.pending

    def schedule(self, callback: Callable[..., Any], *args: Any, **kwargs: Any) -> ScheduledCall:
        """Cancel any pending call and schedule ``callback`` after the delay."""
        loop = asyncio.get_running_loop()
        if self.cancel():
            logger.debug("debounced_call_superseded", delay=self.delay)

        call = ScheduledCall(callback, args, kwargs)
        call._arm(loop, self.delay)
        self._current = call
        return call

    def cancel(self) -> bool:
        """Cancel the pending call, if any."""
        if self._current is None:
            return False
        return self._current.cancel()
