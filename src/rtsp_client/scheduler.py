"""
Scheduler
=========

Delayed-task scheduling abstraction for the RTSP client core.

The core is single-threaded and cooperative: timer firings, command replies
and frame notifications all run one at a time on the thread that drives the
scheduler. The scheduler is always passed in explicitly; there is no global
event loop lookup inside the core.

Components:
    - Scheduler: Protocol consumed by sessions and connections
    - AsyncioScheduler: Adapter over an asyncio event loop (call_later)

Example:
    loop = asyncio.get_running_loop()
    scheduler = AsyncioScheduler(loop)

    handle = scheduler.schedule_delayed(5.0, on_timeout)
    scheduler.cancel(handle)  # safe even if already fired
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol


logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """
    Protocol for delayed-task schedulers.

    Handles are opaque. cancel() must accept a handle whose task already
    fired, a handle already cancelled, and None.
    """

    def schedule_delayed(
        self,
        delay_seconds: float,
        callback: Callable[[], None],
    ) -> Any:
        """
        Run callback once after delay_seconds.

        Args:
            delay_seconds: Delay before firing (0 = next scheduler turn)
            callback: Zero-argument callable to run

        Returns:
            Opaque handle usable with cancel()
        """
        ...

    def cancel(self, handle: Any) -> None:
        """Cancel a pending task. No-op for fired, cancelled or None handles."""
        ...


class AsyncioScheduler:
    """
    Scheduler backed by an asyncio event loop.

    Uses loop.call_later, whose TimerHandle.cancel() is already a no-op
    once the callback ran.

    Attributes:
        loop: Event loop that runs the callbacks
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Initialize scheduler.

        Args:
            loop: Event loop to use. Defaults to the running loop.
        """
        self.loop = loop if loop is not None else asyncio.get_running_loop()

    def schedule_delayed(
        self,
        delay_seconds: float,
        callback: Callable[[], None],
    ) -> asyncio.TimerHandle:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        return self.loop.call_later(delay_seconds, callback)

    def cancel(self, handle: Optional[asyncio.TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()
