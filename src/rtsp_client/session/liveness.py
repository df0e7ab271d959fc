"""
Liveness Supervisors
====================

The two timers that watch an RtspSession.

ConnectionTimer:
    One-shot. Armed when the session is created, disarmed when the PLAY
    reply is processed. Fires if negotiation takes longer than the timeout.

DataArrivalMonitor:
    Periodic poll, armed once PLAY succeeds. Each poll compares the
    cumulative packet count with the previous poll. Equal counts mean the
    stream went silent: the monitor reports the stall and stops. Otherwise
    it records the new count and re-arms itself.

Both timers go through the injected Scheduler and ignore a firing that
races with cancel(), so a closed session never observes a stale timer.
"""

import logging
from typing import Any, Callable, Optional

from rtsp_client.scheduler import Scheduler


logger = logging.getLogger(__name__)


class ConnectionTimer:
    """
    One-shot negotiation timeout.

    Attributes:
        timeout: Seconds before firing
        active: Whether the timer is armed
        fired: Whether the timeout callback ran
    """

    def __init__(
        self,
        scheduler: Scheduler,
        timeout: float,
        on_timeout: Callable[[], None],
    ) -> None:
        self._scheduler = scheduler
        self.timeout = timeout
        self._on_timeout = on_timeout
        self._handle: Optional[Any] = None
        self._fired: bool = False

    @property
    def active(self) -> bool:
        return self._handle is not None

    @property
    def fired(self) -> bool:
        return self._fired

    def start(self) -> None:
        if self._handle is not None:
            raise RuntimeError("ConnectionTimer already started")
        self._handle = self._scheduler.schedule_delayed(self.timeout, self._fire)

    def cancel(self) -> None:
        """Disarm the timer. No-op if it already fired or was cancelled."""
        handle, self._handle = self._handle, None
        self._scheduler.cancel(handle)

    def _fire(self) -> None:
        if self._handle is None:
            return
        self._handle = None
        self._fired = True
        logger.warning(f"Connection timeout after {self.timeout}s")
        self._on_timeout()


class DataArrivalMonitor:
    """
    Periodic packet-count poll.

    The first poll compares against last_count, which starts at 0: a
    stream that received nothing during the first interval is stalled.

    Attributes:
        interval: Seconds between polls
        last_count: Packet count recorded at the previous poll
        polls: Number of polls run
        active: Whether a poll is scheduled
        stalled: Whether a stall was reported
    """

    def __init__(
        self,
        scheduler: Scheduler,
        interval: float,
        count_packets: Callable[[], int],
        on_stall: Callable[[], None],
    ) -> None:
        """
        Initialize monitor.

        Args:
            scheduler: Scheduler to arm polls on
            interval: Seconds between polls
            count_packets: Returns the cumulative packet count
            on_stall: Called once when two consecutive polls match
        """
        self._scheduler = scheduler
        self.interval = interval
        self._count_packets = count_packets
        self._on_stall = on_stall
        self._handle: Optional[Any] = None

        self.last_count: int = 0
        self.polls: int = 0
        self._stalled: bool = False

    @property
    def active(self) -> bool:
        return self._handle is not None

    @property
    def stalled(self) -> bool:
        return self._stalled

    def start(self) -> None:
        if self._handle is not None:
            raise RuntimeError("DataArrivalMonitor already started")
        self._schedule()

    def cancel(self) -> None:
        handle, self._handle = self._handle, None
        self._scheduler.cancel(handle)

    def _schedule(self) -> None:
        self._handle = self._scheduler.schedule_delayed(self.interval, self._poll)

    def _poll(self) -> None:
        if self._handle is None:
            return
        self._handle = None
        self.polls += 1

        total = self._count_packets()
        if total == self.last_count:
            self._stalled = True
            logger.warning(
                f"No new data for {self.interval}s "
                f"(packets={total}, polls={self.polls})"
            )
            self._on_stall()
            return

        logger.debug(f"Data poll: packets {self.last_count} -> {total}")
        self.last_count = total
        self._schedule()
