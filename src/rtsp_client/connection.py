"""
RTSP Connection
===============

Top-level handle the application holds for one RTSP URL.

The connection owns at most one RtspSession. start() discards the current
session, if any, and builds a fresh one that begins negotiating at once.
Nothing about a previous session survives a restart.

Example:
    loop = asyncio.get_running_loop()

    class Restarting(ConnectionCallback):
        def on_data_timeout(self, connection):
            connection.start()

    connection = RtspConnection(
        scheduler=AsyncioScheduler(loop),
        callback=Restarting(),
        url="rtsp://camera.local/stream",
        timeout=5,
        client_factory=make_client,
    )
    ...
    connection.close()
"""

import logging
from typing import Any, Optional

from rtsp_client.callback import CallbackProtocol
from rtsp_client.config import Settings
from rtsp_client.scheduler import Scheduler
from rtsp_client.session.machine import RtspSession
from rtsp_client.stream.buffer import DEFAULT_BUFFER_SIZE
from rtsp_client.transport import ClientFactory


logger = logging.getLogger(__name__)


class RtspConnection:
    """
    Connection manager owning one live RtspSession.

    Attributes:
        url: RTSP URL
        timeout: Seconds for the connection timeout and the data poll
        verbosity: Verbosity level passed to the client factory
        session: Current session, or None after close()
        restarts: Number of sessions created so far
    """

    def __init__(
        self,
        scheduler: Scheduler,
        callback: CallbackProtocol,
        url: str,
        timeout: int,
        client_factory: ClientFactory,
        verbosity: int = 0,
        initial_buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        """
        Initialize connection and start the first session.

        Args:
            scheduler: Scheduler driving every timer and reply
            callback: Application callback, borrowed for our lifetime
            url: RTSP URL to connect to
            timeout: Timeout in seconds. Must be positive.
            client_factory: Builds an RtspClient from (url, verbosity)
            verbosity: Client verbosity level
            initial_buffer_size: Initial capacity of each sink buffer
        """
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self.url = url
        self.timeout = timeout
        self.verbosity = verbosity
        self.initial_buffer_size = initial_buffer_size

        self._scheduler = scheduler
        self._callback = callback
        self._client_factory = client_factory
        self._session: Optional[RtspSession] = None
        self._error_task: Any = None
        self.restarts: int = 0

        self.start()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        scheduler: Scheduler,
        callback: CallbackProtocol,
        client_factory: ClientFactory,
    ) -> "RtspConnection":
        """Build a connection from loaded Settings."""
        return cls(
            scheduler=scheduler,
            callback=callback,
            url=settings.connection.url,
            timeout=settings.connection.timeout_seconds,
            client_factory=client_factory,
            verbosity=settings.connection.verbosity,
            initial_buffer_size=settings.sink.initial_buffer_size,
        )

    @property
    def session(self) -> Optional[RtspSession]:
        return self._session

    def start(self) -> None:
        """
        (Re)start negotiation with a fresh session.

        Client construction failures are reported through callback.on_error
        on the next scheduler turn; this method does not raise for them.
        """
        self._close_session()

        logger.info(f"Connecting to {self.url} (timeout={self.timeout}s)")
        try:
            client = self._client_factory(self.url, self.verbosity)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to create RTSP client for {self.url}: {e}")
            message = str(e)
            self._error_task = self._scheduler.schedule_delayed(
                0, lambda: self._report_error(message)
            )
            return

        self.restarts += 1
        self._session = RtspSession(
            connection=self,
            client=client,
            scheduler=self._scheduler,
            callback=self._callback,
            timeout=self.timeout,
            initial_buffer_size=self.initial_buffer_size,
        )

    def stop(self) -> None:
        """Close the current session, if any."""
        self._close_session()

    close = stop

    def _report_error(self, message: str) -> None:
        self._error_task = None
        self._callback.on_error(message)

    def _close_session(self) -> None:
        self._scheduler.cancel(self._error_task)
        self._error_task = None
        session, self._session = self._session, None
        if session is not None:
            session.close()

    def __enter__(self) -> "RtspConnection":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"RtspConnection({self.url!r}, session={self._session!r})"
