"""
Session State Machine
=====================

Drives RTSP negotiation for one connection attempt and supervises liveness
once streaming.

Transitions:
    AWAITING_DESCRIBE --ok--> AWAITING_SETUP(0) ... AWAITING_SETUP(n-1)
                      --fail--> STALLED
    AWAITING_SETUP(i) --ok/fail--> AWAITING_SETUP(i+1) or AWAITING_PLAY
    AWAITING_PLAY     --ok--> STREAMING
                      --fail--> STALLED
    STREAMING         --no new packets--> STALLED
    any               --close()--> CLOSED

Rules:
    - Exactly one command is outstanding at a time
    - A failed SETUP never blocks the following streams
    - The connection timer is cancelled when the PLAY reply is processed,
      whatever its result
    - The data poll starts only after a successful PLAY
    - Nothing is retried here; restarting belongs to the application
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from rtsp_client.callback import CallbackProtocol
from rtsp_client.errors import BufferNegotiationError, SessionClosedError
from rtsp_client.models.failures import (
    LivenessFailure,
    NegotiationFailure,
    NegotiationStage,
)
from rtsp_client.models.state import SessionState
from rtsp_client.scheduler import Scheduler
from rtsp_client.session.liveness import ConnectionTimer, DataArrivalMonitor
from rtsp_client.stream.buffer import DEFAULT_BUFFER_SIZE
from rtsp_client.stream.sink import FrameSink
from rtsp_client.transport import MediaSession, MediaSubsession, RtspClient

if TYPE_CHECKING:
    from rtsp_client.connection import RtspConnection


logger = logging.getLogger(__name__)


@dataclass
class Stream:
    """
    One negotiated media stream.

    Attributes:
        index: Position in SDP order
        subsession: Transport-level subsession
        sink: FrameSink, only after a successful SETUP
        accepted: Whether the callback accepted the stream
    """

    index: int
    subsession: MediaSubsession
    sink: Optional[FrameSink] = None
    accepted: bool = False

    @property
    def medium(self) -> str:
        return self.subsession.medium_name

    @property
    def codec(self) -> str:
        return self.subsession.codec_name

    @property
    def sdp_lines(self) -> str:
        return self.subsession.saved_sdp_lines

    @property
    def sink_name(self) -> str:
        return f"{self.medium}/{self.codec}#{self.index}"

    @property
    def packets_received(self) -> int:
        return self.subsession.packets_received or 0

    def __repr__(self) -> str:
        return (
            f"Stream({self.index}, {self.medium}/{self.codec}, "
            f"sink={self.sink is not None}, accepted={self.accepted})"
        )


class SessionMetrics:
    """Metrics for RtspSession observability."""

    __slots__ = (
        "setups_sent",
        "setups_failed",
        "streams_accepted",
        "streams_rejected",
        "polls",
        "last_packet_count",
    )

    def __init__(self) -> None:
        self.setups_sent: int = 0
        self.setups_failed: int = 0
        self.streams_accepted: int = 0
        self.streams_rejected: int = 0
        self.polls: int = 0
        self.last_packet_count: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "setups_sent": self.setups_sent,
            "setups_failed": self.setups_failed,
            "streams_accepted": self.streams_accepted,
            "streams_rejected": self.streams_rejected,
            "polls": self.polls,
            "last_packet_count": self.last_packet_count,
        }


class RtspSession:
    """
    Negotiation state machine for one RTSP client.

    Construction arms the connection timer and sends DESCRIBE right away.
    Every later step is driven by reply handlers and timer firings on the
    scheduler thread.

    Attributes:
        state: Current SessionState
        setup_index: Index of the stream awaiting SETUP, else None
        streams: Negotiated streams in SDP order
        failures: NegotiationFailures seen so far
        liveness_failure: Liveness supervisor that fired, if any
        metrics: Operational metrics
    """

    def __init__(
        self,
        connection: "RtspConnection",
        client: RtspClient,
        scheduler: Scheduler,
        callback: CallbackProtocol,
        timeout: float,
        initial_buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        """
        Initialize session and start negotiating.

        Args:
            connection: Owning connection, passed to timeout callbacks
            client: RTSP command channel (owned, closed with the session)
            scheduler: Scheduler for the liveness timers
            callback: Borrowed application callback
            timeout: Seconds for the connection timeout and the data poll
            initial_buffer_size: Initial capacity of each sink buffer
        """
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self._connection = connection
        self._client = client
        self._callback = callback
        self.timeout = timeout
        self.initial_buffer_size = initial_buffer_size

        self._state = SessionState.AWAITING_DESCRIBE
        self._media_session: Optional[MediaSession] = None
        self._streams: List[Stream] = []
        self._cursor: int = 0

        self.failures: List[NegotiationFailure] = []
        self.liveness_failure: Optional[LivenessFailure] = None
        self.metrics = SessionMetrics()

        self._connection_timer = ConnectionTimer(
            scheduler, timeout, self._on_connection_timeout
        )
        self._data_monitor = DataArrivalMonitor(
            scheduler, timeout, self._poll_packets, self._on_data_timeout
        )

        self._connection_timer.start()
        self._send_describe()

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is SessionState.CLOSED

    @property
    def setup_index(self) -> Optional[int]:
        if self._state is SessionState.AWAITING_SETUP:
            return self._cursor
        return None

    @property
    def streams(self) -> List[Stream]:
        return list(self._streams)

    @property
    def media_session(self) -> Optional[MediaSession]:
        return self._media_session

    @property
    def connection_timer_active(self) -> bool:
        return self._connection_timer.active

    @property
    def data_timer_active(self) -> bool:
        return self._data_monitor.active

    def packets_received(self) -> int:
        """Cumulative packets received across accepted streams."""
        return sum(s.packets_received for s in self._streams if s.accepted)

    # =========================================================================
    # Commands
    # =========================================================================

    def _send_describe(self) -> None:
        self._ensure_open()
        self._state = SessionState.AWAITING_DESCRIBE
        logger.info("Sending DESCRIBE")
        self._client.send_describe(self._after_describe)

    def _setup_next_stream(self) -> None:
        self._ensure_open()

        if self._cursor >= len(self._streams):
            self._send_play()
            return

        stream = self._streams[self._cursor]
        self._state = SessionState.AWAITING_SETUP

        if not stream.subsession.initiate():
            logger.warning(
                f"Failed to initiate {stream.medium}/{stream.codec} subsession"
            )
        else:
            logger.info(f"Initiated {stream.medium}/{stream.codec} subsession")

        self.metrics.setups_sent += 1
        self._client.send_setup(stream.subsession, self._after_setup)

    def _send_play(self) -> None:
        self._state = SessionState.AWAITING_PLAY
        logger.info(f"Sending PLAY for {len(self._streams)} stream(s)")
        self._client.send_play(self._media_session, self._after_play)

    def _ensure_open(self) -> None:
        if self.closed:
            raise SessionClosedError("Session is closed")

    # =========================================================================
    # Reply handlers
    # =========================================================================

    def _after_describe(self, result_code: int, result: str) -> None:
        if self.closed:
            logger.debug("Ignoring DESCRIBE reply for closed session")
            return

        if result_code != 0:
            logger.warning(f"Failed to DESCRIBE: {result}")
            self.failures.append(
                NegotiationFailure(NegotiationStage.DESCRIBE, result_code, result)
            )
            self._state = SessionState.STALLED
            self._callback.on_error(result)
            return

        logger.info(f"Got SDP:\n{result}")
        self._media_session = self._client.create_media_session(result)
        self._streams = [
            Stream(index, subsession)
            for index, subsession in enumerate(self._media_session.subsessions())
        ]
        self._cursor = 0
        self._setup_next_stream()

    def _after_setup(self, result_code: int, result: str) -> None:
        if self.closed:
            logger.debug("Ignoring SETUP reply for closed session")
            return

        stream = self._streams[self._cursor]
        if result_code != 0:
            logger.warning(f"Failed to SETUP {stream.medium}/{stream.codec}: {result}")
            self.failures.append(
                NegotiationFailure(
                    NegotiationStage.SETUP, result_code, result, stream.index
                )
            )
            self.metrics.setups_failed += 1
            self._callback.on_error(result)
        else:
            self._attach_sink(stream)

        # The callback may have restarted the connection
        if self.closed:
            return

        self._cursor += 1
        self._setup_next_stream()

    def _after_play(self, result_code: int, result: str) -> None:
        if self.closed:
            logger.debug("Ignoring PLAY reply for closed session")
            return

        self._connection_timer.cancel()

        if result_code != 0:
            logger.warning(f"Failed to PLAY: {result}")
            self.failures.append(
                NegotiationFailure(NegotiationStage.PLAY, result_code, result)
            )
            self._state = SessionState.STALLED
            self._callback.on_error(result)
            return

        logger.info("PLAY OK")
        self._state = SessionState.STREAMING
        self._data_monitor.start()

    def _attach_sink(self, stream: Stream) -> None:
        try:
            sink = FrameSink(stream.sink_name, self._callback, self.initial_buffer_size)
        except BufferNegotiationError as e:
            logger.warning(
                f"Failed to create a data sink for {stream.medium}/{stream.codec}: {e}"
            )
            return

        if self.closed:
            return

        stream.sink = sink
        accepted = self._callback.on_new_session(
            sink.name, stream.medium, stream.codec, stream.sdp_lines
        )
        if self.closed:
            return

        if accepted:
            stream.accepted = True
            self.metrics.streams_accepted += 1
            logger.info(f"Created a data sink for {stream.medium}/{stream.codec}")
            sink.start_playing(stream.subsession.read_source)
        else:
            self.metrics.streams_rejected += 1
            logger.info(f"Stream {stream.medium}/{stream.codec} rejected")

    # =========================================================================
    # Liveness
    # =========================================================================

    def _poll_packets(self) -> int:
        total = self.packets_received()
        self.metrics.polls += 1
        self.metrics.last_packet_count = total
        return total

    def _on_connection_timeout(self) -> None:
        if self.closed:
            return
        self.liveness_failure = LivenessFailure.CONNECTION_TIMEOUT
        self._callback.on_connection_timeout(self._connection)

    def _on_data_timeout(self) -> None:
        if self.closed:
            return
        self._state = SessionState.STALLED
        self.liveness_failure = LivenessFailure.DATA_TIMEOUT
        self._callback.on_data_timeout(self._connection)

    # =========================================================================
    # Teardown
    # =========================================================================

    def close(self) -> None:
        """
        Destroy the session.

        Timers are cancelled before any stream or sink is released.
        Safe to call more than once.
        """
        if self.closed:
            return

        self._connection_timer.cancel()
        self._data_monitor.cancel()
        self._state = SessionState.CLOSED

        for stream in self._streams:
            if stream.sink is not None:
                stream.sink.stop_playing()
                stream.sink = None
        self._streams = []

        if self._media_session is not None:
            self._media_session.close()
            self._media_session = None
        self._client.close()
        logger.info("Session closed")

    def __repr__(self) -> str:
        return f"RtspSession({self._state.value}, streams={len(self._streams)})"
