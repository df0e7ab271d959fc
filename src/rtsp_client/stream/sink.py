"""
Frame Sink
==========

Per-stream receiver that pulls frames from a FrameSource into a FrameBuffer
and relays them to the ConnectionCallback.

Pull loop:
    1. Request the next frame into the buffer's payload region
    2. On frame-ready:
        - truncated: double the buffer, drop the frame
        - complete: deliver (name, buffer, frame_size + marker_size, pts)
    3. Request the next frame, unless the source closed

Design Rules:
    - Exactly one pull request is pending while playing
    - Truncated frames are never re-delivered
    - A rejected delivery is logged and does NOT stop the loop
    - Source closure leaves the sink idle; the session destroys it
"""

import logging
from typing import Optional

from rtsp_client.callback import CallbackProtocol
from rtsp_client.errors import BufferNegotiationError
from rtsp_client.stream.buffer import DEFAULT_BUFFER_SIZE, FrameBuffer
from rtsp_client.transport import FrameSource


logger = logging.getLogger(__name__)


class SinkMetrics:
    """Metrics for FrameSink observability."""

    __slots__ = (
        "frames_delivered",
        "frames_truncated",
        "delivery_failures",
        "buffer_grows",
        "bytes_delivered",
    )

    def __init__(self) -> None:
        self.frames_delivered: int = 0
        self.frames_truncated: int = 0
        self.delivery_failures: int = 0
        self.buffer_grows: int = 0
        self.bytes_delivered: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_delivered": self.frames_delivered,
            "frames_truncated": self.frames_truncated,
            "delivery_failures": self.delivery_failures,
            "buffer_grows": self.buffer_grows,
            "bytes_delivered": self.bytes_delivered,
        }


class FrameSink:
    """
    Frame receiver for one accepted stream.

    Attributes:
        name: Sink name, passed to on_data with every frame
        buffer: Owned FrameBuffer
        playing: Whether the pull loop is running
        closed: Whether the source signaled end of stream
        metrics: Operational metrics

    Example:
        sink = FrameSink("video/H264#0", callback)
        if callback.on_new_session(sink.name, "video", "H264", sdp):
            sink.start_playing(subsession.read_source)

        # Later, when the session is destroyed
        sink.stop_playing()
    """

    def __init__(
        self,
        name: str,
        callback: CallbackProtocol,
        initial_buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        """
        Initialize sink and negotiate its buffer.

        Args:
            name: Sink name
            callback: Borrowed application callback
            initial_buffer_size: Initial buffer capacity in bytes

        Raises:
            BufferNegotiationError: If the callback's marker size is unusable
        """
        self.name = name
        self._callback = callback
        self.buffer = FrameBuffer(callback.on_new_buffer, initial_buffer_size)

        self._source: Optional[FrameSource] = None
        self._playing: bool = False
        self._closed: bool = False

        self.metrics = SinkMetrics()

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def source(self) -> Optional[FrameSource]:
        return self._source

    def start_playing(self, source: Optional[FrameSource]) -> bool:
        """
        Start the pull loop.

        Args:
            source: Frame source of the stream

        Returns:
            True if the first pull was issued, False without a source
        """
        if source is None:
            logger.warning(f"Sink {self.name}: no source to play")
            return False
        if self._playing:
            raise RuntimeError(f"Sink {self.name} is already playing")

        self._source = source
        self._playing = True
        self._closed = False
        return self._continue_playing()

    def stop_playing(self) -> None:
        """Stop the pull loop. Frames arriving afterwards are ignored."""
        if self._playing and self._source is not None:
            self._source.stop_getting_frames()
        self._playing = False

    def _continue_playing(self) -> bool:
        if self._source is None or not self._playing:
            return False

        self._source.get_next_frame(
            self.buffer.payload,
            self.buffer.payload_capacity,
            self._after_getting_frame,
            self._on_source_closure,
        )
        return True

    def _after_getting_frame(
        self,
        frame_size: int,
        truncated_bytes: int,
        presentation_time: float,
        duration_us: int = 0,
    ) -> None:
        if not self._playing:
            return

        logger.debug(f"NOTIFY {self.name} size: {frame_size}")

        if truncated_bytes != 0 or frame_size > self.buffer.payload_capacity:
            self.metrics.frames_truncated += 1
            try:
                self.buffer.grow()
            except BufferNegotiationError as e:
                logger.error(f"Sink {self.name}: cannot grow buffer: {e}")
                self._playing = False
                return
            self.metrics.buffer_grows += 1
        else:
            try:
                length = self.buffer.frame_length(frame_size)
            except ValueError as e:
                logger.warning(f"Sink {self.name}: dropping frame: {e}")
                self._continue_playing()
                return
            if self._callback.on_data(
                self.name, self.buffer.data, length, presentation_time
            ):
                self.metrics.frames_delivered += 1
                self.metrics.bytes_delivered += length
            else:
                self.metrics.delivery_failures += 1
                logger.warning(f"NOTIFY failed for {self.name}")

        self._continue_playing()

    def _on_source_closure(self) -> None:
        if not self._playing:
            return

        logger.info(f"Sink {self.name}: source closed")
        self._closed = True
        self._playing = False
