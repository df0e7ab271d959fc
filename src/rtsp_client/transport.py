"""
Transport Contracts
===================

Protocols for the RTSP negotiation and media transport library.

The core never encodes RTSP messages, parses SDP, or reads RTP packets
itself. It drives these collaborators and reacts to their completion
callbacks, which are always delivered later on the scheduler thread.

Contracts:
    - RtspClient: Issues DESCRIBE / SETUP / PLAY and builds MediaSessions
    - MediaSession: Ordered set of negotiated subsessions
    - MediaSubsession: One negotiated media stream
    - FrameSource: Pull-based frame reader for one subsession
    - ClientFactory: Builds an RtspClient for (url, verbosity)

Reply handlers receive (result_code, result_string). A result code of 0
means success; the result string then carries the command's payload
(the SDP for DESCRIBE). Otherwise it carries the error message.
"""

from typing import Callable, Iterable, Optional, Protocol

import numpy as np


ReplyHandler = Callable[[int, str], None]
"""Completion handler for an RTSP command: (result_code, result_string)."""

FrameHandler = Callable[[int, int, float, int], None]
"""Frame-ready handler: (frame_size, truncated_bytes, presentation_time, duration_us)."""

ClosureHandler = Callable[[], None]
"""Source-closed handler."""


class FrameSource(Protocol):
    """
    Pull-based frame reader.

    Each get_next_frame() call registers exactly one pending request. The
    source writes at most max_size bytes into buffer, then calls on_frame,
    or calls on_closure when the stream ends.
    """

    def get_next_frame(
        self,
        buffer: np.ndarray,
        max_size: int,
        on_frame: FrameHandler,
        on_closure: ClosureHandler,
    ) -> None:
        ...

    def stop_getting_frames(self) -> None:
        ...


class MediaSubsession(Protocol):
    """
    One negotiated media stream of a MediaSession.

    Attributes:
        medium_name: Media kind from SDP ("video", "audio", ...)
        codec_name: Codec from SDP ("H264", "OPUS", ...)
        saved_sdp_lines: Raw SDP lines describing this stream
        read_source: Frame source once initiated, else None
        packets_received: Cumulative packets received, None without a source
    """

    medium_name: str
    codec_name: str
    saved_sdp_lines: str

    def initiate(self) -> bool:
        """Prepare the local transport for this stream."""
        ...

    @property
    def read_source(self) -> Optional[FrameSource]:
        ...

    @property
    def packets_received(self) -> Optional[int]:
        ...


class MediaSession(Protocol):
    """Session description built from a DESCRIBE reply."""

    def subsessions(self) -> Iterable[MediaSubsession]:
        """Subsessions in SDP order. May only be consumed once."""
        ...

    def close(self) -> None:
        ...


class RtspClient(Protocol):
    """
    RTSP command channel to one server URL.

    At most one command is outstanding at a time; the core never issues a
    new command before the previous reply handler ran.
    """

    def send_describe(self, handler: ReplyHandler) -> None:
        ...

    def send_setup(self, subsession: MediaSubsession, handler: ReplyHandler) -> None:
        ...

    def send_play(self, session: MediaSession, handler: ReplyHandler) -> None:
        ...

    def create_media_session(self, sdp: str) -> MediaSession:
        """Build a MediaSession from the SDP text of a DESCRIBE reply."""
        ...

    def close(self) -> None:
        ...


ClientFactory = Callable[[str, int], RtspClient]
"""Builds an RtspClient from (url, verbosity)."""
