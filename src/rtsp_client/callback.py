"""
Connection Callback
===================

Capability interface the RTSP client core invokes on the owning application.

The callback is borrowed: the application creates it, hands it to an
RtspConnection, and keeps it alive for the connection's lifetime. The core
never closes or replaces it.

Operations:
    on_new_buffer          - reserve a header prefix in a fresh frame buffer
    on_data                - receive one complete frame
    on_new_session         - accept or reject a freshly set-up stream
    on_error               - negotiation failure notification
    on_connection_timeout  - PLAY did not succeed within the timeout
    on_data_timeout        - no new packets within the timeout while streaming

Reconnecting is entirely the application's decision. A typical handler
calls connection.start() from on_connection_timeout or on_data_timeout.

Example:
    class AnnexBCallback(ConnectionCallback):
        START_CODE = b"\\x00\\x00\\x00\\x01"

        def on_new_buffer(self, buffer, capacity):
            buffer[:4] = np.frombuffer(self.START_CODE, dtype=np.uint8)
            return 4

        def on_data(self, name, buffer, length, presentation_time):
            decoder.feed(buffer[:length].tobytes())
            return True
"""

import logging
from typing import TYPE_CHECKING, Protocol

import numpy as np

if TYPE_CHECKING:
    from rtsp_client.connection import RtspConnection


logger = logging.getLogger(__name__)


class CallbackProtocol(Protocol):
    """Structural contract for connection callbacks."""

    def on_new_buffer(self, buffer: np.ndarray, capacity: int) -> int:
        ...

    def on_data(
        self,
        name: str,
        buffer: np.ndarray,
        length: int,
        presentation_time: float,
    ) -> bool:
        ...

    def on_new_session(self, name: str, medium: str, codec: str, sdp: str) -> bool:
        ...

    def on_error(self, message: str) -> None:
        ...

    def on_connection_timeout(self, connection: "RtspConnection") -> None:
        ...

    def on_data_timeout(self, connection: "RtspConnection") -> None:
        ...


class ConnectionCallback:
    """
    Base callback with permissive defaults.

    Defaults: no reserved prefix, every stream accepted, every frame
    reported as consumed, failures and timeouts logged only.
    Subclass and override what the application needs.
    """

    def on_new_buffer(self, buffer: np.ndarray, capacity: int) -> int:
        """
        Negotiate the reserved prefix of a freshly allocated buffer.

        The callback may write its header bytes into buffer[:marker_size];
        payload writes never touch them.

        Args:
            buffer: Newly allocated uint8 buffer
            capacity: Buffer size in bytes

        Returns:
            Number of leading bytes to reserve (0 <= marker < capacity)
        """
        return 0

    def on_data(
        self,
        name: str,
        buffer: np.ndarray,
        length: int,
        presentation_time: float,
    ) -> bool:
        """
        Receive one frame.

        buffer[:length] holds the reserved prefix followed by the payload.
        The buffer is reused for the next frame once this returns.

        Returns:
            True if the frame was consumed, False to log a delivery failure
        """
        return True

    def on_new_session(self, name: str, medium: str, codec: str, sdp: str) -> bool:
        """
        Decide whether to start the pull loop for a set-up stream.

        Args:
            name: Sink name, later passed to on_data
            medium: Media kind ("video", "audio", ...)
            codec: Codec name
            sdp: Raw SDP lines for the stream

        Returns:
            True to accept and start streaming, False to reject
        """
        return True

    def on_error(self, message: str) -> None:
        logger.error(f"RTSP error: {message}")

    def on_connection_timeout(self, connection: "RtspConnection") -> None:
        logger.warning(f"Connection timeout: {connection.url}")

    def on_data_timeout(self, connection: "RtspConnection") -> None:
        logger.warning(f"Data timeout: {connection.url}")
