"""
Error Types
===========

Exceptions raised by the RTSP client core.

Negotiation and liveness failures are NOT exceptions: they are reported
through the ConnectionCallback and recorded on the session (see
rtsp_client.models.failures). The exceptions below cover programming
errors and contract violations at the collaborator seams.
"""


class RtspClientError(Exception):
    """Base class for all rtsp_client errors."""
    pass


class BufferNegotiationError(RtspClientError):
    """Raised when a callback returns an unusable marker size for a buffer."""

    def __init__(self, marker_size: int, capacity: int) -> None:
        self.marker_size = marker_size
        self.capacity = capacity
        super().__init__(
            f"Invalid marker size {marker_size} for buffer of {capacity} bytes"
        )


class SessionClosedError(RtspClientError):
    """Raised when a command is issued on a session that was already closed."""
    pass
