"""
Frame Buffer
============

Growable byte buffer with a reserved header prefix.

Each accepted stream owns one FrameBuffer. The consumer (ConnectionCallback)
reserves the first `marker_size` bytes for a fixed header, for example an
H.264 start code. Frame sources only ever receive the `payload` view, so
payload writes cannot reach the reserved prefix.

Design Rules:
    - Capacity only grows, and only by doubling
    - grow() discards the old contents; nothing is carried over
    - The marker size is re-negotiated after every allocation
    - 0 <= marker_size < capacity
"""

import logging
from typing import Callable

import numpy as np

from rtsp_client.errors import BufferNegotiationError


logger = logging.getLogger(__name__)


DEFAULT_BUFFER_SIZE = 1024 * 1024

MarkerNegotiator = Callable[[np.ndarray, int], int]
"""Returns the reserved prefix length for (buffer, capacity)."""


class FrameBuffer:
    """
    Owned uint8 buffer split into a reserved prefix and a payload region.

    Attributes:
        capacity: Total buffer size in bytes
        marker_size: Length of the reserved prefix
        data: Whole buffer (prefix + payload)
        marker: View of the reserved prefix
        payload: View of the writable payload region

    Example:
        buffer = FrameBuffer(negotiate=callback.on_new_buffer)
        source.get_next_frame(buffer.payload, buffer.payload_capacity, ...)

        # Frame did not fit
        buffer.grow()
    """

    def __init__(
        self,
        negotiate: MarkerNegotiator,
        capacity: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        """
        Allocate the buffer and negotiate its marker size.

        Args:
            negotiate: Called with (buffer, capacity) after each allocation
            capacity: Initial size in bytes. Must be >= 1.

        Raises:
            BufferNegotiationError: If negotiate returns an unusable size
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self._negotiate = negotiate
        self._data: np.ndarray = np.zeros(0, dtype=np.uint8)
        self._capacity = 0
        self._marker_size = 0
        self._allocate(capacity)

    @property
    def capacity(self) -> int:
        """Total buffer size in bytes."""
        return self._capacity

    @property
    def marker_size(self) -> int:
        """Reserved prefix length in bytes."""
        return self._marker_size

    @property
    def payload_capacity(self) -> int:
        """Bytes available for frame payload."""
        return self._capacity - self._marker_size

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def marker(self) -> np.ndarray:
        return self._data[:self._marker_size]

    @property
    def payload(self) -> np.ndarray:
        return self._data[self._marker_size:]

    def frame_length(self, frame_size: int) -> int:
        """Length of a delivered frame including the reserved prefix."""
        if not 0 <= frame_size <= self.payload_capacity:
            raise ValueError(
                f"frame_size {frame_size} outside payload capacity "
                f"{self.payload_capacity}"
            )
        return frame_size + self._marker_size

    def grow(self) -> int:
        """
        Replace the buffer with one of twice the capacity.

        The old contents are discarded and the marker size is negotiated
        again for the new buffer.

        Returns:
            New capacity in bytes
        """
        old_capacity = self._capacity
        self._allocate(old_capacity * 2)
        logger.info(
            f"Buffer too small ({old_capacity} bytes), "
            f"allocated {self._capacity} bytes"
        )
        return self._capacity

    def _allocate(self, capacity: int) -> None:
        data = np.zeros(capacity, dtype=np.uint8)
        marker_size = int(self._negotiate(data, capacity))
        if not 0 <= marker_size < capacity:
            raise BufferNegotiationError(marker_size, capacity)

        self._data = data
        self._capacity = capacity
        self._marker_size = marker_size
        logger.info(f"Marker size {marker_size} for {capacity}-byte buffer")
