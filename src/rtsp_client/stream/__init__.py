"""
Stream Module
=============

Frame receiving components.

This module provides the delivery layer for rtsp_client:
    - FrameBuffer: Growable buffer with a reserved header prefix
    - FrameSink: Per-stream pull loop relaying frames to the callback

Example:
    from rtsp_client.stream import FrameSink

    sink = FrameSink("video/H264#0", callback)
    sink.start_playing(subsession.read_source)
"""

from rtsp_client.stream.buffer import DEFAULT_BUFFER_SIZE, FrameBuffer
from rtsp_client.stream.sink import FrameSink, SinkMetrics


__all__ = [
    "DEFAULT_BUFFER_SIZE",
    "FrameBuffer",
    "FrameSink",
    "SinkMetrics",
]
