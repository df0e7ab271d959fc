"""
rtsp_client
===========

Client-side RTSP session establishment and liveness supervision.

This package negotiates a media session (DESCRIBE → SETUP per stream → PLAY),
relays every received frame to the application through a growable buffer
with a reserved header prefix, and watches the connection with two timers.

Components:
    - connection: RtspConnection, the handle the application holds
    - session: Negotiation state machine and liveness supervisors
    - stream: FrameBuffer and FrameSink (per-stream pull loop)
    - callback: ConnectionCallback capability interface
    - transport / scheduler: Protocols for the external RTSP library
      and event loop

Example:
    from rtsp_client import AsyncioScheduler, ConnectionCallback, RtspConnection

    connection = RtspConnection(
        scheduler=AsyncioScheduler(),
        callback=ConnectionCallback(),
        url="rtsp://camera.local/stream",
        timeout=5,
        client_factory=make_client,
    )
"""

from rtsp_client.callback import CallbackProtocol, ConnectionCallback
from rtsp_client.connection import RtspConnection
from rtsp_client.models import (
    LivenessFailure,
    NegotiationFailure,
    NegotiationStage,
    SessionState,
)
from rtsp_client.scheduler import AsyncioScheduler, Scheduler
from rtsp_client.session import RtspSession

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "AsyncioScheduler",
    "CallbackProtocol",
    "ConnectionCallback",
    "LivenessFailure",
    "NegotiationFailure",
    "NegotiationStage",
    "RtspConnection",
    "RtspSession",
    "Scheduler",
    "SessionState",
]
