"""
Session Module
==============

RTSP negotiation state machine and its liveness supervisors.

    - machine.py: RtspSession (DESCRIBE → SETUP × n → PLAY) and Stream
    - liveness.py: ConnectionTimer and DataArrivalMonitor
"""

from rtsp_client.session.liveness import ConnectionTimer, DataArrivalMonitor
from rtsp_client.session.machine import RtspSession, SessionMetrics, Stream

__all__ = [
    "ConnectionTimer",
    "DataArrivalMonitor",
    "RtspSession",
    "SessionMetrics",
    "Stream",
]
