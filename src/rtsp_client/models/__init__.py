"""
Data Models
===========

Typed state and failure records for rtsp_client.

Models:
    State:
        - SessionState: Negotiation/streaming states of a session

    Failures:
        - NegotiationStage: DESCRIBE, SETUP or PLAY
        - NegotiationFailure: Failed command reply
        - LivenessFailure: Connection or data timeout
"""

from rtsp_client.models.failures import (
    LivenessFailure,
    NegotiationFailure,
    NegotiationStage,
)
from rtsp_client.models.state import SessionState

__all__ = [
    # State
    "SessionState",
    # Failures
    "NegotiationStage",
    "NegotiationFailure",
    "LivenessFailure",
]
