"""
Session State Models
====================

Discrete states of the RTSP negotiation state machine.

Lifecycle:
    AWAITING_DESCRIBE → AWAITING_SETUP (once per stream) → AWAITING_PLAY
        → STREAMING → STALLED

    Any state → CLOSED when the session is destroyed.

STALLED is terminal. It is entered when DESCRIBE or PLAY fails or when the
liveness poll observes no new packets. The session never retries on its own;
restarting is the connection owner's decision.
"""

from enum import Enum


class SessionState(str, Enum):
    """
    Negotiation and streaming states of an RtspSession.

    Attributes:
        AWAITING_DESCRIBE: DESCRIBE sent, waiting for the SDP reply
        AWAITING_SETUP: SETUP sent for the stream at the session cursor
        AWAITING_PLAY: All streams processed, PLAY sent
        STREAMING: PLAY succeeded, data liveness poll running
        STALLED: Negotiation failed or data stopped arriving
        CLOSED: Session destroyed, all callbacks are ignored
    """

    AWAITING_DESCRIBE = "AWAITING_DESCRIBE"
    AWAITING_SETUP = "AWAITING_SETUP"
    AWAITING_PLAY = "AWAITING_PLAY"
    STREAMING = "STREAMING"
    STALLED = "STALLED"
    CLOSED = "CLOSED"
