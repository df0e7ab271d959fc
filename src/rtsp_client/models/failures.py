"""
Failure Models
==============

Typed records of the non-fatal failures a session can run into.

Failures are reported to the application through ConnectionCallback and
kept on the session for inspection. None of them are raised as exceptions.

Taxonomy:
    - NegotiationFailure: nonzero result code from DESCRIBE, SETUP or PLAY
    - LivenessFailure: connection timeout or data timeout
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NegotiationStage(str, Enum):
    """RTSP command whose reply reported the failure."""

    DESCRIBE = "DESCRIBE"
    SETUP = "SETUP"
    PLAY = "PLAY"


class LivenessFailure(str, Enum):
    """
    Liveness supervisor that fired.

    Attributes:
        CONNECTION_TIMEOUT: PLAY did not complete within the timeout
        DATA_TIMEOUT: No packets arrived between two consecutive polls
    """

    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    DATA_TIMEOUT = "DATA_TIMEOUT"


@dataclass(frozen=True, slots=True)
class NegotiationFailure:
    """
    A failed negotiation command.

    Attributes:
        stage: Command that failed
        result_code: Nonzero result code from the reply
        message: Result string from the reply
        stream_index: Index of the stream for SETUP failures, else None
    """

    stage: NegotiationStage
    result_code: int
    message: str
    stream_index: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.result_code == 0:
            raise ValueError("result_code 0 is not a failure")
