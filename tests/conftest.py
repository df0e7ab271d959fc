"""
Test Configuration
==================

Pytest fixtures and fakes for rtsp_client.

The fakes stand in for the external RTSP library and event loop:
    - FakeScheduler: virtual clock, tasks run only on advance()
    - FakeClient: records commands, replies only when told to
    - FakeSubsession / FakeSource: scripted streams and frames
    - RecordingCallback: records every capability call
"""

import itertools
from typing import Callable, List, Optional

import numpy as np
import pytest

from rtsp_client.callback import ConnectionCallback
from rtsp_client.connection import RtspConnection


START_CODE = b"\x00\x00\x00\x01"


class FakeTask:
    def __init__(self, when: float, seq: int, callback: Callable[[], None]) -> None:
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False
        self.fired = False


class FakeScheduler:
    """Scheduler on a virtual clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._tasks: List[FakeTask] = []

    def schedule_delayed(self, delay_seconds, callback):
        task = FakeTask(self.now + delay_seconds, next(self._seq), callback)
        self._tasks.append(task)
        return task

    def cancel(self, handle) -> None:
        if handle is not None:
            handle.cancelled = True

    @property
    def pending(self) -> List[FakeTask]:
        return [t for t in self._tasks if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.pending if t.when <= target]
            if not due:
                break
            task = min(due, key=lambda t: (t.when, t.seq))
            self.now = task.when
            task.fired = True
            task.callback()
        self.now = target


class FakeSource:
    """Frame source that holds one pending request until told to deliver."""

    def __init__(self) -> None:
        self.pending = None
        self.requests: List[int] = []
        self.stopped = False

    def get_next_frame(self, buffer, max_size, on_frame, on_closure) -> None:
        assert self.pending is None, "pull request already pending"
        self.pending = (buffer, max_size, on_frame, on_closure)
        self.requests.append(max_size)

    def stop_getting_frames(self) -> None:
        self.stopped = True
        self.pending = None

    def deliver(self, payload: bytes, presentation_time: float = 0.0) -> None:
        buffer, max_size, on_frame, _ = self.pending
        self.pending = None
        data = np.frombuffer(payload, dtype=np.uint8)
        written = min(len(data), max_size)
        buffer[:written] = data[:written]
        on_frame(written, len(data) - written, presentation_time, 0)

    def close(self) -> None:
        _, _, _, on_closure = self.pending
        self.pending = None
        on_closure()


class FakeSubsession:
    def __init__(
        self,
        medium: str = "video",
        codec: str = "H264",
        initiate_ok: bool = True,
        source: Optional[FakeSource] = None,
    ) -> None:
        self.medium_name = medium
        self.codec_name = codec
        self.saved_sdp_lines = f"m={medium} 0 RTP/AVP 96\r\na=rtpmap:96 {codec}/90000\r\n"
        self.initiate_ok = initiate_ok
        self.initiate_calls = 0
        self.source = source if source is not None else FakeSource()
        self.packets_received: Optional[int] = 0

    def initiate(self) -> bool:
        self.initiate_calls += 1
        return self.initiate_ok

    @property
    def read_source(self):
        return self.source


class FakeMediaSession:
    def __init__(self, subsessions: List[FakeSubsession]) -> None:
        self._subsessions = subsessions
        self.closed = False

    def subsessions(self):
        return iter(self._subsessions)

    def close(self) -> None:
        self.closed = True


class FakeClient:
    """RTSP client that replies only when the test calls reply()."""

    def __init__(self, url: str, verbosity: int, subsessions: List[FakeSubsession]) -> None:
        self.url = url
        self.verbosity = verbosity
        self.commands: List[tuple] = []
        self.pending = None
        self.closed = False
        self.sdp: Optional[str] = None
        self.media_session: Optional[FakeMediaSession] = None
        self._subsessions = subsessions

    @property
    def command_names(self) -> List[str]:
        return [name for name, _ in self.commands]

    def send_describe(self, handler) -> None:
        self._issue("DESCRIBE", None, handler)

    def send_setup(self, subsession, handler) -> None:
        self._issue("SETUP", subsession, handler)

    def send_play(self, session, handler) -> None:
        self._issue("PLAY", session, handler)

    def _issue(self, name, target, handler) -> None:
        assert self.pending is None, f"{name} sent while a command is outstanding"
        self.commands.append((name, target))
        self.pending = handler

    def reply(self, result_code: int = 0, result: str = "OK") -> None:
        handler, self.pending = self.pending, None
        handler(result_code, result)

    def create_media_session(self, sdp: str) -> FakeMediaSession:
        self.sdp = sdp
        self.media_session = FakeMediaSession(self._subsessions)
        return self.media_session

    def close(self) -> None:
        self.closed = True


class FakeClientFactory:
    """Builds a FakeClient per session with fresh subsessions."""

    def __init__(self, make_subsessions: Callable[[], List[FakeSubsession]]) -> None:
        self.make_subsessions = make_subsessions
        self.clients: List[FakeClient] = []
        self.error: Optional[Exception] = None

    def __call__(self, url: str, verbosity: int) -> FakeClient:
        if self.error is not None:
            raise self.error
        client = FakeClient(url, verbosity, self.make_subsessions())
        self.clients.append(client)
        return client

    @property
    def client(self) -> FakeClient:
        return self.clients[-1]


class RecordingCallback(ConnectionCallback):
    """Callback recording every call, reserving a start code by default."""

    def __init__(self, marker: bytes = START_CODE, accept: bool = True) -> None:
        self.marker = marker
        self.accept = accept
        self.deliver_ok = True
        self.buffers: List[int] = []
        self.frames: List[tuple] = []
        self.sessions: List[tuple] = []
        self.errors: List[str] = []
        self.connection_timeouts: List[RtspConnection] = []
        self.data_timeouts: List[RtspConnection] = []

    def on_new_buffer(self, buffer, capacity):
        self.buffers.append(capacity)
        written = min(len(self.marker), capacity)
        buffer[:written] = np.frombuffer(self.marker[:written], dtype=np.uint8)
        return len(self.marker)

    def on_data(self, name, buffer, length, presentation_time):
        self.frames.append((name, buffer[:length].tobytes(), length, presentation_time))
        return self.deliver_ok

    def on_new_session(self, name, medium, codec, sdp):
        self.sessions.append((name, medium, codec, sdp))
        return self.accept

    def on_error(self, message):
        self.errors.append(message)

    def on_connection_timeout(self, connection):
        self.connection_timeouts.append(connection)

    def on_data_timeout(self, connection):
        self.data_timeouts.append(connection)


SAMPLE_SDP = (
    "v=0\r\n"
    "o=- 0 0 IN IP4 127.0.0.1\r\n"
    "s=Test\r\n"
    "m=video 0 RTP/AVP 96\r\n"
    "a=rtpmap:96 H264/90000\r\n"
)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def callback():
    return RecordingCallback()


@pytest.fixture
def media():
    """Subsessions handed to the next session: two video, one audio."""
    return [
        FakeSubsession("video", "H264"),
        FakeSubsession("video", "H265"),
        FakeSubsession("audio", "OPUS"),
    ]


@pytest.fixture
def factory(media):
    built = []

    def make_subsessions():
        # First session gets the fixture's subsessions, restarts get copies
        if not built:
            built.append(media)
            return media
        return [FakeSubsession(s.medium_name, s.codec_name) for s in media]

    return FakeClientFactory(make_subsessions)


@pytest.fixture
def connection(scheduler, callback, factory):
    conn = RtspConnection(
        scheduler=scheduler,
        callback=callback,
        url="rtsp://camera.local/stream",
        timeout=5,
        client_factory=factory,
    )
    yield conn
    conn.close()


def negotiate(client: FakeClient, setup_codes=None, play_code: int = 0) -> None:
    """Drive a session from DESCRIBE to the PLAY reply."""
    client.reply(0, SAMPLE_SDP)
    for code in setup_codes or [0] * len(client.media_session._subsessions):
        client.reply(code, "OK" if code == 0 else "461 Unsupported Transport")
    client.reply(play_code, "OK" if play_code == 0 else "454 Session Not Found")
