"""
Liveness Tests
==============

Connection timer and data arrival poll, standalone and inside a session.
"""

import pytest

from rtsp_client.models import LivenessFailure, SessionState
from rtsp_client.session.liveness import ConnectionTimer, DataArrivalMonitor

from conftest import negotiate


class TestConnectionTimer:
    """Tests for the one-shot negotiation timer."""

    def test_fires_once_after_timeout(self, scheduler):
        fired = []
        timer = ConnectionTimer(scheduler, 5, lambda: fired.append(scheduler.now))
        timer.start()

        scheduler.advance(20)

        assert fired == [5]
        assert timer.fired
        assert not timer.active

    def test_cancel_before_fire(self, scheduler):
        fired = []
        timer = ConnectionTimer(scheduler, 5, lambda: fired.append(True))
        timer.start()
        timer.cancel()
        scheduler.advance(10)

        assert fired == []
        assert not timer.fired

    def test_cancel_after_fire_is_noop(self, scheduler):
        timer = ConnectionTimer(scheduler, 1, lambda: None)
        timer.start()
        scheduler.advance(1)
        timer.cancel()
        timer.cancel()
        assert timer.fired

    def test_double_start_raises(self, scheduler):
        timer = ConnectionTimer(scheduler, 1, lambda: None)
        timer.start()
        with pytest.raises(RuntimeError):
            timer.start()


class TestDataArrivalMonitor:
    """Tests for the periodic packet-count poll."""

    def test_stall_on_first_poll_without_packets(self, scheduler):
        stalls = []
        monitor = DataArrivalMonitor(scheduler, 5, lambda: 0, lambda: stalls.append(scheduler.now))
        monitor.start()

        scheduler.advance(30)

        assert stalls == [5]
        assert monitor.polls == 1
        assert monitor.stalled
        assert not monitor.active

    def test_reschedules_while_count_grows(self, scheduler):
        counts = iter([10, 25, 40, 40])
        stalls = []
        monitor = DataArrivalMonitor(
            scheduler, 5, lambda: next(counts), lambda: stalls.append(scheduler.now)
        )
        monitor.start()

        scheduler.advance(15)
        assert stalls == []
        assert monitor.last_count == 40
        assert monitor.active

        scheduler.advance(5)
        assert stalls == [20]
        assert monitor.polls == 4
        assert not monitor.active

    def test_cancel_stops_polling(self, scheduler):
        polled = []
        monitor = DataArrivalMonitor(
            scheduler, 5, lambda: polled.append(1) or len(polled), lambda: None
        )
        monitor.start()
        scheduler.advance(10)
        monitor.cancel()
        scheduler.advance(50)

        assert len(polled) == 2


class TestSessionDataTimeout:
    """Tests for the data poll inside a streaming session."""

    def test_data_timer_starts_on_play_success(self, connection, factory):
        negotiate(factory.client)

        session = connection.session
        assert session.state == SessionState.STREAMING
        assert session.data_timer_active
        assert not session.connection_timer_active

    def test_no_packets_reports_data_timeout(self, connection, factory, callback, scheduler):
        negotiate(factory.client)
        scheduler.advance(5)

        session = connection.session
        assert callback.data_timeouts == [connection]
        assert session.state == SessionState.STALLED
        assert session.liveness_failure == LivenessFailure.DATA_TIMEOUT
        assert not session.data_timer_active

    def test_progress_keeps_polling(self, connection, factory, callback, scheduler, media):
        negotiate(factory.client)

        for packets in (10, 20, 35):
            media[0].packets_received = packets
            scheduler.advance(5)
            assert callback.data_timeouts == []

        scheduler.advance(5)
        assert callback.data_timeouts == [connection]
        assert connection.session.metrics.polls == 4
        assert connection.session.metrics.last_packet_count == 35

    def test_sums_across_accepted_streams(self, connection, factory, callback, scheduler, media):
        negotiate(factory.client)

        media[0].packets_received = 5
        scheduler.advance(5)
        media[0].packets_received = 2
        media[2].packets_received = 3
        scheduler.advance(5)

        assert callback.data_timeouts == [connection]
        assert connection.session.packets_received() == 5

    def test_failed_streams_not_counted(self, connection, factory, callback, scheduler, media):
        negotiate(factory.client, setup_codes=[461, 0, 0])
        media[0].packets_received = 100

        scheduler.advance(5)

        assert connection.session.packets_received() == 0
        assert callback.data_timeouts == [connection]

    def test_streams_without_source_count_zero(self, connection, factory, scheduler, media):
        negotiate(factory.client)
        media[1].packets_received = None
        media[2].packets_received = 7

        assert connection.session.packets_received() == 7

    def test_close_cancels_pending_poll(self, connection, factory, callback, scheduler):
        negotiate(factory.client)
        connection.close()
        scheduler.advance(60)

        assert callback.data_timeouts == []
        assert scheduler.pending == []
