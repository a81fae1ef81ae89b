import io
import threading
import time
import unittest
from unittest.mock import Mock, call

import timeout_decorator
from hamcrest import assert_that, is_, none, equal_to

from videohub.conduit.base import StreamConduit
from videohub.connector.base import AbstractConnector, ConnectorError
from videohub.protocol.background_test import debug_timeout
from videohub.protocol.blocks import DeviceInfo, RoutingTable
from videohub.session import DeviceSession


class CapturingOutput(io.BytesIO):
    """ keeps what was written after the stream is closed """
    captured = b''

    def close(self):
        if not self.closed:
            self.captured = self.getvalue()
        super().close()


class StreamConnector(AbstractConnector):
    """ connects to a conduit over in-memory streams, or fails with the given error """
    def __init__(self, received=b'', error=None):
        super().__init__()
        self.input = io.BytesIO(received) if isinstance(received, bytes) else received
        self.output = CapturingOutput()
        self.error = error
        self.connects = 0

    @property
    def endpoint(self):
        return 'memory'

    def _connect(self):
        self.connects += 1
        if self.error:
            raise self.error
        return StreamConduit(self.input, self.output)


def run(session):
    session.start()
    thread = session.background_thread
    thread.join(debug_timeout(5))
    assert_that(thread.is_alive(), is_(False))


device_block = b"VIDEOHUB DEVICE:\nDevice present: true\nModel name: Blackmagic Smart Videohub\n\n"
routing_block = b"VIDEO OUTPUT ROUTING:\n0 3\n1 1\n\n"


class DeviceSessionTest(unittest.TestCase):

    def setUp(self):
        self.manager = Mock()
        self.manager._session_opened.return_value = True

    @timeout_decorator.timeout(debug_timeout(10))
    def test_sends_queries_when_opened(self):
        connector = StreamConnector()
        sut = DeviceSession(self.manager, connector)
        run(sut)
        self.manager._session_opened.assert_called_once_with(sut)
        assert_that(connector.output.captured, is_(b"VIDEOHUB DEVICE:\nVIDEO OUTPUT ROUTING:\n"))

    @timeout_decorator.timeout(debug_timeout(10))
    def test_messages_passed_in_order(self):
        connector = StreamConnector(b"PROTOCOL PREAMBLE:\nVersion: 2.3\n\n" + device_block + routing_block)
        sut = DeviceSession(self.manager, connector)
        run(sut)
        info = DeviceInfo("VIDEOHUB DEVICE:\nDevice present: true\nModel name: Blackmagic Smart Videohub")
        assert_that(self.manager._message_received.mock_calls, is_([
            call(sut, info),
            call(sut, RoutingTable([(0, 3), (1, 1)]))]))
        self.manager._session_ended.assert_called_once_with(sut, None)

    @timeout_decorator.timeout(debug_timeout(10))
    def test_closes_connection_at_end_of_stream(self):
        connector = StreamConnector(device_block)
        sut = DeviceSession(self.manager, connector)
        run(sut)
        assert_that(connector.connected, is_(False))
        assert_that(connector.input.closed, is_(True))
        assert_that(sut.channel.background_thread, is_(none()))

    @timeout_decorator.timeout(debug_timeout(10))
    def test_connect_failure(self):
        connector = StreamConnector(error=ConnectorError("refused"))
        sut = DeviceSession(self.manager, connector)
        run(sut)
        self.manager._session_opened.assert_not_called()
        self.manager._session_ended.assert_called_once_with(sut, "Connection failed: refused")

    @timeout_decorator.timeout(debug_timeout(10))
    def test_stream_ends_inside_block(self):
        connector = StreamConnector(device_block + b"VIDEO OUTPUT ROUTING:\n0 3\n")
        sut = DeviceSession(self.manager, connector)
        run(sut)
        assert_that(len(self.manager._message_received.mock_calls), is_(1))
        self.manager._session_ended.assert_called_once_with(
            sut, "Read error: connection closed inside 'VIDEO OUTPUT ROUTING:' block after 2 line(s)")

    @timeout_decorator.timeout(debug_timeout(10))
    def test_read_error(self):
        received = Mock()
        received.readline.side_effect = OSError("connection reset")
        sut = DeviceSession(self.manager, StreamConnector(received))
        run(sut)
        self.manager._session_ended.assert_called_once_with(sut, "Read error: connection reset")

    @timeout_decorator.timeout(debug_timeout(10))
    def test_undecodable_line_is_read_error(self):
        sut = DeviceSession(self.manager, StreamConnector(b"\xff\xfe\n\n"))
        run(sut)
        failure = self.manager._session_ended.call_args[0][1]
        assert_that(failure.startswith("Read error: "), is_(True))

    @timeout_decorator.timeout(debug_timeout(10))
    def test_first_failure_is_kept(self):
        received = Mock()
        received.readline.side_effect = OSError("connection reset")
        sut = DeviceSession(self.manager, StreamConnector(received))
        sut._fail("Read error: first")
        sut.stop_event.clear()
        run(sut)
        self.manager._session_ended.assert_called_once_with(sut, "Read error: first")

    @timeout_decorator.timeout(debug_timeout(10))
    def test_rejected_session_sends_nothing(self):
        self.manager._session_opened.return_value = False
        connector = StreamConnector(device_block)
        sut = DeviceSession(self.manager, connector)
        run(sut)
        assert_that(connector.output.captured, is_(b''))
        self.manager._message_received.assert_not_called()
        assert_that(connector.connected, is_(False))

    @timeout_decorator.timeout(debug_timeout(10))
    def test_closed_before_connected(self):
        connector = StreamConnector(device_block)
        sut = DeviceSession(self.manager, connector)
        sut.close()
        run(sut)
        assert_that(connector.connects, is_(1))
        assert_that(connector.connected, is_(False))
        self.manager._session_opened.assert_not_called()
        self.manager._session_ended.assert_called_once_with(sut, None)

    @timeout_decorator.timeout(debug_timeout(10))
    def test_close_is_quiet(self):
        read_started = threading.Event()
        released = threading.Event()

        def blocking_readline():
            read_started.set()
            released.wait(5)
            raise ValueError("readline of closed file")

        received = Mock()
        received.readline.side_effect = blocking_readline
        received.close.side_effect = released.set
        connector = StreamConnector(received)
        sut = DeviceSession(self.manager, connector)
        sut.start()
        thread = sut.background_thread
        read_started.wait(5)
        sut.close()
        thread.join(5)
        assert_that(thread.is_alive(), is_(False))
        self.manager._session_ended.assert_called_once_with(sut, None)

    @timeout_decorator.timeout(debug_timeout(10))
    def test_posted_commands_are_written(self):
        read_started = threading.Event()
        released = threading.Event()

        def blocking_readline():
            read_started.set()
            released.wait(5)
            return b''

        received = Mock()
        received.readline.side_effect = blocking_readline
        connector = StreamConnector(received)
        sut = DeviceSession(self.manager, connector)
        sut.start()
        thread = sut.background_thread
        read_started.wait(5)
        sut.post("VIDEO OUTPUT ROUTING:\n2 5\n")
        expected = b"VIDEOHUB DEVICE:\nVIDEO OUTPUT ROUTING:\nVIDEO OUTPUT ROUTING:\n2 5\n"
        while connector.output.getvalue() != expected:
            time.sleep(0.01)
        released.set()
        thread.join(5)
        assert_that(connector.output.captured, is_(equal_to(expected)))


if __name__ == '__main__':  # pragma no cover
    unittest.main()
