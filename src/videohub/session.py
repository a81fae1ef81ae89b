"""
A session is a single attempt to talk to the router: it opens the connection, sends the initial
queries and then reads the router's output until the connection ends.
Each connect() creates a new session, so nothing from a previous connection is reused.
"""
import logging
import threading

from videohub.connector.base import Connector, ConnectorError
from videohub.protocol.background import AsyncLoop
from videohub.protocol.blocks import BlockParser
from videohub.protocol.commands import CommandChannel, query_device, query_routing

logger = logging.getLogger(__name__)

# seconds to wait for the writer thread when the session ends
writer_stop_timeout = 2


class DeviceSession(AsyncLoop):
    """
    Runs the connection on a background thread.

    startup() opens the connector and sends the device and routing queries. loop() reads one line
    at a time and feeds it to the parser; each decoded message is passed to the manager.
    The loop ends at end of stream, on a read error or when the session is closed.
    shutdown() releases the connection and tells the manager how the session ended.

    Commands are written by a CommandChannel with its own writer thread, so they are sent while
    this thread is blocked waiting for the next line.

    :param manager the ConnectionManager that receives messages and the outcome of the session
    :param connector the connector to the router
    :param encoding the text encoding used on the wire
    """

    def __init__(self, manager, connector: Connector, encoding='utf-8', parser=None, log=logger):
        super().__init__(log=log, name='videohub-reader')
        self.manager = manager
        self.connector = connector
        self.encoding = encoding
        self.parser = parser or BlockParser()
        self.conduit = None
        self.channel = None
        self.failure = None
        self.cancelled = False
        self._close_lock = threading.Lock()

    def startup(self):
        try:
            self.connector.connect()
        except ConnectorError as e:
            self.logger.warning("unable to connect to %s: %s" % (self.connector.endpoint, e))
            self._fail("Connection failed: %s" % e)
            return

        with self._close_lock:
            if self.cancelled:
                self.stop_event.set()
                self.connector.disconnect()
                return
            self.conduit = self.connector.conduit

        self.channel = CommandChannel(self.conduit.output, self._command_failed, self.encoding)
        if not self.manager._session_opened(self):
            self.stop_event.set()
            return
        self.channel.send(query_device())
        self.channel.send(query_routing())
        self.channel.start()

    def loop(self):
        line = self.conduit.input.readline()
        if not line:
            self.logger.info("connection to %s closed" % (self.connector.endpoint,))
            self.stop_event.set()
            if not self.cancelled:
                self.parser.end_of_stream()
            return
        text = line.decode(self.encoding)
        self.logger.debug("received %r" % text)
        message = self.parser.feed(text)
        if message is not None:
            self.manager._message_received(self, message)

    def exception_handler(self, e):
        if self.cancelled:
            self.logger.debug("read ended after close: %s" % e)
            self.stop_event.set()
            return
        self.logger.warning("read error from %s: %s" % (self.connector.endpoint, e))
        self._fail("Read error: %s" % e)

    def shutdown(self):
        self._release()
        channel = self.channel
        if channel is not None:
            channel.stop(writer_stop_timeout)
        self.manager._session_ended(self, self.failure)

    def close(self):
        """
        Cancels the session from any thread. Shutting down the connection wakes the reader,
        which then exits without reporting anything further.
        """
        with self._close_lock:
            self.cancelled = True
        self.stop_event.set()
        self._release()

    def post(self, command):
        """ queues a command for the writer thread """
        self.channel.post(command)

    def _fail(self, message):
        if self.failure is None:
            self.failure = message
        self.stop_event.set()

    def _command_failed(self, message):
        self.manager._report_error(self, message)

    def _release(self):
        with self._close_lock:
            self.connector.disconnect()
