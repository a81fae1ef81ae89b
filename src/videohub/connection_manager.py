"""
Controls a single router over its TCP control connection.

The ConnectionManager is the whole of the public surface: connect(), disconnect(), set_route(), and the
events source through which the outcome of each is reported. None of these methods block on the
network and none of them raise; failures arrive as ErrorEvents.
"""
import logging
import threading
from enum import Enum

from videohub.config.config import apply_conf, load_settings
from videohub.connector.base import ConnectionNotConnectedError, ConnectorError
from videohub.connector.socketconn import DEFAULT_PORT, SocketConnector
from videohub.events import ConnectionStatusEvent, DeviceInfoEvent, ErrorEvent, RoutingTableEvent
from videohub.protocol import commands
from videohub.protocol.blocks import DeviceInfo, RoutingTable
from videohub.session import DeviceSession
from videohub.support.events import EventSource

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'


class ConnectionManager:
    """
    Owns the connection to one router.

    connect() starts a DeviceSession, which opens the socket and reads on its own thread. Messages
    decoded by the session update device_info and routing, and are fired as events.
    Events are fired in the order they are generated, from whichever thread generated them.
    Pass a QueuedEventSource as events to receive them on a thread of your choosing instead.

    :param events the EventSource that receives ControllerEvents. Defaults to a new EventSource.
    :param settings a configuration section whose values are applied to port, connect_timeout and encoding
    :param connector_factory a callable taking the (host, port) address and returning a Connector
    """

    def __init__(self, events=None, settings=None, port=None, connect_timeout=None, encoding=None,
                 connector_factory=None):
        self.events = events if events is not None else EventSource()
        self.port = DEFAULT_PORT
        self.connect_timeout = 5.0
        self.encoding = 'utf-8'
        if settings:
            apply_conf(settings, self)
        if port is not None:
            self.port = port
        if connect_timeout is not None:
            self.connect_timeout = connect_timeout
        if encoding is not None:
            self.encoding = encoding
        self.connector_factory = connector_factory or self._socket_connector
        self.address = None
        self.device_info = None
        self.routing = None
        self._state = ConnectionState.DISCONNECTED
        self._session = None
        self._lock = threading.RLock()

    @classmethod
    def configured(cls, events=None, directory=None, **kwargs):
        """
        Creates a manager using the [controller] section of the layered configuration.
        """
        config = load_settings(directory)
        return cls(events, config['controller'], **kwargs)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def connect(self, host, port=None):
        """
        Starts connecting to the router in the background and returns immediately.
        Ignored unless the manager is disconnected.
        """
        with self._lock:
            if self._state is not ConnectionState.DISCONNECTED:
                logger.warning("ignoring connect to %s: already %s" % (host, self._state.value))
                return
            self.address = (host, port or self.port)
            self.device_info = None
            self.routing = None
            self._state = ConnectionState.CONNECTING
            session = DeviceSession(self, self.connector_factory(self.address), self.encoding)
            self._session = session
        logger.info("connecting to %s:%s" % self.address)
        session.start()

    def disconnect(self):
        """
        Closes the connection. Safe to call at any time and from any thread. Each call fires a
        ConnectionStatusEvent(False); only the first call after a connect() touches the socket.
        The lock is held until the event is fired, so a concurrent connect() cannot report
        its ConnectionStatusEvent(True) ahead of this one. session.close() never takes the lock.
        """
        with self._lock:
            session = self._session
            self._session = None
            previous = self._state
            self._state = ConnectionState.DISCONNECTED
            if session is not None:
                session.close()
            if previous is not ConnectionState.DISCONNECTED:
                logger.info("disconnected from %s:%s" % self.address)
            self._fire(ConnectionStatusEvent(self, False))

    def set_route(self, output, input):
        """
        Routes an input to an output, then queries the routing so the router reports the result
        as a RoutingTableEvent. Integers are passed to the router without a range check; any other
        value is reported as a "Set route failed" ErrorEvent and nothing is sent.
        """
        try:
            session = self._connected_session()
            command = commands.set_route(output, input)
        except (ConnectorError, TypeError, ValueError) as e:
            logger.warning("cannot route input %s to output %s: %s" % (input, output, e))
            with self._lock:
                self._fire(ErrorEvent(self, "Set route failed: %s" % e))
            return
        session.post(command)
        session.post(commands.query_routing())

    def _connected_session(self):
        with self._lock:
            if self._state is not ConnectionState.CONNECTED:
                raise ConnectionNotConnectedError("not connected")
            return self._session

    def _socket_connector(self, address):
        return SocketConnector(address, timeout=self.connect_timeout)

    def _fire(self, event):
        try:
            self.events.fire(event)
        except Exception as e:
            logger.exception("event handler failed for %s: %s" % (event, e))

    # the methods below are called by the session on its reader and writer threads.
    # Calls from a session that is no longer current are ignored.

    def _session_opened(self, session):
        with self._lock:
            if session is not self._session:
                return False
            self._state = ConnectionState.CONNECTED
            logger.info("connected to %s:%s" % self.address)
            self._fire(ConnectionStatusEvent(self, True))
            return True

    def _message_received(self, session, message):
        with self._lock:
            if session is not self._session:
                return
            if isinstance(message, DeviceInfo):
                self.device_info = message
                event = DeviceInfoEvent(self, message)
            elif isinstance(message, RoutingTable):
                self.routing = message
                event = RoutingTableEvent(self, message)
            else:
                logger.debug("no event for message %r" % (message,))
                return
            self._fire(event)

    def _report_error(self, session, message):
        with self._lock:
            if session is self._session:
                self._fire(ErrorEvent(self, message))

    def _session_ended(self, session, failure):
        with self._lock:
            if session is not self._session:
                return
            if failure:
                self._fire(ErrorEvent(self, failure))
            self.disconnect()
