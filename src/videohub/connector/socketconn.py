import logging
import socket

from videohub.conduit.base import Conduit
from videohub.conduit.socket_conduit import SocketConduit
from videohub.connector.base import AbstractConnector, ConnectionNotAvailableError, ConnectorError

logger = logging.getLogger(__name__)

# the router's control port
DEFAULT_PORT = 9990


class TCPServerEndpoint:
    """
    Describes a TCP server endpoint.
    At least one of name or ip_address should be given. If both are given, the ip_address is used
    to connect.
    """
    def __init__(self, hostname, ip_address, port=DEFAULT_PORT):
        self.hostname = hostname
        self.ip_address = ip_address
        self.port = port

    def key(self):
        """
        >>> TCPServerEndpoint(None, 'ipaddr', 55).key()
        'ipaddr:55'
        >>> TCPServerEndpoint('name', 'ipaddr', 55).key()
        'name:55'
        """
        return str(self.hostname or self.ip_address) + ':' + str(self.port)

    @property
    def address(self):
        """ the (host, port) pair to connect to """
        return (self.ip_address or self.hostname), self.port

    def __repr__(self):
        return "TCPServerEndpoint(%r, %r, %r)" % (self.hostname, self.ip_address, self.port)

    def __eq__(self, other):
        return isinstance(other, TCPServerEndpoint) and \
            (self.hostname, self.ip_address, self.port) == (other.hostname, other.ip_address, other.port)

    def __hash__(self):
        return hash((self.hostname, self.ip_address, self.port))


class SocketConnector(AbstractConnector):
    """
    A connector that communicates data via a TCP socket
    """
    def __init__(self, connect_args, timeout=5, report_errors=True):
        """
        Creates a new socket connector.
        :param connect_args (host, port) for the socket connection
        :param timeout seconds to wait for the connection to be established.
        :param report_errors when False, connection failures are logged at debug level only
        """
        super().__init__()
        self._connect_args = connect_args
        self._timeout = timeout
        self._report_errors = report_errors

    @property
    def endpoint(self):
        return self._connect_args

    def _connect(self) -> Conduit:
        try:
            sock = socket.create_connection(self._connect_args, timeout=self._timeout)
        except (socket.gaierror, UnicodeError) as e:
            self._log_failure(e)
            raise ConnectionNotAvailableError("cannot resolve %s: %s" % (self._connect_args[0], e)) from e
        except OSError as e:
            self._log_failure(e)
            raise ConnectorError(str(e) or e.__class__.__name__) from e
        # reads block until data arrives or the socket is shut down
        sock.settimeout(None)
        logger.info("opened socket to %s" % str(self._connect_args))
        return SocketConduit(sock)

    def _disconnect(self):
        logger.info("closing socket to %s" % str(self._connect_args))

    def _log_failure(self, e):
        method = logger.warning if self._report_errors else logger.debug
        method("error opening socket to %s: %s" % (self._connect_args, e))
