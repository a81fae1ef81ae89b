"""
Connectors open a conduit to an endpoint and close it again.
"""
import logging
from abc import abstractmethod

from videohub.conduit.base import Conduit

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """ Opening or using a connection failed. """


class ConnectionNotConnectedError(ConnectorError):
    """ The operation needs an open connection and there is none. """


class ConnectionNotAvailableError(ConnectorError):
    """ The endpoint cannot be reached at all, e.g. its host name does not resolve. """


class Connector:
    """
    Describes an endpoint and opens a conduit to it.
    Connectors can be used as context managers, which connect on entry and disconnect on exit.
    """

    @property
    @abstractmethod
    def endpoint(self):
        """ the endpoint that this connector reaches out to """
        raise NotImplementedError

    @property
    @abstractmethod
    def connected(self) -> bool:
        raise NotImplementedError

    @property
    @abstractmethod
    def conduit(self) -> Conduit:
        """
        The open conduit.
        :raises ConnectionNotConnectedError: when not connected
        """
        raise NotImplementedError

    @abstractmethod
    def connect(self):
        """
        Opens the conduit. Does nothing when already connected.
        :raises ConnectorError: when the endpoint cannot be reached
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self):
        """ Closes the conduit. Does nothing when not connected. """
        raise NotImplementedError

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()


class AbstractConnector(Connector):
    """
    Keeps the conduit opened by the subclass and closes it on disconnect.
    Subclasses implement _connect(), and may override _disconnect().
    """

    def __init__(self):
        self._conduit = None

    @property
    def connected(self):
        conduit = self._conduit
        return conduit is not None and conduit.open

    @property
    def conduit(self) -> Conduit:
        if not self.connected:
            raise ConnectionNotConnectedError("%s is not connected" % (self.endpoint,))
        return self._conduit

    def connect(self):
        if self.connected:
            return
        self._conduit = self._connect()
        logger.debug("connected to %s" % (self.endpoint,))

    def disconnect(self):
        conduit, self._conduit = self._conduit, None
        if conduit is None:
            return
        self._disconnect()
        conduit.close()
        logger.debug("disconnected from %s" % (self.endpoint,))

    @abstractmethod
    def _connect(self) -> Conduit:
        """
        Template method that opens the conduit.
        :raises ConnectorError: when the connection cannot be made
        """
        raise NotImplementedError

    def _disconnect(self):
        """ template method called before the conduit is closed """
