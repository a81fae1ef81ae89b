import logging
import socket

from videohub.conduit import base
from videohub.conduit.base import close_quietly

logger = logging.getLogger(__name__)


class SocketConduit(base.Conduit):
    """
    A conduit that provides communication via a socket.
    :param sock The open, connected socket
    """
    def __init__(self, sock: socket.socket):
        """
        :param sock: the client socket that represents the connection
        :type sock: socket
        """
        self.sock = sock
        self.read = sock.makefile('rb')
        self.write = sock.makefile('wb')

    @property
    def open(self) -> bool:
        return self.sock.fileno() >= 0

    @property
    def output(self):
        return self.write

    @property
    def input(self):
        return self.read

    def close(self):
        """
        Shuts the socket down before closing the streams. The shutdown wakes any thread
        blocked reading from the socket, which then sees end of stream.
        Each step is attempted regardless of failures in the others.
        """
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # the peer may have closed the socket already
            logger.debug("error shutting down socket: %s" % e)
        close_quietly(self.write, "socket writer")
        close_quietly(self.read, "socket reader")
        close_quietly(self.sock, "socket")
