"""
A conduit is the pair of byte streams over which the controller talks to the router.
"""
import logging
from abc import abstractmethod
from io import IOBase

logger = logging.getLogger(__name__)


class Conduit:
    """
    Two-way communication as a pair of binary streams.
    Lines from the router are read from input; commands are written to output.
    """

    @property
    @abstractmethod
    def input(self) -> IOBase:
        """ the stream the router's responses are read from """
        raise NotImplementedError

    @property
    @abstractmethod
    def output(self) -> IOBase:
        """ the stream commands are written to """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ True until the conduit is closed or the underlying channel goes away """
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """
        Closes both streams. Closing is best-effort: failures are logged and not raised.
        """
        raise NotImplementedError


def close_quietly(closeable, what):
    """
    Closes a stream or socket, logging rather than raising any error.
    :param closeable: the object to close. None is ignored.
    :param what: a description used when logging a failure.
    :return: True if the close succeeded or there was nothing to close.
    """
    if closeable is None:
        return True
    try:
        closeable.close()
        return True
    except (OSError, ValueError) as e:
        logger.debug("error closing %s: %s" % (what, e))
        return False


class StreamConduit(Conduit):
    """
    A conduit over existing streams, such as in-memory buffers or the two ends of a pipe.

    close() closes the output before the input. A buffered input cannot be closed while another
    thread is blocked reading it, so the reader must see end of stream first. Closing the output
    provides that when the input is the other end of the same pipe; otherwise the far end has to
    close before close() can return.
    :param read the stream to read from
    :param write the stream to write to. Defaults to the read stream.
    """

    def __init__(self, read, write=None):
        self._read = read
        self._write = write if write is not None else read
        self._closed = False

    @property
    def input(self) -> IOBase:
        return self._read

    @property
    def output(self) -> IOBase:
        return self._write

    @property
    def open(self):
        return not self._closed

    def close(self):
        self._closed = True
        close_quietly(self._write, "output stream")
        if self._read is not self._write:
            close_quietly(self._read, "input stream")
