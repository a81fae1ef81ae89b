"""
Builds the commands sent to the router and writes them to the connection.
"""
import logging
import operator
import threading
from queue import Queue

from videohub.protocol.background import AsyncLoop, tobytes
from videohub.protocol.blocks import DEVICE_HEADER, ROUTING_HEADER

logger = logging.getLogger(__name__)


def query_device():
    return DEVICE_HEADER + "\n"


def query_routing():
    return ROUTING_HEADER + "\n"


def set_route(output, input):
    """
    Routes the given input to the given output. The values are not range checked; the router
    ignores routes it cannot apply. Values that are not integers raise TypeError rather than being
    rounded to a different output or input.
    >>> set_route(2, 5)
    'VIDEO OUTPUT ROUTING:\\n2 5\\n'
    """
    return "%s\n%d %d\n" % (ROUTING_HEADER, operator.index(output), operator.index(input))


_stop = object()


class CommandChannel(AsyncLoop):
    """
    Writes commands to the router.

    send() writes synchronously on the calling thread. post() queues the command for the channel's
    own writer thread, so callers are never held up by a slow connection and commands are never
    stuck behind the blocking read loop. Writes from both paths are serialized.

    A failed write is logged and reported to on_error. It does not close the connection.

    :param output the binary stream to write to
    :param on_error a callable that receives a description of each failed write
    :param encoding the text encoding used on the wire
    """

    def __init__(self, output, on_error=None, encoding='utf-8', log=logger):
        super().__init__(log=log, name='videohub-writer')
        self.output = output
        self.on_error = on_error
        self.encoding = encoding
        self._queue = Queue()
        self._write_lock = threading.Lock()

    def send(self, text):
        """
        Writes the command and flushes it to the connection.
        :return: True if the command was written
        """
        try:
            data = tobytes(text, self.encoding)
            with self._write_lock:
                self.output.write(data)
                self.output.flush()
        except (OSError, ValueError) as e:
            self.logger.warning("error sending %r: %s" % (text, e))
            if self.on_error is not None:
                self.on_error("Command send failed: %s" % e)
            return False
        self.logger.debug("sent %r" % text)
        return True

    def post(self, text):
        """ queues the command to be sent on the writer thread. """
        self._queue.put(text)

    @property
    def pending(self):
        return self._queue.qsize()

    def loop(self):
        text = self._queue.get()
        if text is not _stop:
            self.send(text)

    def stop(self, timeout=None):
        self.stop_event.set()
        self._queue.put(_stop)
        super().stop(timeout)
