"""
Runs work on a named background thread.

The session that reads from the router and the channel that writes to it are both AsyncLoops:
startup() runs once, loop() runs until the loop is stopped and shutdown() runs once on the way out.
"""
import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


def tobytes(arg, encoding='ascii'):
    """
    Converts a string to bytes
    >>> tobytes("abc")
    b'abc'
    >>> tobytes(b"abc")
    b'abc'
    """
    if isinstance(arg, str):
        arg = arg.encode(encoding)
    return arg


class AsyncLoop:
    """
    Runs a loop on a daemon thread until it is stopped.
    An exception raised by startup(), loop() or shutdown() is passed to exception_handler() and does
    not end the thread. The loop carries on until stop_event is set.

    :param fn the callable invoked on each pass of the loop, when loop() is not overridden
    :param args arguments to pass to fn
    :param log the logger for this loop's messages
    :param name the name of the thread
    """

    def __init__(self, fn: Callable=None, args=(), log=logger, name=None):
        self.fn = fn
        self.args = args
        self.logger = log
        self.name = name
        self.stop_event = threading.Event()
        self.background_thread = None
        self._start_lock = threading.Lock()

    def start(self):
        """ Starts the thread. Does nothing if the thread has already been started. """
        with self._start_lock:
            if self.background_thread is None:
                thread = threading.Thread(target=self._run, name=self.name, daemon=True)
                self.background_thread = thread
                thread.start()

    def running(self):
        return not self.stop_event.is_set()

    def stop(self, timeout=None):
        """
        Asks the loop to stop and waits up to timeout seconds for the thread to finish.
        Does not wait when called from the loop's own thread.
        """
        self.stop_event.set()
        thread, self.background_thread = self.background_thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                self.logger.warning("%s did not stop within %s seconds" % (thread.name, timeout))

    def startup(self):
        """ called on the thread before the first pass of the loop """

    def loop(self):
        self.fn(*self.args)

    def shutdown(self):
        """ called on the thread after the last pass of the loop """

    def exception_handler(self, e):
        self.logger.exception(e)

    def _run(self):
        self._guarded(self.startup)
        while self.running():
            self._guarded(self.loop)
        self._guarded(self.shutdown)
        self.logger.debug("%s exiting" % threading.current_thread().name)

    def _guarded(self, step):
        try:
            step()
        except Exception as e:
            self.exception_handler(e)
