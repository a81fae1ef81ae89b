import threading
from queue import Empty, Queue


class EventSource(object):
    """
    Fires events to registered handlers. A handler is any callable taking the event arguments.
    Delivery is serialized so that handlers see events in the order they were fired,
    even when events are fired from more than one thread.
    """

    def __init__(self):
        self._handlers = []
        self._lock = threading.RLock()

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        self._handlers.append(handler)
        return self

    def remove(self, handler):
        if handler in self._handlers:
            self._handlers.remove(handler)
        return self

    def handlers(self):
        return tuple(self._handlers)

    def fire(self, *args, **kwargs):
        self._fire(*args, **kwargs)

    def fire_all(self, events):
        self._fire_all(events)

    def _fire_all(self, events):
        for e in events:
            self._fire(e)

    def _fire(self, *args, **kwargs):
        with self._lock:
            for handler in self.handlers():
                handler(*args, **kwargs)


class QueuedEventSource(EventSource):
    """
    The public fire() methods post events to the queue. These are fired to the handlers when a thread
    calls publish(), or can be taken directly with drain() or get().
    This lets the consumer receive events on whatever thread it chooses.
    """
    def __init__(self):
        super().__init__()
        self.event_queue = Queue()

    def fire(self, event):
        self.event_queue.put(event)

    def fire_all(self, events):
        for e in events:
            self.event_queue.put(e)

    def get(self, timeout=None):
        """
        Blocks until the next event is available.
        :param timeout: seconds to wait, or None to wait forever.
        :return: the next event, or None if the timeout expired.
        """
        try:
            return self.event_queue.get(timeout=timeout)
        except Empty:
            return None

    def drain(self):
        """ removes and returns all events currently queued, oldest first. """
        queue = self.event_queue
        events = []
        while not queue.empty():
            events.append(queue.get())
        return events

    def publish(self):
        """ publishes any queued events on the calling thread. """
        events = self.drain()
        if events:
            self._fire_all(events)
