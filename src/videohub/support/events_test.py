import threading
import unittest
from unittest.mock import Mock, call

from hamcrest import assert_that, is_, empty, equal_to, none

from videohub.support.events import EventSource, QueuedEventSource


class EventsTest(unittest.TestCase):

    def test_handlers_empty(self):
        sut = EventSource()
        assert_that(sut.handlers(), is_(empty()))

    def test_handlers_not_empty(self):
        sut = EventSource()
        handler = Mock()
        sut.add(handler)
        assert_that(list(sut.handlers()), is_([handler]))

    def test_no_listeners(self):
        sut = EventSource()
        sut.fire(1)

    def test_manage_handlers(self):
        sut = EventSource()
        m1 = Mock()
        sut.add(m1)
        assert_that(sut._handlers, is_([m1]))

        sut.remove(m1)
        assert_that(sut._handlers, is_([]))

        sut.remove(m1)
        assert_that(sut._handlers, is_([]))

        sut += m1
        assert_that(sut._handlers, is_([m1]))

        sut -= m1
        assert_that(sut._handlers, is_([]))

    def test_fire_all_with_empty_events(self):
        sut = EventSource()
        m1 = Mock()
        sut.add(m1)
        sut.fire_all([])
        m1.assert_not_called()

    def test_listeners(self):
        sut = EventSource()
        l1 = Mock()
        l2 = Mock()
        sut += l1
        sut += l2
        sut.fire(1, v="hey")
        l1.assert_called_once_with(1, v="hey")
        l2.assert_called_once_with(1, v="hey")

        l1.reset_mock()
        l2.reset_mock()

        sut.fire_all([1, 2, 3])
        assert_that(l1.mock_calls, is_([call(1), call(2), call(3)]))

    def test_handler_can_fire_reentrantly(self):
        sut = EventSource()
        received = []

        def handler(event):
            received.append(event)
            if event == 1:
                sut.fire(2)

        sut += handler
        sut.fire(1)
        assert_that(received, is_([1, 2]))

    def test_handler_removed_while_firing(self):
        sut = EventSource()
        second = Mock()

        def first(event):
            sut.remove(second)

        sut += first
        sut += second
        sut.fire(1)
        second.assert_called_once_with(1)
        assert_that(sut.handlers(), is_((first,)))


class QueuedEventSourceTest(unittest.TestCase):
    def test_constructor(self):
        sut = QueuedEventSource()
        assert_that(sut.event_queue.empty(), is_(True))

    def test_fire_queues_without_calling_handlers(self):
        sut = QueuedEventSource()
        handler = Mock()
        sut += handler
        sut.fire(1)
        sut.fire_all([2, 3])
        handler.assert_not_called()
        assert_that(sut.event_queue.qsize(), is_(3))

    def test_publish_fires_queued_events_in_order(self):
        sut = QueuedEventSource()
        sut._fire_all = Mock()
        sut.fire(1)
        sut.fire(2)
        sut.publish()
        sut._fire_all.assert_called_once_with([1, 2])

    def test_publish_empty(self):
        sut = QueuedEventSource()
        sut._fire_all = Mock()
        sut.publish()
        sut._fire_all.assert_not_called()

    def test_drain(self):
        sut = QueuedEventSource()
        sut.fire("a")
        sut.fire("b")
        assert_that(sut.drain(), is_(equal_to(["a", "b"])))
        assert_that(sut.drain(), is_(empty()))

    def test_get_times_out(self):
        sut = QueuedEventSource()
        assert_that(sut.get(timeout=0.01), is_(none()))

    def test_get_from_another_thread(self):
        sut = QueuedEventSource()
        t = threading.Thread(target=sut.fire, args=("event",))
        t.start()
        assert_that(sut.get(timeout=2), is_("event"))
        t.join()


if __name__ == '__main__':  # pragma no cover
    unittest.main()
