"""
The events a ConnectionManager fires as the connection changes and the router reports its state.

Events are fired through an EventSource in the order they were generated. Consumers either register
a callable on the source, or use a QueuedEventSource and drain the events on a thread of their choosing.
Consumers that prefer a listener object can implement EventSink and register sink_handler(sink).
"""


class ControllerEvent:
    """
    Base class for controller events.
    Events compare equal when they have the same type, come from the same source and carry equal
    values in the attributes named by payload. Only the payload appears in repr().
    """
    payload = ()

    def __init__(self, source):
        self.source = source

    def __eq__(self, other):
        return type(other) is type(self) and other.source is self.source and \
            all(getattr(self, name) == getattr(other, name) for name in self.payload)

    __hash__ = None

    def __repr__(self):
        values = ", ".join("%s=%r" % (name, getattr(self, name)) for name in self.payload)
        return "%s(%s)" % (type(self).__name__, values)

    def notify(self, sink: "EventSink"):
        """ calls the sink method corresponding to this event """
        raise NotImplementedError


class ConnectionStatusEvent(ControllerEvent):
    """ The connection to the router was opened (connected is True) or closed. """
    payload = ("connected",)

    def __init__(self, source, connected: bool):
        super().__init__(source)
        self.connected = connected

    def notify(self, sink):
        sink.connection_status_changed(self.connected)


class DeviceInfoEvent(ControllerEvent):
    """ The router reported its identity. """
    payload = ("info",)

    def __init__(self, source, info):
        super().__init__(source)
        self.info = info

    def notify(self, sink):
        sink.device_info_received(self.info)


class RoutingTableEvent(ControllerEvent):
    """ The router reported the complete routing of its outputs. """
    payload = ("routing",)

    def __init__(self, source, routing):
        super().__init__(source)
        self.routing = routing

    def notify(self, sink):
        sink.routing_status_received(self.routing)


class ErrorEvent(ControllerEvent):
    """
    Something went wrong talking to the router. The message is human readable.
    The connection may or may not still be open.
    """
    payload = ("message",)

    def __init__(self, source, message):
        super().__init__(source)
        self.message = message

    def notify(self, sink):
        sink.error(self.message)


class EventSink:
    """
    A listener interface that receives notifications from the controller.
    The default implementations do nothing, so subclasses override only what they need.
    """

    def connection_status_changed(self, connected):
        """
        notifies that the connection was opened or closed.
        """

    def device_info_received(self, info):
        """
        notifies the router's identity.
        :param info: a DeviceInfo
        """

    def routing_status_received(self, routing):
        """
        notifies the routing of every output.
        :param routing: a RoutingTable, in the order the router reported the outputs.
        """

    def error(self, message):
        """
        notifies a failure opening the connection, reading from it or writing to it.
        """


def sink_handler(sink: EventSink):
    """
    Adapts a sink to an event handler that can be added to an EventSource.
    """
    def handle(event: ControllerEvent):
        event.notify(sink)
    return handle
