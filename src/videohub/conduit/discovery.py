"""
Discovery of routers on the network.

A discovery keeps track of the endpoints it currently knows about and tells its listeners as
endpoints appear (ResourceAvailableEvent) and go away (ResourceUnavailableEvent).
"""

import logging

from videohub.support.events import EventSource

logger = logging.getLogger(__name__)


class ResourceEvent:
    """
    Notification about an endpoint.
    :param source the discovery that posted the event
    :param key identifies the endpoint, e.g. the name of the advertised service
    :param resource the endpoint itself, or None when it is no longer known
    """
    def __init__(self, source, key, resource):
        self.source = source
        self.key = key
        self.resource = resource

    def __eq__(self, other):
        return type(other) is type(self) and other.source is self.source and \
            (other.key, other.resource) == (self.key, self.resource)

    __hash__ = None

    def __repr__(self):
        return "%s(key=%r, resource=%r)" % (type(self).__name__, self.key, self.resource)


class ResourceAvailableEvent(ResourceEvent):
    """ The endpoint can be connected to. Also posted when the details of a known endpoint change. """


class ResourceUnavailableEvent(ResourceEvent):
    """ The endpoint has gone away. """


class ResourceDiscovery:
    """
    Base class for discoveries.
    available maps the key of each known endpoint to the endpoint.
    """
    def __init__(self):
        self.listeners = EventSource()
        self.available = {}

    def _announce(self, events):
        for e in events:
            if isinstance(e, ResourceAvailableEvent):
                self.available[e.key] = e.resource
            else:
                self.available.pop(e.key, None)
        self.listeners.fire_all(events)
