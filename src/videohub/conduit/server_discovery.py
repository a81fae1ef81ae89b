"""
Finds routers on the local network from their mDNS (zeroconf) announcements.
"""
import logging
from queue import Empty, Queue

from zeroconf import ServiceBrowser, Zeroconf

from videohub.conduit.discovery import ResourceAvailableEvent, ResourceDiscovery, ResourceUnavailableEvent
from videohub.config.config import load_settings
from videohub.connector.socketconn import TCPServerEndpoint

logger = logging.getLogger(__name__)


def service_type_for(service_subtype):
    """
    The fully qualified type of a TCP service advertised on the local network.
    >>> service_type_for("blackmagic")
    '_blackmagic._tcp.local.'
    """
    return "_%s._tcp.local." % service_subtype


class ZeroconfTCPServerEndpoint(TCPServerEndpoint):
    """
    The endpoint of an advertised service. The first advertised address is used to connect;
    without one, the server name is resolved instead.
    """
    def __init__(self, info):
        addresses = info.parsed_addresses()
        super().__init__(info.server, addresses[0] if addresses else None, info.port)
        self.info = info


class VideohubDiscovery(ResourceDiscovery):
    """
    Browses zeroconf for routers advertising their control service.

    The zeroconf browser calls back on its own thread. The changes are queued and announced to
    listeners only when update() is called, so listeners run on the thread that calls update().
    Endpoints are ZeroconfTCPServerEndpoint instances keyed by the service name.

    :param service_subtype the service to browse for, without the leading underscore or the protocol
    :param use_zeroconf when False, no browser is started and only the known addresses are reported
    :param known_addresses TCPServerEndpoints to report as available, keyed by TCPServerEndpoint.key()
    """
    def __init__(self, service_subtype='blackmagic', use_zeroconf=True, known_addresses=()):
        super().__init__()
        self.service_type = service_type_for(service_subtype)
        self._changes = Queue()
        for endpoint in known_addresses:
            self._changes.put(ResourceAvailableEvent(self, endpoint.key(), endpoint))
        self.zeroconf = None
        self.browser = None
        if use_zeroconf:
            logger.info("browsing for %s services" % self.service_type)
            self.zeroconf = Zeroconf()
            self.browser = ServiceBrowser(self.zeroconf, self.service_type, self)

    @classmethod
    def configured(cls, directory=None, **kwargs):
        """ Browses for the service type in the [discovery] section of the settings. """
        config = load_settings(directory)
        return cls(config['discovery']['service_type'], **kwargs)

    # the browser calls these on its own thread

    def add_service(self, zeroconf, type_, name):
        self._service_changed(zeroconf, type_, name, "added")

    def update_service(self, zeroconf, type_, name):
        self._service_changed(zeroconf, type_, name, "updated")

    def remove_service(self, zeroconf, type_, name):
        logger.info("service removed: %s" % name)
        self._changes.put(ResourceUnavailableEvent(self, name, None))

    def _service_changed(self, zeroconf, type_, name, change):
        info = zeroconf.get_service_info(type_, name)
        if info is None:
            logger.warning("no details for %s service %s" % (change, name))
            return
        endpoint = ZeroconfTCPServerEndpoint(info)
        logger.info("service %s: %s at %s:%s" % ((change, name) + endpoint.address))
        self._changes.put(ResourceAvailableEvent(self, name, endpoint))

    def update(self):
        """ Announces the changes received since the last update, on the calling thread. """
        events = []
        while True:
            try:
                events.append(self._changes.get_nowait())
            except Empty:
                break
        if events:
            self._announce(events)

    def close(self):
        """ Stops browsing. """
        if self.zeroconf is not None:
            self.zeroconf.close()
            self.zeroconf = None
            self.browser = None
