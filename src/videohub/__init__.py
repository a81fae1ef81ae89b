"""


Router Control Connections

- Conduit: abstraction of a bi-directional channel. Combines 2 streams for reading and writing.
- Connector: describes an endpoint and opens a conduit to it. SocketConnector opens a TCP socket
  to the router's control port.
- resource discovery - watches for routers announcing themselves over mDNS.
    VideohubDiscovery posts ResourceAvailableEvent, ResourceUnavailableEvent with the endpoint
    that changed.
- BlockParser - groups the router's output into blocks (a header line, body lines, a blank line)
  and decodes the device and routing blocks.
- CommandChannel - writes commands to the router.
- ConnectionManager - owns the connection to one router. Reports the connection status, the router's
  identity and routing, and any errors as events.


## Threading

Socket operations are blocking. readline() blocks until a line arrives or the socket is shut down.

connect() returns immediately. A DeviceSession thread opens the socket, sends the initial queries and
then runs the read loop. Each connect() creates a new session, so a session that has been disconnected
can never deliver events for a later connection.

Commands posted by set_route() are written by the CommandChannel's own thread, so they are not held
up by the read loop, which spends most of its time blocked in readline().

Disconnecting shuts down the socket, which wakes the read loop. The read loop then exits without
reporting an error.

Events are fired on the session threads. A QueuedEventSource collects them so that the application
can handle them on a thread of its choosing.

"""
