"""
The conduit package provides an abstraction of a bi-directional stream to a specified endpoint.
The concrete implementation used to reach a router is a TCP socket.

Resource discovery provides a means of discovering routers advertised on the local network.
"""
