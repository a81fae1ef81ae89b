"""
The connector interfaces with a router that communicates via a conduit.
A connector can be thought of as a conduit factory with a connect/disconnect lifecycle.
"""
