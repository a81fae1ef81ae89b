"""
Parses the router's response stream into messages.

The router sends blocks of text. Each block begins with a header line, is followed by zero or more
body lines and ends with a blank line:

    VIDEO OUTPUT ROUTING:
    0 3
    1 1

The parser is fed one line at a time and returns a message once a block it knows how to decode
has been terminated. Blocks with other headers are consumed without producing a message.
"""
import logging
from collections import namedtuple

logger = logging.getLogger(__name__)

DEVICE_HEADER = "VIDEOHUB DEVICE:"
ROUTING_HEADER = "VIDEO OUTPUT ROUTING:"


class ProtocolError(IOError):
    """ The data received from the router does not follow the protocol. """


class TruncatedBlockError(ProtocolError):
    """ The stream ended before the current block was terminated. """
    def __init__(self, header, lines_read):
        super().__init__("connection closed inside '%s' block after %d line(s)" % (header, lines_read))
        self.header = header
        self.lines_read = lines_read


class Block:
    """ A header line and the body lines that followed it. """

    def __init__(self, header):
        self.header = header
        self.body = []

    def lines(self):
        return [self.header] + self.body

    def __repr__(self):
        return "Block(%r, %d lines)" % (self.header, len(self.body))


class DeviceInfo:
    """
    The identity of the router, as the raw text of the device block.
    """

    def __init__(self, text):
        self.text = text

    @property
    def properties(self):
        """
        The "key: value" lines of the device block, in the order received.
        >>> DeviceInfo("VIDEOHUB DEVICE:\\nDevice present: true\\nModel name: Smart Videohub").properties
        {'Device present': 'true', 'Model name': 'Smart Videohub'}
        """
        result = {}
        for line in self.text.split("\n")[1:]:
            key, sep, value = line.partition(":")
            if sep:
                result[key.strip()] = value.strip()
        return result

    def __eq__(self, other):
        return isinstance(other, DeviceInfo) and self.text == other.text

    def __hash__(self):
        return hash(self.text)

    def __str__(self):
        return self.text

    def __repr__(self):
        return "DeviceInfo(%r)" % self.text


RouteEntry = namedtuple('RouteEntry', 'output input')


class RoutingTable(tuple):
    """
    The routing of every output reported in one routing block, in the order received.
    """

    def __new__(cls, entries=()):
        return super().__new__(cls, (RouteEntry(*e) for e in entries))

    def input_for(self, output):
        """
        The input routed to the given output, or None if the output was not reported.
        When an output is reported more than once, the last entry wins.
        >>> RoutingTable([(0, 3), (1, 1)]).input_for(1)
        1
        """
        result = None
        for entry in self:
            if entry.output == output:
                result = entry.input
        return result

    def __repr__(self):
        return "RoutingTable(%r)" % list(self)


def decode_device_info(block: Block):
    return DeviceInfo("\n".join(block.lines()))


def decode_route(line):
    """
    Decodes a single "output input" line.
    :return: the RouteEntry, or None if the line does not describe a route.
    >>> decode_route("2 5")
    RouteEntry(output=2, input=5)
    >>> decode_route("2") is None
    True
    """
    parts = line.split()
    if len(parts) < 2:
        return None
    try:
        return RouteEntry(int(parts[0]), int(parts[1]))
    except ValueError:
        logger.warning("ignoring malformed route '%s'" % line)
        return None


def decode_routing(block: Block):
    routes = (decode_route(line) for line in block.body)
    return RoutingTable(r for r in routes if r is not None)


default_decoders = {
    DEVICE_HEADER: decode_device_info,
    ROUTING_HEADER: decode_routing,
}


class BlockParser:
    """
    Groups lines into blocks and decodes complete blocks.

    :param decoders a mapping from header line to a callable that converts a Block to a message.
        The headers in this mapping are the recognized headers.
    """

    def __init__(self, decoders=None):
        self.decoders = dict(default_decoders if decoders is None else decoders)
        self._block = None

    @property
    def in_block(self):
        return self._block is not None

    def is_header(self, line):
        return line in self.decoders

    def feed(self, line):
        """
        Processes the next line of the stream.
        :param line: the line, with or without its line terminator
        :return: the decoded message when this line completes a recognized block, otherwise None.
        """
        line = line.rstrip("\r\n")
        block = self._block
        blank = not line.strip()
        if block is None:
            if not blank:
                self._block = Block(line)
            return None

        if blank:
            self._block = None
            return self._decode(block)

        if self.is_header(line):
            logger.debug("block '%s' interrupted by header '%s'" % (block.header, line))
            self._block = Block(line)
        else:
            block.body.append(line)
        return None

    def end_of_stream(self):
        """
        Notifies the parser that no more lines will arrive. A block in progress is discarded.
        :raises TruncatedBlockError: when the stream ended inside a block.
        """
        block = self._block
        self._block = None
        if block is not None:
            raise TruncatedBlockError(block.header, len(block.lines()))

    def reset(self):
        self._block = None

    def _decode(self, block):
        decoder = self.decoders.get(block.header)
        if decoder is None:
            logger.debug("ignoring block '%s' (%d lines)" % (block.header, len(block.body)))
            return None
        return decoder(block)


def parse_lines(lines, parser=None):
    """
    Parses a complete sequence of lines, yielding each decoded message.
    :raises TruncatedBlockError: when the lines end inside a block.
    """
    parser = parser or BlockParser()
    for line in lines:
        message = parser.feed(line)
        if message is not None:
            yield message
    parser.end_of_stream()
