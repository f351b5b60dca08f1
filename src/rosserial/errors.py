""" Exception classes shared across the rosserial bridge. Only the transport
    faults are fatal to a running bridge; everything else is absorbed by the
    dispatch loop, logged, and counted.
"""


class BridgeError(Exception):
    """Base class for all rosserial errors."""


class TransportFault(BridgeError):
    """The underlying byte stream could not be read or written."""


class TransportClosed(TransportFault):
    """The underlying byte stream reached end-of-file or was closed."""


class UnknownTopic(BridgeError):
    """A data frame referenced a topic id with no registry entry."""


class NegotiationConflict(BridgeError):
    """A topic id was redeclared with a different name or type."""


class DeserializationFailure(BridgeError, ValueError):
    """A payload does not match the encoding of its declared message type."""


class UnknownMessageType(BridgeError, KeyError):
    """No codec is registered for the requested message type name."""

    def __str__(self):
        # KeyError.__str__ wraps the argument in quotes.
        return Exception.__str__(self)


class BusError(BridgeError):
    """The pub/sub bus rejected an operation."""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
