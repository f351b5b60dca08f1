""" Byte stream transports used by the bridge. The serial port support in
    :mod:`rosserial.transport.serial` requires pyserial and is imported on
    demand.
"""

from ..errors import TransportFault, TransportClosed
from .stream import Reader, Writer, socket_streams

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
