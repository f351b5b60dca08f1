""" Serial port streams via pyserial. Port selection and baud rate are the
    caller's problem; this module only opens what it is told to open.
"""

import logging

import serial

from ..errors import TransportFault
from .stream import Reader, Writer

logger = logging.getLogger(__name__)


def open(port, baud=57600, timeout=0.1):
    """ Open the serial *port* at *baud* and return a (:class:`Reader`,
        :class:`Writer`) pair sharing the one :class:`serial.Serial`
        instance. The read *timeout*, in seconds, bounds how long a blocked
        read takes to notice :func:`Reader.close`; it is not a frame timeout,
        an idle device leaves the reader waiting indefinitely.
    """

    try:
        port = serial.Serial(port=port, baudrate=int(baud), timeout=timeout)
    except (serial.SerialException, ValueError) as e:
        raise TransportFault('cannot open serial port: ' + str(e)) from e

    logger.info("serial port %s open at %d baud", port.port, port.baudrate)

    reader = Reader(port, eof_on_empty=False)
    writer = Writer(port)
    return reader, writer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
