from . import ids
from . import frame
from . import sender

from .frame import Frame, CorruptFrame, encode, decode
from .sender import PacketSender


"""
rosserial Protocol Layer
========================

This package defines the serial wire protocol spoken with the device. It
knows about bytes, frames, checksums and reserved topic ids; it knows
nothing about message types or the pub/sub bus.

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

SerialBridge (rosserial.bridge)
    Negotiation, dispatch, bus bindings

    │
    ▼
PacketSender (sender.py)
    Serialized writes of whole frames

    │
    ▼
Frame Codec (frame.py)
    encode() / decode(), checksum, resync

    │
    ▼
Reserved Ids (ids.py)
    Canonical topic ids for negotiation, time, log, parameters

---------------------------------------------------------------------

Below the Protocol Layer
------------------------

Transport Layer (rosserial.transport)
    Moves bytes
    - serial ports
    - sockets
    - pipes and files

---------------------------------------------------------------------
"""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
