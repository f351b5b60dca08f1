"""Serial frame encoding and decoding.

Layout, all multi-byte fields little-endian:

    0xFF 0xFF  len_lo len_hi  topic_lo topic_hi  payload...  checksum

The checksum is 255 minus the byte sum of the length, topic, and payload
fields, modulo 256. A frame whose bytes from len_lo through the checksum sum
to 255 (mod 256) is valid.
"""

from __future__ import annotations

import struct
from typing import Union

SYNC = 0xFF
SYNC_BYTES = bytes((SYNC, SYNC))
HEADER = struct.Struct('<HH')
OVERHEAD = len(SYNC_BYTES) + HEADER.size + 1
MAX_PAYLOAD = 0xFFFF
MAX_TOPIC = 0xFFFF


class Frame:
    """One decoded, checksum-verified frame."""

    __slots__ = ('topic_id', 'payload')

    def __init__(self, topic_id: int, payload: bytes = b''):
        self.topic_id = topic_id
        self.payload = payload

    def __eq__(self, other):
        if not isinstance(other, Frame):
            return NotImplemented
        return self.topic_id == other.topic_id and self.payload == other.payload

    def __iter__(self):
        return iter((self.topic_id, self.payload))

    def __repr__(self):
        return f"Frame(topic_id={self.topic_id}, payload={self.payload!r})"


class CorruptFrame:
    """ A rejected frame. *consumed* is the number of bytes discarded,
        counting from the first sync byte; the next decode resumes scanning
        immediately after them.
    """

    __slots__ = ('topic_id', 'length', 'reason', 'consumed')

    def __init__(self, topic_id: int, length: int, reason: str, consumed: int):
        self.topic_id = topic_id
        self.length = length
        self.reason = reason
        self.consumed = consumed

    def __bool__(self):
        return False

    def __repr__(self):
        return (f"CorruptFrame(topic_id={self.topic_id}, length={self.length}, "
                f"reason={self.reason!r}, consumed={self.consumed})")


def checksum(data: bytes) -> int:
    """Return the checksum byte for the length, topic, and payload fields."""
    return 255 - (sum(data) % 256)


def encode(topic_id: int, payload: bytes = b'') -> bytes:
    """Return the complete wire frame for *payload* on *topic_id*."""

    if not 0 <= topic_id <= MAX_TOPIC:
        raise ValueError(f"topic id {topic_id} outside 16-bit range")

    length = len(payload)
    if length > MAX_PAYLOAD:
        raise ValueError(f"payload too large ({length} bytes); max is {MAX_PAYLOAD}")

    body = HEADER.pack(length, topic_id) + bytes(payload)
    return SYNC_BYTES + body + bytes((checksum(body),))


def decode(source, limit: int = MAX_PAYLOAD) -> Union[Frame, CorruptFrame]:
    """ Read the next frame from *source*, which must provide ``read(n)``
        returning exactly *n* bytes (see :class:`rosserial.transport.Reader`).

        Bytes preceding a pair of sync bytes are skipped. Once the sync pair
        is found the header, payload, and checksum are consumed without any
        further interpretation of 0xFF bytes. A checksum mismatch, or a
        declared payload length above *limit*, returns a
        :class:`CorruptFrame` rather than raising; transport failures
        propagate as :class:`rosserial.errors.TransportFault`.
    """

    _sync(source)

    header = source.read(HEADER.size)
    length, topic_id = HEADER.unpack(header)
    consumed = len(SYNC_BYTES) + HEADER.size

    if length > limit:
        return CorruptFrame(topic_id, length, 'length exceeds limit', consumed)

    payload = source.read(length) if length else b''
    received = source.read(1)[0]
    consumed += length + 1

    expected = checksum(header + payload)

    if received != expected:
        reason = f"checksum mismatch: expected 0x{expected:02X}, got 0x{received:02X}"
        return CorruptFrame(topic_id, length, reason, consumed)

    return Frame(topic_id, payload)


def _sync(source) -> None:
    """ Consume bytes until two consecutive sync bytes have been read.
    """

    previous = None

    while True:
        byte = source.read(1)[0]

        if byte == SYNC and previous == SYNC:
            return

        previous = byte
