import io
import socket
import threading

import pytest

from rosserial.errors import TransportClosed, TransportFault
from rosserial.transport import Reader, Writer, socket_streams
from rosserial.transport import serial


class Drip:
    """ A raw input that returns one byte per read, with the occasional
        empty read in between, the way a serial port with a read timeout
        behaves.
    """

    def __init__(self, data):
        self.data = bytearray(data)
        self.empty = False

    def read(self, count):
        self.empty = not self.empty
        if self.empty or not self.data:
            return b''

        byte = bytes(self.data[:1])
        del self.data[:1]
        return byte

    def close(self):
        pass


def test_exact_reads():

    reader = Reader(io.BytesIO(b'abcdefg'))

    assert reader.read(3) == b'abc'
    assert reader.read(4) == b'defg'
    assert reader.received == 7

    with pytest.raises(TransportClosed):
        reader.read(1)


def test_timeouts_are_not_eof():

    reader = Reader(Drip(b'xyz'), eof_on_empty=False)
    assert reader.read(3) == b'xyz'


def test_closed_reader():

    reader = Reader(io.BytesIO(b'abc'))
    reader.close()
    reader.close()

    with pytest.raises(TransportClosed):
        reader.read(1)

    # TransportClosed is a kind of TransportFault.
    with pytest.raises(TransportFault):
        reader.read(1)


def test_writer():

    raw = io.BytesIO()
    writer = Writer(raw)
    writer.write(b'\xff\xff')
    writer.write(bytearray(b'\x00'))

    assert raw.getvalue() == b'\xff\xff\x00'
    assert writer.sent == 3

    writer.close()

    with pytest.raises(TransportClosed):
        writer.write(b'late')


def test_socket_close_unblocks():

    host, device = socket.socketpair()
    reader, writer = socket_streams(host)
    failures = list()

    def blocked():
        try:
            reader.read(1)
        except TransportFault as e:
            failures.append(e)

    thread = threading.Thread(target=blocked)
    thread.start()

    reader.close()
    thread.join(5)

    assert not thread.is_alive()
    assert isinstance(failures[0], TransportClosed)

    writer.close()
    host.close()
    device.close()


def test_serial_open_failure():

    with pytest.raises(TransportFault):
        serial.open('/dev/rosserial-missing-port')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
