import socket
import time

import pytest

import rosserial
from rosserial.protocol import frame


class Device:
    """ The device end of a socket pair standing in for a serial line.
    """

    def __init__(self, sock):
        self.sock = sock
        self.sock.settimeout(5)
        raw = sock.makefile('rb', buffering=0)
        self.reader = rosserial.transport.Reader(raw)

    def send(self, topic_id, payload=b''):
        self.sock.sendall(frame.encode(topic_id, payload))

    def send_raw(self, data):
        self.sock.sendall(data)

    def receive(self):
        return frame.decode(self.reader)

    def advertise(self, topic_id, name, type_name, direction=0):
        info = {'topic_id': topic_id, 'topic_name': name, 'message_type': type_name}
        self.send(direction, rosserial.msg.serialize('rosserial_msgs/TopicInfo', info))

    def close(self):
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()


@pytest.fixture
def link():
    """ A (host_reader, host_writer, device) triple connected by a socket
        pair.
    """

    host, device = socket.socketpair()
    reader, writer = rosserial.transport.socket_streams(host)
    device = Device(device)

    yield reader, writer, device

    device.close()
    reader.close()
    writer.close()
    host.close()


@pytest.fixture
def bridged(link):
    """ A started SerialBridge on a LocalBus, with the initial negotiation
        request already consumed from the device side.
    """

    reader, writer, device = link
    bus = rosserial.bus.LocalBus()
    bridge = rosserial.SerialBridge(reader, writer, bus, negotiation_retry=None)
    bridge.start()

    request = device.receive()
    assert request == frame.Frame(0, b'')

    yield bridge, bus, device

    bridge.shutdown()


def wait_for(predicate, timeout=5):
    """ Poll *predicate* until it returns something true, or fail.
    """

    end = time.time() + timeout

    while time.time() < end:
        result = predicate()
        if result:
            return result
        time.sleep(0.01)

    raise AssertionError('condition not met within %s seconds' % (timeout))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
