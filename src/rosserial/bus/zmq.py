""" A pub/sub bus over ZeroMQ PUB/SUB sockets. Every :class:`ZmqBus`
    binds one PUB socket for its own publications and connects one SUB
    socket to any number of peers (itself included, by default), so that a
    handful of processes on a network can exchange the topics of one or more
    serial devices.

    Multipart layout of every message::

        topic_with_trailing_dot, version, type_name, payload
"""

import itertools
import logging
import queue
import threading

import zmq

from ..errors import BusError
from .base import Bus, Publication, Subscription

logger = logging.getLogger(__name__)

# This is the version of the on-the-wire layout implemented here, identified
# by a single byte.

version = b'r'

minimum_port = 11411
maximum_port = 11611
zmq_context = zmq.Context()


class Server:
    """ Send broadcasts via a ZeroMQ PUB socket. The default behavior is to
        listen on all available network interfaces on the first available
        port in the default range. The *avoid* set enumerates port numbers
        that should not be automatically assigned; this is ignored if a fixed
        *port* is specified.

        :ivar port: The port on which this server is listening for connections.
    """

    def __init__(self, port=None, avoid=set(), interface='*'):

        self.socket = zmq_context.socket(zmq.PUB)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket_lock = threading.Lock()

        if port is None:
            minimum = minimum_port
            maximum = maximum_port
        else:
            port = int(port)
            minimum = port
            maximum = port

        trial = minimum
        while trial <= maximum:
            if port is None and trial in avoid:
                trial += 1
                continue

            listen_address = 'tcp://%s:%d' % (interface, trial)
            try:
                self.socket.bind(listen_address)
            except zmq.error.ZMQError:
                # Assume this port is in use.
                trial += 1
            else:
                break

        if trial > maximum:
            self.socket.close()
            if port is None:
                error = "no ports available in range %d:%d" % (minimum, maximum)
            else:
                error = 'port already in use: ' + str(port)
            raise BusError(error)

        self.port = trial


    def publish(self, topic, type_name, data):

        parts = ((topic + '.').encode(), version, type_name.encode(), bytes(data))

        # The lock around the ZeroMQ socket is necessary in a multithreaded
        # application; otherwise, if two different threads both invoke
        # send_multipart(), the message parts can and will get mixed together.

        with self.socket_lock:
            self.socket.send_multipart(parts)


    def close(self):
        with self.socket_lock:
            self.socket.close()


# end of class Server



class Client:
    """ Establish ZeroMQ SUB connections to one or more PUB sockets and
        receive broadcasts. ZeroMQ sockets are not thread safe; every
        operation on the SUB socket is queued and carried out by the one
        background thread that also receives messages.
    """

    def __init__(self):

        self.socket = zmq_context.socket(zmq.SUB)
        self.socket.setsockopt(zmq.LINGER, 0)

        self.callbacks = dict()
        self.callbacks_lock = threading.Lock()

        self._queue = queue.SimpleQueue()

        internal = 'inproc://bus.Client:signal:%d' % (next(_signal_ids))
        self._sig_rx = zmq_context.socket(zmq.PAIR)
        self._sig_rx.bind(internal)
        self._sig_tx = zmq_context.socket(zmq.PAIR)
        self._sig_tx.connect(internal)
        self._sig_lock = threading.Lock()

        self.shutdown = False
        self.thread = threading.Thread(target=self.run, name='zmq-bus-client')
        self.thread.daemon = True
        self.thread.start()


    def _command(self, operation, argument=None):

        self._queue.put((operation, argument))

        with self._sig_lock:
            if self.shutdown == False:
                self._sig_tx.send(b'')


    def connect(self, address):
        self._command('connect', address)


    def register(self, subscription):
        """ Invoke the callback of *subscription* for every message arriving
            on its topic with a matching type name.
        """

        topic = (subscription.topic + '.').encode()

        with self.callbacks_lock:
            try:
                subscriptions = self.callbacks[topic]
            except KeyError:
                subscriptions = list()
                self.callbacks[topic] = subscriptions
                first = True
            else:
                first = False

            subscriptions.append(subscription)

        # ZeroMQ subscriptions are reference counted; only subscribe once
        # per topic.

        if first:
            self._command('subscribe', topic)


    def unregister(self, subscription):

        topic = (subscription.topic + '.').encode()

        with self.callbacks_lock:
            subscriptions = self.callbacks.get(topic)
            if subscriptions is None:
                return

            if subscription in subscriptions:
                subscriptions.remove(subscription)

            if len(subscriptions) == 0:
                del self.callbacks[topic]
                last = True
            else:
                last = False

        if last:
            self._command('unsubscribe', topic)


    def run(self):

        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._sig_rx, zmq.POLLIN)

        while self.shutdown == False:
            sockets = dict(poller.poll(1000))

            if self._sig_rx in sockets:
                self._sig_rx.recv()
                self._process_commands()

            if self.socket in sockets:
                parts = self.socket.recv_multipart()
                self._incoming(parts)

        self.socket.close()
        self._sig_rx.close()


    def _process_commands(self):

        while True:
            try:
                operation, argument = self._queue.get(block=False)
            except queue.Empty:
                return

            try:
                if operation == 'connect':
                    self.socket.connect(argument)
                elif operation == 'subscribe':
                    self.socket.setsockopt(zmq.SUBSCRIBE, argument)
                elif operation == 'unsubscribe':
                    self.socket.setsockopt(zmq.UNSUBSCRIBE, argument)
            except zmq.error.ZMQError:
                logger.exception("%s %r failed", operation, argument)


    def _incoming(self, parts):

        if len(parts) != 4:
            logger.debug("dropping malformed %d-part message", len(parts))
            return

        topic, their_version, type_name, payload = parts

        if their_version != version:
            logger.debug("dropping version %r message on %r", their_version, topic)
            return

        type_name = type_name.decode()

        with self.callbacks_lock:
            subscriptions = list(self.callbacks.get(topic, ()))

        for subscription in subscriptions:
            if subscription.closed:
                continue

            if subscription.type_name != type_name:
                logger.warning("%s: expected %s, received %s", subscription.topic, subscription.type_name, type_name)
                continue

            try:
                subscription.callback(payload)
            except Exception:
                logger.exception("callback for %s raised", subscription.topic)


    def close(self):

        with self._sig_lock:
            if self.shutdown:
                return
            self.shutdown = True
            self._sig_tx.send(b'')
            self._sig_tx.close()

        if threading.current_thread() is not self.thread:
            self.thread.join()


# end of class Client


_signal_ids = itertools.count()



class ZmqBus(Bus):
    """ :class:`rosserial.bus.base.Bus` implementation over ZeroMQ. Messages
        published here go out on a PUB socket bound to *port* (or the first
        free port in the default range, skipping *avoid*); subscriptions
        receive from every address in *peers*, plus this bus's own PUB socket
        unless *loopback* is False.

        Callbacks are invoked from a single background thread, and should be
        as lightweight as possible.

        :ivar port: The port of the PUB socket.
    """

    def __init__(self, port=None, avoid=set(), peers=(), interface='*', loopback=True):

        self.server = Server(port, avoid, interface)
        self.port = self.server.port
        self.client = Client()

        self.lock = threading.Lock()
        self.types = dict()
        self.publications = list()
        self.subscriptions = list()

        if loopback:
            self.client.connect('tcp://127.0.0.1:%d' % (self.port))

        for peer in peers:
            self.connect(peer)


    def connect(self, address):
        """ Receive broadcasts from the PUB socket at *address*, which is a
            ZeroMQ endpoint such as ``tcp://hostname:11411``.
        """

        self.client.connect(address)


    def _claim(self, topic, type_name):

        known = self.types.get(topic)

        if known is None:
            self.types[topic] = type_name
        elif known != type_name:
            raise BusError('topic %s carries %s, not %s' % (topic, known, type_name))


    def _release(self, topic):

        for handle in itertools.chain(self.publications, self.subscriptions):
            if handle.topic == topic:
                return

        self.types.pop(topic, None)


    def advertise(self, topic, type_name):

        with self.lock:
            self._claim(topic, type_name)
            publication = Publication(self, topic, type_name)
            self.publications.append(publication)

        return publication


    def unadvertise(self, publication):

        with self.lock:
            if publication.closed:
                return
            publication.closed = True
            self.publications.remove(publication)
            self._release(publication.topic)


    def publish(self, topic, type_name, data):

        with self.lock:
            known = self.types.get(topic)

        if known is not None and known != type_name:
            raise BusError('topic %s carries %s, not %s' % (topic, known, type_name))

        self.server.publish(topic, type_name, data)


    def subscribe(self, topic, type_name, callback):

        if callable(callback):
            pass
        else:
            raise TypeError('callback must be callable')

        with self.lock:
            self._claim(topic, type_name)
            subscription = Subscription(self, topic, type_name, callback)
            self.subscriptions.append(subscription)

        self.client.register(subscription)
        return subscription


    def unsubscribe(self, subscription):

        with self.lock:
            if subscription.closed:
                return
            subscription.closed = True
            self.subscriptions.remove(subscription)
            self._release(subscription.topic)

        self.client.unregister(subscription)


    def close(self):

        with self.lock:
            publications = list(self.publications)
            subscriptions = list(self.subscriptions)

        for publication in publications:
            self.unadvertise(publication)

        for subscription in subscriptions:
            self.unsubscribe(subscription)

        self.client.close()
        self.server.close()


# end of class ZmqBus


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
