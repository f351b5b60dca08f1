""" The small contract a pub/sub bus must satisfy for the bridge to use it.
    Payloads cross this interface as serialized bytes; the bus never needs
    to understand a message type beyond its name.
"""

import abc

from ..errors import BusError


class Publication:
    """ Handle returned by :func:`Bus.advertise`.
    """

    def __init__(self, bus, topic, type_name):

        self.bus = bus
        self.topic = topic
        self.type_name = type_name
        self.closed = False


    def publish(self, data):

        if self.closed:
            raise BusError('publication on %s is closed' % (self.topic))

        self.bus.publish(self.topic, self.type_name, data)


    def __repr__(self):
        return 'Publication(%r, %r)' % (self.topic, self.type_name)


# end of class Publication



class Subscription:
    """ Handle returned by :func:`Bus.subscribe`.
    """

    def __init__(self, bus, topic, type_name, callback):

        self.bus = bus
        self.topic = topic
        self.type_name = type_name
        self.callback = callback
        self.closed = False


    def __repr__(self):
        return 'Subscription(%r, %r)' % (self.topic, self.type_name)


# end of class Subscription



class Bus(abc.ABC):

    @abc.abstractmethod
    def advertise(self, topic, type_name):
        """ Declare an intent to publish *type_name* messages on *topic*,
            returning a :class:`Publication`.
        """

        raise NotImplementedError('advertise() must be implemented by the subclass')


    @abc.abstractmethod
    def unadvertise(self, publication):
        """ Withdraw a :class:`Publication`. Withdrawing twice is harmless.
        """

        raise NotImplementedError('unadvertise() must be implemented by the subclass')


    @abc.abstractmethod
    def publish(self, topic, type_name, data):
        """ Deliver serialized *data* to every subscriber of *topic*.
        """

        raise NotImplementedError('publish() must be implemented by the subclass')


    @abc.abstractmethod
    def subscribe(self, topic, type_name, callback):
        """ Invoke *callback* with the bytes of every message on *topic*,
            returning a :class:`Subscription`.
        """

        raise NotImplementedError('subscribe() must be implemented by the subclass')


    @abc.abstractmethod
    def unsubscribe(self, subscription):
        """ Cancel a :class:`Subscription`. Cancelling twice is harmless.
        """

        raise NotImplementedError('unsubscribe() must be implemented by the subclass')


    def close(self):
        pass


# end of class Bus


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
