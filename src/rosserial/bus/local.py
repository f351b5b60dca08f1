""" An in-process bus. Useful for embedding the bridge in a larger Python
    application, and for testing it without any network sockets.
"""

import logging
import threading

from ..errors import BusError
from .base import Bus, Publication, Subscription

logger = logging.getLogger(__name__)


class LocalBus(Bus):
    """ Deliver published messages to subscribers in the same process.
        Delivery is synchronous: :func:`publish` invokes every matching
        callback in the calling thread before returning. Any callbacks
        registered here should be as lightweight as possible.

        Each topic carries exactly one message type; advertising or
        subscribing with a different type while the topic is in use raises
        :class:`rosserial.errors.BusError`.

        :ivar publications: Open :class:`Publication` handles.
        :ivar subscriptions: Open :class:`Subscription` handles, by topic.
    """

    def __init__(self):

        self.lock = threading.RLock()
        self.publications = list()
        self.subscriptions = dict()
        self.types = dict()
        self.published = 0


    def _claim(self, topic, type_name):

        known = self.types.get(topic)

        if known is None:
            self.types[topic] = type_name
        elif known != type_name:
            raise BusError('topic %s carries %s, not %s' % (topic, known, type_name))


    def _release(self, topic):

        if topic in self.subscriptions:
            return

        for publication in self.publications:
            if publication.topic == topic:
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


    def subscribe(self, topic, type_name, callback):

        if callable(callback):
            pass
        else:
            raise TypeError('callback must be callable')

        with self.lock:
            self._claim(topic, type_name)
            subscription = Subscription(self, topic, type_name, callback)

            try:
                subscriptions = self.subscriptions[topic]
            except KeyError:
                subscriptions = list()
                self.subscriptions[topic] = subscriptions

            subscriptions.append(subscription)

        return subscription


    def unsubscribe(self, subscription):

        with self.lock:
            if subscription.closed:
                return

            subscription.closed = True
            topic = subscription.topic

            subscriptions = self.subscriptions.get(topic, ())
            if subscription in subscriptions:
                subscriptions.remove(subscription)
            if len(subscriptions) == 0:
                self.subscriptions.pop(topic, None)

            self._release(topic)


    def publish(self, topic, type_name, data):

        with self.lock:
            known = self.types.get(topic)
            if known is not None and known != type_name:
                raise BusError('topic %s carries %s, not %s' % (topic, known, type_name))

            self.published += 1
            subscriptions = list(self.subscriptions.get(topic, ()))

        # Callbacks run outside the lock, so that a callback can publish or
        # subscribe without deadlocking.

        for subscription in subscriptions:
            if subscription.closed:
                continue

            try:
                subscription.callback(data)
            except Exception:
                logger.exception("callback for %s raised", topic)


    def close(self):

        with self.lock:
            publications = list(self.publications)
            subscriptions = list()
            for topic_subscriptions in self.subscriptions.values():
                subscriptions.extend(topic_subscriptions)

        for publication in publications:
            self.unadvertise(publication)

        for subscription in subscriptions:
            self.unsubscribe(subscription)


# end of class LocalBus


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
