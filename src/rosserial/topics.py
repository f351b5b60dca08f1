""" The runtime table mapping wire topic ids to named, typed topics. Entries
    only ever come from negotiation frames sent by the device.
"""

import enum
import threading

from .errors import NegotiationConflict, UnknownTopic


class Direction(enum.Enum):
    """ Direction of a topic as seen from the device: PUBLICATION topics
        flow device to bus, SUBSCRIPTION topics flow bus to device.
    """

    PUBLICATION = 'pub'
    SUBSCRIPTION = 'sub'


class Entry:
    """ One registry entry. Entries are immutable; a redeclared topic id gets
        a new :class:`Entry` rather than a modified one.
    """

    __slots__ = ('topic_id', 'topic_name', 'message_type', 'direction')

    def __init__(self, topic_id, topic_name, message_type, direction):
        object.__setattr__(self, 'topic_id', topic_id)
        object.__setattr__(self, 'topic_name', topic_name)
        object.__setattr__(self, 'message_type', message_type)
        object.__setattr__(self, 'direction', direction)


    def __setattr__(self, name, value):
        raise AttributeError('registry entries are immutable')


    def __eq__(self, other):
        if not isinstance(other, Entry):
            return NotImplemented
        return self.key() == other.key()


    def __hash__(self):
        return hash(self.key())


    def __repr__(self):
        return 'Entry(%d, %r, %r, %s)' % (self.topic_id, self.topic_name, self.message_type, self.direction.name)


    def key(self):
        return (self.topic_id, self.topic_name, self.message_type, self.direction)


# end of class Entry



class TopicRegistry:
    """ Topic id to :class:`Entry` mapping, plus a secondary index by
        (topic name, direction). Every method takes the one internal lock;
        writes come from the bridge reader thread, reads also come from bus
        callback threads.
    """

    def __init__(self):

        self._lock = threading.Lock()
        self._by_id = dict()
        self._by_name = dict()


    def __contains__(self, topic_id):
        with self._lock:
            return topic_id in self._by_id


    def __iter__(self):
        with self._lock:
            entries = list(self._by_id.values())
        return iter(entries)


    def __len__(self):
        with self._lock:
            return len(self._by_id)


    def register(self, entry, replace=True):
        """ Insert *entry*, replacing any entry with the same topic id.
            Returns an (is_new, replaced) tuple: is_new is False, and nothing
            changes, if an identical entry is already present; replaced is
            the prior :class:`Entry` for this topic id, or None.

            If *replace* is False a differing entry already present for the
            same topic id raises :class:`rosserial.errors.NegotiationConflict`
            instead, leaving the registry untouched.
        """

        with self._lock:
            existing = self._by_id.get(entry.topic_id)

            if existing == entry:
                return False, None

            if existing is not None:
                if replace == False:
                    raise NegotiationConflict('topic id %d redeclared: %r replaces %r' % (entry.topic_id, entry, existing))
                self._unindex(existing)

            self._by_id[entry.topic_id] = entry
            self._by_name[(entry.topic_name, entry.direction)] = entry

        return True, existing


    def by_id(self, topic_id):
        """ Return the :class:`Entry` for *topic_id*, or None.
        """

        with self._lock:
            return self._by_id.get(topic_id)


    def get(self, topic_id):
        """ Return the :class:`Entry` for *topic_id*; raise
            :class:`rosserial.errors.UnknownTopic` if there is none.
        """

        with self._lock:
            try:
                return self._by_id[topic_id]
            except KeyError:
                raise UnknownTopic('no topic negotiated for id %d' % (topic_id)) from None


    def by_name(self, topic_name, direction=None):
        """ Return the :class:`Entry` for *topic_name*, or None. If
            *direction* is None either direction matches, publications first.
        """

        with self._lock:
            if direction is not None:
                return self._by_name.get((topic_name, direction))

            for direction in Direction:
                entry = self._by_name.get((topic_name, direction))
                if entry is not None:
                    return entry

        return None


    def remove(self, topic_id):
        """ Remove and return the :class:`Entry` for *topic_id*, or None if
            there was no such entry.
        """

        with self._lock:
            entry = self._by_id.pop(topic_id, None)
            if entry is not None:
                self._unindex(entry)

        return entry


    def clear(self):
        """ Remove every entry; returns the list of removed entries.
        """

        with self._lock:
            entries = list(self._by_id.values())
            self._by_id.clear()
            self._by_name.clear()

        return entries


    def _unindex(self, entry):

        key = (entry.topic_name, entry.direction)

        # Another topic id may have claimed the same name since.
        if self._by_name.get(key) is entry:
            del self._by_name[key]


# end of class TopicRegistry


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
