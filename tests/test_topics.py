import threading

import pytest

from rosserial.errors import NegotiationConflict, UnknownTopic
from rosserial.topics import Direction, Entry, TopicRegistry


PUB = Direction.PUBLICATION
SUB = Direction.SUBSCRIPTION


def test_register_and_lookup():

    registry = TopicRegistry()
    assert len(registry) == 0
    assert registry.by_id(101) is None

    entry = Entry(101, 'hello_world', 'std_msgs/String', PUB)
    is_new, replaced = registry.register(entry)

    assert is_new == True
    assert replaced is None
    assert len(registry) == 1
    assert 101 in registry
    assert registry.by_id(101) is entry
    assert registry.by_name('hello_world') is entry
    assert registry.by_name('hello_world', PUB) is entry
    assert registry.by_name('hello_world', SUB) is None


def test_identical_registration():

    registry = TopicRegistry()
    registry.register(Entry(101, 'hello_world', 'std_msgs/String', PUB))

    is_new, replaced = registry.register(Entry(101, 'hello_world', 'std_msgs/String', PUB))
    assert is_new == False
    assert replaced is None
    assert len(registry) == 1


def test_replacement():

    registry = TopicRegistry()
    first = Entry(101, 'hello_world', 'std_msgs/String', PUB)
    second = Entry(101, 'counter', 'std_msgs/Int32', PUB)

    registry.register(first)
    is_new, replaced = registry.register(second)

    assert is_new == True
    assert replaced is first
    assert registry.by_id(101) is second
    assert registry.by_name('hello_world') is None
    assert registry.by_name('counter') is second


def test_conflict_without_replacement():

    registry = TopicRegistry()
    first = Entry(101, 'hello_world', 'std_msgs/String', PUB)
    registry.register(first)

    # Identical metadata is never a conflict.
    assert registry.register(first, replace=False) == (False, None)

    with pytest.raises(NegotiationConflict):
        registry.register(Entry(101, 'hello_world', 'std_msgs/Int32', PUB), replace=False)

    assert registry.get(101) is first

    with pytest.raises(UnknownTopic):
        registry.get(102)


def test_name_index_survives_stale_removal():

    registry = TopicRegistry()
    old = Entry(101, 'led', 'std_msgs/Bool', SUB)
    new = Entry(102, 'led', 'std_msgs/Bool', SUB)

    registry.register(old)
    registry.register(new)

    # Removing the older id must not drop the name index for the newer one.
    assert registry.remove(101) is old
    assert registry.by_name('led') is new
    assert registry.remove(101) is None


def test_clear():

    registry = TopicRegistry()
    registry.register(Entry(101, 'a', 'std_msgs/Int32', PUB))
    registry.register(Entry(102, 'b', 'std_msgs/Int32', SUB))

    removed = registry.clear()
    assert sorted(entry.topic_id for entry in removed) == [101, 102]
    assert len(registry) == 0
    assert list(registry) == []
    assert registry.by_name('a') is None


def test_entries_are_immutable():

    entry = Entry(101, 'a', 'std_msgs/Int32', PUB)

    with pytest.raises(AttributeError):
        entry.topic_name = 'b'

    assert entry == Entry(101, 'a', 'std_msgs/Int32', PUB)
    assert entry != Entry(101, 'a', 'std_msgs/Int32', SUB)
    assert len(set((entry, Entry(101, 'a', 'std_msgs/Int32', PUB)))) == 1


def test_concurrent_readers():

    registry = TopicRegistry()
    failures = list()
    done = threading.Event()

    def read():
        while not done.is_set():
            entry = registry.by_id(150)
            if entry is not None and entry.topic_id != 150:
                failures.append(entry)
            list(registry)

    readers = [threading.Thread(target=read) for x in range(4)]
    for reader in readers:
        reader.start()

    for topic_id in range(100, 300):
        registry.register(Entry(topic_id, 'topic%d' % (topic_id), 'std_msgs/Int32', PUB))

    done.set()
    for reader in readers:
        reader.join()

    assert failures == []
    assert len(registry) == 200


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
