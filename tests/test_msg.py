import struct

import pytest

import rosserial
from rosserial.errors import DeserializationFailure, UnknownMessageType


def test_string():

    encoded = rosserial.msg.serialize('std_msgs/String', {'data': 'Hello, world!'})
    assert encoded == struct.pack('<I', 13) + b'Hello, world!'

    decoded = rosserial.msg.deserialize('std_msgs/String', encoded)
    assert decoded == {'data': 'Hello, world!'}


def test_topic_info():

    info = {'topic_id': 101, 'topic_name': 'hello_world', 'message_type': 'std_msgs/String'}
    encoded = rosserial.msg.serialize('rosserial_msgs/TopicInfo', info)

    expected = struct.pack('<H', 101)
    expected += struct.pack('<I', 11) + b'hello_world'
    expected += struct.pack('<I', 15) + b'std_msgs/String'
    assert encoded == expected

    assert rosserial.msg.deserialize('rosserial_msgs/TopicInfo', encoded) == info

    topic_info = rosserial.msg.get('rosserial_msgs/TopicInfo')
    assert topic_info.constants['ID_PUBLISHER'] == 0
    assert topic_info.constants['ID_SUBSCRIBER'] == 1
    assert topic_info.constants['ID_TX_STOP'] == 11


def test_defaults():

    assert rosserial.msg.serialize('std_msgs/Empty', {}) == b''
    assert rosserial.msg.serialize('std_msgs/Int32', {}) == bytes(4)

    twist = rosserial.msg.get('geometry_msgs/Twist').default()
    assert twist == {
        'linear': {'x': 0.0, 'y': 0.0, 'z': 0.0},
        'angular': {'x': 0.0, 'y': 0.0, 'z': 0.0},
    }


def test_nested_and_time():

    header = {'seq': 7, 'stamp': {'secs': 12, 'nsecs': 500}, 'frame_id': 'base'}
    encoded = rosserial.msg.serialize('std_msgs/Header', header)
    assert encoded == struct.pack('<III', 7, 12, 500) + struct.pack('<I', 4) + b'base'
    assert rosserial.msg.deserialize('std_msgs/Header', encoded) == header


def test_arrays():

    registry = rosserial.msg.Registry()
    registry.register('test_msgs/Arrays', '''
        # Comments and blank lines are ignored.

        int16[] values
        float64[2] pair    # trailing comment
        uint8[] blob
        string[] names
        Point[] points     # resolved in the same package
        ''')
    registry.register('test_msgs/Point', 'int32 x\nint32 y')

    message = {
        'values': [1, -2, 3],
        'pair': [0.5, 1.5],
        'blob': b'\x00\xff',
        'names': ['a', 'bc'],
        'points': [{'x': 1, 'y': 2}],
    }

    encoded = registry.serialize('test_msgs/Arrays', message)
    assert encoded.startswith(struct.pack('<Ihhh', 3, 1, -2, 3))
    assert registry.deserialize('test_msgs/Arrays', encoded) == message

    with pytest.raises(ValueError):
        registry.serialize('test_msgs/Arrays', dict(message, pair=[1.0]))


def test_malformed():

    encoded = rosserial.msg.serialize('std_msgs/String', {'data': 'abc'})

    with pytest.raises(DeserializationFailure):
        rosserial.msg.deserialize('std_msgs/String', encoded[:-1])

    with pytest.raises(DeserializationFailure):
        rosserial.msg.deserialize('std_msgs/String', encoded + b'x')

    with pytest.raises(DeserializationFailure):
        rosserial.msg.deserialize('std_msgs/String', struct.pack('<I', 2) + b'\xff\xfe')

    # A length prefix far beyond the buffer must not be trusted.
    with pytest.raises(DeserializationFailure):
        rosserial.msg.deserialize('std_msgs/String', struct.pack('<I', 0xFFFFFFFF))

    # DeserializationFailure is also a ValueError.
    with pytest.raises(ValueError):
        rosserial.msg.deserialize('std_msgs/Int32', b'\x01')


def test_array_counts_are_bounded():

    registry = rosserial.msg.Registry()
    registry.register('test_msgs/Bag', 'std_msgs/Empty[] items')
    registry.register('test_msgs/Points', 'geometry_msgs/Point[] points')

    # Elements that occupy no bytes cannot be checked against the buffer,
    # so an absurd count must be refused outright rather than decoded.
    with pytest.raises(DeserializationFailure):
        registry.deserialize('test_msgs/Bag', b'\xff\xff\xff\x7f')

    assert registry.deserialize('test_msgs/Bag', struct.pack('<I', 3)) == {'items': [{}, {}, {}]}

    # Each point needs 24 bytes; two of them cannot fit in 24.
    with pytest.raises(DeserializationFailure):
        registry.deserialize('test_msgs/Points', struct.pack('<I', 2) + bytes(24))

    with pytest.raises(DeserializationFailure):
        registry.deserialize('test_msgs/Points', struct.pack('<I', 0xFFFFFFFF))


def test_bad_values():

    with pytest.raises(ValueError):
        rosserial.msg.serialize('std_msgs/UInt8', {'data': 256})

    with pytest.raises(ValueError):
        rosserial.msg.serialize('std_msgs/String', {'data': 12})

    with pytest.raises(ValueError):
        rosserial.msg.serialize('std_msgs/String', 'not a mapping')


def test_unknown_type():

    with pytest.raises(UnknownMessageType):
        rosserial.msg.get('nobody/Knows')

    with pytest.raises(KeyError):
        rosserial.msg.deserialize('nobody/Knows', b'')

    assert 'nobody/Knows' not in rosserial.msg.registry
    assert 'std_msgs/String' in rosserial.msg.registry


def test_register():

    registry = rosserial.msg.Registry(builtins=False)
    assert 'std_msgs/String' not in registry

    registry.register('sensor_msgs/Range', '''
        uint8 ULTRASOUND=0
        uint8 INFRARED=1
        string LABEL=range # not a comment
        uint8 radiation_type
        float32 range
        ''')

    range_type = registry.get('sensor_msgs/Range')
    assert range_type.constants == {'ULTRASOUND': 0, 'INFRARED': 1, 'LABEL': 'range # not a comment'}
    assert [field.name for field in range_type.fields] == ['radiation_type', 'range']
    assert list(registry) == ['sensor_msgs/Range']

    with pytest.raises(ValueError):
        registry.register('Unqualified', 'int32 data')

    with pytest.raises(ValueError):
        registry.register('test_msgs/Broken', 'this is not a field')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
