""" Name-keyed registry of message types. The bridge resolves every codec
    through a :class:`Registry` by the type name the device announced during
    negotiation; a type it has never heard of is simply not bridgeable until
    someone registers a definition for it.
"""

import threading

from ..errors import UnknownMessageType
from . import types


BUILTIN = {
    'std_msgs/Bool':     'bool data',
    'std_msgs/Byte':     'byte data',
    'std_msgs/Char':     'char data',
    'std_msgs/Empty':    '',
    'std_msgs/Float32':  'float32 data',
    'std_msgs/Float64':  'float64 data',
    'std_msgs/Int8':     'int8 data',
    'std_msgs/Int16':    'int16 data',
    'std_msgs/Int32':    'int32 data',
    'std_msgs/Int64':    'int64 data',
    'std_msgs/UInt8':    'uint8 data',
    'std_msgs/UInt16':   'uint16 data',
    'std_msgs/UInt32':   'uint32 data',
    'std_msgs/UInt64':   'uint64 data',
    'std_msgs/String':   'string data',
    'std_msgs/Time':     'time data',
    'std_msgs/Duration': 'duration data',
    'std_msgs/Header': '''
        uint32 seq
        time stamp
        string frame_id
        ''',
    'std_msgs/ColorRGBA': '''
        float32 r
        float32 g
        float32 b
        float32 a
        ''',

    'geometry_msgs/Vector3': '''
        float64 x
        float64 y
        float64 z
        ''',
    'geometry_msgs/Point': '''
        float64 x
        float64 y
        float64 z
        ''',
    'geometry_msgs/Quaternion': '''
        float64 x
        float64 y
        float64 z
        float64 w
        ''',
    'geometry_msgs/Twist': '''
        Vector3 linear
        Vector3 angular
        ''',

    'rosserial_msgs/TopicInfo': '''
        uint16 ID_PUBLISHER=0
        uint16 ID_SUBSCRIBER=1
        uint16 ID_SERVICE_SERVER=2
        uint16 ID_SERVICE_CLIENT=4
        uint16 ID_PARAMETER_REQUEST=6
        uint16 ID_LOG=7
        uint16 ID_TIME=10
        uint16 ID_TX_STOP=11

        uint16 topic_id
        string topic_name
        string message_type
        ''',
    'rosserial_msgs/Log': '''
        uint8 ROSDEBUG=0
        uint8 INFO=1
        uint8 WARN=2
        uint8 ERROR=3
        uint8 FATAL=4

        uint8 level
        string msg
        ''',
    'rosserial_msgs/RequestParamRequest': 'string name',
    'rosserial_msgs/RequestParamResponse': '''
        int32[] ints
        float32[] floats
        string[] strings
        ''',
}


class Registry:
    """ A thread-safe mapping of type names to :class:`types.MessageType`
        instances. Unless *builtins* is False the registry starts out knowing
        the types in :data:`BUILTIN`, which include everything the bridge
        itself needs to negotiate with a device.
    """

    def __init__(self, builtins=True):

        self._types = dict()
        self._lock = threading.Lock()

        if builtins:
            for name, definition in BUILTIN.items():
                self.register(name, definition)


    def __contains__(self, name):
        return name in self._types


    def __iter__(self):
        with self._lock:
            names = sorted(self._types.keys())
        return iter(names)


    def register(self, name, definition):
        """ Register (or replace) the type *name* using *definition*, which
            is either the text of a ``.msg`` file or an already-parsed list
            of :class:`types.Field` instances. Returns the new
            :class:`types.MessageType`.
        """

        name = str(name).strip()

        if '/' not in name:
            raise ValueError('message type names must be package-qualified: ' + repr(name))

        if isinstance(definition, str):
            fields, constants = types.parse(definition)
        else:
            fields = list(definition)
            constants = dict()

        message_type = types.MessageType(name, fields, constants, registry=self)

        with self._lock:
            self._types[name] = message_type

        return message_type


    def get(self, name):
        """ Return the :class:`types.MessageType` for *name*; raises
            :class:`rosserial.errors.UnknownMessageType` if it is not known.
        """

        try:
            return self._types[name]
        except KeyError:
            raise UnknownMessageType('unknown message type: ' + str(name)) from None


    def serialize(self, name, message):
        return self.get(name).serialize(message)


    def deserialize(self, name, data):
        return self.get(name).deserialize(data)


# end of class Registry


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
