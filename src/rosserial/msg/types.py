""" Runtime message types. A :class:`MessageType` is built from a ``.msg``
    style definition, one field per line::

        uint16 topic_id
        string topic_name
        string message_type

    and converts between Python dictionaries and the serialized form used on
    the serial link: little-endian primitives, strings and variable-length
    arrays prefixed with a uint32 length, fixed-length arrays with no prefix,
    nested messages inline. Nothing is generated ahead of time; knowing the
    type name is enough, provided the definition has been registered.
"""

import re
import struct

from ..errors import DeserializationFailure


PRIMITIVES = {
    'bool':    struct.Struct('<?'),
    'byte':    struct.Struct('<b'),
    'char':    struct.Struct('<B'),
    'int8':    struct.Struct('<b'),
    'uint8':   struct.Struct('<B'),
    'int16':   struct.Struct('<h'),
    'uint16':  struct.Struct('<H'),
    'int32':   struct.Struct('<i'),
    'uint32':  struct.Struct('<I'),
    'int64':   struct.Struct('<q'),
    'uint64':  struct.Struct('<Q'),
    'float32': struct.Struct('<f'),
    'float64': struct.Struct('<d'),
}

TIMES = {
    'time':     struct.Struct('<II'),
    'duration': struct.Struct('<ii'),
}

LENGTH = struct.Struct('<I')

# Upper bound on the element count of an array whose elements occupy no
# bytes at all, such as std_msgs/Empty[]; nothing else limits those.
MAX_EMPTY_ELEMENTS = 0xFFFF

# Arrays of these are carried as bytes rather than lists of integers.
OCTETS = set(('uint8', 'char'))

_field_re = re.compile(r'^([A-Za-z][\w/]*)(\[(\d*)\])?\s+([A-Za-z]\w*)$')
_constant_re = re.compile(r'^([A-Za-z][\w/]*)\s+([A-Za-z]\w*)\s*=\s*(.*)$')


class Field:
    """ A single field of a message definition. *array* is None for a
        scalar, -1 for a variable-length array, or the fixed element count.
    """

    def __init__(self, name, type, array=None):
        self.name = name
        self.type = type
        self.array = array


    def __repr__(self):
        if self.array is None:
            suffix = ''
        elif self.array < 0:
            suffix = '[]'
        else:
            suffix = '[%d]' % (self.array)

        return '%s%s %s' % (self.type, suffix, self.name)


# end of class Field



def parse(definition):
    """ Parse the text of a ``.msg`` style *definition* and return a
        (fields, constants) tuple: a list of :class:`Field` instances, and a
        dictionary of constant names to values.
    """

    fields = list()
    constants = dict()

    for line in definition.splitlines():
        line = line.strip()

        if line == '' or line.startswith('#'):
            continue

        # String constants take everything after the '=' verbatim, comment
        # characters included.

        match = _constant_re.match(line)
        if match:
            type, name, value = match.groups()
            if type != 'string':
                value = value.split('#', 1)[0].strip()
            constants[name] = _constant(type, value)
            continue

        line = line.split('#', 1)[0].strip()
        match = _field_re.match(line)

        if match is None:
            raise ValueError('invalid field definition: ' + repr(line))

        type, brackets, count, name = match.groups()

        if brackets is None:
            array = None
        elif count == '':
            array = -1
        else:
            array = int(count)

        fields.append(Field(name, type, array))

    return fields, constants



def _constant(type, value):

    if type == 'string':
        return value
    if type == 'bool':
        return value.lower() in ('1', 'true')
    if type in ('float32', 'float64'):
        return float(value)
    if type in PRIMITIVES:
        return int(value, 0)

    raise ValueError('constants must be primitive, not ' + type)



class MessageType:
    """ Serializer/deserializer for one named message type. Nested message
        types are resolved through *registry* at use time, so definitions can
        be registered in any order.

        :ivar name: The full type name, such as ``std_msgs/String``.
        :ivar fields: The list of :class:`Field` instances, in wire order.
        :ivar constants: Named constants declared in the definition.
    """

    def __init__(self, name, fields, constants=None, registry=None):

        self.name = name
        self.package = name.split('/', 1)[0]
        self.fields = fields
        self.constants = constants or dict()
        self.registry = registry


    def __repr__(self):
        return 'MessageType(%r)' % (self.name)


    def default(self):
        """ Return a new dictionary with every field at its zero value.
        """

        message = dict()

        for field in self.fields:
            if field.array is None:
                message[field.name] = self._default(field.type)
            elif field.type in OCTETS:
                message[field.name] = bytes(max(field.array, 0))
            elif field.array < 0:
                message[field.name] = list()
            else:
                message[field.name] = [self._default(field.type) for x in range(field.array)]

        return message


    def _default(self, type):

        if type == 'string':
            return ''
        if type == 'bool':
            return False
        if type in ('float32', 'float64'):
            return 0.0
        if type in PRIMITIVES:
            return 0
        if type in TIMES:
            return {'secs': 0, 'nsecs': 0}

        return self._resolve(type).default()


    def _resolve(self, type):

        if self.registry is None:
            raise ValueError('cannot resolve nested type without a registry: ' + type)

        if type == 'Header':
            type = 'std_msgs/Header'
        elif '/' not in type:
            type = self.package + '/' + type

        return self.registry.get(type)


    def serialize(self, message):
        """ Return the serialized bytes for *message*, a dictionary. Missing
            fields are serialized as their zero value; a value that cannot
            be represented raises ValueError.
        """

        parts = list()
        self._pack(message, parts)
        return b''.join(parts)


    def _pack(self, message, parts):

        for field in self.fields:
            try:
                value = message[field.name]
            except KeyError:
                value = self.default()[field.name]
            except TypeError:
                raise ValueError('%s: message must be a mapping, not %s' % (self.name, type(message).__name__))

            try:
                self._pack_field(field, value, parts)
            except (struct.error, TypeError, AttributeError, UnicodeError) as e:
                raise ValueError('%s.%s: %s' % (self.name, field.name, e)) from e


    def _pack_field(self, field, value, parts):

        if field.array is None:
            self._pack_value(field.type, value, parts)
            return

        if field.array < 0:
            parts.append(LENGTH.pack(len(value)))
        elif len(value) != field.array:
            raise ValueError('%s.%s: expected %d elements, got %d' % (self.name, field.name, field.array, len(value)))

        if field.type in OCTETS:
            parts.append(bytes(value))
            return

        for element in value:
            self._pack_value(field.type, element, parts)


    def _pack_value(self, type, value, parts):

        if type == 'string':
            encoded = value.encode('utf-8')
            parts.append(LENGTH.pack(len(encoded)))
            parts.append(encoded)
        elif type in PRIMITIVES:
            parts.append(PRIMITIVES[type].pack(value))
        elif type in TIMES:
            parts.append(TIMES[type].pack(value['secs'], value['nsecs']))
        else:
            self._resolve(type)._pack(value, parts)


    def deserialize(self, data):
        """ Return the dictionary represented by *data*. The whole buffer must
            be consumed; short, long, or otherwise malformed input raises
            :class:`rosserial.errors.DeserializationFailure`.
        """

        buffer = _Buffer(data, self.name)
        message = self._unpack(buffer)

        if buffer.remaining() != 0:
            raise DeserializationFailure('%s: %d trailing bytes' % (self.name, buffer.remaining()))

        return message


    def _unpack(self, buffer):

        message = dict()

        for field in self.fields:
            if field.array is None:
                message[field.name] = self._unpack_value(field.type, buffer)
                continue

            if field.array < 0:
                count = LENGTH.unpack(buffer.take(LENGTH.size))[0]
            else:
                count = field.array

            if field.type in OCTETS:
                message[field.name] = bytes(buffer.take(count))
                continue

            self._check_count(field, count, buffer)
            message[field.name] = [self._unpack_value(field.type, buffer) for x in range(count)]

        return message


    def _check_count(self, field, count, buffer):
        """ Reject an array count that cannot possibly be satisfied by the
            bytes remaining in *buffer*, before any element is decoded.
        """

        size = self._minimum_size(field.type)

        if size > 0:
            if count * size > buffer.remaining():
                raise DeserializationFailure('%s.%s: %d elements cannot fit in %d bytes' % (self.name, field.name, count, buffer.remaining()))
        elif count > MAX_EMPTY_ELEMENTS:
            raise DeserializationFailure('%s.%s: %d empty elements exceeds the limit of %d' % (self.name, field.name, count, MAX_EMPTY_ELEMENTS))


    def _minimum_size(self, type):
        """ Return the fewest bytes one serialized *type* value can occupy.
        """

        if type == 'string':
            return LENGTH.size
        if type in PRIMITIVES:
            return PRIMITIVES[type].size
        if type in TIMES:
            return TIMES[type].size

        nested = self._resolve(type)
        total = 0

        for field in nested.fields:
            if field.array is None:
                total += nested._minimum_size(field.type)
            elif field.array < 0:
                total += LENGTH.size
            elif field.type in OCTETS:
                total += field.array
            else:
                total += field.array * nested._minimum_size(field.type)

        return total


    def _unpack_value(self, type, buffer):

        if type == 'string':
            length = LENGTH.unpack(buffer.take(LENGTH.size))[0]
            raw = buffer.take(length)
            try:
                return str(raw, 'utf-8')
            except UnicodeDecodeError as e:
                raise DeserializationFailure('%s: invalid UTF-8 string' % (self.name)) from e

        if type in PRIMITIVES:
            format = PRIMITIVES[type]
            return format.unpack(buffer.take(format.size))[0]

        if type in TIMES:
            format = TIMES[type]
            secs, nsecs = format.unpack(buffer.take(format.size))
            return {'secs': secs, 'nsecs': nsecs}

        return self._resolve(type)._unpack(buffer)


# end of class MessageType



class _Buffer:
    """ Read cursor over serialized bytes, raising
        :class:`rosserial.errors.DeserializationFailure` on a short read.
    """

    def __init__(self, data, name):
        self.data = memoryview(data)
        self.name = name
        self.offset = 0


    def remaining(self):
        return len(self.data) - self.offset


    def take(self, count):

        end = self.offset + count

        if end > len(self.data):
            raise DeserializationFailure('%s: truncated at byte %d, wanted %d more' % (self.name, self.offset, count))

        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk


# end of class _Buffer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
