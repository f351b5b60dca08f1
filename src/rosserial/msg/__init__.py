""" Runtime message codecs. The module-level :data:`registry` is the default
    used by :class:`rosserial.bridge.SerialBridge`; the helper functions here
    all operate on it.
"""

from . import types
from .registry import Registry, BUILTIN

registry = Registry()

get = registry.get
register = registry.register
serialize = registry.serialize
deserialize = registry.deserialize

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
