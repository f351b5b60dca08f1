""" Python implementation of a rosserial host. A device on the far end of a
    serial line announces its topics at runtime; the bridge turns each one
    into a publication or subscription on a pub/sub bus, and carries the
    traffic in both directions.
"""

# Utility components.

from . import json
from . import errors

# Submodules used by multiple other components.

from . import msg
from . import protocol
from . import transport
from . import config
from . import bus

# Primary public-facing interfaces.

from .topics import Direction, Entry, TopicRegistry
from .bridge import SerialBridge

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
