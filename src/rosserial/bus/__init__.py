""" Pub/sub bus implementations. The bridge only depends on the
    :class:`base.Bus` interface; :class:`local.LocalBus` keeps everything in
    one process, :class:`zmq.ZmqBus` spans processes and hosts.
"""

from .base import Bus, Publication, Subscription
from .local import LocalBus

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
